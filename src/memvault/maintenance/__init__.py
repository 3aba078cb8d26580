"""Maintenance operations over one or two scope roots.

Each operation mutates the memory file first, then updates graph, index,
embedding cache and think state one at a time, and returns a response
dataclass whose ``as_dict()`` is the plain request/response contract.
"""

from memvault.maintenance.archive import ArchiveResponse, archive_memory
from memvault.maintenance.links import (
    LinkResponse,
    SyncFrontmatterResponse,
    UnlinkResponse,
    link_memories,
    sync_frontmatter,
    unlink_memories,
)
from memvault.maintenance.move import MoveResponse, move_memory
from memvault.maintenance.promote import PromoteResponse, promote_memory
from memvault.maintenance.prune import PruneResponse, prune_memories
from memvault.maintenance.refresh import RefreshResponse, refresh_frontmatter
from memvault.maintenance.reindex import ReindexResponse, reindex_memory
from memvault.maintenance.rename import RenameResponse, rename_memory
from memvault.maintenance.sync import SyncResponse, sync_memories

__all__ = [
    "ArchiveResponse",
    "LinkResponse",
    "MoveResponse",
    "PromoteResponse",
    "PruneResponse",
    "RefreshResponse",
    "ReindexResponse",
    "RenameResponse",
    "SyncFrontmatterResponse",
    "SyncResponse",
    "UnlinkResponse",
    "archive_memory",
    "link_memories",
    "move_memory",
    "promote_memory",
    "prune_memories",
    "refresh_frontmatter",
    "reindex_memory",
    "rename_memory",
    "sync_frontmatter",
    "sync_memories",
    "unlink_memories",
]
