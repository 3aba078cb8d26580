"""Rename a memory ID and every reference to it."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from memvault.memory import embeddings, graph, index, state
from memvault.memory.codec import update_frontmatter
from memvault.memory.ids import is_plain_id
from memvault.memory.store import MemoryStore
from memvault.results import NOT_ATTEMPTED, ResponseMixin, Status, StepResult, attempt
from memvault.types import MemoryRecord

logger = logging.getLogger(__name__)


@dataclass
class RenameChanges:
    file_renamed: bool = False
    graph_node_updated: StepResult = NOT_ATTEMPTED
    edges_updated: int = 0
    index_updated: StepResult = NOT_ATTEMPTED
    embedding_renamed: StepResult = NOT_ATTEMPTED
    think_state_updated: StepResult = NOT_ATTEMPTED


@dataclass
class RenameResponse(ResponseMixin):
    status: Status
    old_id: str
    new_id: str
    new_path: Path | None = None
    changes: RenameChanges = field(default_factory=RenameChanges)
    error: str | None = None


def rename_memory(root: Path | str, old_id: str, new_id: str) -> RenameResponse:
    """Rename ``old_id`` to ``new_id`` in place (same subdirectory).

    Raises FrontmatterError if the memory file cannot be parsed.
    """
    store = MemoryStore(root)
    changes = RenameChanges()

    old_path = store.find_file(old_id)
    if old_path is None:
        return RenameResponse(
            Status.ERROR, old_id, new_id, changes=changes, error=f"Memory not found: {old_id}"
        )
    if not is_plain_id(new_id):
        return RenameResponse(
            Status.ERROR, old_id, new_id, changes=changes, error=f"Invalid memory id: {new_id!r}"
        )
    # Permanent and temporary share one ID space.
    if store.find_file(new_id) is not None:
        return RenameResponse(
            Status.ERROR, old_id, new_id, changes=changes, error=f"Target already exists: {new_id}"
        )

    new_path = old_path.with_name(f"{new_id}.md")
    record = store.read_record(old_path)
    fm = record.frontmatter
    id_changes: dict = {}
    if fm.id == old_id:
        id_changes["id"] = new_id
    if fm.meta.get("id") == old_id:
        id_changes["meta"] = {**fm.meta, "id": new_id}
    store.write_record(new_path, MemoryRecord(update_frontmatter(fm, **id_changes), record.content))
    old_path.unlink()
    changes.file_renamed = True
    propagate_rename(store, old_id, new_id, changes)

    logger.info("Renamed %s -> %s (%d edges)", old_id, new_id, changes.edges_updated)
    return RenameResponse(Status.SUCCESS, old_id, new_id, new_path=new_path, changes=changes)


def propagate_rename(store: MemoryStore, old_id: str, new_id: str, changes: RenameChanges) -> None:
    """Re-key graph, index, embedding cache and think state after the file was renamed."""

    def update_graph() -> bool:
        g = graph.load_graph(store.root)
        node_renamed, changes.edges_updated = g.rename_node(old_id, new_id)
        if not node_renamed and not changes.edges_updated:
            return False
        graph.save_graph(store.root, g)
        return node_renamed

    def update_index() -> bool:
        idx = index.load_index(store.root)
        entry = idx.find(old_id)
        if entry is None:
            return False
        entry.id = new_id
        entry.relative_path = entry.relative_path.replace(old_id, new_id)
        index.save_index(store.root, idx)
        return True

    changes.graph_node_updated = attempt("graph rename", update_graph)
    changes.index_updated = attempt("index rename", update_index)
    changes.embedding_renamed = attempt(
        "embedding rename", lambda: embeddings.rename_embedding(store.root, old_id, new_id)
    )
    changes.think_state_updated = attempt(
        "think state", lambda: state.replace_current_document(store.root, old_id, new_id)
    )
