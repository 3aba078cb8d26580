"""Archive a memory: move it to archive/ and drop it from the graph and index.

The file is kept for reference but is no longer part of the active stores.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from memvault.memory import graph, index, state
from memvault.memory.store import MemoryStore
from memvault.results import NOT_ATTEMPTED, ResponseMixin, Status, StepResult, attempt

logger = logging.getLogger(__name__)


@dataclass
class ArchiveChanges:
    file_moved: bool = False
    removed_from_graph: StepResult = NOT_ATTEMPTED
    removed_from_index: StepResult = NOT_ATTEMPTED
    think_state_cleared: StepResult = NOT_ATTEMPTED


@dataclass
class ArchiveResponse(ResponseMixin):
    status: Status
    id: str
    source_path: Path | None = None
    archive_path: Path | None = None
    changes: ArchiveChanges = field(default_factory=ArchiveChanges)
    error: str | None = None


def archive_memory(root: Path | str, memory_id: str) -> ArchiveResponse:
    store = MemoryStore(root)
    changes = ArchiveChanges()

    source_path = store.find_file(memory_id)
    if source_path is None:
        return ArchiveResponse(
            Status.ERROR, memory_id, changes=changes, error=f"Memory not found: {memory_id}"
        )

    archive_path = store.archive_dir / f"{memory_id}.md"
    if archive_path.exists():
        return ArchiveResponse(
            Status.ERROR,
            memory_id,
            source_path=source_path,
            changes=changes,
            error=f"Memory already archived: {memory_id}",
        )

    store.archive_dir.mkdir(parents=True, exist_ok=True)
    source_path.rename(archive_path)
    changes.file_moved = True

    def remove_node() -> bool:
        g = graph.load_graph(store.root)
        if not g.remove_node(memory_id):
            return False
        graph.save_graph(store.root, g)
        return True

    changes.removed_from_graph = attempt("graph removal", remove_node)
    changes.removed_from_index = attempt(
        "index removal", lambda: index.remove_from_index(store.root, memory_id)
    )
    changes.think_state_cleared = attempt(
        "think state", lambda: state.clear_current_document(store.root, memory_id)
    )

    logger.info("Archived %s to %s", memory_id, archive_path)
    return ArchiveResponse(
        Status.SUCCESS,
        memory_id,
        source_path=source_path,
        archive_path=archive_path,
        changes=changes,
    )
