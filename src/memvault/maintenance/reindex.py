"""Re-register a memory file that is on disk but missing from the index or graph."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from memvault.memory import graph, index
from memvault.memory.store import MemoryStore
from memvault.results import ResponseMixin, Status

logger = logging.getLogger(__name__)


@dataclass
class ReindexChanges:
    added_to_index: bool = False
    added_to_graph: bool = False


@dataclass
class ReindexResponse(ResponseMixin):
    status: Status
    id: str
    file_path: Path | None = None
    changes: ReindexChanges = field(default_factory=ReindexChanges)
    error: str | None = None


def reindex_memory(root: Path | str, memory_id: str) -> ReindexResponse:
    """Add ``memory_id`` to the index and graph where absent.

    Raises FrontmatterError if the file cannot be parsed.
    """
    store = MemoryStore(root)
    changes = ReindexChanges()

    path = store.find_file(memory_id)
    if path is None:
        return ReindexResponse(
            Status.ERROR,
            memory_id,
            changes=changes,
            error=f"File not found: {memory_id}.md (checked permanent/ and temporary/)",
        )

    try:
        record = store.read_record(path)
    except OSError as e:
        return ReindexResponse(
            Status.ERROR, memory_id, file_path=path, changes=changes, error=f"Failed to read file: {e}"
        )
    fm = record.frontmatter

    if index.find_in_index(store.root, memory_id) is None:
        index.add_to_index(store.root, index.entry_from_record(memory_id, fm, store.relative_path(path)))
        changes.added_to_index = True

    g = graph.load_graph(store.root)
    if not g.has_node(memory_id):
        g.add_node(graph.GraphNode(id=memory_id, type=fm.type, title=fm.title))
        graph.save_graph(store.root, g)
        changes.added_to_graph = True

    if changes.added_to_index or changes.added_to_graph:
        logger.info(
            "Reindexed %s (index: %s, graph: %s)", memory_id, changes.added_to_index, changes.added_to_graph
        )
    return ReindexResponse(Status.SUCCESS, memory_id, file_path=path, changes=changes)
