"""Move a memory between scope roots (project, local, global, ...)."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from memvault.memory import embeddings, graph, index
from memvault.memory.codec import update_frontmatter
from memvault.memory.files import is_inside_dir
from memvault.memory.store import MemoryStore
from memvault.results import NOT_ATTEMPTED, ResponseMixin, Status, StepResult, attempt
from memvault.types import MemoryRecord, Scope, enum_value

logger = logging.getLogger(__name__)


@dataclass
class MoveChanges:
    file_moved: bool = False
    source_graph_updated: StepResult = NOT_ATTEMPTED
    target_graph_updated: StepResult = NOT_ATTEMPTED
    source_index_updated: StepResult = NOT_ATTEMPTED
    target_index_updated: StepResult = NOT_ATTEMPTED
    embeddings_transferred: StepResult = NOT_ATTEMPTED


@dataclass
class MoveResponse(ResponseMixin):
    status: Status
    id: str
    source_path: Path | None = None
    target_path: Path | None = None
    changes: MoveChanges = field(default_factory=MoveChanges)
    error: str | None = None


def move_memory(
    memory_id: str,
    source_root: Path | str,
    target_root: Path | str,
    target_scope: Scope | str,
) -> MoveResponse:
    """Move ``memory_id`` to ``target_root`` keeping its permanent/temporary placement.

    Raises FrontmatterError if the memory file cannot be parsed.
    """
    source = MemoryStore(source_root)
    target = MemoryStore(target_root)
    scope = enum_value(target_scope)
    changes = MoveChanges()

    if source.root.resolve() == target.root.resolve():
        return MoveResponse(
            Status.ERROR, memory_id, changes=changes, error="Source and target scopes are the same"
        )

    source_path = source.find_file(memory_id)
    if source_path is None:
        return MoveResponse(
            Status.ERROR, memory_id, changes=changes, error=f"Memory not found: {memory_id}"
        )

    subdir = source.subdir_of(source_path)
    target_path = target.root / subdir / f"{memory_id}.md"
    if not is_inside_dir(target.root, target_path):
        return MoveResponse(
            Status.ERROR,
            memory_id,
            source_path=source_path,
            changes=changes,
            error="Invalid ID: path traversal not allowed",
        )
    if target_path.exists():
        return MoveResponse(
            Status.ERROR,
            memory_id,
            source_path=source_path,
            changes=changes,
            error=f"Target already exists: {target_path}",
        )

    record = source.read_record(source_path)
    fm = update_frontmatter(record.frontmatter, scope=scope)
    target.write_record(target_path, MemoryRecord(fm, record.content))
    source_path.unlink()
    changes.file_moved = True

    def update_source_graph() -> bool:
        g = graph.load_graph(source.root)
        if not g.remove_node(memory_id):
            return False
        graph.save_graph(source.root, g)
        return True

    def update_target_graph() -> None:
        g = graph.load_graph(target.root)
        g.add_node(graph.GraphNode(id=memory_id, type=fm.type, title=fm.title))
        graph.save_graph(target.root, g)

    changes.source_graph_updated = attempt("source graph", update_source_graph)
    changes.target_graph_updated = attempt("target graph", update_target_graph)
    changes.source_index_updated = attempt(
        "source index", lambda: index.remove_from_index(source.root, memory_id)
    )
    changes.target_index_updated = attempt(
        "target index",
        lambda: index.add_to_index(
            target.root, index.entry_from_record(memory_id, fm, f"{subdir}/{memory_id}.md")
        ),
    )
    changes.embeddings_transferred = attempt(
        "embedding transfer",
        lambda: embeddings.transfer_embedding(memory_id, source.root, target.root),
    )

    logger.info("Moved %s from %s to %s (%s)", memory_id, source.root, target.root, scope)
    return MoveResponse(
        Status.SUCCESS,
        memory_id,
        source_path=source_path,
        target_path=target_path,
        changes=changes,
    )
