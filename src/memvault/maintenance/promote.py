"""Promote (or demote) a memory to another type.

A temporary document promoted to a permanent type also moves from
temporary/ to permanent/. When the ID carries a type prefix that no longer
matches (``learning-foo`` promoted to decision), the memory is renamed to
``decision-foo``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from memvault.maintenance.rename import rename_memory
from memvault.memory import graph, index, state
from memvault.memory.codec import serialise_memory_file, update_frontmatter
from memvault.memory.ids import parse_id
from memvault.memory.store import PERMANENT, TEMPORARY, MemoryStore
from memvault.results import NOT_ATTEMPTED, ResponseMixin, Status, StepResult, attempt
from memvault.types import MemoryRecord, MemoryType, enum_value

logger = logging.getLogger(__name__)

PERMANENT_TYPES = frozenset(t.value for t in MemoryType)


@dataclass
class PromoteChanges:
    frontmatter_updated: bool = False
    file_moved: bool = False
    graph_updated: StepResult = NOT_ATTEMPTED
    index_updated: StepResult = NOT_ATTEMPTED
    file_renamed: StepResult = NOT_ATTEMPTED
    think_state_cleared: StepResult = NOT_ATTEMPTED


@dataclass
class PromoteResponse(ResponseMixin):
    status: Status
    id: str
    to_type: str
    from_type: str | None = None
    new_id: str | None = None
    changes: PromoteChanges = field(default_factory=PromoteChanges)
    error: str | None = None


def promote_memory(root: Path | str, memory_id: str, target_type: MemoryType | str) -> PromoteResponse:
    """Change the type of ``memory_id``. Raises FrontmatterError on an unparsable file."""
    store = MemoryStore(root)
    to_type = enum_value(target_type)
    changes = PromoteChanges()

    if to_type not in PERMANENT_TYPES:
        return PromoteResponse(
            Status.ERROR, memory_id, to_type, changes=changes, error=f"Invalid memory type: {to_type}"
        )

    current_path = store.find_file(memory_id)
    if current_path is None:
        return PromoteResponse(
            Status.ERROR, memory_id, to_type, changes=changes, error=f"Memory not found: {memory_id}"
        )

    record = store.read_record(current_path)
    from_type = record.frontmatter.type
    if from_type == to_type:
        return PromoteResponse(Status.SUCCESS, memory_id, to_type, from_type=from_type, changes=changes)

    # A temporary hit means permanent/ has no file with this ID.
    needs_move = store.subdir_of(current_path) == TEMPORARY
    new_path = store.permanent_dir / f"{memory_id}.md" if needs_move else current_path

    fm = update_frontmatter(record.frontmatter, type=to_type)
    text = serialise_memory_file(fm, record.content)

    if needs_move:
        # Exclusive create: a file that appeared since the lookup is a conflict.
        store.permanent_dir.mkdir(parents=True, exist_ok=True)
        try:
            with new_path.open("x", encoding="utf-8") as f:
                f.write(text)
        except FileExistsError:
            return PromoteResponse(
                Status.ERROR,
                memory_id,
                to_type,
                from_type=from_type,
                changes=changes,
                error=f"Target already exists in {PERMANENT}: {memory_id}",
            )
        changes.frontmatter_updated = True
        current_path.unlink()
        changes.file_moved = True
    else:
        store.write_record(new_path, MemoryRecord(fm, record.content))
        changes.frontmatter_updated = True

    def update_graph() -> bool:
        g = graph.load_graph(store.root)
        node = g.get_node(memory_id)
        if node is None:
            return False
        node.type = to_type
        graph.save_graph(store.root, g)
        return True

    def update_index() -> bool:
        idx = index.load_index(store.root)
        entry = idx.find(memory_id)
        if entry is None:
            return False
        entry.type = to_type
        if needs_move:
            entry.relative_path = f"{PERMANENT}/{memory_id}.md"
        index.save_index(store.root, idx)
        return True

    changes.graph_updated = attempt("graph type update", update_graph)
    changes.index_updated = attempt("index type update", update_index)
    if needs_move:
        changes.think_state_cleared = attempt(
            "think state", lambda: state.clear_current_document(store.root, memory_id)
        )

    new_id = None
    parsed = parse_id(memory_id)
    if parsed is not None and parsed[0].value != to_type:
        new_id = f"{to_type}-{parsed[1]}"
        try:
            renamed = rename_memory(store.root, memory_id, new_id)
        except Exception as e:
            logger.warning("Promoted %s but rename to %s failed: %s", memory_id, new_id, e)
            changes.file_renamed = StepResult.failed(str(e))
        else:
            if renamed.ok:
                changes.file_renamed = StepResult.updated()
            else:
                logger.warning("Promoted %s but rename to %s failed: %s", memory_id, new_id, renamed.error)
                changes.file_renamed = StepResult.failed(renamed.error or "rename failed")

    logger.info("Promoted %s from %s to %s", memory_id, from_type, to_type)
    return PromoteResponse(
        Status.SUCCESS,
        memory_id,
        to_type,
        from_type=from_type,
        new_id=new_id,
        changes=changes,
    )
