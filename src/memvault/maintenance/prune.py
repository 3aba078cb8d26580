"""Prune expired documents from temporary/.

Documents in temporary/ expire after ``ttl_days``; concluded thinking
documents expire after ``concluded_ttl_days`` instead.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path

from memvault.memory import graph, state
from memvault.memory.files import list_markdown
from memvault.memory.ids import has_thought_prefix
from memvault.memory.store import MemoryStore
from memvault.results import ResponseMixin, Status, attempt, status_for
from memvault.types import Frontmatter, ThinkStatus

logger = logging.getLogger(__name__)

DEFAULT_TTL_DAYS = 7
DEFAULT_CONCLUDED_TTL_DAYS = 1


@dataclass
class PruneResponse(ResponseMixin):
    status: Status
    removed: int = 0
    removed_ids: list[str] = field(default_factory=list)
    would_remove: list[str] | None = None
    errors: list[str] | None = None


def parse_timestamp(value: str) -> datetime | None:
    """ISO-8601 string to an aware datetime; naive values are local time."""
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.astimezone()
    return parsed


def is_concluded(fm: Frontmatter) -> bool:
    status = fm.get("status") or fm.meta.get("status")
    return status == ThinkStatus.CONCLUDED.value


def effective_ttl(memory_id: str, fm: Frontmatter, ttl_days: float, concluded_ttl_days: float) -> float:
    if has_thought_prefix(memory_id) and is_concluded(fm):
        return concluded_ttl_days
    return ttl_days


def prune_memories(
    root: Path | str,
    ttl_days: float = DEFAULT_TTL_DAYS,
    concluded_ttl_days: float = DEFAULT_CONCLUDED_TTL_DAYS,
    dry_run: bool = False,
    now: datetime | None = None,
) -> PruneResponse:
    """Remove expired files from temporary/. Per-file failures are collected, not raised."""
    store = MemoryStore(root)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.astimezone()

    removed_ids: list[str] = []
    would_remove: list[str] = []
    errors: list[str] = []

    for path in list_markdown(store.temporary_dir):
        memory_id = path.name[: -len(".md")]
        try:
            fm = store.read_record(path).frontmatter
        except Exception as e:
            errors.append(f"Error processing {path.name}: {e}")
            continue

        reference = fm.updated or fm.created
        if not reference:
            continue
        reference_date = parse_timestamp(reference)
        if reference_date is None:
            logger.warning("Skipping %s: unparsable date %r", memory_id, reference)
            continue

        ttl = effective_ttl(memory_id, fm, ttl_days, concluded_ttl_days)
        age_days = (now - reference_date).total_seconds() / 86400
        if age_days <= ttl:
            continue

        if dry_run:
            would_remove.append(memory_id)
            continue

        problem = _delete_expired(store, memory_id, path)
        if problem:
            errors.append(f"Failed to delete {memory_id}: {problem}")
        else:
            removed_ids.append(memory_id)

    if removed_ids:
        logger.info("Pruned %d expired memories from %s", len(removed_ids), store.root)
    return PruneResponse(
        status=status_for(errors),
        removed=len(removed_ids),
        removed_ids=removed_ids,
        would_remove=would_remove if dry_run else None,
        errors=errors or None,
    )


def _delete_expired(store: MemoryStore, memory_id: str, path: Path) -> str | None:
    """Delete one expired file. Returns an error message if it could not be removed."""
    # A permanent file with the same ID owns the graph node and think state.
    shadowed = store.find_file(memory_id) != path
    if not shadowed:
        try:
            result = store.delete_memory(memory_id)
        except Exception as e:
            logger.warning("delete_memory failed for %s, unlinking directly: %s", memory_id, e)
        else:
            if result.ok:
                return None
            logger.warning("delete_memory failed for %s, unlinking directly: %s", memory_id, result.error)

    try:
        path.unlink()
    except OSError as e:
        return str(e)
    if shadowed:
        return None

    def remove_node() -> bool:
        g = graph.load_graph(store.root)
        if not g.remove_node(memory_id):
            return False
        graph.save_graph(store.root, g)
        return True

    attempt("graph removal", remove_node)
    attempt("think state", lambda: state.clear_current_document(store.root, memory_id))
    return None
