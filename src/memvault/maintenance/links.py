"""Links between memories: graph edges and the ``links`` frontmatter key.

``link_memories`` / ``unlink_memories`` edit graph.json. ``sync_frontmatter``
copies each memory's outbound graph edges into its frontmatter ``links``
so the files carry the same relationships as the graph.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from memvault.memory import graph, index
from memvault.memory.codec import update_frontmatter
from memvault.memory.store import MemoryStore
from memvault.results import ResponseMixin, Status, status_for
from memvault.types import EdgeType, MemoryRecord, enum_value

logger = logging.getLogger(__name__)


# ── Link / unlink ────────────────────────────────────────────


@dataclass
class LinkResponse(ResponseMixin):
    status: Status
    source: str
    target: str
    relation: str | None = None
    already_exists: bool = False
    error: str | None = None


@dataclass
class UnlinkResponse(ResponseMixin):
    status: Status
    source: str
    target: str
    removed_count: int = 0
    error: str | None = None


def link_memories(
    root: Path | str,
    source: str,
    target: str,
    relation: EdgeType | str = EdgeType.RELATES_TO,
) -> LinkResponse:
    """Add a ``source → target`` edge. Both memories must be in the index."""
    root = Path(root)
    relation = enum_value(relation)
    if not source or not source.strip():
        return LinkResponse(Status.ERROR, source, target, relation, error="source is required")
    if not target or not target.strip():
        return LinkResponse(Status.ERROR, source, target, relation, error="target is required")
    if source == target:
        return LinkResponse(
            Status.ERROR, source, target, relation, error="Cannot create self-referencing link"
        )

    idx = index.load_index(root)
    source_entry = idx.find(source)
    if source_entry is None:
        return LinkResponse(Status.ERROR, source, target, relation, error=f"Source memory not found: {source}")
    target_entry = idx.find(target)
    if target_entry is None:
        return LinkResponse(Status.ERROR, source, target, relation, error=f"Target memory not found: {target}")

    g = graph.load_graph(root)
    for entry in (source_entry, target_entry):
        if not g.has_node(entry.id):
            g.add_node(graph.GraphNode(id=entry.id, type=entry.type, title=entry.title or None))

    if not g.add_edge(source, target, relation):
        return LinkResponse(Status.SUCCESS, source, target, relation, already_exists=True)
    graph.save_graph(root, g)
    logger.info("Linked %s -[%s]-> %s", source, relation, target)
    return LinkResponse(Status.SUCCESS, source, target, relation)


def unlink_memories(
    root: Path | str,
    source: str,
    target: str,
    relation: EdgeType | str | None = None,
) -> UnlinkResponse:
    """Remove ``source → target`` edges, only those with ``relation`` if given."""
    root = Path(root)
    if not source or not source.strip():
        return UnlinkResponse(Status.ERROR, source, target, error="source is required")
    if not target or not target.strip():
        return UnlinkResponse(Status.ERROR, source, target, error="target is required")

    g = graph.load_graph(root)
    removed = g.remove_edge(source, target, relation)
    if removed:
        graph.save_graph(root, g)
        logger.info("Unlinked %s -> %s (%d edges)", source, target, removed)
    return UnlinkResponse(Status.SUCCESS, source, target, removed_count=removed)


# ── Graph → frontmatter ──────────────────────────────────────


@dataclass
class SyncFrontmatterResponse(ResponseMixin):
    status: Status
    updated: int = 0
    updated_ids: list[str] = field(default_factory=list)
    would_update: list[str] | None = None
    skipped: int = 0
    errors: list[str] | None = None


def sync_frontmatter(
    root: Path | str,
    dry_run: bool = False,
    ids: list[str] | None = None,
) -> SyncFrontmatterResponse:
    """Write each memory's outbound graph edges into its ``links``.

    Link order is ignored when comparing; files already in agreement are
    skipped. IDs without a file are ignored.
    """
    store = MemoryStore(root)
    g = graph.load_graph(store.root)

    errors: list[str] = []
    updated_ids: list[str] = []
    would_update: list[str] = []
    skipped = 0

    for memory_id in ids if ids is not None else list(store.files_on_disk()):
        path = store.find_file(memory_id)
        if path is None:
            continue
        graph_links = list(dict.fromkeys(e.target for e in g.outbound_edges(memory_id)))
        try:
            record = store.read_record(path)
            if set(record.frontmatter.links) == set(graph_links):
                skipped += 1
                continue
            if dry_run:
                would_update.append(memory_id)
                continue
            fm = update_frontmatter(record.frontmatter, links=graph_links)
            store.write_record(path, MemoryRecord(fm, record.content))
            updated_ids.append(memory_id)
        except Exception as e:
            errors.append(f"{memory_id}: {e}")

    if updated_ids:
        logger.info("Synced links into frontmatter of %d memories in %s", len(updated_ids), store.root)
    return SyncFrontmatterResponse(
        status=status_for(errors),
        updated=len(updated_ids),
        updated_ids=updated_ids,
        would_update=would_update if dry_run else None,
        skipped=skipped,
        errors=errors or None,
    )
