"""Reconcile graph.json, index.json and embeddings.json with the files on disk.

The memory files are ground truth. Sync adds files missing from the graph
or index, then removes ghost nodes, orphan edges, orphan index entries and
orphan embeddings. Running it twice in a row changes nothing the second
time.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from memvault.memory import embeddings, graph, index
from memvault.memory.store import MemoryStore
from memvault.results import ResponseMixin, Status, status_for
from memvault.types import Frontmatter

logger = logging.getLogger(__name__)


@dataclass
class SyncChanges:
    added_to_graph: list[str] = field(default_factory=list)
    added_to_index: list[str] = field(default_factory=list)
    refreshed_nodes: list[str] = field(default_factory=list)
    removed_ghost_nodes: list[str] = field(default_factory=list)
    removed_orphan_edges: int = 0
    removed_from_index: list[str] = field(default_factory=list)
    removed_orphan_embeddings: list[str] = field(default_factory=list)

    def total(self) -> int:
        return (
            len(self.added_to_graph)
            + len(self.added_to_index)
            + len(self.refreshed_nodes)
            + len(self.removed_ghost_nodes)
            + self.removed_orphan_edges
            + len(self.removed_from_index)
            + len(self.removed_orphan_embeddings)
        )


@dataclass
class SyncSummary:
    files_on_disk: int = 0
    nodes_in_graph: int = 0
    entries_in_index: int = 0
    entries_in_embeddings: int = 0


@dataclass
class SyncResponse(ResponseMixin):
    status: Status
    changes: SyncChanges = field(default_factory=SyncChanges)
    summary: SyncSummary = field(default_factory=SyncSummary)
    errors: list[str] | None = None
    warnings: list[str] | None = None


def sync_memories(root: Path | str, dry_run: bool = False) -> SyncResponse:
    """Bring the derived stores of ``root`` in line with its memory files.

    With ``dry_run`` nothing is written; the changes that would be made are
    still reported. Unparsable files are skipped with a warning.
    """
    store = MemoryStore(root)
    changes = SyncChanges()
    errors: list[str] = []
    warnings: list[str] = []

    files = store.files_on_disk()
    file_ids = set(files)
    g = graph.load_graph(store.root)
    idx = index.load_index(store.root)

    parsed: dict[str, Frontmatter | None] = {}

    def frontmatter_of(memory_id: str) -> Frontmatter | None:
        if memory_id not in parsed:
            try:
                parsed[memory_id] = store.read_record(files[memory_id]).frontmatter
            except Exception as e:
                warnings.append(f"Skipped {memory_id}: {e}")
                parsed[memory_id] = None
        return parsed[memory_id]

    # ── Files missing from the graph ─────────────────────────
    for memory_id in files:
        node = g.get_node(memory_id)
        if node is not None and node.title:
            continue
        fm = frontmatter_of(memory_id)
        if fm is None:
            continue
        if node is None:
            changes.added_to_graph.append(memory_id)
        elif fm.title:
            changes.refreshed_nodes.append(memory_id)
        else:
            continue
        if not dry_run:
            g.add_node(graph.GraphNode(id=memory_id, type=fm.type, title=fm.title))

    # ── Files missing from the index ─────────────────────────
    indexed = idx.ids()
    for memory_id, path in files.items():
        if memory_id in indexed:
            continue
        fm = frontmatter_of(memory_id)
        if fm is None:
            continue
        changes.added_to_index.append(memory_id)
        if not dry_run:
            idx.memories.append(index.entry_from_record(memory_id, fm, store.relative_path(path)))

    # ── Ghost nodes ──────────────────────────────────────────
    ghosts = list(dict.fromkeys(n.id for n in g.nodes if n.id not in file_ids))
    changes.removed_ghost_nodes.extend(ghosts)
    if not dry_run:
        for node_id in ghosts:
            g.remove_node(node_id)

    # ── Orphan edges ─────────────────────────────────────────
    # In a dry run the ghosts are still in the graph, so validate against the files.
    valid_ids = file_ids if dry_run else g.node_ids()
    kept_edges = [e for e in g.edges if e.source in valid_ids and e.target in valid_ids]
    changes.removed_orphan_edges = len(g.edges) - len(kept_edges)
    if not dry_run:
        g.edges = kept_edges

    # ── Orphan index entries ─────────────────────────────────
    kept_entries = []
    for entry in idx.memories:
        if entry.id in file_ids:
            kept_entries.append(entry)
        else:
            changes.removed_from_index.append(entry.id)
    if not dry_run:
        idx.memories = kept_entries

    # ── Orphan embeddings ────────────────────────────────────
    embedding_count = 0
    if embeddings.embeddings_path(store.root).exists():
        cache = embeddings.load_embeddings(store.root)
        orphans = [i for i in cache.memories if i not in file_ids]
        changes.removed_orphan_embeddings.extend(orphans)
        if not dry_run and orphans:
            for memory_id in orphans:
                del cache.memories[memory_id]
            try:
                embeddings.save_embeddings(store.root, cache)
            except OSError as e:
                errors.append(f"Failed to save embeddings: {e}")
        embedding_count = len(cache.memories)

    # ── Persist ──────────────────────────────────────────────
    if not dry_run:
        try:
            graph.save_graph(store.root, g)
        except OSError as e:
            errors.append(f"Failed to save graph: {e}")
        try:
            index.save_index(store.root, idx)
        except OSError as e:
            errors.append(f"Failed to save index: {e}")

    summary = SyncSummary(
        files_on_disk=len(files),
        nodes_in_graph=len(g.nodes),
        entries_in_index=len(idx.memories),
        entries_in_embeddings=embedding_count,
    )
    for message in warnings:
        logger.warning("%s", message)
    logger.info(
        "Synced %s%s: %d changes (%d files, %d nodes, %d index entries)",
        store.root,
        " (dry run)" if dry_run else "",
        changes.total(),
        summary.files_on_disk,
        summary.nodes_in_graph,
        summary.entries_in_index,
    )
    return SyncResponse(
        status=status_for(errors),
        changes=changes,
        summary=summary,
        errors=errors or None,
        warnings=warnings or None,
    )
