"""Backfill missing frontmatter fields and migrate legacy data.

- ``id`` from the filename, ``project`` from the git remote (or directory
  name), ``title`` from the first ``# heading`` of the body.
- ``think-*`` documents are renamed to ``thought-*`` along with their graph,
  index, embedding and think-state references.
- A legacy ``embedding`` hash in frontmatter moves to embeddings.json.
- Graph node types are synced from frontmatter.

Files are parsed leniently so records missing required keys can be repaired.
"""

from __future__ import annotations

import logging
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from memvault.maintenance.rename import RenameChanges, propagate_rename
from memvault.memory import embeddings, graph
from memvault.memory.codec import ParseMode, now_iso, update_frontmatter
from memvault.memory.ids import LEGACY_THINK_PREFIX, migrate_thought_id
from memvault.memory.store import MemoryStore
from memvault.results import ResponseMixin, Status, status_for
from memvault.types import MemoryRecord

logger = logging.getLogger(__name__)

MEMORY_DIR_MARKER = ".claude/memory"
GIT_TIMEOUT_SECONDS = 5

_HEADING_RE = re.compile(r"^#\s+(.+?)\s*$", re.MULTILINE)
_REPO_NAME_RE = re.compile(r"[/:]([^/:]+?)(?:\.git)?/?$")


@dataclass
class RefreshResponse(ResponseMixin):
    status: Status
    updated: int = 0
    updated_ids: list[str] = field(default_factory=list)
    would_update: list[str] | None = None
    skipped: int = 0
    embeddings_migrated: int = 0
    think_to_thought_migrated: int = 0
    graph_types_updated: int = 0
    project: str | None = None
    errors: list[str] | None = None


# ── Project detection ────────────────────────────────────────


def project_root_for(root: Path) -> Path:
    """The project directory owning a ``<project>/.claude/memory`` scope root."""
    posix = root.as_posix()
    if MEMORY_DIR_MARKER in posix:
        head = posix.split(MEMORY_DIR_MARKER, 1)[0].rstrip("/")
        return Path(head or "/")
    return root


def repo_name_from_remote(url: str) -> str | None:
    match = _REPO_NAME_RE.search(url.strip())
    return match.group(1) if match else None


def detect_project_name(root: Path) -> str | None:
    """Repository name of the git ``origin`` remote, else the directory name."""
    project_root = project_root_for(root)
    try:
        result = subprocess.run(
            ["git", "remote", "get-url", "origin"],
            cwd=project_root,
            capture_output=True,
            text=True,
            timeout=GIT_TIMEOUT_SECONDS,
            check=True,
        )
    except (OSError, subprocess.CalledProcessError, subprocess.TimeoutExpired) as e:
        logger.debug("No git remote for %s: %s", project_root, e)
    else:
        name = repo_name_from_remote(result.stdout)
        if name:
            return name
    return project_root.name or None


def title_from_content(content: str) -> str | None:
    match = _HEADING_RE.search(content)
    return match.group(1).strip() if match else None


# ── Refresh ──────────────────────────────────────────────────


def refresh_frontmatter(
    root: Path | str,
    dry_run: bool = False,
    ids: list[str] | None = None,
    project: str | None = None,
) -> RefreshResponse:
    store = MemoryStore(root)
    if project is None:
        project = detect_project_name(store.root)

    errors: list[str] = []
    updated_ids: list[str] = []
    would_update: list[str] = []
    skipped = 0
    think_migrated = 0
    processed: list[str] = []

    cache = embeddings.load_embeddings(store.root)
    migrated_hashes = 0

    for memory_id in ids if ids is not None else list(store.files_on_disk()):
        try:
            path = store.find_file(memory_id)
            if path is None:
                continue

            current_id = memory_id
            if memory_id.startswith(LEGACY_THINK_PREFIX):
                current_id = migrate_thought_id(memory_id)
                new_path = path.with_name(f"{current_id}.md")
                if new_path.exists():
                    raise FileExistsError(f"cannot migrate, {new_path.name} already exists")
                if not dry_run:
                    path.rename(new_path)
                    propagate_rename(store, memory_id, current_id, RenameChanges(file_renamed=True))
                    path = new_path
                think_migrated += 1
            processed.append(current_id)

            record = store.read_record(path, ParseMode.LENIENT)
            fm = record.frontmatter
            updates: dict[str, Any] = {}

            if fm.id != current_id:
                updates["id"] = current_id
            if fm.meta.get("id") == memory_id and memory_id != current_id:
                updates["meta"] = {**fm.meta, "id": current_id}
            if project and not fm.project:
                updates["project"] = project
            if not fm.title and record.content:
                title = title_from_content(record.content)
                if title:
                    updates["title"] = title

            legacy_hash = fm.extra.get("embedding")
            if isinstance(legacy_hash, str) and legacy_hash:
                updates["embedding"] = None
                if current_id not in cache.memories:
                    # Only the hash survives; the vector is regenerated on next use.
                    cache.memories[current_id] = embeddings.EmbeddingEntry(
                        embedding=[], hash=legacy_hash, timestamp=now_iso()
                    )
                    migrated_hashes += 1

            if not updates:
                skipped += 1
                continue
            if dry_run:
                would_update.append(current_id)
                continue

            store.write_record(path, MemoryRecord(update_frontmatter(fm, **updates), record.content))
            updated_ids.append(current_id)
        except Exception as e:
            errors.append(f"{memory_id}: {e}")

    if migrated_hashes and not dry_run:
        try:
            embeddings.save_embeddings(store.root, cache)
        except OSError as e:
            errors.append(f"Failed to save embeddings: {e}")

    graph_types_updated = 0
    if not dry_run and graph.graph_path(store.root).exists():
        graph_types_updated = _sync_graph_types(store, processed, errors)

    if updated_ids or think_migrated or graph_types_updated:
        logger.info(
            "Refreshed frontmatter in %s: %d updated, %d think ids migrated, %d graph types synced",
            store.root,
            len(updated_ids),
            think_migrated,
            graph_types_updated,
        )
    return RefreshResponse(
        status=status_for(errors),
        updated=len(updated_ids),
        updated_ids=updated_ids,
        would_update=would_update if dry_run else None,
        skipped=skipped,
        embeddings_migrated=migrated_hashes,
        think_to_thought_migrated=think_migrated,
        graph_types_updated=graph_types_updated,
        project=project,
        errors=errors or None,
    )


def _sync_graph_types(store: MemoryStore, memory_ids: list[str], errors: list[str]) -> int:
    """Copy each record's frontmatter ``type`` onto its graph node."""
    g = graph.load_graph(store.root)
    changed = 0
    for memory_id in memory_ids:
        node = g.get_node(memory_id)
        path = store.find_file(memory_id)
        if node is None or path is None:
            continue
        try:
            fm = store.read_record(path, ParseMode.LENIENT).frontmatter
        except Exception as e:
            errors.append(f"{memory_id}: {e}")
            continue
        if fm.type and node.type != fm.type:
            node.type = fm.type
            changed += 1
    if changed:
        try:
            graph.save_graph(store.root, g)
        except OSError as e:
            errors.append(f"Failed to save graph: {e}")
    return changed