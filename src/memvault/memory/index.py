"""index.json: flat list of memory metadata for fast listing.

Lookups are linear scans; scope roots hold personal/project-sized
collections, not bulk data.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from memvault.errors import FrontmatterError
from memvault.memory.codec import now_iso, parse_memory_file
from memvault.memory.files import list_markdown, read_json, write_json
from memvault.memory.ids import has_thought_prefix
from memvault.types import Frontmatter, IndexEntry, Scope

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.json"
INDEX_VERSION = "1.0.0"


@dataclass
class MemoryIndex:
    version: str = INDEX_VERSION
    last_updated: str = field(default_factory=now_iso)
    memories: list[IndexEntry] = field(default_factory=list)

    def find(self, memory_id: str) -> IndexEntry | None:
        return next((e for e in self.memories if e.id == memory_id), None)

    def upsert(self, entry: IndexEntry) -> None:
        self.memories = [e for e in self.memories if e.id != entry.id]
        self.memories.append(entry)

    def remove(self, memory_id: str) -> bool:
        before = len(self.memories)
        self.memories = [e for e in self.memories if e.id != memory_id]
        return len(self.memories) < before

    def ids(self) -> set[str]:
        return {e.id for e in self.memories}

    def to_json(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "lastUpdated": self.last_updated,
            "memories": [e.to_json() for e in self.memories],
        }


def index_path(root: Path) -> Path:
    return root / INDEX_FILENAME


def _migrate_entry(data: dict[str, Any], root: Path) -> dict[str, Any]:
    """Fill in ``relativePath`` for entries written by older versions."""
    if data.get("relativePath"):
        return data
    data = dict(data)
    legacy_file = data.pop("file", None)
    if legacy_file:
        data["relativePath"] = Path(os.path.relpath(legacy_file, root)).as_posix()
    else:
        subdir = "temporary" if has_thought_prefix(data["id"]) else "permanent"
        data["relativePath"] = f"{subdir}/{data['id']}.md"
    return data


def load_index(root: Path) -> MemoryIndex:
    """Read index.json; a missing or malformed file yields an empty index."""
    path = index_path(root)
    if not path.exists():
        return MemoryIndex()
    data = read_json(path)
    if not isinstance(data, dict) or not isinstance(data.get("memories"), list):
        logger.warning("Index has invalid structure, returning empty: %s", path)
        return MemoryIndex()
    entries: list[IndexEntry] = []
    for item in data["memories"]:
        if not (isinstance(item, dict) and isinstance(item.get("id"), str)):
            continue
        try:
            entries.append(IndexEntry.from_json(_migrate_entry(item, root)))
        except (TypeError, ValueError) as e:
            logger.warning("Skipping malformed index entry %s: %s", item["id"], e)
    return MemoryIndex(
        version=str(data.get("version", INDEX_VERSION)),
        last_updated=data.get("lastUpdated") or now_iso(),
        memories=entries,
    )


def save_index(root: Path, index: MemoryIndex) -> None:
    index.last_updated = now_iso()
    write_json(index_path(root), index.to_json())
    logger.debug("Saved index %s (%d memories)", root, len(index.memories))


def add_to_index(root: Path, entry: IndexEntry) -> None:
    """Insert or replace the entry with the same ID."""
    index = load_index(root)
    index.upsert(entry)
    save_index(root, index)


def remove_from_index(root: Path, memory_id: str) -> bool:
    """Drop the entry for ``memory_id``. Returns whether one was removed."""
    index = load_index(root)
    if not index.remove(memory_id):
        return False
    save_index(root, index)
    return True


def find_in_index(root: Path, memory_id: str) -> IndexEntry | None:
    return load_index(root).find(memory_id)


def entry_from_record(memory_id: str, fm: Frontmatter, relative_path: str) -> IndexEntry:
    """Index row for a parsed memory file found at ``relative_path``."""
    return IndexEntry(
        id=memory_id,
        type=fm.type,
        title=fm.title,
        tags=list(fm.tags),
        created=fm.created,
        updated=fm.updated,
        scope=fm.scope or Scope.PROJECT.value,
        relative_path=relative_path,
        severity=fm.severity,
    )


def rebuild_index(root: Path) -> tuple[MemoryIndex, list[str]]:
    """Regenerate index.json from the files on disk.

    Returns the saved index and one message per file that could not be parsed.
    """
    index = MemoryIndex()
    problems: list[str] = []
    for subdir in ("permanent", "temporary"):
        for path in list_markdown(root / subdir):
            memory_id = path.name[: -len(".md")]
            if index.find(memory_id) is not None:
                continue
            try:
                record = parse_memory_file(path.read_text(encoding="utf-8"))
            except (OSError, FrontmatterError) as e:
                problems.append(f"{subdir}/{path.name}: {e}")
                continue
            index.memories.append(entry_from_record(memory_id, record.frontmatter, f"{subdir}/{path.name}"))
    save_index(root, index)
    logger.info("Rebuilt index %s (%d memories, %d skipped)", root, len(index.memories), len(problems))
    return index, problems
