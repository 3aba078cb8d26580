"""embeddings.json: cached vectors per memory ID.

Entries are optional. Loading never raises: a missing ``memories`` key or
unreadable JSON gives an empty cache. Writers rewrite the whole file.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from memvault.memory.codec import now_iso
from memvault.memory.files import read_json, write_json

logger = logging.getLogger(__name__)

EMBEDDINGS_FILENAME = "embeddings.json"
CACHE_VERSION = 1


@dataclass
class EmbeddingEntry:
    embedding: list[float]
    hash: str
    timestamp: str = field(default_factory=now_iso)

    def to_json(self) -> dict[str, Any]:
        return {"embedding": self.embedding, "hash": self.hash, "timestamp": self.timestamp}


@dataclass
class EmbeddingCache:
    version: int = CACHE_VERSION
    memories: dict[str, EmbeddingEntry] = field(default_factory=dict)

    def to_json(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "memories": {k: v.to_json() for k, v in self.memories.items()},
        }


def embeddings_path(root: Path) -> Path:
    return root / EMBEDDINGS_FILENAME


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()[:16]


def load_embeddings(root: Path) -> EmbeddingCache:
    data = read_json(embeddings_path(root))
    if not isinstance(data, dict):
        return EmbeddingCache()
    raw = data.get("memories")
    if not isinstance(raw, dict):
        raw = {}
    memories: dict[str, EmbeddingEntry] = {}
    for memory_id, item in raw.items():
        if not isinstance(item, dict):
            continue
        vector = item.get("embedding") or []
        if not isinstance(vector, list):
            logger.warning("Skipping malformed embedding entry %s in %s", memory_id, root)
            continue
        memories[memory_id] = EmbeddingEntry(
            embedding=vector,
            hash=str(item.get("hash", "")),
            timestamp=str(item.get("timestamp", "")),
        )
    return EmbeddingCache(version=data.get("version", CACHE_VERSION), memories=memories)


def save_embeddings(root: Path, cache: EmbeddingCache) -> None:
    write_json(embeddings_path(root), cache.to_json())
    logger.debug("Saved embedding cache %s (%d memories)", root, len(cache.memories))


def drop_embeddings(root: Path, ids: set[str] | list[str]) -> list[str]:
    """Remove cached vectors for ``ids``. Writes only when something was removed."""
    if not embeddings_path(root).exists():
        return []
    cache = load_embeddings(root)
    removed = [i for i in ids if cache.memories.pop(i, None) is not None]
    if removed:
        save_embeddings(root, cache)
    return removed


def rename_embedding(root: Path, old_id: str, new_id: str) -> bool:
    if not embeddings_path(root).exists():
        return False
    cache = load_embeddings(root)
    entry = cache.memories.pop(old_id, None)
    if entry is None:
        return False
    cache.memories[new_id] = entry
    save_embeddings(root, cache)
    return True


def transfer_embedding(memory_id: str, source_root: Path, target_root: Path) -> bool:
    """Move a cached vector between scope roots. False when there is none to move."""
    if not embeddings_path(source_root).exists():
        return False
    source = load_embeddings(source_root)
    entry = source.memories.get(memory_id)
    if entry is None:
        return False
    target = load_embeddings(target_root)
    target.memories[memory_id] = entry
    save_embeddings(target_root, target)
    del source.memories[memory_id]
    save_embeddings(source_root, source)
    return True
