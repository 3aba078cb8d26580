"""Shared fixtures: a scope root and helpers to seed it."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from memvault.memory import graph, index
from memvault.memory.codec import now_iso, serialise_memory_file
from memvault.memory.store import MemoryStore
from memvault.types import Frontmatter

RecordWriter = Callable[..., Path]


@pytest.fixture
def root(tmp_path: Path) -> Path:
    r = tmp_path / "memory"
    MemoryStore(r).ensure_initialized()
    return r


@pytest.fixture
def write_record(root: Path) -> RecordWriter:
    """Write ``<root>/<subdir>/<id>.md`` directly, bypassing the stores."""

    def _write(
        memory_id: str,
        type: str = "learning",
        title: str | None = None,
        subdir: str = "permanent",
        body: str = "Body text.",
        base: Path | None = None,
        **fields: Any,
    ) -> Path:
        now = now_iso()
        data: dict[str, Any] = {
            "id": memory_id,
            "title": title if title is not None else memory_id.replace("-", " "),
            "type": type,
            "created": now,
            "updated": now,
            "tags": [],
        }
        data.update(fields)
        fm = Frontmatter.from_mapping(data)
        path = (base or root) / subdir / f"{memory_id}.md"
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(serialise_memory_file(fm, body), encoding="utf-8")
        return path

    return _write


def seed_graph(
    root: Path,
    nodes: list[tuple[str, str]],
    edges: list[tuple[str, str]] | None = None,
) -> None:
    """Write graph.json with ``(id, type)`` nodes and ``(source, target)`` edges."""
    g = graph.MemoryGraph(
        nodes=[graph.GraphNode(id=i, type=t, title=i) for i, t in nodes],
        edges=[graph.GraphEdge(s, t) for s, t in edges or []],
    )
    graph.save_graph(root, g)


def seed_index(root: Path, entries: list[tuple[str, str, str]]) -> None:
    """Write index.json with ``(id, type, relative_path)`` entries."""
    idx = index.MemoryIndex()
    for memory_id, memory_type, relative_path in entries:
        fm = Frontmatter(type=memory_type, title=memory_id, created=now_iso(), updated=now_iso())
        idx.memories.append(index.entry_from_record(memory_id, fm, relative_path))
    index.save_index(root, idx)
