"""Tests for MemoryStore: layout, lookup, write/read/delete."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from conftest import seed_graph, seed_index
from memvault.errors import FrontmatterError
from memvault.memory import embeddings, graph, index, state
from memvault.memory.store import MemoryStore
from memvault.results import Status, StepOutcome


@pytest.fixture
def store(root: Path) -> MemoryStore:
    return MemoryStore(root)


class TestLayout:
    def test_ensure_initialized(self, store: MemoryStore):
        assert store.permanent_dir.is_dir()
        assert store.temporary_dir.is_dir()
        assert store.archive_dir.is_dir()

    def test_idempotent(self, store: MemoryStore):
        store.ensure_initialized()
        store.ensure_initialized()
        assert store.archive_dir.is_dir()

    def test_permanent_wins_lookup(self, store: MemoryStore, write_record):
        write_record("learning-a", subdir="temporary")
        permanent = write_record("learning-a")
        assert store.find_file("learning-a") == permanent
        assert store.files_on_disk() == {"learning-a": permanent}

    def test_find_missing(self, store: MemoryStore):
        assert store.find_file("learning-nope") is None

    def test_relative_path(self, store: MemoryStore, write_record):
        path = write_record("thought-20260101-120000", subdir="temporary")
        assert store.relative_path(path) == "temporary/thought-20260101-120000.md"

    def test_read_record_reports_path(self, store: MemoryStore):
        bad = store.permanent_dir / "learning-bad.md"
        bad.write_text("no frontmatter here")
        with pytest.raises(FrontmatterError) as exc_info:
            store.read_record(bad)
        assert exc_info.value.path == bad


class TestWriteMemory:
    def test_write_creates_file_index_and_node(self, store: MemoryStore):
        result = store.write_memory("decision", "Use Postgres", "We chose Postgres.", tags=["db"])
        assert result.ok
        assert result.id == "decision-use-postgres"
        assert result.file_path == store.permanent_dir / "decision-use-postgres.md"

        record = store.read_memory("decision-use-postgres").record
        assert record is not None
        assert record.frontmatter.tags == ["db"]
        assert record.content == "We chose Postgres."

        entry = index.find_in_index(store.root, "decision-use-postgres")
        assert entry is not None
        assert entry.relative_path == "permanent/decision-use-postgres.md"
        assert graph.load_graph(store.root).has_node("decision-use-postgres")

    def test_unique_ids(self, store: MemoryStore):
        first = store.write_memory("learning", "Same", "a")
        second = store.write_memory("learning", "Same", "b")
        assert (first.id, second.id) == ("learning-same", "learning-same-1")

    def test_links_become_edges(self, store: MemoryStore):
        store.write_memory("decision", "Target", "t")
        result = store.write_memory(
            "learning", "Source", "s", links=["decision-target", "decision-missing"]
        )
        assert result.changes.links_added == 1
        assert graph.load_graph(store.root).has_edge("learning-source", "decision-target")

    @pytest.mark.parametrize(
        "kwargs, field",
        [
            ({"type": "note", "title": "x"}, "type"),
            ({"type": "learning", "title": "  "}, "title"),
            ({"type": "learning", "title": "x", "tags": [""]}, "tags"),
            ({"type": "learning", "title": "x", "scope": "team"}, "scope"),
            ({"type": "learning", "title": "x", "severity": "urgent"}, "severity"),
        ],
    )
    def test_validation(self, store: MemoryStore, kwargs, field):
        result = store.write_memory(content="c", **kwargs)
        assert result.status is Status.ERROR
        assert result.error.startswith(field)
        assert list(store.permanent_dir.iterdir()) == []

    def test_index_failure_does_not_fail_write(self, store: MemoryStore):
        with patch("memvault.memory.store.index.add_to_index", side_effect=OSError("disk full")):
            result = store.write_memory("learning", "Resilient", "c")
        assert result.ok
        assert result.changes.file_written
        assert result.changes.index_updated.outcome is StepOutcome.FAILED
        assert result.changes.graph_updated
        assert result.as_dict()["changes"]["index_updated"] is False


class TestReadDelete:
    def test_read_missing(self, store: MemoryStore):
        result = store.read_memory("learning-nope")
        assert result.status is Status.ERROR
        assert "not found" in result.error

    def test_delete_cleans_every_store(self, store: MemoryStore, write_record):
        write_record("learning-a")
        write_record("learning-b")
        seed_graph(store.root, [("learning-a", "learning"), ("learning-b", "learning")], [("learning-b", "learning-a")])
        seed_index(store.root, [("learning-a", "learning", "permanent/learning-a.md")])
        embeddings.save_embeddings(
            store.root, embeddings.EmbeddingCache(memories={"learning-a": embeddings.EmbeddingEntry([1.0], "h")})
        )
        state.set_current_document(store.root, "learning-a", "project")

        result = store.delete_memory("learning-a")

        assert result.ok
        assert not (store.permanent_dir / "learning-a.md").exists()
        g = graph.load_graph(store.root)
        assert g.node_ids() == {"learning-b"}
        assert g.edges == []
        assert index.find_in_index(store.root, "learning-a") is None
        assert embeddings.load_embeddings(store.root).memories == {}
        assert state.load_state(store.root).current_document_id is None
        assert all(result.as_dict()["changes"].values())

    def test_delete_uses_indexed_location(self, store: MemoryStore, write_record):
        write_record("learning-a")
        temporary = write_record("learning-a", subdir="temporary")
        seed_index(store.root, [("learning-a", "learning", "temporary/learning-a.md")])
        store.delete_memory("learning-a")
        assert not temporary.exists()
        assert (store.permanent_dir / "learning-a.md").exists()

    def test_delete_missing(self, store: MemoryStore):
        result = store.delete_memory("learning-nope")
        assert result.status is Status.ERROR
        assert result.as_dict()["error"] == "Memory not found: learning-nope"

    def test_delete_without_derived_stores(self, store: MemoryStore, write_record):
        write_record("learning-a")
        result = store.delete_memory("learning-a")
        assert result.ok
        assert result.changes.removed_from_index.outcome is StepOutcome.SKIPPED
        assert result.changes.removed_embedding.outcome is StepOutcome.SKIPPED
