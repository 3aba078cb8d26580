"""Tests for archive_memory."""

from __future__ import annotations

from pathlib import Path

from conftest import seed_graph, seed_index
from memvault.maintenance import archive_memory
from memvault.memory import graph, index, state
from memvault.results import Status


class TestArchive:
    def test_archive_learning(self, root: Path, write_record):
        write_record("learning-old")
        write_record("learning-keep")
        seed_graph(root, [("learning-old", "learning"), ("learning-keep", "learning")])
        seed_index(root, [("learning-old", "learning", "permanent/learning-old.md")])

        result = archive_memory(root, "learning-old")

        assert result.ok
        assert not (root / "permanent" / "learning-old.md").exists()
        assert (root / "archive" / "learning-old.md").exists()
        g = graph.load_graph(root)
        assert not g.has_node("learning-old")
        assert g.has_node("learning-keep")
        assert index.find_in_index(root, "learning-old") is None
        assert (root / "permanent" / "learning-keep.md").exists()

    def test_removes_edges(self, root: Path, write_record):
        write_record("learning-old")
        seed_graph(
            root,
            [("learning-old", "learning"), ("learning-keep", "learning")],
            [("learning-keep", "learning-old")],
        )
        archive_memory(root, "learning-old")
        assert graph.load_graph(root).edges == []

    def test_creates_archive_dir(self, tmp_path: Path, write_record):
        base = tmp_path / "fresh"
        write_record("learning-old", base=base)
        result = archive_memory(base, "learning-old")
        assert result.ok
        assert (base / "archive" / "learning-old.md").exists()

    def test_clears_think_state(self, root: Path, write_record):
        write_record("thought-20260101-120000", subdir="temporary")
        state.set_current_document(root, "thought-20260101-120000", "project")
        result = archive_memory(root, "thought-20260101-120000")
        assert result.changes.think_state_cleared
        assert state.load_state(root).current_document_id is None

    def test_missing_stores_are_not_errors(self, root: Path, write_record):
        write_record("learning-old")
        data = archive_memory(root, "learning-old").as_dict()
        assert data["status"] == "success"
        assert data["changes"] == {
            "file_moved": True,
            "removed_from_graph": False,
            "removed_from_index": False,
            "think_state_cleared": False,
        }

    def test_not_found(self, root: Path):
        result = archive_memory(root, "learning-nope")
        assert result.status is Status.ERROR
        assert "not found" in result.error

    def test_already_archived(self, root: Path, write_record):
        write_record("learning-old")
        write_record("learning-old", subdir="archive")
        result = archive_memory(root, "learning-old")
        assert result.status is Status.ERROR
        assert (root / "permanent" / "learning-old.md").exists()
