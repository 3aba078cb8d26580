"""Tests for prune_memories."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

from conftest import seed_graph, seed_index
from memvault.maintenance import prune_memories
from memvault.maintenance.prune import parse_timestamp
from memvault.memory import graph, index, state
from memvault.results import Status

NOW = datetime(2026, 6, 15, 12, 0, tzinfo=timezone.utc)


def _days_ago(days: float) -> str:
    return (NOW - timedelta(days=days)).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class TestPrune:
    def test_concluded_thought_uses_short_ttl(self, root: Path, write_record):
        write_record("thought-20260605-120000", subdir="temporary", updated=_days_ago(10), status="concluded")
        result = prune_memories(root, ttl_days=7, concluded_ttl_days=1, now=NOW)
        assert result.removed_ids == ["thought-20260605-120000"]
        assert not (root / "temporary" / "thought-20260605-120000.md").exists()

    def test_concluded_expires_before_general_ttl(self, root: Path, write_record):
        write_record("thought-20260612-120000", subdir="temporary", updated=_days_ago(3), status="concluded")
        write_record("thought-20260612-130000", subdir="temporary", updated=_days_ago(3), status="active")
        result = prune_memories(root, ttl_days=7, concluded_ttl_days=1, now=NOW)
        assert result.removed_ids == ["thought-20260612-120000"]
        assert (root / "temporary" / "thought-20260612-130000.md").exists()

    def test_status_in_meta(self, root: Path, write_record):
        write_record(
            "think-20260612-120000", subdir="temporary", updated=_days_ago(2), meta={"status": "concluded"}
        )
        result = prune_memories(root, now=NOW)
        assert result.removed == 1

    def test_concluded_ttl_only_for_thoughts(self, root: Path, write_record):
        write_record("learning-draft", subdir="temporary", updated=_days_ago(3), status="concluded")
        result = prune_memories(root, now=NOW)
        assert result.removed == 0

    def test_updated_preferred_over_created(self, root: Path, write_record):
        write_record("thought-20260101-120000", subdir="temporary", created=_days_ago(30), updated=_days_ago(1))
        assert prune_memories(root, now=NOW).removed == 0

    def test_permanent_untouched(self, root: Path, write_record):
        write_record("learning-ancient", updated=_days_ago(400))
        assert prune_memories(root, now=NOW).removed == 0
        assert (root / "permanent" / "learning-ancient.md").exists()

    def test_dry_run(self, root: Path, write_record):
        write_record("thought-20260101-120000", subdir="temporary", updated=_days_ago(30))
        result = prune_memories(root, dry_run=True, now=NOW)
        assert result.would_remove == ["thought-20260101-120000"]
        assert result.removed == 0
        assert (root / "temporary" / "thought-20260101-120000.md").exists()
        assert "would_remove" not in prune_memories(root, now=NOW).as_dict()

    def test_cleans_derived_stores(self, root: Path, write_record):
        memory_id = "thought-20260101-120000"
        write_record(memory_id, subdir="temporary", updated=_days_ago(30))
        seed_graph(root, [(memory_id, "breadcrumb"), ("learning-a", "learning")], [("learning-a", memory_id)])
        seed_index(root, [(memory_id, "breadcrumb", f"temporary/{memory_id}.md")])
        state.set_current_document(root, memory_id, "project")

        prune_memories(root, now=NOW)

        g = graph.load_graph(root)
        assert g.node_ids() == {"learning-a"}
        assert g.edges == []
        assert index.find_in_index(root, memory_id) is None
        assert state.load_state(root).current_document_id is None

    def test_falls_back_to_unlink(self, root: Path, write_record):
        memory_id = "thought-20260101-120000"
        write_record(memory_id, subdir="temporary", updated=_days_ago(30))
        seed_graph(root, [(memory_id, "breadcrumb")])
        with patch("memvault.memory.store.MemoryStore.delete_memory", side_effect=RuntimeError("boom")):
            result = prune_memories(root, now=NOW)
        assert result.ok
        assert result.removed_ids == [memory_id]
        assert not (root / "temporary" / f"{memory_id}.md").exists()
        assert not graph.load_graph(root).has_node(memory_id)

    def test_shadowed_by_permanent(self, root: Path, write_record):
        write_record("learning-a", subdir="temporary", updated=_days_ago(30))
        write_record("learning-a")
        result = prune_memories(root, now=NOW)
        assert result.removed_ids == ["learning-a"]
        assert (root / "permanent" / "learning-a.md").exists()
        assert not (root / "temporary" / "learning-a.md").exists()

    def test_errors_do_not_stop_scan(self, root: Path, write_record):
        (root / "temporary" / "a-dir.md").mkdir()
        (root / "temporary" / "broken.md").write_text("no frontmatter")
        write_record("thought-20260101-120000", subdir="temporary", updated=_days_ago(30))

        result = prune_memories(root, now=NOW)

        assert result.status is Status.ERROR
        assert len(result.errors) == 2
        assert result.removed_ids == ["thought-20260101-120000"]

    def test_no_temporary_dir(self, tmp_path: Path):
        result = prune_memories(tmp_path / "empty", now=NOW)
        assert result.ok
        assert result.as_dict() == {"status": "success", "removed": 0, "removed_ids": []}


class TestParseTimestamp:
    def test_zulu(self):
        assert parse_timestamp("2026-01-01T00:00:00.000Z") == datetime(2026, 1, 1, tzinfo=timezone.utc)

    def test_naive_is_aware(self):
        assert parse_timestamp("2026-01-01").tzinfo is not None

    def test_invalid(self):
        assert parse_timestamp("last tuesday") is None
