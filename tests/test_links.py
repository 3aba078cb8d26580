"""Tests for link_memories, unlink_memories and sync_frontmatter."""

from __future__ import annotations

from pathlib import Path

import pytest

from conftest import seed_graph, seed_index
from memvault.maintenance import link_memories, sync_frontmatter, unlink_memories
from memvault.memory import graph
from memvault.memory.codec import parse_memory_file
from memvault.results import Status


@pytest.fixture
def indexed(root: Path) -> Path:
    seed_index(
        root,
        [
            ("learning-a", "learning", "permanent/learning-a.md"),
            ("gotcha-b", "gotcha", "permanent/gotcha-b.md"),
        ],
    )
    return root


class TestLink:
    def test_creates_nodes_and_edge(self, indexed: Path):
        result = link_memories(indexed, "learning-a", "gotcha-b", "blocked-by")
        assert result.ok
        assert not result.already_exists
        g = graph.load_graph(indexed)
        assert g.get_node("gotcha-b").type == "gotcha"
        assert g.has_edge("learning-a", "gotcha-b", "blocked-by")

    def test_duplicate(self, indexed: Path):
        link_memories(indexed, "learning-a", "gotcha-b")
        again = link_memories(indexed, "learning-a", "gotcha-b")
        assert again.ok
        assert again.already_exists
        assert len(graph.load_graph(indexed).edges) == 1

    @pytest.mark.parametrize(
        "source, target, message",
        [
            ("", "gotcha-b", "source is required"),
            ("learning-a", "  ", "target is required"),
            ("learning-a", "learning-a", "Cannot create self-referencing link"),
            ("learning-x", "gotcha-b", "Source memory not found: learning-x"),
            ("learning-a", "gotcha-x", "Target memory not found: gotcha-x"),
        ],
    )
    def test_validation(self, indexed: Path, source: str, target: str, message: str):
        result = link_memories(indexed, source, target)
        assert result.status is Status.ERROR
        assert result.error == message
        assert not graph.graph_path(indexed).exists()


class TestUnlink:
    def test_removes_matching_relation(self, root: Path):
        seed_graph(root, [("learning-a", "learning"), ("gotcha-b", "gotcha")])
        g = graph.load_graph(root)
        g.add_edge("learning-a", "gotcha-b", "relates-to")
        g.add_edge("learning-a", "gotcha-b", "blocked-by")
        graph.save_graph(root, g)

        result = unlink_memories(root, "learning-a", "gotcha-b", "blocked-by")
        assert result.removed_count == 1
        assert graph.load_graph(root).has_edge("learning-a", "gotcha-b", "relates-to")

        assert unlink_memories(root, "learning-a", "gotcha-b").removed_count == 1
        assert graph.load_graph(root).edges == []

    def test_nothing_to_remove(self, root: Path):
        result = unlink_memories(root, "learning-a", "gotcha-b")
        assert result.ok
        assert result.removed_count == 0

    def test_requires_ids(self, root: Path):
        assert unlink_memories(root, "", "gotcha-b").error == "source is required"


class TestSyncFrontmatter:
    def test_writes_outbound_links(self, root: Path, write_record):
        path = write_record("learning-a")
        write_record("gotcha-b", type="gotcha")
        seed_graph(root, [("learning-a", "learning"), ("gotcha-b", "gotcha")], [("learning-a", "gotcha-b")])

        result = sync_frontmatter(root)

        assert result.updated_ids == ["learning-a"]
        assert result.skipped == 1
        fm = parse_memory_file(path.read_text()).frontmatter
        assert fm.links == ["gotcha-b"]

    def test_order_is_ignored(self, root: Path, write_record):
        write_record("learning-a", links=["gotcha-c", "gotcha-b"])
        seed_graph(
            root,
            [("learning-a", "learning")],
            [("learning-a", "gotcha-b"), ("learning-a", "gotcha-c")],
        )
        assert sync_frontmatter(root).skipped == 1

    def test_clears_stale_links(self, root: Path, write_record):
        path = write_record("learning-a", links=["gotcha-gone"])
        result = sync_frontmatter(root)
        assert result.updated == 1
        assert "links" not in path.read_text()

    def test_dry_run(self, root: Path, write_record):
        path = write_record("learning-a")
        seed_graph(root, [("learning-a", "learning")], [("learning-a", "gotcha-b")])
        before = path.read_text()
        result = sync_frontmatter(root, dry_run=True)
        assert result.would_update == ["learning-a"]
        assert path.read_text() == before

    def test_unparsable_is_collected(self, root: Path, write_record):
        write_record("learning-a")
        (root / "permanent" / "learning-bad.md").write_text("no frontmatter")
        result = sync_frontmatter(root, ids=["learning-bad", "learning-a", "learning-missing"])
        assert result.status is Status.ERROR
        assert result.errors[0].startswith("learning-bad:")
        assert result.skipped == 1
