"""Memory graph: nodes per memory, directed labelled edges, stored as graph.json.

The graph is a cache of relationships; the memory files are the source of
truth. ``remove_node`` always takes the node's edges with it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from memvault.memory.files import read_json, write_json
from memvault.types import EdgeType, enum_value

logger = logging.getLogger(__name__)

GRAPH_FILENAME = "graph.json"
GRAPH_VERSION = 1


@dataclass
class GraphNode:
    id: str
    type: str
    title: str | None = None

    def to_json(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "type": self.type}
        if self.title:
            data["title"] = self.title
        return data


@dataclass
class GraphEdge:
    source: str
    target: str
    label: str = EdgeType.RELATES_TO.value

    def to_json(self) -> dict[str, Any]:
        return {"source": self.source, "target": self.target, "label": self.label}


@dataclass
class MemoryGraph:
    version: int = GRAPH_VERSION
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)

    # ── Nodes ────────────────────────────────────────────────

    def add_node(self, node: GraphNode) -> None:
        """Insert, or replace the attributes of an existing node with the same ID."""
        for i, existing in enumerate(self.nodes):
            if existing.id == node.id:
                self.nodes[i] = node
                return
        self.nodes.append(node)

    def remove_node(self, node_id: str) -> bool:
        """Remove a node and every edge touching it. Returns whether anything changed."""
        before = (len(self.nodes), len(self.edges))
        self.nodes = [n for n in self.nodes if n.id != node_id]
        self.edges = [e for e in self.edges if e.source != node_id and e.target != node_id]
        return (len(self.nodes), len(self.edges)) != before

    def get_node(self, node_id: str) -> GraphNode | None:
        return next((n for n in self.nodes if n.id == node_id), None)

    def has_node(self, node_id: str) -> bool:
        return self.get_node(node_id) is not None

    def node_ids(self) -> set[str]:
        return {n.id for n in self.nodes}

    # ── Edges ────────────────────────────────────────────────

    def add_edge(self, source: str, target: str, label: str = EdgeType.RELATES_TO.value) -> bool:
        """Add a directed edge between existing nodes. False if already present."""
        label = enum_value(label)
        if not self.has_node(source):
            raise KeyError(f"Source node not found: {source}")
        if not self.has_node(target):
            raise KeyError(f"Target node not found: {target}")
        if source == target:
            raise ValueError("Cannot create self-referencing edge")
        if self.has_edge(source, target, label):
            return False
        self.edges.append(GraphEdge(source, target, label))
        return True

    def remove_edge(self, source: str, target: str, label: str | None = None) -> int:
        """Remove edges source→target (optionally only with ``label``). Returns count."""
        label = enum_value(label)
        before = len(self.edges)
        self.edges = [
            e
            for e in self.edges
            if not (e.source == source and e.target == target and (label is None or e.label == label))
        ]
        return before - len(self.edges)

    def has_edge(self, source: str, target: str, label: str | None = None) -> bool:
        return any(
            e.source == source and e.target == target and (label is None or e.label == label)
            for e in self.edges
        )

    def get_edges(self) -> list[GraphEdge]:
        return list(self.edges)

    def outbound_edges(self, node_id: str) -> list[GraphEdge]:
        return [e for e in self.edges if e.source == node_id]

    def inbound_edges(self, node_id: str) -> list[GraphEdge]:
        return [e for e in self.edges if e.target == node_id]

    def neighbours(self, node_id: str) -> set[str]:
        out = {e.target for e in self.edges if e.source == node_id}
        out |= {e.source for e in self.edges if e.target == node_id}
        return out

    def rename_node(self, old_id: str, new_id: str) -> tuple[bool, int]:
        """Re-key a node and every edge endpoint. Returns (node renamed, edges touched).

        Raises ValueError if ``new_id`` is already a different node.
        """
        if new_id != old_id and self.has_node(new_id):
            raise ValueError(f"Node already exists: {new_id}")
        node_renamed = False
        for node in self.nodes:
            if node.id == old_id:
                node.id = new_id
                node_renamed = True
        edges_updated = 0
        for edge in self.edges:
            touched = False
            if edge.source == old_id:
                edge.source = new_id
                touched = True
            if edge.target == old_id:
                edge.target = new_id
                touched = True
            edges_updated += touched
        return node_renamed, edges_updated

    # ── JSON ─────────────────────────────────────────────────

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> MemoryGraph:
        """Build from parsed graph.json. Malformed nodes and edges are dropped."""
        raw_nodes = data.get("nodes") or []
        raw_edges = data.get("edges") or []
        if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
            logger.warning("Graph nodes/edges are not lists, starting fresh")
            return cls()
        nodes = [
            GraphNode(id=n["id"], type=str(n.get("type") or ""), title=_optional_str(n.get("title")))
            for n in raw_nodes
            if isinstance(n, dict) and isinstance(n.get("id"), str)
        ]
        edges = [
            GraphEdge(
                source=e["source"],
                target=e["target"],
                label=str(e.get("label") or e.get("type") or EdgeType.RELATES_TO.value),
            )
            for e in raw_edges
            if isinstance(e, dict) and isinstance(e.get("source"), str) and isinstance(e.get("target"), str)
        ]
        dropped = len(raw_nodes) - len(nodes) + len(raw_edges) - len(edges)
        if dropped:
            logger.warning("Dropped %d malformed graph entries", dropped)
        return cls(version=data.get("version", GRAPH_VERSION), nodes=nodes, edges=edges)

    def to_json(self) -> dict[str, Any]:
        return {
            "version": self.version,
            "nodes": [n.to_json() for n in self.nodes],
            "edges": [e.to_json() for e in self.edges],
        }


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def graph_path(root: Path) -> Path:
    return root / GRAPH_FILENAME


def load_graph(root: Path) -> MemoryGraph:
    """Read graph.json; a missing or malformed file yields an empty graph."""
    path = graph_path(root)
    if not path.exists():
        return MemoryGraph()
    data = read_json(path)
    if not isinstance(data, dict):
        logger.warning("Failed to load graph, starting fresh: %s", path)
        return MemoryGraph()
    return MemoryGraph.from_json(data)


def save_graph(root: Path, graph: MemoryGraph) -> None:
    write_json(graph_path(root), graph.to_json())
    logger.debug("Saved graph %s (%d nodes, %d edges)", root, len(graph.nodes), len(graph.edges))
