"""Data models for the dependency graph."""

from __future__ import annotations

from dataclasses import dataclass, field

from typegraph.models import Edge, NodeKey, TypeNode


@dataclass
class DependencyGraph:
    nodes: dict[NodeKey, TypeNode] = field(default_factory=dict)
    edges: list[Edge] = field(default_factory=list)
    forward: dict[NodeKey, list[NodeKey]] = field(default_factory=dict)  # source -> [targets]
    reverse: dict[NodeKey, list[NodeKey]] = field(default_factory=dict)  # target -> [sources]
    root_key: NodeKey | None = None

    @property
    def root(self) -> TypeNode | None:
        return self.nodes.get(self.root_key) if self.root_key else None

    @property
    def vertices(self) -> list[TypeNode]:
        return list(self.nodes.values())

    def __contains__(self, node: object) -> bool:
        return isinstance(node, TypeNode) and node.key in self.nodes

    def __len__(self) -> int:
        return len(self.nodes)

    def get(self, key: NodeKey) -> TypeNode | None:
        return self.nodes.get(key)

    def parent_of(self, node: TypeNode) -> TypeNode | None:
        return self.nodes.get(node.parent_key) if node.parent_key else None

    def add_vertex(self, node: TypeNode) -> bool:
        """Insert ``node`` unless an equal node is already present."""
        if node.key in self.nodes:
            return False
        self.nodes[node.key] = node
        self.forward[node.key] = []
        self.reverse[node.key] = []
        if self.root_key is None:
            self.root_key = node.key
        return True

    def has_edge(self, source: TypeNode, target: TypeNode) -> bool:
        return target.key in self.forward.get(source.key, [])

    def add_edge(self, source: TypeNode, target: TypeNode) -> bool:
        """Insert ``source -> target`` unless it already exists."""
        if source.key not in self.nodes or target.key not in self.nodes:
            raise ValueError(f"Both endpoints must be vertices: {source!r} -> {target!r}")
        if self.has_edge(source, target):
            return False
        # Store the graph's own vertex objects so edges never hold stale copies
        edge = Edge(self.nodes[source.key], self.nodes[target.key])
        self.edges.append(edge)
        self.forward[source.key].append(target.key)
        self.reverse[target.key].append(source.key)
        return True

    def successors(self, node: TypeNode) -> list[TypeNode]:
        return [self.nodes[k] for k in self.forward.get(node.key, [])]

    def find_by_name(self, name: str) -> TypeNode | None:
        """First edge endpoint named ``name``, falling back to an isolated vertex."""
        for edge in self.edges:
            if edge.source.name == name:
                return edge.source
        for edge in self.edges:
            if edge.target.name == name:
                return edge.target
        return next((n for n in self.nodes.values() if n.name == name), None)

    def modules(self) -> list[str]:
        seen: dict[str, None] = {}
        for node in self.nodes.values():
            seen.setdefault(node.module_id, None)
        return list(seen)

    def to_dict(self) -> dict:
        return {
            "root": self.root.node_id if self.root else None,
            "nodes": [
                {
                    "id": node.node_id,
                    "name": node.name,
                    "module": node.module_id,
                    "color": node.color,
                    "foreground": node.foreground,
                    "deep_expand": node.deep_expand,
                    "parent": self.nodes[node.parent_key].node_id if node.parent_key in self.nodes else None,
                }
                for node in self.nodes.values()
            ],
            "edges": [
                {"source": edge.source.node_id, "target": edge.target.node_id}
                for edge in self.edges
            ],
        }
