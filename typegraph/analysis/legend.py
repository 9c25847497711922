"""Legend views: per-module type listings and module-to-module references."""

from __future__ import annotations

from typegraph.analysis.graph_models import DependencyGraph
from typegraph.analysis.toposort import topological_sort
from typegraph.models import LegendEntry, TypeNode


def module_breakdown(graph: DependencyGraph, legend: list[LegendEntry]) -> dict[str, list[str]]:
    """For each legend module, its type names ordered by intra-module dependencies."""
    by_module: dict[str, list[TypeNode]] = {}
    for node in graph.nodes.values():
        by_module.setdefault(node.module_id, []).append(node)

    breakdown: dict[str, list[str]] = {}
    for entry in legend:
        members = by_module.get(entry.module_id, [])
        member_keys = {n.key for n in members}

        def same_module_deps(node: TypeNode) -> list[TypeNode]:
            return [t for t in graph.successors(node) if t.key in member_keys]

        breakdown[entry.module_id] = [n.name for n in topological_sort(members, same_module_deps)]
    return breakdown


def referenced_modules(graph: DependencyGraph, module_id: str) -> list[str]:
    """Modules ``module_id`` references directly, dependencies first."""
    module_edges: dict[str, set[str]] = {}
    for edge in graph.edges:
        source, target = edge.source.module_id, edge.target.module_id
        if source != target:
            module_edges.setdefault(source, set()).add(target)

    candidates = module_edges.get(module_id, set())

    def deps(module: str) -> list[str]:
        return sorted(module_edges.get(module, set()) & candidates)

    return topological_sort(sorted(candidates), deps)


def visible_modules(legend: list[LegendEntry]) -> list[str]:
    return [entry.module_id for entry in legend if entry.visible]
