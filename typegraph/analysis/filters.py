"""Subgraph views derived from a built dependency graph. None of them mutate their input."""

from __future__ import annotations

from typing import Callable, Iterable

from typegraph.analysis.graph_models import DependencyGraph
from typegraph.models import Edge


def filter_by_type(graph: DependencyGraph, target_name: str) -> DependencyGraph:
    """The chain of discoveries that led from the root to ``target_name``.

    Walks ``parent`` back-references from the target toward the root, keeping
    each ``parent -> child`` edge on the way. Nothing past the target is kept.
    An unknown name yields an empty graph.
    """
    view = DependencyGraph()
    target = graph.find_by_name(target_name)
    if target is None:
        return view

    root = graph.root
    chain = [target]
    current = target
    while current != root:
        parent = graph.parent_of(current)
        if parent is None or parent in chain:
            break
        chain.append(parent)
        current = parent

    # Insert from the root down so the view's root is the original root
    chain.reverse()
    view.add_vertex(chain[0])
    for source, destination in zip(chain, chain[1:]):
        view.add_vertex(destination)
        for edge in graph.edges:
            if edge.source == source and edge.target == destination:
                view.add_edge(edge.source, edge.target)
    return view


def filter_by_modules(graph: DependencyGraph, enabled_modules: Iterable[str]) -> DependencyGraph:
    """Edges whose both endpoints belong to an enabled module, plus those endpoints."""
    enabled = set(enabled_modules)
    return _induced(graph, lambda e: e.source.module_id in enabled and e.target.module_id in enabled)


def filter_by_module_incidence(graph: DependencyGraph, module_id: str) -> DependencyGraph:
    """Edges touching ``module_id`` at either end, plus their endpoints."""
    return _induced(graph, lambda e: module_id in (e.source.module_id, e.target.module_id))


def _induced(graph: DependencyGraph, keep: Callable[[Edge], bool]) -> DependencyGraph:
    view = DependencyGraph()
    for edge in graph.edges:
        if not keep(edge):
            continue
        view.add_vertex(edge.source)
        view.add_vertex(edge.target)
        view.add_edge(edge.source, edge.target)
    view.root_key = graph.root_key if graph.root_key in view.nodes else None
    return view
