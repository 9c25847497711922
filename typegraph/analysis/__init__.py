"""Graph building and the views derived from it."""

from typegraph.analysis.dependency_graph import DependencyGraphBuilder
from typegraph.analysis.filters import filter_by_module_incidence, filter_by_modules, filter_by_type
from typegraph.analysis.graph_models import DependencyGraph
from typegraph.analysis.legend import module_breakdown, referenced_modules, visible_modules
from typegraph.analysis.toposort import topological_sort

__all__ = [
    "DependencyGraph",
    "DependencyGraphBuilder",
    "filter_by_module_incidence",
    "filter_by_modules",
    "filter_by_type",
    "module_breakdown",
    "referenced_modules",
    "topological_sort",
    "visible_modules",
]
