"""Tests for graph views: ancestry path, module filter, module incidence and legend breakdown."""

import pytest

from typegraph.analysis.dependency_graph import DependencyGraphBuilder
from typegraph.analysis.filters import filter_by_module_incidence, filter_by_modules, filter_by_type
from typegraph.analysis.legend import module_breakdown, referenced_modules, visible_modules
from typegraph.metadata.index_provider import IndexMetadataProvider


# ── Helpers ───────────────────────────────────────────────────

def _record(module, **properties):
    return {"namespace": "App", "module": module, "properties": properties}


@pytest.fixture
def graph_and_legend():
    """R(M1) -> X(M1) -> Y(M2) -> Z(M2), and R -> W(M3)."""
    provider = IndexMetadataProvider.from_dict({
        "types": {
            "App.R": _record("M1", x="App.X", w="App.W"),
            "App.X": _record("M1", y="App.Y"),
            "App.Y": _record("M2", z="App.Z"),
            "App.Z": _record("M2"),
            "App.W": _record("M3"),
        },
    })
    return DependencyGraphBuilder(provider).build("App.R")


def _edges(graph):
    return {(e.source.name, e.target.name) for e in graph.edges}


# ── Ancestry ──────────────────────────────────────────────────

class TestFilterByType:
    def test_path_from_root(self, graph_and_legend):
        graph, _ = graph_and_legend
        view = filter_by_type(graph, "Y")
        assert _edges(view) == {("R", "X"), ("X", "Y")}
        assert {n.name for n in view.vertices} == {"R", "X", "Y"}
        assert view.root.name == "R"

    def test_nothing_past_target(self, graph_and_legend):
        graph, _ = graph_and_legend
        view = filter_by_type(graph, "Y")
        assert "Z" not in {n.name for n in view.vertices}

    def test_root_itself(self, graph_and_legend):
        graph, _ = graph_and_legend
        view = filter_by_type(graph, "R")
        assert [n.name for n in view.vertices] == ["R"]
        assert view.edges == []

    def test_unknown_type(self, graph_and_legend):
        graph, _ = graph_and_legend
        view = filter_by_type(graph, "Nope")
        assert len(view) == 0

    def test_source_graph_untouched(self, graph_and_legend):
        graph, _ = graph_and_legend
        before = (len(graph.nodes), len(graph.edges))
        filter_by_type(graph, "Z")
        filter_by_modules(graph, ["M1"])
        assert (len(graph.nodes), len(graph.edges)) == before


# ── Module filters ────────────────────────────────────────────

class TestFilterByModules:
    def test_single_module(self, graph_and_legend):
        graph, _ = graph_and_legend
        view = filter_by_modules(graph, ["M1"])
        assert _edges(view) == {("R", "X")}

    def test_edges_stay_inside_enabled_modules(self, graph_and_legend):
        graph, _ = graph_and_legend
        enabled = {"M1", "M2"}
        view = filter_by_modules(graph, enabled)
        assert _edges(view) == {("R", "X"), ("X", "Y"), ("Y", "Z")}
        for edge in view.edges:
            assert edge.source.module_id in enabled
            assert edge.target.module_id in enabled

    def test_no_modules(self, graph_and_legend):
        graph, _ = graph_and_legend
        view = filter_by_modules(graph, [])
        assert len(view) == 0
        assert view.root is None

    def test_incidence(self, graph_and_legend):
        graph, _ = graph_and_legend
        assert _edges(filter_by_module_incidence(graph, "M3")) == {("R", "W")}
        assert _edges(filter_by_module_incidence(graph, "M2")) == {("X", "Y"), ("Y", "Z")}


# ── Legend ────────────────────────────────────────────────────

class TestLegend:
    def test_legend_order(self, graph_and_legend):
        _, legend = graph_and_legend
        assert [e.module_id for e in legend] == ["M1", "M2", "M3"]

    def test_breakdown_dependencies_first(self, graph_and_legend):
        graph, legend = graph_and_legend
        breakdown = module_breakdown(graph, legend)
        assert breakdown == {"M1": ["X", "R"], "M2": ["Z", "Y"], "M3": ["W"]}

    def test_referenced_modules(self, graph_and_legend):
        graph, _ = graph_and_legend
        assert referenced_modules(graph, "M1") == ["M2", "M3"]
        assert referenced_modules(graph, "M2") == []

    def test_visible_modules(self, graph_and_legend):
        _, legend = graph_and_legend
        legend[1].visible = False
        assert visible_modules(legend) == ["M1", "M3"]
