"""Tests for the dependency graph builder and module coloring."""

import threading
from pathlib import Path

import pytest

from typegraph.analysis.coloring import EXTENDED_PALETTE, PRIMARY_PALETTE, ColorAssigner
from typegraph.analysis.dependency_graph import GENERATED_COLLECTION_SUFFIX, DependencyGraphBuilder
from typegraph.analysis.legend import module_breakdown
from typegraph.errors import BuildCancelledError, RootResolutionError
from typegraph.metadata.index_provider import IndexMetadataProvider
from typegraph.models import GraphConfig, MemberRef

FIXTURES = Path(__file__).parent / "fixtures"

STANDARD = {
    "System.Int32": {"namespace": "System", "module": "mscorlib", "primitive": True},
    "System.String": {"namespace": "System", "module": "mscorlib", "text": True},
    "System.Uri": {"namespace": "System", "module": "mscorlib"},
}


# ── Helpers ───────────────────────────────────────────────────

def _provider(**types):
    records = dict(STANDARD)
    for key, record in types.items():
        records[key.replace("_", ".")] = {"namespace": "Shop", "module": "Shop", **record}
    return IndexMetadataProvider.from_dict({"standard_namespaces": ["System"], "types": records})


def _list_of(element):
    return {
        "name": "List", "namespace": "System.Collections.Generic", "module": "mscorlib",
        "enumerable": True, "generic_arguments": [element],
    }


def _build(provider, root, **config):
    builder = DependencyGraphBuilder(provider, GraphConfig(**config))
    return builder.build(root)


def _names(graph):
    return {n.name for n in graph.vertices}


def _edges(graph):
    return [(e.source.name, e.target.name) for e in graph.edges]


# ── Graph building ────────────────────────────────────────────

class TestDependencyGraphBuilder:
    def test_single_type(self):
        provider = _provider(Shop_A={})
        graph, legend = _build(provider, "Shop.A")
        assert _names(graph) == {"A"}
        assert graph.edges == []
        assert graph.root.name == "A"
        assert [e.module_id for e in legend] == ["Shop"]

    def test_property_dependency(self):
        provider = _provider(
            Shop_A={"properties": {"b": "Shop.B"}},
            Shop_B={},
        )
        graph, _ = _build(provider, "Shop.A")
        assert _edges(graph) == [("A", "B")]
        b = next(n for n in graph.vertices if n.name == "B")
        assert graph.parent_of(b).name == "A"
        assert b.parent_type_ref == "Shop.A"

    def test_deterministic(self):
        provider = IndexMetadataProvider.from_file(FIXTURES / "shop_index.json")
        first, _ = _build(provider, "Shop.Order")
        second, _ = _build(provider, "Shop.Order")
        assert [n.key for n in first.vertices] == [n.key for n in second.vertices]
        assert _edges(first) == _edges(second)

    def test_no_duplicate_vertices(self):
        provider = _provider(
            Shop_A={"properties": {"b": "Shop.B", "c": "Shop.C"}, "fields": {"b2": "Shop.B"}},
            Shop_B={"properties": {"c": "Shop.C"}},
            Shop_C={},
        )
        graph, _ = _build(provider, "Shop.A")
        keys = [n.key for n in graph.vertices]
        assert len(keys) == len(set(keys))
        assert len(_edges(graph)) == len(set(_edges(graph)))

    def test_edge_endpoints_are_vertices(self):
        provider = IndexMetadataProvider.from_file(FIXTURES / "shop_index.json")
        graph, _ = _build(provider, "Shop.Order")
        for edge in graph.edges:
            assert edge.source in graph
            assert edge.target in graph

    def test_cycle_terminates(self):
        provider = _provider(
            Shop_A={"properties": {"b": "Shop.B"}},
            Shop_B={"properties": {"a": "Shop.A"}},
        )
        graph, _ = _build(provider, "Shop.A")
        edges = _edges(graph)
        assert _names(graph) == {"A", "B"}
        assert ("A", "B") in edges
        assert set(edges) <= {("A", "B"), ("B", "A")}
        assert len(edges) == len(set(edges))

    def test_self_reference_adds_no_edge(self):
        provider = _provider(Shop_Node={"properties": {"next": "Shop.Node"}})
        graph, _ = _build(provider, "Shop.Node")
        assert _names(graph) == {"Node"}
        assert graph.edges == []

    def test_standard_types_excluded(self):
        provider = _provider(
            Shop_A={"properties": {"id": "System.Int32", "name": "System.String", "home": "System.Uri"}},
        )
        graph, _ = _build(provider, "Shop.A")
        assert _names(graph) == {"A"}

    def test_collection_of_domain_type(self):
        provider = IndexMetadataProvider.from_dict({
            "types": {
                "Shop.A": {"namespace": "Shop", "module": "Shop", "properties": {"items": "System.List[Shop.B]"}},
                "Shop.B": {"namespace": "Shop", "module": "Shop.Items"},
                "System.List[Shop.B]": _list_of("Shop.B"),
            },
        })
        graph, _ = _build(provider, "Shop.A")
        wrapper_name = "B" + GENERATED_COLLECTION_SUFFIX
        assert _edges(graph) == [("A", wrapper_name), (wrapper_name, "B")]

        wrapper = next(n for n in graph.vertices if n.name == wrapper_name)
        assert wrapper.deep_expand is False
        assert wrapper.module_id == "Shop.Items"
        assert wrapper.type_ref == "System.Collections.Generic.IEnumerable[Shop.B]"

    def test_collection_of_standard_type_excluded(self):
        provider = IndexMetadataProvider.from_dict({
            "types": {
                **STANDARD,
                "Shop.A": {"namespace": "Shop", "module": "Shop", "properties": {"names": "System.List[System.String]"}},
                "System.List[System.String]": _list_of("System.String"),
            },
        })
        graph, _ = _build(provider, "Shop.A")
        assert _names(graph) == {"A"}

    def test_array_wraps_element(self):
        provider = _provider(
            Shop_A={"fields": {"tags": "Shop.Tag[]"}},
            Shop_Tag={},
        )
        provider.index.types["Shop.Tag[]"] = provider.index.types["Shop.Tag"].model_copy(
            update={"name": "Tag[]", "array_element": "Shop.Tag"},
        )
        graph, _ = _build(provider, "Shop.A")
        assert ("A", "Tag" + GENERATED_COLLECTION_SUFFIX) in _edges(graph)
        assert ("Tag" + GENERATED_COLLECTION_SUFFIX, "Tag") in _edges(graph)

    def test_by_ref_and_generated_excluded(self):
        provider = _provider(
            Shop_A={"methods": [{"name": "Try", "parameters": ["Shop.B&", "Shop.<Closure>d__1"]}]},
        )
        provider.index.types["Shop.B&"] = provider.index.types["Shop.A"].model_copy(update={"name": "B&", "methods": []})
        provider.index.types["Shop.<Closure>d__1"] = provider.index.types["Shop.A"].model_copy(
            update={"name": "<Closure>d__1", "methods": []},
        )
        graph, _ = _build(provider, "Shop.A")
        assert _names(graph) == {"A"}

    def test_unreflectable_dependency_skipped(self):
        provider = _provider(
            Shop_A={"properties": {"broken": "Shop.Missing", "b": "Shop.B"}},
            Shop_B={},
        )
        graph, _ = _build(provider, "Shop.A")
        assert _names(graph) == {"A", "B"}

    def test_unreflectable_root_raises(self):
        provider = _provider(Shop_A={})
        with pytest.raises(RootResolutionError):
            _build(provider, "Shop.Missing")

    def test_excluded_root_yields_empty_graph(self):
        provider = _provider()
        graph, legend = _build(provider, "System.String")
        assert len(graph) == 0
        assert graph.root is None
        assert legend == []

    def test_expansion_order(self):
        provider = _provider(
            Shop_A={
                "base": "Shop.Base",
                "interfaces": ["Shop.IThing"],
                "constructors": [["Shop.Ctor"]],
                "fields": {"f": "Shop.Field"},
                "properties": {"p": "Shop.Prop"},
                "methods": [{"name": "M", "returns": "Shop.Ret", "parameters": ["Shop.Param"], "locals": ["Shop.Local"]}],
                "events": {"e": "Shop.Handler"},
                "nested": ["Shop.A.Inner"],
            },
            Shop_Base={}, Shop_IThing={}, Shop_Ctor={}, Shop_Field={}, Shop_Prop={},
            Shop_Ret={}, Shop_Param={}, Shop_Local={}, Shop_Handler={}, Shop_A_Inner={"name": "Inner"},
        )
        graph, _ = _build(provider, "Shop.A")
        assert [n.name for n in graph.vertices] == [
            "A", "Base", "IThing", "Ctor", "Field", "Ret", "Param", "Local", "Handler", "Inner", "Prop",
        ]

    def test_standard_base_not_expanded(self):
        provider = _provider(Shop_A={"base": "System.Uri"})
        graph, _ = _build(provider, "Shop.A")
        assert _names(graph) == {"A"}

    def test_member_attributes_filtered_by_prefix(self):
        provider = _provider(
            Shop_A={"member_attributes": {"name": ["Shop.Required", "Other.Display"]}},
            Shop_Required={},
        )
        provider.index.types["Other.Display"] = provider.index.types["Shop.Required"].model_copy(
            update={"namespace": "Other", "module": "Other"},
        )
        graph, _ = _build(provider, "Shop.A", attribute_namespace_prefix="Shop")
        assert _names(graph) == {"A", "Required"}

        graph, _ = _build(provider, "Shop.A")
        assert _names(graph) == {"A", "Required", "Display"}

    def test_known_types_and_attributes(self):
        provider = _provider(
            Shop_Payment={"known_types": ["Shop.Card"], "attributes": ["Shop.Serializable"]},
            Shop_Card={}, Shop_Serializable={},
        )
        graph, _ = _build(provider, "Shop.Payment")
        assert _edges(graph) == [("Payment", "Card"), ("Payment", "Serializable")]

    def test_shop_index_graph(self):
        provider = IndexMetadataProvider.from_file(FIXTURES / "shop_index.json")
        graph, legend = _build(provider, "Shop.Order")
        assert _names(graph) == {
            "Order", "Entity", "Money", "Currency", "Discount", "ShippedHandler", "Customer",
            "Order" + GENERATED_COLLECTION_SUFFIX, "OrderLine" + GENERATED_COLLECTION_SUFFIX, "OrderLine",
        }
        assert ("Customer", "Entity") in _edges(graph)
        assert ("Order" + GENERATED_COLLECTION_SUFFIX, "Order") in _edges(graph)
        assert [e.module_id for e in legend] == ["Shop.Core", "Shop.Billing"]

    def test_long_chain_builds_every_type(self):
        count = 2500
        types = {
            f"App.T{i}": {"namespace": "App", "module": "App", "properties": {"next": f"App.T{i + 1}"}}
            for i in range(count - 1)
        }
        types[f"App.T{count - 1}"] = {"namespace": "App", "module": "App"}
        provider = IndexMetadataProvider.from_dict({"types": types})

        graph, legend = _build(provider, "App.T0")
        assert _names(graph) == {f"T{i}" for i in range(count)}
        assert len(graph.edges) == count - 1

        ordered = module_breakdown(graph, legend)["App"]
        assert ordered[0] == f"T{count - 1}"
        assert ordered[-1] == "T0"

    def test_cancelled_build(self):
        provider = _provider(Shop_A={})
        cancel = threading.Event()
        cancel.set()
        builder = DependencyGraphBuilder(provider, cancel_event=cancel)
        with pytest.raises(BuildCancelledError):
            builder.build("Shop.A")


# ── Member roots ──────────────────────────────────────────────

class TestMemberBuild:
    def test_property_member(self):
        provider = _provider(
            Shop_A={"properties": {"b": "Shop.B", "c": "Shop.C"}},
            Shop_B={}, Shop_C={},
        )
        graph, _ = _build(provider, MemberRef("Shop.A", "b"))
        assert graph.root.name == "A.b"
        assert graph.root.deep_expand is False
        assert _edges(graph) == [("A.b", "B")]

    def test_method_member_uses_returns_params_and_locals(self):
        provider = _provider(
            Shop_A={"methods": [{"name": "Run", "returns": "Shop.R", "parameters": ["Shop.P"], "locals": ["Shop.L"]}]},
            Shop_R={}, Shop_P={}, Shop_L={},
        )
        graph, _ = _build(provider, MemberRef("Shop.A", "Run"))
        assert _edges(graph) == [("A.Run", "R"), ("A.Run", "P"), ("A.Run", "L")]

    def test_constructor_member_has_no_dependencies(self):
        provider = _provider(Shop_A={"constructors": [["Shop.B"]]}, Shop_B={})
        graph, _ = _build(provider, MemberRef("Shop.A", ".ctor"))
        assert _names(graph) == {"A..ctor"}

    def test_unknown_member_raises(self):
        provider = _provider(Shop_A={})
        with pytest.raises(RootResolutionError):
            _build(provider, MemberRef("Shop.A", "missing"))


# ── Coloring ──────────────────────────────────────────────────

class TestColoring:
    def test_primary_palette_first(self):
        colors = ColorAssigner(seed=1)
        assigned = [colors.color_for(f"m{i}") for i in range(8)]
        assert assigned == list(PRIMARY_PALETTE)

    def test_same_module_same_color(self):
        colors = ColorAssigner()
        assert colors.color_for("a") == colors.color_for("a")
        assert len(colors) == 1

    def test_extended_colors_distinct_and_not_rejected(self):
        colors = ColorAssigner(seed=7)
        assigned = [colors.color_for(f"m{i}") for i in range(20)]
        assert len(set(assigned)) == 20
        assert not {c.name for c in assigned} & {"Transparent", "White", "Black"}

    def test_seed_is_reproducible(self):
        a, b = ColorAssigner(seed=3), ColorAssigner(seed=3)
        assert [a.color_for(f"m{i}") for i in range(12)] == [b.color_for(f"m{i}") for i in range(12)]

    def test_exhausted_palette_reuses_colors(self):
        colors = ColorAssigner(seed=0)
        total = len(PRIMARY_PALETTE) + len(EXTENDED_PALETTE) + 5
        assigned = [colors.color_for(f"m{i}") for i in range(total)]
        assert len(assigned) == total
        assert not {c.name for c in assigned} & {"Transparent", "White", "Black"}

    def test_nine_modules_in_graph(self):
        dependencies = {f"p{i}": f"Shop.T{i}" for i in range(1, 10)}
        types = {"Shop_Root": {"properties": dependencies}}
        for i in range(1, 10):
            types[f"Shop_T{i}"] = {"module": f"M{i}"}
        provider = _provider(**types)

        graph, legend = _build(provider, "Shop.Root", color_seed=11)
        assert len(legend) == 10
        assert [e.color for e in legend[:8]] == [c.hex for c in PRIMARY_PALETTE]
        assert len({e.color for e in legend}) == 10
        for node in graph.vertices:
            entry = next(e for e in legend if e.module_id == node.module_id)
            assert node.color == entry.color

    def test_foreground_is_inverted(self):
        provider = _provider(Shop_A={})
        graph, _ = _build(provider, "Shop.A")
        assert graph.root.color == "#008B8B"
        assert graph.root.foreground == "#FF7474"
