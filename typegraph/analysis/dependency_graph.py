"""Dependency graph builder: walks type metadata from one root and records every type it reaches."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable, Iterator

from typegraph.analysis.coloring import ColorAssigner
from typegraph.analysis.graph_models import DependencyGraph
from typegraph.errors import BuildCancelledError, RootResolutionError
from typegraph.metadata.base import BaseMetadataProvider
from typegraph.models import GraphConfig, LegendEntry, MemberKind, MemberRef, TypeNode

logger = logging.getLogger(__name__)

GENERATED_COLLECTION_SUFFIX = "-(generated collection)"
BY_REF_MARKER = "&"


class DependencyGraphBuilder:
    """Build a dependency graph by depth-first expansion of type metadata.

    Termination on reference cycles comes from graph membership: a type
    that is already a vertex only gains an edge from its new parent and is
    never expanded twice. Builders are single-use per build and must not be
    shared between threads.
    """

    def __init__(
        self,
        provider: BaseMetadataProvider,
        config: GraphConfig | None = None,
        cancel_event: threading.Event | None = None,
    ):
        self.provider = provider
        self.config = config or GraphConfig()
        self.cancel_event = cancel_event
        self._colors = ColorAssigner(seed=self.config.color_seed)
        # Expansion order is part of the contract: it fixes node, edge and color order
        self._expansions: list[tuple[str, Callable[[Any], Iterable[Any]]]] = [
            ("base type", self._base_types),
            ("interfaces", provider.interfaces),
            ("known types", provider.known_types),
            ("attributes", provider.attribute_types),
            ("constructors", provider.constructor_parameter_types),
            ("fields", lambda t: [ft for _, ft in provider.fields(t)]),
            ("methods", self._method_types),
            ("events", lambda t: [et for _, et in provider.events(t)]),
            ("generic arguments", provider.generic_arguments),
            ("nested types", provider.nested_types),
            ("properties", lambda t: [pt for _, pt in provider.properties(t)]),
            ("member attributes", self._member_attribute_types),
        ]

    def build(self, root: Any) -> tuple[DependencyGraph, list[LegendEntry]]:
        """Build the graph reachable from a type handle or a :class:`MemberRef`."""
        graph = DependencyGraph()
        self._colors = ColorAssigner(seed=self.config.color_seed)

        if isinstance(root, MemberRef):
            self._fill_member(root, graph)
        else:
            self._fill(graph, [(root, None)])

        logger.info(
            "Built graph with %d nodes, %d edges across %d modules",
            len(graph.nodes), len(graph.edges), len(self._colors),
        )
        return graph, self._colors.legend()

    # ── Traversal ─────────────────────────────────────────────

    def _fill(self, graph: DependencyGraph, pending: Iterable[tuple[Any, TypeNode | None]]) -> None:
        # Explicit stack of lazy dependency iterators; visit order matches a recursive walk
        stack: list[Iterator[tuple[Any, TypeNode | None]]] = [iter(pending)]
        while stack:
            try:
                handle, parent = next(stack[-1])
            except StopIteration:
                stack.pop()
                continue
            visited = self._visit(handle, graph, parent)
            if visited is not None:
                stack.append(self._dependencies(handle, *visited))

    def _visit(
        self, handle: Any, graph: DependencyGraph, parent: TypeNode | None,
    ) -> tuple[TypeNode, Any | None] | None:
        """Add ``handle`` under ``parent``. Returns the new node and its element type, if any."""
        self._check_cancelled()
        try:
            element = self._element_type(handle) if self.provider.is_enumerable(handle) else None
            if not self._should_process(handle, element):
                return None
            node = self._make_node(handle, parent, element)
        except Exception as e:
            if parent is None:
                raise RootResolutionError(f"Cannot reflect root type {handle!r}: {e}") from e
            logger.debug("Skipping unreflectable type %r", handle, exc_info=True)
            return None

        existing = graph.get(node.key)
        if existing is not None and parent is not None:
            if existing != parent:
                graph.add_edge(parent, existing)  # no-op when the edge is already there
            return None

        graph.add_vertex(node)
        if parent is not None:
            graph.add_edge(parent, node)
        return node, element

    def _dependencies(
        self, handle: Any, node: TypeNode, element: Any | None,
    ) -> Iterator[tuple[Any, TypeNode]]:
        if node.deep_expand:
            for label, expand in self._expansions:
                try:
                    dependencies = list(expand(handle))
                except Exception:
                    logger.debug("Could not reflect %s of %s", label, node.name, exc_info=True)
                    continue
                for dependency in dependencies:
                    yield dependency, node

        if element is not None:
            yield element, node

    def _fill_member(self, ref: MemberRef, graph: DependencyGraph) -> None:
        member = self.provider.resolve_member(ref)
        try:
            owner_name = self.provider.name(ref.declaring_type)
            module_id = self.provider.module_id(ref.declaring_type)
        except Exception as e:
            raise RootResolutionError(f"Cannot reflect {ref.declaring_type!r}: {e}") from e

        root = TypeNode(
            name=f"{owner_name}.{member.name}",
            module_id=module_id,
            type_ref=ref.declaring_type,
            deep_expand=False,
        )
        root.color = self._colors.color_for(module_id).hex
        graph.add_vertex(root)

        if member.kind in (MemberKind.PROPERTY, MemberKind.FIELD, MemberKind.EVENT):
            dependencies = list(member.value_types)
        elif member.kind is MemberKind.METHOD:
            dependencies = [*member.return_types, *member.parameter_types, *(member.local_types or [])]
        else:
            dependencies = []

        self._fill(graph, [(dependency, root) for dependency in dependencies])

    # ── Classification ────────────────────────────────────────

    def _element_type(self, handle: Any) -> Any | None:
        element = self._first_element(handle)
        if element is None:
            base = self.provider.base_type(handle)
            if base is not None:
                element = self._first_element(base)
        return element

    def _first_element(self, handle: Any) -> Any | None:
        element = self.provider.array_element_type(handle)
        if element is not None:
            return element
        arguments = self.provider.generic_arguments(handle)
        return arguments[0] if arguments else None

    def _should_process(self, handle: Any, element: Any | None) -> bool:
        p = self.provider
        if p.is_primitive(handle) or p.is_text(handle):
            return False
        if BY_REF_MARKER in p.name(handle) or p.is_generated(handle):
            return False

        namespace = p.namespace(handle)
        if namespace is None or not p.is_standard_namespace(namespace):
            return True

        if element is None:
            return False
        element_namespace = p.namespace(element)
        return element_namespace is not None and not p.is_standard_namespace(element_namespace)

    def _make_node(self, handle: Any, parent: TypeNode | None, element: Any | None) -> TypeNode:
        p = self.provider
        parent_type = parent.type_ref if parent else None
        parent_key = parent.key if parent else None

        namespace = p.namespace(handle)
        wraps_element = element is not None and (
            (namespace is not None and p.is_standard_namespace(namespace)) or p.is_array(handle)
        )
        if wraps_element:
            node = TypeNode(
                name=f"{p.name(element)}{GENERATED_COLLECTION_SUFFIX}",
                module_id=p.module_id(element),
                type_ref=p.enumerable_of(element),
                parent_type_ref=parent_type,
                parent_key=parent_key,
                deep_expand=False,
            )
        else:
            node = TypeNode(
                name=p.name(handle),
                module_id=p.module_id(handle),
                type_ref=handle,
                parent_type_ref=parent_type,
                parent_key=parent_key,
            )

        node.color = self._colors.color_for(node.module_id).hex
        return node

    # ── Expansion helpers ─────────────────────────────────────

    def _base_types(self, handle: Any) -> list[Any]:
        base = self.provider.base_type(handle)
        if base is None:
            return []
        namespace = self.provider.namespace(base)
        if namespace is None or self.provider.is_standard_namespace(namespace):
            return []
        return [base]

    def _method_types(self, handle: Any) -> list[Any]:
        found: list[Any] = []
        for method in self.provider.methods(handle):
            found.extend(method.return_types)
            found.extend(method.parameter_types)
            found.extend(method.local_types or [])
        return found

    def _member_attribute_types(self, handle: Any) -> list[Any]:
        prefix = self.config.attribute_namespace_prefix
        return [
            attribute for attribute in self.provider.member_attribute_types(handle)
            if (self.provider.namespace(attribute) or "").startswith(prefix)
        ]

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise BuildCancelledError("Graph build cancelled")
