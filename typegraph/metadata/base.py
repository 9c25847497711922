"""Abstract type metadata provider."""

from __future__ import annotations

import abc
from typing import Any

from typegraph.models import MemberInfo, MemberRef, MethodSignature


class BaseMetadataProvider(abc.ABC):
    """Capability interface the graph builder reflects types through.

    Handles are opaque: a provider hands them out and accepts them back,
    the builder never compares them for identity.
    """

    # ── Identity ──────────────────────────────────────────────

    @abc.abstractmethod
    def name(self, handle: Any) -> str:
        """Display name of the type."""

    def full_name(self, handle: Any) -> str:
        namespace = self.namespace(handle)
        return f"{namespace}.{self.name(handle)}" if namespace else self.name(handle)

    @abc.abstractmethod
    def namespace(self, handle: Any) -> str | None:
        """Namespace the type is declared in, if any."""

    @abc.abstractmethod
    def module_id(self, handle: Any) -> str:
        """Identifier of the module (assembly) the type belongs to."""

    @abc.abstractmethod
    def is_standard_namespace(self, namespace: str) -> bool:
        """True for namespaces owned by the runtime's standard library."""

    # ── Classification ────────────────────────────────────────

    @abc.abstractmethod
    def is_primitive(self, handle: Any) -> bool:
        """Primitive scalar types are never graphed."""

    @abc.abstractmethod
    def is_text(self, handle: Any) -> bool:
        """True for the text-string type."""

    def is_generated(self, handle: Any) -> bool:
        return "<" in self.name(handle)

    @abc.abstractmethod
    def is_enumerable(self, handle: Any) -> bool:
        """True when the type exposes iteration/collection semantics."""

    def is_array(self, handle: Any) -> bool:
        return False

    def array_element_type(self, handle: Any) -> Any | None:
        return None

    # ── Structure ─────────────────────────────────────────────

    @abc.abstractmethod
    def generic_arguments(self, handle: Any) -> list[Any]:
        """Concrete generic type arguments, in declaration order."""

    @abc.abstractmethod
    def base_type(self, handle: Any) -> Any | None:
        """Immediate base type, or None."""

    @abc.abstractmethod
    def interfaces(self, handle: Any) -> list[Any]:
        """Implemented interfaces."""

    def known_types(self, handle: Any) -> list[Any]:
        return []

    def attribute_types(self, handle: Any) -> list[Any]:
        return []

    @abc.abstractmethod
    def constructor_parameter_types(self, handle: Any) -> list[Any]:
        """Parameter types of every declared constructor."""

    @abc.abstractmethod
    def fields(self, handle: Any) -> list[tuple[str, Any]]:
        """Declared fields as ``(name, type)`` pairs."""

    @abc.abstractmethod
    def properties(self, handle: Any) -> list[tuple[str, Any]]:
        """Declared properties as ``(name, type)`` pairs."""

    @abc.abstractmethod
    def methods(self, handle: Any) -> list[MethodSignature]:
        """Declared methods, excluding constructors."""

    def events(self, handle: Any) -> list[tuple[str, Any]]:
        return []

    @abc.abstractmethod
    def nested_types(self, handle: Any) -> list[Any]:
        """Types declared inside this type."""

    def member_attribute_types(self, handle: Any) -> list[Any]:
        return []

    @abc.abstractmethod
    def enumerable_of(self, element: Any) -> Any:
        """Handle for "a generic enumerable of ``element``"."""

    # ── Resolution ────────────────────────────────────────────

    @abc.abstractmethod
    def resolve_type(self, qualified_name: str) -> Any:
        """Look up a type by name. Raises RootResolutionError."""

    @abc.abstractmethod
    def resolve_member(self, ref: MemberRef) -> MemberInfo:
        """Look up a member of a type. Raises RootResolutionError."""
