"""Metadata provider backed by a precomputed JSON index.

The index describes types the host cannot import (another runtime's
modules, a snapshot taken elsewhere). Every type is a record keyed by its
full name; references between records use those keys::

    {
      "standard_namespaces": ["System"],
      "types": {
        "Shop.Order": {
          "namespace": "Shop", "module": "Shop.Core",
          "base": "Shop.Entity",
          "fields": {"lines": "System.List[Shop.OrderLine]"}
        },
        "System.List[Shop.OrderLine]": {
          "name": "List", "namespace": "System.Collections.Generic",
          "module": "mscorlib", "enumerable": true,
          "generic_arguments": ["Shop.OrderLine"]
        }
      }
    }
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from typegraph.errors import RootResolutionError
from typegraph.metadata.base import BaseMetadataProvider
from typegraph.models import MemberInfo, MemberKind, MemberRef, MethodSignature

CONSTRUCTOR_NAME = ".ctor"


class MethodRecord(BaseModel):
    name: str
    returns: str | None = None
    parameters: list[str] = Field(default_factory=list)
    locals: list[str] | None = None


class TypeRecord(BaseModel):
    name: str | None = None
    namespace: str | None = None
    module: str = ""
    primitive: bool = False
    text: bool = False
    enumerable: bool = False
    array_element: str | None = None
    base: str | None = None
    interfaces: list[str] = Field(default_factory=list)
    generic_arguments: list[str] = Field(default_factory=list)
    known_types: list[str] = Field(default_factory=list)
    attributes: list[str] = Field(default_factory=list)
    constructors: list[list[str]] = Field(default_factory=list)
    fields: dict[str, str] = Field(default_factory=dict)
    properties: dict[str, str] = Field(default_factory=dict)
    methods: list[MethodRecord] = Field(default_factory=list)
    events: dict[str, str] = Field(default_factory=dict)
    nested: list[str] = Field(default_factory=list)
    member_attributes: dict[str, list[str]] = Field(default_factory=dict)


class MetadataIndex(BaseModel):
    standard_namespaces: list[str] = Field(default_factory=lambda: ["System"])
    types: dict[str, TypeRecord] = Field(default_factory=dict)


class IndexMetadataProvider(BaseMetadataProvider):
    """Serve type metadata from a :class:`MetadataIndex`."""

    def __init__(self, index: MetadataIndex):
        self.index = index

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> IndexMetadataProvider:
        return cls(MetadataIndex.model_validate(data))

    @classmethod
    def from_file(cls, path: Path) -> IndexMetadataProvider:
        return cls.from_dict(json.loads(Path(path).read_text(encoding="utf-8")))

    def record(self, handle: str) -> TypeRecord:
        """Raises KeyError for types missing from the index."""
        return self.index.types[handle]

    # ── Identity ──────────────────────────────────────────────

    def name(self, handle: str) -> str:
        record = self.record(handle)
        if record.name:
            return record.name
        return handle.split("[", 1)[0].rsplit(".", 1)[-1]

    def full_name(self, handle: str) -> str:
        return handle

    def namespace(self, handle: str) -> str | None:
        return self.record(handle).namespace

    def module_id(self, handle: str) -> str:
        return self.record(handle).module or (self.namespace(handle) or "")

    def is_standard_namespace(self, namespace: str) -> bool:
        return any(
            namespace == prefix or namespace.startswith(prefix + ".")
            for prefix in self.index.standard_namespaces
        )

    # ── Classification ────────────────────────────────────────

    def is_primitive(self, handle: str) -> bool:
        return self.record(handle).primitive

    def is_text(self, handle: str) -> bool:
        return self.record(handle).text

    def is_enumerable(self, handle: str) -> bool:
        record = self.record(handle)
        return (record.enumerable or record.array_element is not None) and not record.text

    def is_array(self, handle: str) -> bool:
        return self.record(handle).array_element is not None

    def array_element_type(self, handle: str) -> str | None:
        return self.record(handle).array_element

    # ── Structure ─────────────────────────────────────────────

    def generic_arguments(self, handle: str) -> list[str]:
        return list(self.record(handle).generic_arguments)

    def base_type(self, handle: str) -> str | None:
        return self.record(handle).base

    def interfaces(self, handle: str) -> list[str]:
        return list(self.record(handle).interfaces)

    def known_types(self, handle: str) -> list[str]:
        return list(self.record(handle).known_types)

    def attribute_types(self, handle: str) -> list[str]:
        return list(self.record(handle).attributes)

    def constructor_parameter_types(self, handle: str) -> list[str]:
        return [p for ctor in self.record(handle).constructors for p in ctor]

    def fields(self, handle: str) -> list[tuple[str, str]]:
        return list(self.record(handle).fields.items())

    def properties(self, handle: str) -> list[tuple[str, str]]:
        return list(self.record(handle).properties.items())

    def methods(self, handle: str) -> list[MethodSignature]:
        return [
            MethodSignature(
                name=m.name,
                return_types=[m.returns] if m.returns else [],
                parameter_types=list(m.parameters),
                local_types=list(m.locals) if m.locals is not None else None,
            )
            for m in self.record(handle).methods
        ]

    def events(self, handle: str) -> list[tuple[str, str]]:
        return list(self.record(handle).events.items())

    def nested_types(self, handle: str) -> list[str]:
        return list(self.record(handle).nested)

    def member_attribute_types(self, handle: str) -> list[str]:
        return [a for attrs in self.record(handle).member_attributes.values() for a in attrs]

    def enumerable_of(self, element: str) -> str:
        return f"System.Collections.Generic.IEnumerable[{element}]"

    # ── Resolution ────────────────────────────────────────────

    def resolve_type(self, qualified_name: str) -> str:
        if qualified_name in self.index.types:
            return qualified_name
        matches = [key for key in self.index.types if self.name(key) == qualified_name]
        if len(matches) == 1:
            return matches[0]
        if matches:
            raise RootResolutionError(f"Ambiguous type name {qualified_name!r}: {sorted(matches)}")
        raise RootResolutionError(f"Cannot resolve type {qualified_name!r}")

    def resolve_member(self, ref: MemberRef) -> MemberInfo:
        try:
            record = self.record(ref.declaring_type)
        except KeyError as e:
            raise RootResolutionError(f"Unknown type {ref.declaring_type!r}") from e

        owner = ref.declaring_type
        if ref.name in record.properties:
            return MemberInfo(ref.name, MemberKind.PROPERTY, owner, value_types=[record.properties[ref.name]])
        if ref.name in record.fields:
            return MemberInfo(ref.name, MemberKind.FIELD, owner, value_types=[record.fields[ref.name]])
        if ref.name in record.events:
            return MemberInfo(ref.name, MemberKind.EVENT, owner, value_types=[record.events[ref.name]])
        if ref.name == CONSTRUCTOR_NAME:
            return MemberInfo(ref.name, MemberKind.CONSTRUCTOR, owner)
        for method in record.methods:
            if method.name == ref.name:
                return MemberInfo(
                    ref.name, MemberKind.METHOD, owner,
                    return_types=[method.returns] if method.returns else [],
                    parameter_types=list(method.parameters),
                    local_types=list(method.locals) if method.locals is not None else None,
                )
        raise RootResolutionError(f"{owner} has no member {ref.name!r}")
