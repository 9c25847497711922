"""Data models for the typegraph pipeline."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, NamedTuple


class MemberKind(enum.Enum):
    PROPERTY = "property"
    FIELD = "field"
    EVENT = "event"
    METHOD = "method"
    CONSTRUCTOR = "constructor"
    OTHER = "other"


class NodeKey(NamedTuple):
    """Identity of a graph vertex: two nodes are the same type iff their keys match."""
    name: str
    module_id: str


@dataclass(eq=False)
class TypeNode:
    """One vertex of the dependency graph."""
    name: str
    module_id: str
    type_ref: Any = None
    parent_type_ref: Any = None
    parent_key: NodeKey | None = None  # node whose expansion discovered this one
    deep_expand: bool = True
    color: str = ""

    @property
    def key(self) -> NodeKey:
        return NodeKey(self.name, self.module_id)

    @property
    def node_id(self) -> str:
        return f"{self.module_id}:{self.name}"

    @property
    def foreground(self) -> str:
        """Inverted background color, used for label text."""
        if not self.color.startswith("#") or len(self.color) != 7:
            return "#000000"
        rgb = int(self.color[1:], 16)
        return f"#{0xFFFFFF - rgb:06X}"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, TypeNode):
            return NotImplemented
        return self.key == other.key

    def __hash__(self) -> int:
        return hash(self.key)

    def __repr__(self) -> str:
        return f"TypeNode({self.name!r}, {self.module_id!r})"


@dataclass(frozen=True)
class Edge:
    """``source`` depends on ``target``."""
    source: TypeNode
    target: TypeNode


@dataclass
class LegendEntry:
    module_id: str
    color: str
    color_name: str = ""
    visible: bool = True


@dataclass(frozen=True)
class MemberRef:
    """A member of a type, selected as the root of a build."""
    declaring_type: Any
    name: str


@dataclass
class MethodSignature:
    name: str
    return_types: list[Any] = field(default_factory=list)
    parameter_types: list[Any] = field(default_factory=list)
    local_types: list[Any] | None = None  # None when locals are not available


@dataclass
class MemberInfo:
    """A resolved member, as reported by a metadata provider."""
    name: str
    kind: MemberKind
    declaring_type: Any
    value_types: list[Any] = field(default_factory=list)  # property, field, event handler
    return_types: list[Any] = field(default_factory=list)
    parameter_types: list[Any] = field(default_factory=list)
    local_types: list[Any] | None = None


@dataclass
class ModuleEntry:
    """Result from the scanner stage: one loadable module and its types."""
    name: str
    path: Path | None = None
    types: list[Any] = field(default_factory=list)


@dataclass
class GraphConfig:
    """Configuration for scanning and graph building."""
    source: Path = field(default_factory=lambda: Path("."))
    namespace_prefix: str | None = None
    attribute_namespace_prefix: str = ""
    standard_namespaces: list[str] = field(default_factory=list)
    color_seed: int | None = None
    max_workers: int = 8
    export_flush_every: int = 50
    skip_dirs: list[str] = field(default_factory=lambda: [
        "node_modules", ".git", "__pycache__", "build", "dist",
        ".venv", "venv", "env", ".eggs", "*.egg-info",
    ])


@dataclass
class BuildResult:
    """Result from the build stage."""
    graph: Any  # DependencyGraph; typed loosely to keep models import-free
    legend: list[LegendEntry] = field(default_factory=list)
    breakdown: dict[str, list[str]] = field(default_factory=dict)
    root_name: str = ""
