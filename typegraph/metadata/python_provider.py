"""Metadata provider that reflects over live Python classes."""

from __future__ import annotations

import ast
import builtins
import collections.abc
import functools
import importlib
import inspect
import logging
import sys
import textwrap
import types
import typing
from typing import Any

from typegraph.errors import RootResolutionError
from typegraph.metadata.base import BaseMetadataProvider
from typegraph.models import MemberInfo, MemberKind, MemberRef, MethodSignature

logger = logging.getLogger(__name__)

_PRIMITIVES = (int, float, complex, bool, bytes, bytearray, memoryview, type(None))
_MARKER_BASES = (object, typing.Generic, typing.Protocol)
_WRAPPERS = (typing.ClassVar, typing.Final, type)
_UNIONS = (typing.Union, types.UnionType)
_MISSING = object()


def _origin(annotation: Any) -> Any:
    origin = typing.get_origin(annotation)
    return annotation if origin is None else origin


def _evaluate(node: ast.expr, namespace: dict[str, Any]) -> Any:
    """Resolve an annotation expression without executing arbitrary code."""
    if isinstance(node, ast.Name):
        if node.id in namespace:
            return namespace[node.id]
        return getattr(builtins, node.id)
    if isinstance(node, ast.Attribute):
        return getattr(_evaluate(node.value, namespace), node.attr)
    if isinstance(node, ast.Subscript):
        return _evaluate(node.value, namespace)[_evaluate(node.slice, namespace)]
    if isinstance(node, ast.Tuple):
        return tuple(_evaluate(elt, namespace) for elt in node.elts)
    if isinstance(node, ast.List):
        return [_evaluate(elt, namespace) for elt in node.elts]
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return _evaluate(node.left, namespace) | _evaluate(node.right, namespace)
    if isinstance(node, ast.Constant):
        if isinstance(node.value, str):
            return _evaluate(ast.parse(node.value, mode="eval").body, namespace)
        return node.value
    raise ValueError(f"Unsupported annotation expression: {ast.dump(node)}")


def _annotation_namespace(owner: Any) -> dict[str, Any]:
    """Names visible to the annotations of a class or function."""
    if not isinstance(owner, type):
        return getattr(owner, "__globals__", {})
    module = sys.modules.get(owner.__module__)
    namespace = dict(vars(module)) if module is not None else {}
    namespace.update(vars(owner))
    return namespace


class PythonMetadataProvider(BaseMetadataProvider):
    """Reflect classes with ``inspect``, ``typing`` and ``ast``.

    A handle is either a class or a parameterized generic alias such as
    ``list[Order]``. Aliases are named after their origin, so ``Page[Order]``
    and ``Page[Invoice]`` share the ``Page`` vertex while still contributing
    their own generic arguments.
    """

    def __init__(self, standard_namespaces: list[str] | None = None):
        self.standard_namespaces = tuple(standard_namespaces or ())

    # ── Identity ──────────────────────────────────────────────

    def name(self, handle: Any) -> str:
        return self._cls(handle).__name__

    def full_name(self, handle: Any) -> str:
        cls = self._cls(handle)
        return f"{cls.__module__}.{cls.__qualname__}"

    def namespace(self, handle: Any) -> str | None:
        return getattr(self._cls(handle), "__module__", None)

    def module_id(self, handle: Any) -> str:
        namespace = self.namespace(handle) or "builtins"
        return namespace.split(".")[0]

    def is_standard_namespace(self, namespace: str) -> bool:
        top = namespace.split(".")[0]
        if top == "builtins" or top in sys.stdlib_module_names:
            return True
        return any(
            namespace == prefix or namespace.startswith(prefix + ".")
            for prefix in self.standard_namespaces
        )

    # ── Classification ────────────────────────────────────────

    def is_primitive(self, handle: Any) -> bool:
        return self._cls(handle) in _PRIMITIVES

    def is_text(self, handle: Any) -> bool:
        return self._cls(handle) is str

    def is_generated(self, handle: Any) -> bool:
        return "<" in self._cls(handle).__qualname__

    def is_enumerable(self, handle: Any) -> bool:
        cls = self._cls(handle)
        return cls is not str and issubclass(cls, collections.abc.Iterable)

    def is_array(self, handle: Any) -> bool:
        args = typing.get_args(handle)
        return typing.get_origin(handle) is tuple and len(args) == 2 and args[1] is Ellipsis

    def array_element_type(self, handle: Any) -> Any | None:
        if not self.is_array(handle):
            return None
        elements = self._flatten(typing.get_args(handle)[0])
        return elements[0] if elements else None

    # ── Structure ─────────────────────────────────────────────

    def generic_arguments(self, handle: Any) -> list[Any]:
        if typing.get_origin(handle) is None:
            return []
        return self._flatten(list(typing.get_args(handle)))

    def base_type(self, handle: Any) -> Any | None:
        bases = self._declared_bases(self._cls(handle))
        return bases[0] if bases else None

    def interfaces(self, handle: Any) -> list[Any]:
        cls = self._cls(handle)
        declared = self._declared_bases(cls)
        result = list(declared[1:])

        covered = {cls, *_MARKER_BASES}
        covered.update(_origin(base) for base in result)
        base = declared[0] if declared else None
        while base is not None:
            base_cls = _origin(base)
            covered.add(base_cls)
            parents = self._declared_bases(base_cls) if isinstance(base_cls, type) else []
            base = parents[0] if parents else None

        result.extend(m for m in cls.__mro__[1:] if m not in covered)
        return result

    def known_types(self, handle: Any) -> list[Any]:
        return list(self._cls(handle).__dict__.get("__known_types__", ()))

    def attribute_types(self, handle: Any) -> list[Any]:
        cls = self._cls(handle)
        result: list[Any] = []
        if type(cls) is not type:
            result.append(type(cls))
        for marker in cls.__dict__.get("__type_attributes__", ()):
            result.append(marker if isinstance(marker, type) else type(marker))
        return result

    def constructor_parameter_types(self, handle: Any) -> list[Any]:
        init = self._cls(handle).__dict__.get("__init__")
        if not inspect.isfunction(init):
            return []
        _, parameters = self._signature_types(init)
        return parameters

    def fields(self, handle: Any) -> list[tuple[str, Any]]:
        cls = self._cls(handle)
        hints = self._hints(cls)
        return [
            (name, field_type)
            for name in self._own_annotations(cls)
            for field_type in self._flatten(hints.get(name))
        ]

    def properties(self, handle: Any) -> list[tuple[str, Any]]:
        result: list[tuple[str, Any]] = []
        for name, attr in vars(self._cls(handle)).items():
            getter = self._property_getter(attr)
            if getter is None:
                continue
            returns, _ = self._signature_types(getter)
            result.extend((name, value_type) for value_type in returns)
        return result

    def methods(self, handle: Any) -> list[MethodSignature]:
        result: list[MethodSignature] = []
        for name, attr in vars(self._cls(handle)).items():
            if name == "__init__":
                continue
            fn = self._function(attr)
            if fn is None:
                continue
            returns, parameters = self._signature_types(fn)
            result.append(MethodSignature(
                name=name,
                return_types=returns,
                parameter_types=parameters,
                local_types=self._local_types(fn),
            ))
        return result

    def nested_types(self, handle: Any) -> list[Any]:
        cls = self._cls(handle)
        return [
            value for value in vars(cls).values()
            if isinstance(value, type) and value.__qualname__ == f"{cls.__qualname__}.{value.__name__}"
        ]

    def member_attribute_types(self, handle: Any) -> list[Any]:
        cls = self._cls(handle)
        hints = self._hints(cls)
        annotations = [hints.get(name) for name in self._own_annotations(cls)]
        for attr in vars(cls).values():
            fn = self._property_getter(attr) or self._function(attr)
            if fn is not None:
                annotations.extend(self._hints(fn).values())

        result: list[Any] = []
        for annotation in annotations:
            result.extend(self._annotated_metadata(annotation))
        return result

    def enumerable_of(self, element: Any) -> Any:
        return collections.abc.Iterable[element]

    # ── Resolution ────────────────────────────────────────────

    def resolve_type(self, qualified_name: str) -> Any:
        """Resolve ``pkg.mod:Outer.Inner`` or ``pkg.mod.Outer`` to a class."""
        if ":" in qualified_name:
            module_name, attr_path = qualified_name.split(":", 1)
            candidates = [(module_name, attr_path)]
        else:
            parts = qualified_name.split(".")
            candidates = [
                (".".join(parts[:i]), ".".join(parts[i:]))
                for i in range(len(parts) - 1, 0, -1)
            ]

        for module_name, attr_path in candidates:
            try:
                module = importlib.import_module(module_name)
            except ImportError:
                continue
            except Exception as e:
                raise RootResolutionError(f"Failed to import {module_name}: {e}") from e

            target: Any = module
            try:
                for attr in attr_path.split("."):
                    target = getattr(target, attr)
            except AttributeError:
                continue
            if not isinstance(target, type):
                raise RootResolutionError(f"{qualified_name} is not a class")
            return target

        raise RootResolutionError(f"Cannot resolve type {qualified_name!r}")

    def resolve_member(self, ref: MemberRef) -> MemberInfo:
        try:
            cls = self._cls(ref.declaring_type)
        except TypeError as e:
            raise RootResolutionError(str(e)) from e

        try:
            attr = inspect.getattr_static(cls, ref.name)
        except AttributeError:
            attr = _MISSING

        getter = self._property_getter(attr)
        if getter is not None:
            returns, _ = self._signature_types(getter)
            return MemberInfo(ref.name, MemberKind.PROPERTY, cls, value_types=returns)

        fn = self._function(attr)
        if fn is not None:
            returns, parameters = self._signature_types(fn)
            kind = MemberKind.CONSTRUCTOR if ref.name == "__init__" else MemberKind.METHOD
            return MemberInfo(
                ref.name, kind, cls,
                return_types=returns,
                parameter_types=parameters,
                local_types=self._local_types(fn),
            )

        hints = self._hints(cls)
        if ref.name in hints:
            return MemberInfo(ref.name, MemberKind.FIELD, cls, value_types=self._flatten(hints[ref.name]))

        if attr is _MISSING:
            raise RootResolutionError(f"{cls.__qualname__} has no member {ref.name!r}")
        return MemberInfo(ref.name, MemberKind.OTHER, cls)

    # ── Helpers ───────────────────────────────────────────────

    @staticmethod
    def _cls(handle: Any) -> type:
        cls = _origin(handle)
        if not isinstance(cls, type):
            raise TypeError(f"Not a class: {handle!r}")
        return cls

    @staticmethod
    def _declared_bases(cls: type) -> list[Any]:
        bases = cls.__dict__.get("__orig_bases__", cls.__bases__)
        return [base for base in bases if _origin(base) not in _MARKER_BASES]

    @staticmethod
    def _own_annotations(cls: type) -> list[str]:
        try:
            return list(inspect.get_annotations(cls))
        except Exception:
            logger.debug("Could not read annotations of %r", cls, exc_info=True)
            return []

    @staticmethod
    def _hints(obj: Any) -> dict[str, Any]:
        try:
            return typing.get_type_hints(obj, include_extras=True)
        except Exception:
            logger.debug("Could not evaluate annotations of %r together", obj, exc_info=True)

        # One unresolvable name (often a TYPE_CHECKING import) only drops its own annotation
        hints: dict[str, Any] = {}
        owners = reversed(obj.__mro__) if isinstance(obj, type) else [obj]
        for owner in owners:
            try:
                raw = inspect.get_annotations(owner)
            except Exception:
                logger.debug("Could not read annotations of %r", owner, exc_info=True)
                continue
            namespace = _annotation_namespace(owner)
            for name, value in raw.items():
                if not isinstance(value, str):
                    hints[name] = value
                    continue
                try:
                    hints[name] = _evaluate(ast.parse(value, mode="eval").body, namespace)
                except Exception:
                    logger.debug("Unresolvable annotation %r on %r", value, owner)
                    hints.pop(name, None)
        return hints

    @staticmethod
    def _property_getter(attr: Any) -> Any | None:
        if isinstance(attr, property):
            return attr.fget
        if isinstance(attr, functools.cached_property):
            return attr.func
        return None

    @staticmethod
    def _function(attr: Any) -> Any | None:
        if isinstance(attr, (staticmethod, classmethod)):
            attr = attr.__func__
        return attr if inspect.isfunction(attr) else None

    def _signature_types(self, fn: Any) -> tuple[list[Any], list[Any]]:
        hints = self._hints(fn)
        returns = self._flatten(hints.pop("return", None))
        parameters = [h for annotation in hints.values() for h in self._flatten(annotation)]
        return returns, parameters

    def _local_types(self, fn: Any) -> list[Any] | None:
        """Types of annotated local variables, read from the function source."""
        try:
            tree = ast.parse(textwrap.dedent(inspect.getsource(fn)))
        except (OSError, TypeError, SyntaxError):
            return None

        namespace = getattr(fn, "__globals__", {})
        found: list[Any] = []
        for node in ast.walk(tree):
            if not isinstance(node, ast.AnnAssign):
                continue
            try:
                found.extend(self._flatten(_evaluate(node.annotation, namespace)))
            except Exception:
                logger.debug("Unresolvable local annotation in %s", fn.__qualname__, exc_info=True)
        return found

    def _flatten(self, annotation: Any) -> list[Any]:
        """Reduce an annotation to the class handles it depends on."""
        if annotation is None or annotation is Ellipsis or annotation is typing.Any:
            return []
        if isinstance(annotation, (list, tuple)):
            return [h for item in annotation for h in self._flatten(item)]
        if isinstance(annotation, typing.NewType):
            return self._flatten(annotation.__supertype__)

        origin = typing.get_origin(annotation)
        if origin is typing.Annotated:
            return self._flatten(typing.get_args(annotation)[0])
        if origin in _UNIONS or origin in _WRAPPERS or origin is collections.abc.Callable:
            return self._flatten(list(typing.get_args(annotation)))
        if origin is typing.Literal:
            return []
        if isinstance(origin, type) or isinstance(annotation, type):
            return [annotation]
        return []

    def _annotated_metadata(self, annotation: Any) -> list[type]:
        if isinstance(annotation, (list, tuple)):
            return [m for item in annotation for m in self._annotated_metadata(item)]
        found: list[type] = []
        if typing.get_origin(annotation) is typing.Annotated:
            for meta in annotation.__metadata__:
                found.append(meta if isinstance(meta, type) else type(meta))
            annotation = typing.get_args(annotation)[0]
        for arg in typing.get_args(annotation):
            found.extend(self._annotated_metadata(arg))
        return found
