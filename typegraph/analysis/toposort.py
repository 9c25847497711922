"""Dependency-respecting topological sort."""

from __future__ import annotations

from typing import Callable, Hashable, Iterable, Iterator, TypeVar

from typegraph.errors import CycleDetectedError

T = TypeVar("T", bound=Hashable)


def topological_sort(
    items: Iterable[T],
    dependencies: Callable[[T], Iterable[T]],
    throw_on_cycle: bool = False,
) -> list[T]:
    """Order ``items`` and everything they depend on, dependencies first.

    Depth-first post-order. A back edge (an item revisited before it was
    emitted) means a cycle: it raises :class:`CycleDetectedError` when
    ``throw_on_cycle`` is set, otherwise the item is treated as already
    ordered and the sort carries on.
    """
    ordered: list[T] = []
    visited: set[T] = set()
    emitted: set[T] = set()

    def enter(item: T) -> bool:
        if item in visited:
            if throw_on_cycle and item not in emitted:
                raise CycleDetectedError(item)
            return False
        visited.add(item)
        return True

    for item in items:
        if not enter(item):
            continue
        # (item, remaining dependencies) frames; an item is emitted once its iterator is exhausted
        stack: list[tuple[T, Iterator[T]]] = [(item, iter(dependencies(item)))]
        while stack:
            current, pending = stack[-1]
            for dependency in pending:
                if enter(dependency):
                    stack.append((dependency, iter(dependencies(dependency))))
                    break
            else:
                stack.pop()
                ordered.append(current)
                emitted.add(current)
    return ordered
