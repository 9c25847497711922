"""Exceptions raised by typegraph."""

from __future__ import annotations


class TypeGraphError(Exception):
    """Base class for all typegraph errors."""


class RootResolutionError(TypeGraphError):
    """The selected root type or member could not be resolved."""


class CycleDetectedError(TypeGraphError):
    """A dependency cycle was found while sorting with ``throw_on_cycle``."""

    def __init__(self, item):
        super().__init__(f"Dependency cycle detected at {item!r}")
        self.item = item


class BuildCancelledError(TypeGraphError):
    """The graph build was cancelled before it completed."""


class BuildInProgressError(TypeGraphError):
    """A build is already running against the current graph."""
