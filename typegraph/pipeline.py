"""Pipeline orchestrator: scan -> resolve root -> build -> legend breakdown."""

from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Callable

from typegraph.analysis.dependency_graph import DependencyGraphBuilder
from typegraph.analysis.legend import module_breakdown
from typegraph.metadata import get_provider
from typegraph.metadata.base import BaseMetadataProvider
from typegraph.metadata.index_provider import IndexMetadataProvider
from typegraph.models import BuildResult, GraphConfig, MemberRef, ModuleEntry
from typegraph.scanner import ensure_import_path, scan_directory, scan_index

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


def run_scan(
    config: GraphConfig,
    provider: BaseMetadataProvider | None = None,
    progress: ProgressCallback | None = None,
) -> dict[str, ModuleEntry]:
    """Stage 1: discover modules and their types."""
    if progress:
        progress("Scanning", 0, 1)
    provider = provider or get_provider(config)
    if isinstance(provider, IndexMetadataProvider):
        catalog = scan_index(provider, config)
    else:
        catalog = scan_directory(Path(config.source), config)
    if progress:
        progress("Scanning", 1, 1)
    return catalog


def run_build(
    config: GraphConfig,
    type_name: str,
    member: str | None = None,
    provider: BaseMetadataProvider | None = None,
    progress: ProgressCallback | None = None,
    cancel_event: threading.Event | None = None,
) -> BuildResult:
    """Resolve ``type_name`` (and optionally one of its members) and build its graph.

    Raises RootResolutionError when the root cannot be found or reflected.
    """
    provider = provider or get_provider(config)
    source = Path(config.source)
    if not isinstance(provider, IndexMetadataProvider) and source.is_dir():
        ensure_import_path(source)

    if progress:
        progress("Resolving", 0, 1)
    handle = provider.resolve_type(type_name)
    root = MemberRef(handle, member) if member else handle
    if progress:
        progress("Resolving", 1, 1)

    if progress:
        progress("Building", 0, 1)
    builder = DependencyGraphBuilder(provider, config, cancel_event=cancel_event)
    graph, legend = builder.build(root)
    if progress:
        progress("Building", 1, 1)

    root_name = graph.root.name if graph.root else type_name
    logger.info("Graph for %s: %d node(s), %d edge(s)", root_name, len(graph.nodes), len(graph.edges))
    return BuildResult(
        graph=graph,
        legend=legend,
        breakdown=module_breakdown(graph, legend),
        root_name=root_name,
    )
