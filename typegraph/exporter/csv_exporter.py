"""Flat CSV export of a graph's vertices and their declared properties."""

from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import Iterator, TextIO

from typegraph.analysis.graph_models import DependencyGraph
from typegraph.metadata.base import BaseMetadataProvider

logger = logging.getLogger(__name__)

HEADER = ("QualifiedName", "TypeName")


def iter_rows(graph: DependencyGraph, provider: BaseMetadataProvider) -> Iterator[tuple[str, str]]:
    """One row per vertex, then one row per property of the vertex's type."""
    for node in graph.vertices:
        qualified = node.name
        if node.parent_type_ref is not None:
            qualified = f"{_type_name(provider, node.parent_type_ref)}.{node.name}"
        yield qualified, node.name

        try:
            properties = provider.properties(node.type_ref)
        except Exception:
            logger.debug("No property metadata for %s", node.name, exc_info=True)
            continue
        type_name = _type_name(provider, node.type_ref)
        for prop_name, prop_type in properties:
            yield f"{type_name}.{prop_name}", _type_name(provider, prop_type)


def _type_name(provider: BaseMetadataProvider, handle) -> str:
    try:
        return provider.name(handle)
    except Exception:
        return str(handle)


def export_csv(
    graph: DependencyGraph,
    provider: BaseMetadataProvider,
    target: Path | TextIO,
    flush_every: int = 50,
) -> int:
    """Write the graph as CSV to a path or an open text stream. Returns the data row count."""
    if isinstance(target, (str, Path)):
        path = Path(target)
        path.parent.mkdir(parents=True, exist_ok=True)
        with path.open("w", newline="", encoding="utf-8") as fh:
            return _write(graph, provider, fh, flush_every)
    return _write(graph, provider, target, flush_every)


def _write(graph: DependencyGraph, provider: BaseMetadataProvider, fh: TextIO, flush_every: int) -> int:
    writer = csv.writer(fh)
    writer.writerow(HEADER)
    count = 0
    for row in iter_rows(graph, provider):
        writer.writerow(row)
        count += 1
        if flush_every > 0 and count % flush_every == 0:
            fh.flush()
    fh.flush()
    return count
