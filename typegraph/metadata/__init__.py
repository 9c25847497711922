"""Type metadata providers."""

from __future__ import annotations

from pathlib import Path

from typegraph.metadata.base import BaseMetadataProvider
from typegraph.metadata.index_provider import IndexMetadataProvider, MetadataIndex, TypeRecord
from typegraph.metadata.python_provider import PythonMetadataProvider
from typegraph.models import GraphConfig


def get_provider(config: GraphConfig) -> BaseMetadataProvider:
    """Pick the provider for ``config.source``: a JSON index file or live Python modules."""
    source = Path(config.source)
    if source.suffix == ".json" and source.is_file():
        provider = IndexMetadataProvider.from_file(source)
        provider.index.standard_namespaces.extend(config.standard_namespaces)
        return provider
    return PythonMetadataProvider(standard_namespaces=config.standard_namespaces)


__all__ = [
    "BaseMetadataProvider",
    "IndexMetadataProvider",
    "MetadataIndex",
    "PythonMetadataProvider",
    "TypeRecord",
    "get_provider",
]
