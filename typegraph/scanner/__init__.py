"""Module discovery: find loadable modules and the types they declare."""

from __future__ import annotations

import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

from typegraph.metadata.index_provider import IndexMetadataProvider
from typegraph.models import GraphConfig, ModuleEntry
from typegraph.scanner.base import BaseScanner
from typegraph.scanner.python_scanner import PythonModuleScanner

logger = logging.getLogger(__name__)


def ensure_import_path(directory: Path) -> None:
    """Let modules in ``directory`` import each other by name."""
    entry = str(Path(directory).resolve())
    if entry not in sys.path:
        sys.path.insert(0, entry)


def scan_directory(directory: Path, config: GraphConfig | None = None) -> dict[str, ModuleEntry]:
    """Load every candidate module in ``directory`` in parallel.

    Workers share nothing: each returns its own entry (or None) and the
    results are merged once the pool has finished.
    """
    config = config or GraphConfig()
    directory = Path(directory)
    scanner = PythonModuleScanner(skip_dirs=config.skip_dirs, namespace_prefix=config.namespace_prefix)
    candidates = scanner.candidates(directory)
    ensure_import_path(directory)

    with ThreadPoolExecutor(max_workers=max(1, config.max_workers)) as pool:
        results = list(pool.map(lambda path: _safe_load(scanner, path), candidates))

    catalog = {entry.name: entry for entry in results if entry is not None}
    logger.info("Scanned %d candidate(s) in %s, %d module(s) kept", len(candidates), directory, len(catalog))
    return dict(sorted(catalog.items()))


def scan_index(provider: IndexMetadataProvider, config: GraphConfig | None = None) -> dict[str, ModuleEntry]:
    """Group the non-standard types of a metadata index by module."""
    config = config or GraphConfig()
    prefix = config.namespace_prefix or ""
    catalog: dict[str, ModuleEntry] = {}
    for key, record in provider.index.types.items():
        namespace = record.namespace or ""
        if "[" in key or record.primitive or record.text:
            continue
        if provider.is_standard_namespace(namespace) or not namespace.startswith(prefix):
            continue
        module_id = provider.module_id(key)
        catalog.setdefault(module_id, ModuleEntry(name=module_id)).types.append(key)

    for entry in catalog.values():
        entry.types.sort(key=provider.name)
    return dict(sorted(catalog.items()))


def _safe_load(scanner: BaseScanner, path: Path) -> ModuleEntry | None:
    try:
        return scanner.load(path)
    except Exception:
        logger.debug("Skipping module %s", path, exc_info=True)
        return None


__all__ = [
    "BaseScanner",
    "PythonModuleScanner",
    "ensure_import_path",
    "scan_directory",
    "scan_index",
]
