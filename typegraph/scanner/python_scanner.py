"""Python module scanner using importlib."""

from __future__ import annotations

import importlib
import logging
import pkgutil
from pathlib import Path
from types import ModuleType

from typegraph.models import ModuleEntry
from typegraph.scanner.base import BaseScanner

logger = logging.getLogger(__name__)


class PythonModuleScanner(BaseScanner):
    """Treat each top-level ``.py`` file or package directory as one module."""

    def candidates(self, directory: Path) -> list[Path]:
        found: list[Path] = []
        for path in sorted(directory.iterdir()):
            if path.name.startswith((".", "_")) or self._should_skip(path, directory):
                continue
            if path.is_file() and path.suffix == ".py" and path.stem.isidentifier():
                found.append(path)
            elif path.is_dir() and (path / "__init__.py").is_file() and path.name.isidentifier():
                found.append(path)
        return found

    def load(self, path: Path) -> ModuleEntry | None:
        module_name = path.stem if path.is_file() else path.name
        modules = [importlib.import_module(module_name)]
        if hasattr(modules[0], "__path__"):
            modules.extend(self._submodules(modules[0]))

        types: dict[str, type] = {}
        for module in modules:
            for value in vars(module).values():
                if (
                    isinstance(value, type)
                    and value.__module__ == module.__name__
                    and "<" not in value.__qualname__
                    and self._matches_prefix(value.__module__)
                ):
                    types[f"{value.__module__}.{value.__qualname__}"] = value

        if not types:
            return None
        return ModuleEntry(
            name=module_name,
            path=path,
            types=sorted(types.values(), key=lambda t: (t.__name__, t.__module__)),
        )

    @staticmethod
    def _submodules(package: ModuleType) -> list[ModuleType]:
        found: list[ModuleType] = []
        for info in pkgutil.walk_packages(
            package.__path__,
            prefix=f"{package.__name__}.",
            onerror=lambda name: logger.debug("Could not walk package %s", name),
        ):
            try:
                found.append(importlib.import_module(info.name))
            except Exception:
                logger.debug("Skipping unloadable module %s", info.name, exc_info=True)
        return found
