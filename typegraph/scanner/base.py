"""Abstract base scanner."""

from __future__ import annotations

import abc
import fnmatch
from pathlib import Path

from typegraph.models import ModuleEntry


class BaseScanner(abc.ABC):
    """Base class for module scanners."""

    def __init__(self, skip_dirs: list[str] | None = None, namespace_prefix: str | None = None):
        self.skip_dirs = skip_dirs or [
            "node_modules", ".git", "__pycache__", "build", "dist", ".venv", "venv", "env",
        ]
        self.namespace_prefix = namespace_prefix

    @abc.abstractmethod
    def candidates(self, directory: Path) -> list[Path]:
        """Module files or package directories worth loading."""

    @abc.abstractmethod
    def load(self, path: Path) -> ModuleEntry | None:
        """Load one candidate. Returns None when it holds no matching types."""

    def _should_skip(self, path: Path, root: Path) -> bool:
        for part in path.relative_to(root).parts:
            for pattern in self.skip_dirs:
                if fnmatch.fnmatch(part, pattern):
                    return True
        return False

    def _matches_prefix(self, namespace: str | None) -> bool:
        if not self.namespace_prefix:
            return True
        return namespace is not None and namespace.startswith(self.namespace_prefix)
