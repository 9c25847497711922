"""Persisted configuration under ``~/.typegraph``."""

from __future__ import annotations

import dataclasses
import json
import logging
from pathlib import Path
from typing import Any

from typegraph.models import GraphConfig

logger = logging.getLogger(__name__)

_CONFIG_DIR = Path.home() / ".typegraph"
_CONFIG_FILE = _CONFIG_DIR / "config.json"

_FIELDS = {f.name for f in dataclasses.fields(GraphConfig)}


def load_config(path: Path | None = None, **overrides: Any) -> GraphConfig:
    """Load the saved config, then apply non-None ``overrides`` on top."""
    config_file = Path(path) if path else _CONFIG_FILE
    data: dict[str, Any] = {}
    try:
        if config_file.exists():
            data = json.loads(config_file.read_text())
    except (OSError, ValueError):
        logger.warning("Ignoring unreadable config file %s", config_file)

    data.update({k: v for k, v in overrides.items() if v is not None})
    unknown = set(data) - _FIELDS
    if unknown:
        logger.warning("Ignoring unknown config keys: %s", ", ".join(sorted(unknown)))

    values = {k: v for k, v in data.items() if k in _FIELDS}
    if "source" in values:
        values["source"] = Path(values["source"])
    return GraphConfig(**values)


def save_config(config: GraphConfig, path: Path | None = None) -> Path:
    config_file = Path(path) if path else _CONFIG_FILE
    config_file.parent.mkdir(parents=True, exist_ok=True)
    data = dataclasses.asdict(config)
    data["source"] = str(config.source)
    config_file.write_text(json.dumps(data, indent=2))
    return config_file
