"""Project configuration for Folio.

Settings come from an optional ``folio.yaml`` in the project root, layered
over DEFAULT_CONFIG. The ``ENABLE_CACHE`` environment variable overrides the
``enable_cache`` setting for the asset build step.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml

CONFIG_FILENAME = "folio.yaml"
CACHE_ENV_VAR = "ENABLE_CACHE"

DEFAULT_CONFIG: dict[str, Any] = {
    "contents_dir": "contents",
    "public_dir": "public",
    "hashkey_path": "meta/hashkey",
    "css_input": "assets/input.css",
    "stylesheet": "style.css",
    "hashed_assets": ["style.css", "favicon.svg"],
    "hash_length": 6,
    "enable_cache": False,
    "strict_slugs": False,
    "port": 8000,
    "site_name": "bllyanos",
    "title": "billy's directory",
    "description": "billy's directory",
    "intro": "",
}


def load_config(
    project_root: Path, environ: Mapping[str, str] | None = None
) -> dict[str, Any]:
    """Load site configuration from folio.yaml.

    Args:
        project_root: Root directory of the project.
        environ: Environment to read ``ENABLE_CACHE`` from (defaults to
            ``os.environ``).

    Returns:
        Dictionary containing configuration values, with defaults applied.
    """
    config = dict(DEFAULT_CONFIG)
    config["hashed_assets"] = list(DEFAULT_CONFIG["hashed_assets"])
    config_path = project_root / CONFIG_FILENAME
    if config_path.exists():
        with open(config_path, encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
            if isinstance(loaded, dict):
                config.update(loaded)

    env = os.environ if environ is None else environ
    flag = env.get(CACHE_ENV_VAR)
    if flag is not None:
        config["enable_cache"] = flag.strip().lower() == "true"
    config.setdefault("ws_port", int(config["port"]) + 1)
    return config


def resolve_path(project_root: Path, config: Mapping[str, Any], key: str) -> Path:
    """Resolve a path setting against the project root.

    Args:
        project_root: Root directory of the project.
        config: Loaded configuration.
        key: Name of the path setting.

    Returns:
        Absolute path (settings that are already absolute are kept).
    """
    path = Path(str(config[key]))
    return path if path.is_absolute() else project_root / path
