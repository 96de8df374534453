"""Asset build step for Folio.

This module runs before the server starts: it builds the stylesheet and,
when cache-busting is enabled, hashes it, persists the key and writes
hash-suffixed copies of the configured assets.

Key functions:
- build_assets: Run the whole build step for a project.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .assets import (
    TailwindCSSBuilder,
    compute_and_persist_asset_hash,
    copy_hashed_assets,
)
from .config import load_config, resolve_path


class BuildError(Exception):
    """Error during the asset build with file context.

    Attributes:
        source_path: Path to the file that caused the error.
        message: Human-readable error message.
    """

    def __init__(self, source_path: Path, message: str):
        self.source_path = source_path
        self.message = message
        super().__init__(f"{source_path}: {message}")


@dataclass
class BuildResult:
    """Result of an asset build.

    Attributes:
        hash_key: Persisted key, or None when cache-busting is disabled.
        css_built: Whether the Tailwind CLI rebuilt the stylesheet.
        hashed_files: Hash-suffixed copies written.
    """

    hash_key: str | None
    css_built: bool
    hashed_files: list[Path] = field(default_factory=list)


def build_assets(
    project_root: Path, config: dict[str, Any] | None = None
) -> BuildResult:
    """Build the stylesheet and, if enabled, the cache-busted copies.

    When ``enable_cache`` is off, no key file and no copies are written.

    Args:
        project_root: Root directory of the project.
        config: Loaded configuration (loaded from the project when omitted).

    Returns:
        BuildResult describing what was written.

    Raises:
        BuildError: If hashing is enabled but the stylesheet is missing.
    """
    if config is None:
        config = load_config(project_root)
    public_dir = resolve_path(project_root, config, "public_dir")
    stylesheet = public_dir / str(config["stylesheet"])

    css_built = TailwindCSSBuilder(
        project_root, resolve_path(project_root, config, "css_input"), stylesheet
    ).build()

    if not config.get("enable_cache"):
        return BuildResult(hash_key=None, css_built=css_built)

    if not stylesheet.is_file():
        raise BuildError(stylesheet, "stylesheet not found; cannot compute hash key")
    key = compute_and_persist_asset_hash(
        stylesheet,
        resolve_path(project_root, config, "hashkey_path"),
        int(config.get("hash_length", 6)),
    )
    copies = copy_hashed_assets(public_dir, config.get("hashed_assets", []), key)
    return BuildResult(hash_key=key, css_built=css_built, hashed_files=copies)
