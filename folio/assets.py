"""Asset cache keys for Folio.

The build step hashes the built stylesheet, persists a short key, and writes
``<name>.<key>.<ext>`` copies of selected assets next to the originals. At
start-up the server loads the key once and uses it to rewrite asset URLs in
pages and to mark hashed files as immutable.

Key classes:
- AssetUrls: Rewrites asset paths and decides cache headers.
- TailwindCSSBuilder: Runs the Tailwind CLI to build the stylesheet.

Key functions:
- compute_asset_hash: Truncated SHA-256 hex digest of some bytes.
- compute_and_persist_asset_hash: Hash a file and write the key file.
- copy_hashed_assets: Write hash-suffixed copies of assets.
- load_hash_key: Read the persisted key, if any.
"""

from __future__ import annotations

import hashlib
import logging
import shutil
import subprocess
from collections.abc import Iterable
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

DEFAULT_HASH_LENGTH = 6
IMMUTABLE_CACHE_CONTROL = "max-age=31536000, immutable"


def compute_asset_hash(data: bytes, length: int = DEFAULT_HASH_LENGTH) -> str:
    """Return the first ``length`` hex characters of the SHA-256 digest.

    Args:
        data: Asset bytes.
        length: Number of hex characters to keep.

    Returns:
        Truncated lowercase hex digest.
    """
    if length < 1:
        raise ValueError(f"hash length must be positive, got {length}")
    return hashlib.sha256(data).hexdigest()[:length]


def compute_and_persist_asset_hash(
    asset_path: Path, key_file_path: Path, hash_length: int = DEFAULT_HASH_LENGTH
) -> str:
    """Hash an asset and write the key as a single line.

    Args:
        asset_path: The built asset to hash.
        key_file_path: Where to persist the key.
        hash_length: Number of hex characters to keep.

    Returns:
        The persisted key.
    """
    key = compute_asset_hash(asset_path.read_bytes(), hash_length)
    key_file_path.parent.mkdir(parents=True, exist_ok=True)
    key_file_path.write_text(key, encoding="utf-8")
    logger.info("hash key %s written to %s", key, key_file_path)
    return key


def hashed_name(name: str, key: str) -> str:
    """Insert ``key`` before the final extension of ``name``.

    Names without an extension are returned unchanged.

    Examples:
        >>> hashed_name("style.css", "abc123")
        'style.abc123.css'
    """
    stem, dot, ext = name.rpartition(".")
    if not dot or not stem:
        return name
    return f"{stem}.{key}.{ext}"


def copy_hashed_assets(public_dir: Path, names: Iterable[str], key: str) -> list[Path]:
    """Write hash-suffixed copies of assets beside the originals.

    Missing assets are skipped with a warning.

    Args:
        public_dir: Directory holding the assets.
        names: Asset paths relative to ``public_dir``.
        key: Hash key to embed.

    Returns:
        Paths of the copies written.
    """
    written: list[Path] = []
    for name in names:
        source = public_dir / name
        if not source.is_file():
            logger.warning("asset %s not found; no hashed copy written", source)
            continue
        target = source.with_name(hashed_name(source.name, key))
        shutil.copy2(source, target)
        logger.info("copied %s -> %s", source.name, target.name)
        written.append(target)
    return written


def load_hash_key(key_file_path: Path) -> str | None:
    """Load the persisted hash key.

    Args:
        key_file_path: Path written by the build step.

    Returns:
        The key, or None when the file is absent or empty (cache-busting off).
    """
    if not key_file_path.is_file():
        return None
    key = key_file_path.read_text(encoding="utf-8").strip()
    return key or None


class AssetUrls:
    """Rewrites asset URLs with the loaded hash key.

    Attributes:
        hash_key: Loaded key, or None when cache-busting is disabled.
    """

    def __init__(self, hash_key: str | None = None):
        self.hash_key = hash_key

    @property
    def enabled(self) -> bool:
        return bool(self.hash_key)

    def asset(self, path: str) -> str:
        """Return the URL to reference ``path`` with.

        ``/style.css`` becomes ``/style.<key>.css`` when a key is loaded.
        Paths whose last segment has no extension are returned unchanged.

        Args:
            path: Original asset path.

        Returns:
            Rewritten path, or ``path`` itself when no key is loaded.
        """
        if not self.hash_key:
            return path
        head, sep, name = path.rpartition("/")
        return f"{head}{sep}{hashed_name(name, self.hash_key)}"

    def is_hashed(self, path: str) -> bool:
        """Check whether a request path names a hash-suffixed asset.

        The filename's second-to-last dot segment must equal the loaded key,
        so a key that merely appears somewhere in the path does not count.
        """
        if not self.hash_key:
            return False
        segments = PurePosixPath(path).name.split(".")
        return len(segments) >= 3 and segments[-2] == self.hash_key

    def cache_control(self, path: str) -> str | None:
        """Return the Cache-Control value for a static path, if any."""
        if self.is_hashed(path):
            return IMMUTABLE_CACHE_CONTROL
        return None


def find_executable(name: str, project_root: Path | None = None) -> str | None:
    """Find an executable in PATH or local node_modules.

    Args:
        name: Name of the executable (e.g. 'tailwindcss').
        project_root: Optional project root to search node_modules/.bin in.

    Returns:
        Full path to the executable if found, None otherwise.
    """
    found = shutil.which(name)
    if found:
        return found
    if project_root is not None:
        local = project_root / "node_modules" / ".bin" / name
        if local.exists():
            return str(local)
    return None


class TailwindCSSBuilder:
    """Builds the site stylesheet with the Tailwind CLI.

    The stylesheet is left untouched when the input file or the Tailwind
    executable is missing; a stylesheet already in the public directory is
    then used as-is.

    Attributes:
        project_root: Root directory of the project.
        input_css: Tailwind entry point.
        output_css: Built stylesheet path.
    """

    def __init__(self, project_root: Path, input_css: Path, output_css: Path):
        self.project_root = project_root
        self.input_css = input_css
        self.output_css = output_css

    def build(self) -> bool:
        """Run the Tailwind CLI.

        Returns:
            True if the stylesheet was rebuilt.
        """
        if not self.input_css.exists():
            logger.info("no %s; skipping CSS build", self.input_css)
            return False

        tailwind_bin = find_executable("tailwindcss", self.project_root)
        if not tailwind_bin:
            logger.warning(
                "Tailwind CSS CLI not found; skipping CSS build. Install with "
                "`npm install -D tailwindcss` in the project."
            )
            return False

        self.output_css.parent.mkdir(parents=True, exist_ok=True)
        cmd = [
            tailwind_bin,
            "-i",
            str(self.input_css),
            "-o",
            str(self.output_css),
            "--minify",
        ]
        result = subprocess.run(
            cmd, cwd=self.project_root, capture_output=True, text=True
        )
        if result.returncode != 0:
            logger.error("Tailwind build failed: %s", result.stderr.strip())
            return False
        return True
