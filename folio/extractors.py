"""Front matter extraction for Folio.

Each content file carries a YAML metadata block wrapped in a fenced code
block, then the ``%%split%%`` delimiter, then the Markdown body::

    ```yaml
    title: Simple Caching Strategies
    slug: simple-caching
    ...
    ```

    %%split%%

    Markdown body...

Key functions:
- split_content: Split raw text into the metadata block and the body.
- strip_fence: Remove the fence lines around the metadata block.
- parse_front_matter: Parse the metadata block as YAML.
- extract_metadata: Validate parsed metadata against the article fields.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from .utils import is_safe_slug, parse_timestamp, to_iso

DELIMITER = "%%split%%"
FENCE = "```"

REQUIRED_FIELDS = ("title", "slug", "short", "createdAt", "updatedAt", "tags")


class ContentParseError(Exception):
    """Error while parsing a content file.

    Attributes:
        source_path: Path to the content file, when known.
        message: Human-readable error message.
    """

    def __init__(self, source_path: Path | None, message: str):
        self.source_path = source_path
        self.message = message
        prefix = f"{source_path}: " if source_path is not None else ""
        super().__init__(f"{prefix}{message}")


class MalformedContentError(ContentParseError):
    """The file does not follow the front matter / delimiter / body layout."""


def split_content(text: str, source_path: Path | None = None) -> tuple[str, str]:
    """Split a content file into its metadata block and body.

    Args:
        text: Raw file content.
        source_path: Path used in error messages.

    Returns:
        Tuple of (metadata block, body), both trimmed.

    Raises:
        MalformedContentError: If the delimiter does not produce exactly two
            non-empty parts.
    """
    if DELIMITER not in text:
        raise MalformedContentError(source_path, f"missing '{DELIMITER}' delimiter")
    parts = [part.strip() for part in text.split(DELIMITER)]
    if len(parts) != 2:
        raise MalformedContentError(
            source_path,
            f"expected exactly one '{DELIMITER}' delimiter, found {len(parts) - 1}",
        )
    meta, body = parts
    if not meta:
        raise MalformedContentError(source_path, "empty front matter block")
    if not body:
        raise MalformedContentError(source_path, "empty body")
    return meta, body


def strip_fence(meta: str, source_path: Path | None = None) -> str:
    """Remove the opening and closing fence lines from a metadata block.

    Args:
        meta: Trimmed metadata block.
        source_path: Path used in error messages.

    Returns:
        The YAML text between the fences.

    Raises:
        MalformedContentError: If the block is not wrapped in a fence.
    """
    lines = meta.splitlines()
    if (
        len(lines) < 2
        or not lines[0].strip().startswith(FENCE)
        or lines[-1].strip() != FENCE
    ):
        raise MalformedContentError(
            source_path, "front matter must be wrapped in a ``` fenced block"
        )
    return "\n".join(lines[1:-1])


def parse_front_matter(meta: str, source_path: Path | None = None) -> dict[str, Any]:
    """Parse a fenced metadata block as a YAML mapping.

    Args:
        meta: Trimmed metadata block including its fence lines.
        source_path: Path used in error messages.

    Returns:
        Parsed mapping.

    Raises:
        ContentParseError: On invalid YAML or a non-mapping document.
    """
    source = strip_fence(meta, source_path)
    try:
        data = yaml.safe_load(source)
    except yaml.YAMLError as exc:
        raise ContentParseError(source_path, f"invalid YAML front matter: {exc}") from exc
    if not isinstance(data, dict):
        raise ContentParseError(source_path, "front matter must be a YAML mapping")
    return data


def extract_metadata(data: dict[str, Any], source_path: Path | None = None) -> dict[str, Any]:
    """Validate front matter and map it onto article fields.

    Args:
        data: Parsed front matter.
        source_path: Path used in error messages.

    Returns:
        Dictionary with ``title``, ``slug``, ``short``, ``created_at``,
        ``updated_at`` and ``tags`` keys.

    Raises:
        ContentParseError: If a field is missing or has the wrong shape.
    """
    missing = [key for key in REQUIRED_FIELDS if data.get(key) is None]
    if missing:
        raise ContentParseError(
            source_path, f"missing required field(s): {', '.join(missing)}"
        )

    slug = str(data["slug"]).strip()
    if not is_safe_slug(slug):
        raise ContentParseError(source_path, f"slug is not URL-safe: {slug!r}")

    tags = data["tags"]
    if isinstance(tags, str) or not isinstance(tags, (list, tuple)):
        raise ContentParseError(source_path, "tags must be a YAML sequence")

    created_at = to_iso(data["createdAt"])
    updated_at = to_iso(data["updatedAt"])
    for key, value in (("createdAt", created_at), ("updatedAt", updated_at)):
        try:
            parse_timestamp(value)
        except ValueError as exc:
            raise ContentParseError(
                source_path, f"{key} is not an ISO-8601 timestamp: {value!r}"
            ) from exc

    return {
        "title": str(data["title"]),
        "slug": slug,
        "short": str(data["short"]).strip(),
        "created_at": created_at,
        "updated_at": updated_at,
        "tags": tuple(str(tag) for tag in tags),
    }
