"""Utility functions for Folio.

This module contains small helpers used throughout the Folio codebase:
string processing, path checks and timestamp handling.

Key functions:
    slugify: Convert a title to a URL slug.
    is_safe_slug: Check that a slug can be used verbatim in a URL.
    is_markdown: Check if a path is a Markdown file.
    parse_timestamp: Parse an ISO-8601 timestamp into an aware datetime.
    to_iso: Normalise YAML timestamp values back to ISO-8601 strings.
    format_timestamp: Long-form date plus short time for listings.
    format_tags: Render tags as space-joined hashtags.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import date, datetime, timezone
from pathlib import Path

SAFE_SLUG_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._~-]*$")


def slugify(name: str) -> str:
    """Convert a title or filename stem to a slug.

    Args:
        name: Title or filename stem.

    Returns:
        URL-friendly slug, or an empty string when nothing usable remains.

    Examples:
        >>> slugify("Simple Caching Strategies")
        'simple-caching-strategies'
    """
    cleaned = re.sub(r"[^a-zA-Z0-9]+", "-", name)
    return cleaned.strip("-").lower()


def is_safe_slug(slug: str) -> bool:
    """Check that a slug only uses unreserved URL characters."""
    return bool(SAFE_SLUG_RE.match(slug))


def is_markdown(path: Path) -> bool:
    """Check if a path is a Markdown file.

    Args:
        path: Path to check.

    Returns:
        True if the file has .md extension (case-insensitive).
    """
    return path.suffix.lower() == ".md"


def to_iso(value: object) -> str:
    """Normalise a front matter timestamp to an ISO-8601 string.

    PyYAML turns unquoted timestamps into ``datetime``/``date`` objects, while
    quoted ones stay strings. Both end up as strings here.

    Args:
        value: Raw value from the parsed front matter.

    Returns:
        ISO-8601 string.
    """
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp into a timezone-aware datetime.

    A trailing ``Z`` is accepted, and naive values are assumed to be UTC so
    that mixed inputs still compare.

    Args:
        value: ISO-8601 date or date-time string.

    Returns:
        Aware datetime.

    Raises:
        ValueError: If the value is not a valid ISO-8601 timestamp.
    """
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(moment: datetime) -> str:
    """Format a datetime as a long-form date with a short time.

    Examples:
        >>> format_timestamp(datetime(2024, 1, 5, 10, 30))
        'Friday, January 5, 2024 at 10:30'
    """
    return f"{moment:%A}, {moment:%B} {moment.day}, {moment.year} at {moment:%H:%M}"


def format_tags(tags: Iterable[str]) -> str:
    """Render tags as space-joined hashtags.

    Examples:
        >>> format_tags(["python", "web"])
        '#python #web'
    """
    return " ".join(f"#{tag}" for tag in tags)
