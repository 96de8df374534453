"""Content loading for Folio.

This module reads the content directory once at start-up and builds the
ContentIndex that request handlers read from.

Key classes:
- ContentItem: Dataclass representing one published article.
- FileContentLoader: Discovers content files in the content directory.
- ContentItemBuilder: Builds a ContentItem from one file.

Key functions:
- parse_content: Parse raw file text into a ContentItem.
- load_contents: Load, sort and index every article.

Any failure while reading or parsing a file aborts the whole load; there is
no partial index.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .collections import ContentIndex
from .extractors import (
    ContentParseError,
    extract_metadata,
    parse_front_matter,
    split_content,
)
from .utils import is_markdown, parse_timestamp

logger = logging.getLogger(__name__)


class DuplicateSlugError(ContentParseError):
    """Two content files declare the same slug (strict mode only)."""


@dataclass(frozen=True)
class ContentItem:
    """Represents one published article.

    Attributes:
        title: Display title.
        slug: Unique URL-safe identifier, used in URLs and as the index key.
        short: One-paragraph summary for listings and the meta description.
        content: Raw Markdown body (after the front matter).
        created_at: ISO-8601 creation timestamp; drives sort order.
        updated_at: ISO-8601 update timestamp; informational only.
        tags: Tags in display order.
        source_path: File the item was loaded from, when known.
    """

    title: str
    slug: str
    short: str
    content: str
    created_at: str
    updated_at: str
    tags: tuple[str, ...] = ()
    source_path: Path | None = None

    @property
    def created(self) -> datetime:
        return parse_timestamp(self.created_at)

    @property
    def updated(self) -> datetime:
        return parse_timestamp(self.updated_at)

    @property
    def url(self) -> str:
        return f"/read/{self.slug}"


def parse_content(text: str, source_path: Path | None = None) -> ContentItem:
    """Parse the raw text of a content file.

    Args:
        text: Full file content.
        source_path: Path used in error messages.

    Returns:
        ContentItem built from the front matter and the trimmed body.

    Raises:
        ContentParseError: If the file is malformed or misses a field.
    """
    meta, body = split_content(text, source_path)
    metadata = extract_metadata(parse_front_matter(meta, source_path), source_path)
    return ContentItem(content=body, source_path=source_path, **metadata)


class FileContentLoader:
    """Discovers content files in a directory.

    Only ``.md`` files directly inside the directory are considered; the
    scan is not recursive.

    Attributes:
        contents_dir: Directory holding the content files.
    """

    def __init__(self, contents_dir: Path):
        self.contents_dir = contents_dir

    def iter_files(self) -> list[Path]:
        """Return content files sorted by name.

        Raises:
            FileNotFoundError: If the content directory does not exist.
        """
        if not self.contents_dir.is_dir():
            raise FileNotFoundError(
                f"Expected content directory at {self.contents_dir}"
            )
        return sorted(
            path
            for path in self.contents_dir.iterdir()
            if path.is_file() and is_markdown(path)
        )


class ContentItemBuilder:
    """Builds ContentItem objects from content files."""

    def build(self, path: Path) -> ContentItem:
        """Read and parse one content file.

        Args:
            path: Path to the content file.

        Returns:
            Parsed ContentItem.

        Raises:
            ContentParseError: If the file cannot be read or parsed.
        """
        try:
            text = path.read_text(encoding="utf-8-sig")
        except UnicodeDecodeError as exc:
            raise ContentParseError(path, f"not valid UTF-8: {exc}") from exc
        except OSError as exc:
            raise ContentParseError(path, f"cannot read file: {exc}") from exc
        return parse_content(text, path)


def build_index(items: list[ContentItem], strict_slugs: bool = False) -> ContentIndex:
    """Sort items by creation date and index them by slug.

    The sort is stable, so items created at the same moment keep the file
    enumeration order.

    Args:
        items: Parsed articles in file order.
        strict_slugs: Raise instead of warning when a slug is reused.

    Returns:
        ContentIndex in ascending creation order.

    Raises:
        DuplicateSlugError: If ``strict_slugs`` is set and a slug repeats.
    """
    ordered = sorted(items, key=lambda item: item.created)
    seen: dict[str, ContentItem] = {}
    for item in ordered:
        previous = seen.get(item.slug)
        if previous is not None:
            if strict_slugs:
                raise DuplicateSlugError(
                    item.source_path,
                    f"slug '{item.slug}' already used by {previous.source_path}",
                )
            logger.warning(
                "slug '%s' from %s replaces %s",
                item.slug,
                item.source_path,
                previous.source_path,
            )
        seen[item.slug] = item
        logger.info("found %s", item.slug)
    return ContentIndex(ordered)


def load_contents(contents_dir: Path, strict_slugs: bool = False) -> ContentIndex:
    """Load every article in the content directory.

    Args:
        contents_dir: Directory holding the ``.md`` content files.
        strict_slugs: Fail on duplicate slugs instead of keeping the last one.

    Returns:
        ContentIndex keyed by slug, oldest first.

    Raises:
        FileNotFoundError: If the content directory is missing.
        ContentParseError: If any file is malformed.
    """
    loader = FileContentLoader(contents_dir)
    builder = ContentItemBuilder()
    items = [builder.build(path) for path in loader.iter_files()]
    index = build_index(items, strict_slugs=strict_slugs)
    logger.info("loaded %d article(s) from %s", len(index), contents_dir)
    return index
