from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .content import ContentItem


class ContentNotFoundError(KeyError):
    """Raised when no article is indexed under the requested slug."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(slug)


class ContentIndex(Mapping[str, "ContentItem"]):
    """Read-only mapping of slug to ContentItem, oldest first.

    Items are inserted in the order given; callers pass them sorted by
    creation date. A later item with an already-used slug replaces the
    earlier one. The index never changes after construction, so request
    handlers read it without locking.
    """

    def __init__(self, items: Iterable[ContentItem] = ()):
        mapping: dict[str, ContentItem] = {}
        for item in items:
            # Re-inserting keeps the later item at its own sorted position.
            mapping.pop(item.slug, None)
            mapping[item.slug] = item
        self._mapping = MappingProxyType(mapping)

    def __getitem__(self, slug: str) -> ContentItem:
        return self._mapping[slug]

    def __iter__(self) -> Iterator[str]:
        return iter(self._mapping)

    def __len__(self) -> int:
        return len(self._mapping)

    def get_or_raise(self, slug: str) -> ContentItem:
        try:
            return self._mapping[slug]
        except KeyError:
            raise ContentNotFoundError(slug) from None

    def oldest_first(self) -> list[ContentItem]:
        return list(self._mapping.values())

    def newest_first(self) -> list[ContentItem]:
        return self.oldest_first()[::-1]

    def __repr__(self) -> str:  # pragma: no cover - for debugging
        return f"ContentIndex({len(self._mapping)} items)"
