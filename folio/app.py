"""Request routing for Folio.

SiteApp maps request paths to rendered pages without depending on any HTTP
framework, so the server and the tests drive it the same way.

Routes:
- ``/``: index listing, newest first.
- ``/read/<slug>``: article reading view, or a 404 page for unknown slugs.
- anything else: not handled here (served as a static file).
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from urllib.parse import unquote, urlsplit

from .assets import AssetUrls
from .collections import ContentIndex, ContentNotFoundError
from .renderers import render_article
from .templates import TemplateEngine

logger = logging.getLogger(__name__)

HTML_CONTENT_TYPE = "text/html; charset=utf-8"
READ_PREFIX = "/read/"


@dataclass
class Response:
    """A rendered page.

    Attributes:
        status: HTTP status code.
        body: Encoded response body.
        headers: Extra response headers.
    """

    status: int
    body: bytes
    headers: dict[str, str] = field(default_factory=dict)

    @classmethod
    def html(cls, status: int, page: str) -> Response:
        return cls(status, page.encode("utf-8"), {"Content-Type": HTML_CONTENT_TYPE})


class SiteApp:
    """Routes page requests to the template engine.

    The index is replaced as a whole by ``swap_index``; handlers read
    ``self.index`` once per request and never mutate it.

    Attributes:
        index: Loaded articles.
        engine: Page template engine.
        asset_urls: Asset URL rewriter (also decides static cache headers).
    """

    def __init__(
        self,
        index: ContentIndex,
        engine: TemplateEngine,
        asset_urls: AssetUrls | None = None,
    ):
        self.index = index
        self.engine = engine
        self.asset_urls = asset_urls or engine.asset_urls

    def swap_index(self, index: ContentIndex) -> None:
        """Replace the served index with a freshly loaded one."""
        self.index = index

    def handle(self, raw_path: str) -> Response | None:
        """Render the page for a request path.

        Args:
            raw_path: Request target, possibly with a query string.

        Returns:
            Response for page routes, or None when the path should be served
            as a static file.
        """
        path = urlsplit(raw_path).path or "/"
        if path == "/":
            return self.index_page()
        if path.startswith(READ_PREFIX):
            slug = unquote(path[len(READ_PREFIX) :]).rstrip("/")
            return self.read_page(slug)
        return None

    def index_page(self) -> Response:
        index = self.index
        return Response.html(200, self.engine.render_index(index.newest_first()))

    def read_page(self, slug: str) -> Response:
        index = self.index
        try:
            item = index.get_or_raise(slug)
        except ContentNotFoundError:
            logger.debug("no article for slug %r", slug)
            return self.not_found(slug)
        body = render_article(item.content)
        return Response.html(200, self.engine.render_read(item, body))

    def not_found(self, slug: str | None = None) -> Response:
        return Response.html(404, self.engine.render_not_found(slug))
