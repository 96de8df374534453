"""Page rendering for Folio.

This module uses Jinja2 to render the two page kinds (index listing and
article reading view) plus the not-found page. All of them extend a shared
layout that carries head metadata, navigation and footer, parameterised by an
optional page description.

Key class:
- TemplateEngine: Renders pages from loaded content.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup

from .assets import AssetUrls
from .content import ContentItem
from .renderers import SafeHtml
from .utils import format_tags, format_timestamp

LAYOUTS_DIR = Path(__file__).parent / "layouts"

RELOAD_SCRIPT_TEMPLATE = """<script>
(() => {{
  const ws = new WebSocket('ws://' + location.hostname + ':{ws_port}');
  ws.onmessage = (event) => {{
    const data = JSON.parse(event.data || '{{}}');
    if (data.type === 'reload') location.reload();
  }};
}})();
</script>"""


class TemplateEngine:
    """Template rendering engine using Jinja2.

    Rendering is side-effect free: every method takes already-loaded content
    and returns a full HTML document.

    Attributes:
        config: Site configuration.
        asset_urls: Asset URL rewriter used by the layout.
        env: Jinja2 environment.
    """

    def __init__(
        self,
        config: dict[str, Any],
        asset_urls: AssetUrls | None = None,
        reload_port: int | None = None,
    ):
        """Initialize the template engine.

        Args:
            config: Site configuration (title, description, site_name, intro).
            asset_urls: Asset URL rewriter; identity rewriting when omitted.
            reload_port: Websocket port for the live reload script, if any.
        """
        self.config = config
        self.asset_urls = asset_urls or AssetUrls()
        self.env = Environment(
            loader=FileSystemLoader(str(LAYOUTS_DIR)),
            autoescape=select_autoescape(["html", "xml", "jinja"]),
            enable_async=False,
        )
        self._reload_script = (
            Markup(RELOAD_SCRIPT_TEMPLATE.format(ws_port=reload_port))
            if reload_port
            else Markup("")
        )
        self._install_globals()

    def _install_globals(self) -> None:
        """Install global variables and filters in the Jinja environment."""
        self.env.globals["site"] = self.config
        self.env.globals["asset"] = self.asset_urls.asset
        self.env.globals["reload_script"] = self._reload_script
        self.env.filters["long_datetime"] = format_timestamp
        self.env.filters["hashtags"] = format_tags

    def render_index(self, items: Sequence[ContentItem]) -> str:
        """Render the listing page.

        Args:
            items: Articles in display order (callers pass newest first).

        Returns:
            Rendered HTML document.
        """
        template = self.env.get_template("index.html.jinja")
        return template.render(items=items, description=None)

    def render_read(self, item: ContentItem, body: SafeHtml) -> str:
        """Render the reading view for one article.

        Args:
            item: The article.
            body: Sanitized article HTML, injected verbatim.

        Returns:
            Rendered HTML document.

        Raises:
            TypeError: If ``body`` is not SafeHtml.
        """
        if not isinstance(body, SafeHtml):
            raise TypeError(
                f"article body must be SafeHtml, got {type(body).__name__}"
            )
        template = self.env.get_template("read.html.jinja")
        return template.render(item=item, body=body, description=item.short)

    def render_not_found(self, slug: str | None = None) -> str:
        """Render the not-found page."""
        template = self.env.get_template("404.html.jinja")
        return template.render(slug=slug, description=None)
