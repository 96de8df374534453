"""Article body rendering for Folio.

Markdown is converted with mistune and the result is cleaned with nh3
before it reaches a page template. Only ``sanitize_html`` produces SafeHtml,
and the page renderers accept nothing else for the article body.

Key classes:
- SafeHtml: Marker for HTML that has been through the sanitizer.

Key functions:
- markdown_to_html: Convert Markdown to (unsanitized) HTML.
- sanitize_html: Clean HTML and wrap it as SafeHtml.
- render_article: Convert then sanitize in one step.
"""

from __future__ import annotations

from dataclasses import dataclass

import mistune
import nh3

_markdown = mistune.create_markdown(
    escape=False, plugins=["strikethrough", "footnotes", "table", "url"]
)

# Code blocks keep their language-* class for client-side highlighting.
_ALLOWED_ATTRIBUTES: dict[str, set[str]] = {
    tag: set(attrs) for tag, attrs in nh3.ALLOWED_ATTRIBUTES.items()
}
for _tag in ("code", "pre", "span"):
    _ALLOWED_ATTRIBUTES.setdefault(_tag, set()).add("class")


@dataclass(frozen=True)
class SafeHtml:
    """HTML that has been sanitized and may be injected verbatim.

    Implements ``__html__`` so Jinja2 renders it without escaping.
    """

    html: str

    def __html__(self) -> str:
        return self.html

    def __str__(self) -> str:
        return self.html


def markdown_to_html(text: str) -> str:
    """Convert Markdown to HTML.

    Raw HTML in the source is passed through; run the result through
    ``sanitize_html`` before rendering it.

    Args:
        text: Markdown source.

    Returns:
        Unsanitized HTML.
    """
    return _markdown(text)


def sanitize_html(html: str) -> SafeHtml:
    """Clean HTML with nh3.

    Script and style elements are removed together with their content, as
    are event handler attributes and ``javascript:`` URLs.

    Args:
        html: Untrusted HTML.

    Returns:
        SafeHtml wrapping the cleaned markup.
    """
    return SafeHtml(nh3.clean(html, attributes=_ALLOWED_ATTRIBUTES))


def render_article(markdown: str) -> SafeHtml:
    """Convert an article body to sanitized HTML."""
    return sanitize_html(markdown_to_html(markdown))
