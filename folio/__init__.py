"""Folio personal site.

This package serves a small personal blog: an index listing and an article
reading view rendered from a flat directory of Markdown files with YAML front
matter, plus a cache-busting pipeline for the static stylesheet and favicon.

The main entry point is the CLI module, which provides commands for building
assets, serving the site, and creating new articles.

Layout:
- content / extractors / collections: load and index articles by slug.
- assets: hash the built stylesheet and rewrite asset URLs.
- renderers / templates: Markdown conversion, sanitization and page rendering.
- app / server: request routing and the HTTP server.
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
