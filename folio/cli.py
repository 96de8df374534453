"""Command-line interface for Folio.

This module defines the CLI commands using the Click framework.

Commands:
- build: Build the stylesheet and, when enabled, the cache-busted assets.
- serve: Load content and run the HTTP server.
- new: Create a new article interactively.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from pathlib import Path

import click
import questionary
import yaml

from . import __version__
from .config import load_config, resolve_path
from .extractors import DELIMITER, ContentParseError
from .utils import is_safe_slug, slugify


@click.group()
@click.version_option(version=__version__, prog_name="folio")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Folio personal site."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@cli.command()
def build():
    """Build the stylesheet and cache-busted asset copies."""
    project_root = Path.cwd()
    from .build import BuildError, build_assets

    try:
        result = build_assets(project_root, load_config(project_root))
    except BuildError as exc:
        _echo_failure("Build failed:", project_root, exc.source_path, exc.message)
        raise SystemExit(1) from None
    if result.hash_key:
        click.echo(
            f"Hash key {result.hash_key}; wrote {len(result.hashed_files)} hashed asset(s)"
        )
    else:
        click.echo("Cache-busting disabled; no hash key written")


@cli.command()
@click.option(
    "--port",
    type=int,
    required=False,
    help="Port to run the server on (overrides folio.yaml)",
)
@click.option(
    "--ws-port",
    type=int,
    required=False,
    help="Port for the live reload websocket server (overrides folio.yaml ws_port)",
)
@click.option("--reload", "live_reload", is_flag=True, help="Reload content on change")
def serve(port: int | None, ws_port: int | None, live_reload: bool):
    """Load content and serve the site."""
    project_root = Path.cwd()
    from .server import SiteServer

    server = SiteServer(
        project_root,
        load_config(project_root),
        http_port=port,
        ws_port=ws_port,
        live_reload=live_reload,
    )
    try:
        server.load()
    except ContentParseError as exc:
        _echo_failure("Load failed:", project_root, exc.source_path, exc.message)
        raise SystemExit(1) from None
    except FileNotFoundError as exc:
        raise click.ClickException(str(exc)) from None
    server.start()


@cli.command()
def new():
    """Create a new article interactively."""
    project_root = Path.cwd()
    contents_dir = resolve_path(project_root, load_config(project_root), "contents_dir")

    title = questionary.text(
        "Title:",
        validate=lambda x: len(x.strip()) > 0 or "Title cannot be empty",
        style=_questionary_style(),
    ).ask()
    if title is None:
        raise click.Abort()
    title = title.strip()

    slug = questionary.text(
        "Slug:",
        default=slugify(title),
        validate=lambda x: is_safe_slug(x.strip()) or "Use letters, digits, '-', '_', '.' or '~'",
        style=_questionary_style(),
    ).ask()
    if slug is None:
        raise click.Abort()
    slug = slug.strip()

    short = questionary.text("Summary:", style=_questionary_style()).ask()
    if short is None:
        raise click.Abort()

    raw_tags = questionary.text(
        "Tags (space separated):", style=_questionary_style()
    ).ask()
    if raw_tags is None:
        raise click.Abort()
    tags = [tag.lstrip("#") for tag in raw_tags.split() if tag.lstrip("#")]

    target_path = contents_dir / f"{slug}.md"
    if target_path.exists():
        raise click.ClickException(
            f"File already exists: {target_path.relative_to(project_root)}"
        )
    existing = _get_existing_slugs(contents_dir)
    if slug in existing:
        raise click.ClickException(
            f"Slug '{slug}' is already used by {existing[slug].name}"
        )

    contents_dir.mkdir(parents=True, exist_ok=True)
    target_path.write_text(
        render_content_file(title, slug, short.strip(), tags), encoding="utf-8"
    )
    click.echo(f"Created {target_path.relative_to(project_root)}")


def render_content_file(
    title: str,
    slug: str,
    short: str,
    tags: list[str],
    now: datetime | None = None,
) -> str:
    """Return the text of a new content file.

    Args:
        title: Article title.
        slug: Article slug.
        short: One-paragraph summary.
        tags: Tags in display order.
        now: Creation time (defaults to the current UTC time).

    Returns:
        File content with fenced YAML front matter and a placeholder body.
    """
    stamp = (now or datetime.now(timezone.utc)).isoformat(timespec="seconds")
    front_matter = yaml.safe_dump(
        {
            "title": title,
            "slug": slug,
            "short": short,
            "createdAt": stamp,
            "updatedAt": stamp,
            "tags": tags,
        },
        sort_keys=False,
        allow_unicode=True,
    )
    return f"```yaml\n{front_matter}```\n\n{DELIMITER}\n\n# {title}\n"


def _get_existing_slugs(contents_dir: Path) -> dict[str, Path]:
    """Map slugs declared in existing content files to their paths.

    Files that cannot be parsed are skipped; ``serve`` reports them.
    """
    from .content import ContentItemBuilder, FileContentLoader

    slugs: dict[str, Path] = {}
    if not contents_dir.is_dir():
        return slugs
    builder = ContentItemBuilder()
    for path in FileContentLoader(contents_dir).iter_files():
        try:
            slugs[builder.build(path).slug] = path
        except ContentParseError:
            continue
    return slugs


def _echo_failure(heading: str, project_root: Path, source_path: Path | None, message: str) -> None:
    click.echo(click.style(heading, fg="red", bold=True), err=True)
    if source_path is not None:
        try:
            shown = source_path.relative_to(project_root)
        except ValueError:
            shown = source_path
        click.echo(click.style(f"  File: {shown}", fg="yellow"), err=True)
    click.echo(click.style(f"  Error: {message}", fg="white"), err=True)


def _questionary_style():
    """Return consistent questionary style."""
    return questionary.Style(
        [
            ("qmark", "fg:cyan bold"),
            ("question", "bold"),
            ("answer", "fg:cyan"),
            ("pointer", "fg:cyan bold"),
            ("highlighted", "fg:cyan bold"),
            ("selected", "fg:cyan"),
        ]
    )


def main():
    """Entry point for the CLI application."""
    cli()
