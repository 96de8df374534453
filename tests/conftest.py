from pathlib import Path

import pytest


def article_text(
    slug: str,
    created: str,
    title: str | None = None,
    tags: tuple[str, ...] = ("python",),
    body: str = "Body text.",
    short: str = "A short summary.",
) -> str:
    return (
        "```yaml\n"
        f"title: {title or slug.replace('-', ' ').title()}\n"
        f"slug: {slug}\n"
        f"short: {short}\n"
        f"createdAt: {created}\n"
        f"updatedAt: {created}\n"
        f"tags: [{', '.join(tags)}]\n"
        "```\n"
        "\n"
        "%%split%%\n"
        "\n"
        f"{body}\n"
    )


def write_article(directory: Path, name: str, slug: str, created: str, **kwargs) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text(article_text(slug, created, **kwargs), encoding="utf-8")
    return path


def create_project(tmp_path: Path) -> Path:
    project = tmp_path
    contents = project / "contents"
    write_article(contents, "first.md", "first-post", "2024-01-05T10:30:00Z", title="First Post")
    write_article(
        contents,
        "second.md",
        "second-post",
        "2024-02-10T08:00:00Z",
        title="Second Post",
        tags=("caching", "web"),
        body="# Second\n\nSome **bold** words.\n\n<script>alert('owned')</script>\n",
    )
    write_article(contents, "third.md", "third-post", "2024-03-01T12:15:00Z", title="Third Post")
    public = project / "public"
    public.mkdir()
    (public / "style.css").write_text("body { color: black; }\n", encoding="utf-8")
    (public / "favicon.svg").write_text("<svg></svg>\n", encoding="utf-8")
    return project


@pytest.fixture
def project(tmp_path: Path) -> Path:
    return create_project(tmp_path)
