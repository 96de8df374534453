import logging
from datetime import datetime, timezone

import pytest
from conftest import article_text, write_article

from folio.content import (
    ContentItem,
    DuplicateSlugError,
    FileContentLoader,
    load_contents,
    parse_content,
)
from folio.extractors import (
    ContentParseError,
    MalformedContentError,
    parse_front_matter,
    split_content,
    strip_fence,
)


def test_load_contents_indexes_every_file_by_slug(project):
    index = load_contents(project / "contents")
    assert len(index) == 3
    assert set(index) == {"first-post", "second-post", "third-post"}

    created = [item.created for item in index.values()]
    assert created == sorted(created)
    assert [item.slug for item in index.newest_first()] == [
        "third-post",
        "second-post",
        "first-post",
    ]


def test_parse_content_builds_item():
    item = parse_content(
        article_text(
            "hello",
            "2024-01-05T10:30:00Z",
            title="Hello World",
            tags=("web", "python"),
            body="\n\n# Hello\n\nBody.\n\n",
        )
    )
    assert item.title == "Hello World"
    assert item.slug == "hello"
    assert item.short == "A short summary."
    assert item.content == "# Hello\n\nBody."
    assert item.tags == ("web", "python")
    assert item.created == datetime(2024, 1, 5, 10, 30, tzinfo=timezone.utc)
    assert item.url == "/read/hello"


def test_quoted_and_date_only_timestamps():
    text = (
        "```yaml\n"
        "title: Dates\n"
        "slug: dates\n"
        "short: s\n"
        "createdAt: '2024-05-01T09:00:00.000Z'\n"
        "updatedAt: 2024-05-02\n"
        "tags: []\n"
        "```\n%%split%%\nbody"
    )
    item = parse_content(text)
    assert item.created_at == "2024-05-01T09:00:00.000Z"
    assert item.updated_at == "2024-05-02"
    assert item.updated == datetime(2024, 5, 2, tzinfo=timezone.utc)
    assert item.tags == ()


def test_loader_is_not_recursive_and_skips_other_files(project):
    contents = project / "contents"
    (contents / "notes.txt").write_text("ignore", encoding="utf-8")
    write_article(contents / "nested", "deep.md", "deep", "2024-01-01T00:00:00Z")
    files = FileContentLoader(contents).iter_files()
    assert [p.name for p in files] == ["first.md", "second.md", "third.md"]
    assert "deep" not in load_contents(contents)


def test_missing_contents_dir(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_contents(tmp_path / "nope")


def test_missing_delimiter_fails_deterministically(tmp_path):
    contents = tmp_path / "contents"
    write_article(contents, "good.md", "good", "2024-01-01T00:00:00Z")
    (contents / "bad.md").write_text(
        "```yaml\ntitle: Bad\n```\n\nNo delimiter here.", encoding="utf-8"
    )
    with pytest.raises(MalformedContentError) as first:
        load_contents(contents)
    with pytest.raises(MalformedContentError) as second:
        load_contents(contents)
    assert str(first.value) == str(second.value)
    assert first.value.source_path == contents / "bad.md"


def test_split_content_requires_two_non_empty_parts():
    assert split_content("  meta \n%%split%%\n body  ") == ("meta", "body")
    with pytest.raises(MalformedContentError):
        split_content("a %%split%% b %%split%% c")
    with pytest.raises(MalformedContentError):
        split_content("meta\n%%split%%\n   ")
    with pytest.raises(MalformedContentError):
        split_content("\n%%split%%\nbody")


def test_strip_fence():
    assert strip_fence("```yaml\ntitle: x\nslug: y\n```") == "title: x\nslug: y"
    with pytest.raises(MalformedContentError):
        strip_fence("title: x\nslug: y")
    with pytest.raises(MalformedContentError):
        strip_fence("```yaml\ntitle: x")


def test_invalid_yaml_and_non_mapping():
    with pytest.raises(ContentParseError) as exc:
        parse_front_matter("```yaml\ntitle: [unclosed\n```")
    assert not isinstance(exc.value, MalformedContentError)
    assert "invalid YAML" in exc.value.message

    with pytest.raises(ContentParseError):
        parse_front_matter("```yaml\n- just\n- a list\n```")


def test_missing_required_field():
    text = "```yaml\ntitle: t\nslug: s\ncreatedAt: 2024-01-01\nupdatedAt: 2024-01-01\ntags: []\n```\n%%split%%\nbody"
    with pytest.raises(ContentParseError) as exc:
        parse_content(text)
    assert "short" in exc.value.message


def test_field_validation():
    with pytest.raises(ContentParseError):
        parse_content(article_text("has space", "2024-01-01T00:00:00Z"))
    with pytest.raises(ContentParseError):
        parse_content(article_text("ok", "not-a-date"))
    bad_tags = article_text("ok", "2024-01-01T00:00:00Z").replace(
        "tags: [python]", "tags: python"
    )
    with pytest.raises(ContentParseError):
        parse_content(bad_tags)


def test_duplicate_slug_last_wins_with_warning(tmp_path, caplog):
    contents = tmp_path / "contents"
    write_article(contents, "a.md", "dup", "2024-01-01T00:00:00Z", title="First")
    write_article(contents, "b.md", "dup", "2024-02-01T00:00:00Z", title="Second")
    write_article(contents, "c.md", "other", "2024-01-15T00:00:00Z")

    caplog.set_level(logging.INFO, logger="folio.content")
    index = load_contents(contents)
    assert len(index) == 2
    assert list(index) == ["other", "dup"]
    assert index["dup"].title == "Second"
    assert "replaces" in caplog.text
    assert "found other" in caplog.text


def test_duplicate_slug_strict(tmp_path):
    contents = tmp_path / "contents"
    write_article(contents, "a.md", "dup", "2024-01-01T00:00:00Z")
    write_article(contents, "b.md", "dup", "2024-02-01T00:00:00Z")
    with pytest.raises(DuplicateSlugError):
        load_contents(contents, strict_slugs=True)


def test_equal_timestamps_keep_file_order(tmp_path):
    contents = tmp_path / "contents"
    write_article(contents, "a.md", "alpha", "2024-01-01T00:00:00Z")
    write_article(contents, "b.md", "beta", "2024-01-01T00:00:00Z")
    assert list(load_contents(contents)) == ["alpha", "beta"]


def test_content_item_is_frozen():
    item = ContentItem(
        title="t",
        slug="s",
        short="",
        content="",
        created_at="2024-01-01",
        updated_at="2024-01-01",
    )
    with pytest.raises(AttributeError):
        item.title = "changed"


def test_byte_order_mark_is_ignored(tmp_path):
    contents = tmp_path / "contents"
    contents.mkdir()
    (contents / "bom.md").write_text(
        "\ufeff" + article_text("bom-post", "2024-01-05T10:30:00Z"), encoding="utf-8"
    )
    index = load_contents(contents)
    assert index["bom-post"].title == "Bom Post"


def test_unreadable_file_reports_its_path(monkeypatch, project):
    target = project / "contents" / "first.md"
    original = type(target).read_text

    def read_text(self, *args, **kwargs):
        if self.name == "first.md":
            raise PermissionError(13, "Permission denied")
        return original(self, *args, **kwargs)

    monkeypatch.setattr(type(target), "read_text", read_text)
    with pytest.raises(ContentParseError) as exc:
        load_contents(project / "contents")
    assert exc.value.source_path == target
    assert "Permission denied" in exc.value.message
