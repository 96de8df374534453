from datetime import datetime, timezone
from pathlib import Path

from click.testing import CliRunner

from folio import __version__
from folio.cli import cli, render_content_file
from folio.content import parse_content


def test_cli_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_build_enabled_and_disabled(monkeypatch, project):
    monkeypatch.chdir(project)
    runner = CliRunner()

    result = runner.invoke(cli, ["build"], env={"ENABLE_CACHE": "false"})
    assert result.exit_code == 0
    assert "Cache-busting disabled" in result.output
    assert not (project / "meta" / "hashkey").exists()

    result = runner.invoke(cli, ["build"], env={"ENABLE_CACHE": "true"})
    assert result.exit_code == 0
    key = (project / "meta" / "hashkey").read_text(encoding="utf-8")
    assert f"Hash key {key}" in result.output
    assert (project / "public" / f"style.{key}.css").exists()


def test_cli_build_failure(monkeypatch, project):
    monkeypatch.chdir(project)
    (project / "public" / "style.css").unlink()
    result = CliRunner().invoke(cli, ["build"], env={"ENABLE_CACHE": "true"})
    assert result.exit_code == 1
    assert "Build failed" in result.output


def test_cli_serve_loads_then_starts(monkeypatch, project):
    monkeypatch.chdir(project)
    called = {}

    def fake_start(self):
        called["slugs"] = list(self.app.index)
        called["port"] = self.http_port
        called["live_reload"] = self.live_reload

    monkeypatch.setattr("folio.server.SiteServer.start", fake_start)
    result = CliRunner().invoke(
        cli, ["serve", "--port", "5050", "--reload"], catch_exceptions=False
    )
    assert result.exit_code == 0
    assert called == {
        "slugs": ["first-post", "second-post", "third-post"],
        "port": 5050,
        "live_reload": True,
    }


def test_cli_serve_aborts_on_malformed_content(monkeypatch, project):
    monkeypatch.chdir(project)
    (project / "contents" / "broken.md").write_text("no delimiter", encoding="utf-8")
    started = []
    monkeypatch.setattr("folio.server.SiteServer.start", lambda self: started.append(1))
    result = CliRunner().invoke(cli, ["serve"])
    assert result.exit_code == 1
    assert "Load failed" in result.output
    assert "broken.md" in result.output
    assert not started


def test_cli_serve_missing_contents(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["serve"])
    assert result.exit_code == 1
    assert "Expected content directory" in result.output


class FakePrompt:
    def __init__(self, answer):
        self.answer = answer

    def ask(self):
        return self.answer


def script_answers(monkeypatch, answers):
    remaining = list(answers)
    monkeypatch.setattr(
        "folio.cli.questionary.text", lambda *args, **kwargs: FakePrompt(remaining.pop(0))
    )


def test_cli_new_creates_parseable_article(monkeypatch, project):
    monkeypatch.chdir(project)
    script_answers(monkeypatch, ["Fresh Ideas", "fresh-ideas", "Something new.", "#python web"])
    result = CliRunner().invoke(cli, ["new"])
    assert result.exit_code == 0, result.output
    path = project / "contents" / "fresh-ideas.md"
    assert "Created contents/fresh-ideas.md" in result.output

    item = parse_content(path.read_text(encoding="utf-8"), path)
    assert item.title == "Fresh Ideas"
    assert item.short == "Something new."
    assert item.tags == ("python", "web")
    assert item.content == "# Fresh Ideas"


def test_cli_new_rejects_existing_slug(monkeypatch, project):
    monkeypatch.chdir(project)
    script_answers(monkeypatch, ["First again", "first-post", "dup", ""])
    result = CliRunner().invoke(cli, ["new"])
    assert result.exit_code == 1
    assert "already used by first.md" in result.output
    assert not (project / "contents" / "first-post.md").exists()


def test_cli_new_abort(monkeypatch, project):
    monkeypatch.chdir(project)
    script_answers(monkeypatch, [None])
    result = CliRunner().invoke(cli, ["new"])
    assert result.exit_code == 1


def test_render_content_file_roundtrip():
    now = datetime(2024, 1, 5, 10, 30, tzinfo=timezone.utc)
    text = render_content_file("Hello: World", "hello", "Short.", ["a", "b"], now=now)
    assert text.startswith("```yaml\n")
    item = parse_content(text)
    assert item.title == "Hello: World"
    assert item.created == now
    assert item.tags == ("a", "b")


def test_cli_serve_reports_unreadable_content(monkeypatch, project):
    monkeypatch.chdir(project)
    original = Path.read_text

    def read_text(self, *args, **kwargs):
        if self.name == "first.md":
            raise PermissionError(13, "Permission denied")
        return original(self, *args, **kwargs)

    monkeypatch.setattr(Path, "read_text", read_text)
    started = []
    monkeypatch.setattr("folio.server.SiteServer.start", lambda self: started.append(1))
    result = CliRunner().invoke(cli, ["serve"])
    assert result.exit_code == 1
    assert "Load failed" in result.output
    assert "first.md" in result.output
    assert "Permission denied" in result.output
    assert not started
