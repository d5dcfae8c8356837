from pathlib import Path

from click.testing import CliRunner

from folio import __version__
from folio.build import BuildResult
from folio.cli import cli
from folio.content import NotFoundPage, RenderedContent


def create_project(tmp_path: Path) -> Path:
    posts = tmp_path / "posts"
    posts.mkdir()
    (posts / "hello.md").write_text(
        "---\ntitle: Hello\ndate: '2020-01-01'\n---\nHello **world**.\n", encoding="utf-8"
    )
    (posts / "later.md").write_text(
        "---\ntitle: Later\ndate: '2020-02-01'\n---\nLater post.\n", encoding="utf-8"
    )
    return tmp_path


def test_cli_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.output


def test_cli_build(monkeypatch, tmp_path):
    monkeypatch.chdir(create_project(tmp_path))
    result = CliRunner().invoke(cli, ["build"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Built 2 pages" in result.output
    assert (tmp_path / "output" / "posts" / "hello" / "index.html").exists()


def test_cli_build_reports_failures(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)

    def fake_build_site(root, include_drafts=False, clean_output=True, output_dir_override=None):
        return BuildResult(
            pages={
                "ok": RenderedContent(id="ok", title="Ok", date="2020-01-01", html=""),
                "bad": NotFoundPage("bad", reason="bad: RuntimeError: boom"),
            },
            failures={"bad": "bad: RuntimeError: boom"},
            output_dir=root / "output",
        )

    monkeypatch.setattr("folio.build.build_site", fake_build_site)
    runner = CliRunner()

    result = runner.invoke(cli, ["build"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "Built 1 pages" in result.output
    assert "1 pages failed" in result.output
    assert "RuntimeError: boom" in result.output

    result = runner.invoke(cli, ["build", "--strict"], catch_exceptions=False)
    assert result.exit_code == 1


def test_cli_build_without_content_dir(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    result = CliRunner().invoke(cli, ["build"])
    assert result.exit_code == 1
    assert "Build failed" in result.output


def test_cli_paths_and_resolve(monkeypatch, tmp_path):
    monkeypatch.chdir(create_project(tmp_path))
    runner = CliRunner()

    result = runner.invoke(cli, ["paths"], catch_exceptions=False)
    assert result.exit_code == 0
    assert result.output.splitlines() == ["later", "hello"]

    result = runner.invoke(cli, ["resolve", "hello"], catch_exceptions=False)
    assert result.exit_code == 0
    assert "<strong>world</strong>" in result.output

    result = runner.invoke(cli, ["resolve", "missing"])
    assert result.exit_code == 1
    assert "Not found: missing" in result.output


def test_cli_invalid_config(monkeypatch, tmp_path):
    monkeypatch.chdir(create_project(tmp_path))
    (tmp_path / "folio.yaml").write_text("fallback: sometimes\n", encoding="utf-8")
    result = CliRunner().invoke(cli, ["paths"])
    assert result.exit_code == 1
    assert "fallback" in result.output


def test_cli_serve(monkeypatch, tmp_path):
    monkeypatch.chdir(tmp_path)
    called = {}

    class DummyServer:
        def __init__(self, root, port=None, live=False, include_drafts=False):
            called.update(port=port, live=live, drafts=include_drafts)

        def start(self):
            called["started"] = True

    monkeypatch.setattr("folio.server.PreviewServer", DummyServer)
    result = CliRunner().invoke(
        cli, ["serve", "--drafts", "--live", "--port", "5050"], catch_exceptions=False
    )
    assert result.exit_code == 0
    assert called == {"port": 5050, "live": True, "drafts": True, "started": True}


def test_module_main_entrypoint():
    from folio.__main__ import main

    assert callable(main)
