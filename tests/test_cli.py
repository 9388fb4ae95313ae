# tests/test_cli.py
import json

import httpx
import pytest
from typer.testing import CliRunner

from clarion import __version__, cli
from clarion.api.client import ClarionClient
from clarion.config.paths import get_user_config_file
from clarion.core.models import INCLUDED, EXCLUDED

from conftest import by_prefix_and_suffix

runner = CliRunner()

TREE_JSON = [
    {"id": "src", "name": "src", "path": "src", "type": "folder", "children": [
        {"id": "src/a.ts", "name": "a.ts", "path": "src/a.ts", "type": "file"},
        {"id": "src/b.md", "name": "b.md", "path": "src/b.md", "type": "file"},
    ]},
    {"id": "docs", "name": "docs", "path": "docs", "type": "folder", "children": [
        {"id": "docs/readme.md", "name": "readme.md", "path": "docs/readme.md", "type": "file"},
    ]},
    {"id": "main.go", "name": "main.go", "path": "main.go", "type": "file"},
]

AGENTS_JSON = [{
    "Profile": {"ID": "ts-only", "Name": "TS reviewer"},
    "codebase_filters": {"include_globs": ["**/*.ts"], "exclude_globs": []},
}]


class FakeBackend:
    """Answers the /api/v2 routes the CLI uses and records request bodies."""

    def __init__(self, tree=TREE_JSON):
        self.tree = tree
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.replace("/api/v2", "", 1)
        body = json.loads(request.content) if request.content else None
        self.requests.append((path, body))
        if path == "/fs/directory/load":
            return httpx.Response(200, json=self.tree)
        if path == "/fs/preview-filter":
            status = {
                p: INCLUDED if by_prefix_and_suffix(p, body["include_globs"], body["exclude_globs"]) else EXCLUDED
                for p in body["file_paths"]
            }
            return httpx.Response(200, json={"status": status})
        if path == "/fs/files/read":
            return httpx.Response(200, json={"files": {p: "one two" for p in body["paths"]}})
        if path == "/agents/list":
            return httpx.Response(200, json=AGENTS_JSON)
        return httpx.Response(404)


@pytest.fixture
def backend(monkeypatch):
    fake = FakeBackend()

    def make_client(base_url=None, timeout=None):
        return ClarionClient(base_url=base_url, timeout=timeout, transport=httpx.MockTransport(fake))

    monkeypatch.setattr(cli, "ClarionClient", make_client)
    return fake


def test_version():
    result = runner.invoke(cli.app, ["--version"])
    assert result.exit_code == 0
    assert __version__ in result.stdout


def test_tree(backend):
    result = runner.invoke(cli.app, ["tree", "--root", "/proj"])
    assert result.exit_code == 0
    assert result.stdout.splitlines() == [
        "/proj",
        "├── docs/",
        "│   └── readme.md",
        "├── src/",
        "│   ├── a.ts",
        "│   └── b.md",
        "└── main.go",
    ]
    assert backend.requests == [("/fs/directory/load", {"path": "/proj"})]


def test_preview_prunes_folders_without_included_files(backend):
    result = runner.invoke(cli.app, ["preview", "-r", "/proj", "-i", "src/**", "-e", "**/*.md"])
    assert result.exit_code == 0
    lines = result.stdout.splitlines()
    assert lines[0] == "Context Preview (1 files included)"
    assert "docs/" not in result.stdout
    assert "│   ├── a.ts" in lines
    assert "│   └── b.md  (excluded)" in lines
    assert "└── main.go  (excluded)" in lines

    preview_calls = [body for path, body in backend.requests if path == "/fs/preview-filter"]
    assert len(preview_calls) == 1
    assert preview_calls[0]["include_globs"] == ["src/**"]


def test_preview_with_preset_adds_excludes(backend):
    result = runner.invoke(cli.app, ["preview", "-r", "/proj", "-p", "Go", "-e", "**/*.md"])
    assert result.exit_code == 0
    body = [b for p, b in backend.requests if p == "/fs/preview-filter"][0]
    assert body["exclude_globs"] == ["**/*.md", "vendor/**", "bin/**"]


def test_preview_unknown_preset_fails(backend):
    result = runner.invoke(cli.app, ["preview", "-r", "/proj", "-p", "Cobol"])
    assert result.exit_code == 1
    assert backend.requests == []


def test_preview_nothing_matches(backend):
    result = runner.invoke(cli.app, ["preview", "-r", "/proj", "-i", "nothing/**"])
    assert result.exit_code == 0
    assert "Context Preview (0 files included)" in result.stdout
    # Folders without included files disappear; top-level files stay, marked excluded
    assert "src/" not in result.stdout
    assert "└── main.go  (excluded)" in result.stdout


def test_preview_empty_result_message(backend):
    backend.tree = [TREE_JSON[0]]
    result = runner.invoke(cli.app, ["preview", "-r", "/proj", "-i", "nothing/**"])
    assert result.exit_code == 0
    assert "No files match the current filters." in result.stdout


def test_context_from_manual_selection(backend):
    result = runner.invoke(cli.app, ["context", "-r", "/proj", "-s", "docs", "-s", "main.go", "-s", "missing.txt"])
    assert result.exit_code == 0
    assert "Codebase Context (2 files, from manual selection)" in result.stdout
    assert "  docs/readme.md\n  main.go\n" in result.stdout
    assert all(path != "/fs/preview-filter" for path, _ in backend.requests)


def test_context_agent_filters_win_over_selection(backend):
    result = runner.invoke(cli.app, ["context", "-r", "/proj", "-a", "ts-only", "-s", "docs"])
    assert result.exit_code == 0
    assert result.stdout.splitlines() == [
        "Codebase Context (1 files, from agent filters)",
        "  src/a.ts",
    ]


def test_context_unknown_agent(backend):
    result = runner.invoke(cli.app, ["context", "-r", "/proj", "-a", "nobody"])
    assert result.exit_code == 1


def test_context_empty(backend):
    result = runner.invoke(cli.app, ["context", "-r", "/proj"])
    assert result.exit_code == 0
    assert "No files are currently in the context." in result.stdout


def test_empty_project_fails(backend):
    backend.tree = []
    assert runner.invoke(cli.app, ["context", "-r", "/empty"]).exit_code == 1
    assert runner.invoke(cli.app, ["tree", "-r", "/empty"]).exit_code == 1


def test_tokens(backend, mocker):
    encoder = mocker.Mock()
    encoder.encode.side_effect = lambda text: text.split()
    mocker.patch("clarion.core.token_counter._get_cached_encoder", return_value=encoder)

    result = runner.invoke(cli.app, ["tokens", "-r", "/proj", "-s", "src/a.ts"])
    assert result.exit_code == 0
    # "File: src/a.ts" + fence + "one two" + fence
    assert "6 tokens across 1 files" in result.stdout
    assert ("/fs/files/read", {"paths": ["/proj/src/a.ts"]}) in backend.requests


def test_presets_lists_configured_presets():
    result = runner.invoke(cli.app, ["presets"])
    assert result.exit_code == 0
    assert "Node.js: node_modules/**, dist/**, build/**, *.log" in result.stdout
    assert "Glob Pattern Quick Guide:" in result.stdout


def test_config_shows_effective_settings(monkeypatch):
    monkeypatch.setenv("CLARION_PREVIEW_DEBOUNCE_MS", "120")
    result = runner.invoke(cli.app, ["config"])
    assert result.exit_code == 0
    assert '"preview_debounce_ms": 120' in result.stdout
    assert not get_user_config_file().exists()


def test_config_set_persists_settings():
    result = runner.invoke(cli.app, ["config", "--set", "api_url=http://remote:9000", "--set", "request_timeout=5"])
    assert result.exit_code == 0
    saved = json.loads(get_user_config_file().read_text(encoding="utf-8"))
    assert saved["api_url"] == "http://remote:9000"
    assert saved["request_timeout"] == 5.0
    assert "Node.js" in saved["exclude_presets"]


@pytest.mark.parametrize("item", ["api_url", "colour=blue", "exclude_presets={}", "request_timeout=-1"])
def test_config_set_rejects_bad_input(item):
    result = runner.invoke(cli.app, ["config", "--set", item])
    assert result.exit_code == 1
    assert not get_user_config_file().exists()
