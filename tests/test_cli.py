import json
import logging
from pathlib import Path

import pytest
from click.testing import CliRunner

from davemode import __version__
from davemode.agents.registry import _reset_registry_for_tests
from davemode.cli.main import cli


@pytest.fixture
def runner(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("DAVEMODE_DB_PATH", str(tmp_path / "cli.sqlite"))
    monkeypatch.setenv("DAVEMODE_LOG_LEVEL", "ERROR")
    monkeypatch.delenv("DAVEMODE_DB_URL", raising=False)
    monkeypatch.delenv("DAVEMODE_SANDBOX_URL", raising=False)
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    _reset_registry_for_tests()
    yield CliRunner()
    _reset_registry_for_tests()
    root.handlers = handlers
    root.setLevel(level)


def test_version(runner) -> None:
    result = runner.invoke(cli, ["version"])

    assert result.exit_code == 0
    assert f"DaveMode v{__version__}" in result.output


def test_templates_json(runner) -> None:
    result = runner.invoke(cli, ["--json", "templates"])

    assert result.exit_code == 0
    assert [t["id"] for t in json.loads(result.output)] == ["react-app", "node-api", "full-stack"]


def test_agent_list_and_unknown_agent(runner) -> None:
    listed = runner.invoke(cli, ["agent", "list"])
    missing = runner.invoke(cli, ["agent", "show", "gpt-9"])

    assert listed.exit_code == 0
    assert "deepseek-r1" in listed.output
    assert missing.exit_code != 0
    assert "Unknown agent" in missing.output


def test_create_parks_ambiguous_requirements(runner, tmp_path: Path) -> None:
    req = tmp_path / "shop.yaml"
    req.write_text("name: Shop\ndescription: build a shop with cart and checkout\n")

    result = runner.invoke(cli, ["--json", "create", "-r", str(req)])

    assert result.exit_code == 0
    body = json.loads(result.output)
    assert body["needs_clarification"] is True
    assert body["contextual_matches"] == ["e-commerce"]


def test_create_rejects_invalid_requirements(runner, tmp_path: Path) -> None:
    req = tmp_path / "bad.yaml"
    req.write_text("features: not-a-list\n")

    result = runner.invoke(cli, ["create", "-r", str(req)])

    assert result.exit_code == 2
    assert "Invalid requirements" in result.output


def test_answering_unknown_interaction_fails(runner) -> None:
    result = runner.invoke(cli, ["clarify", "answer", "missing", "-a", "React"])

    assert result.exit_code == 1
    assert "not found" in result.output


def test_analyze_directory_asks_for_focus(runner, tmp_path: Path) -> None:
    src = tmp_path / "app"
    (src / "node_modules" / "left-pad").mkdir(parents=True)
    (src / "node_modules" / "left-pad" / "index.js").write_text("module.exports = 1;")
    (src / "index.js").write_text("console.log('hi');")

    result = runner.invoke(cli, ["--json", "analyze", str(src)])

    assert result.exit_code == 0
    assert json.loads(result.output)["needs_clarification"] is True


def test_history_empty(runner) -> None:
    result = runner.invoke(cli, ["--json", "clarify", "history", "web-app"])

    assert result.exit_code == 0
    assert json.loads(result.output) == []
