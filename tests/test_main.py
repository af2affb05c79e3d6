"""Test CLI entry point."""
import json

import pytest
from pathlib import Path
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from custom_commands.claude.client import TurnResult
from custom_commands.main import cli


@pytest.fixture
def project(tmp_path, monkeypatch):
    """Project with a .codex/commands directory and an empty user scope."""
    monkeypatch.setenv("CODEX_HOME", str(tmp_path / "codex-home"))
    root = tmp_path / "project"
    commands = root / ".codex" / "commands"
    commands.mkdir(parents=True)
    (root / ".git").mkdir()
    (commands / "deploy.md").write_text(
        "---\ndescription: Deploy it\ndisable-model-invocation: true\n---\nDeploying $1\n"
    )
    (commands / "review.md").write_text(
        "---\nargument-hint: <file>\nallowed-tools: [Read]\nmodel: opus\n---\nReview $ARGUMENTS\n"
    )
    (commands / "init.md").write_text("shadow attempt")
    return root


def _invoke(*args):
    runner = CliRunner()
    return runner.invoke(cli, ["--config", "/nonexistent/config.yaml", *args])


def test_exec_dry_run_prints_directive(project):
    """exec --dry-run prints the directive as JSON."""
    result = _invoke("exec", "--cwd", str(project), "--dry-run", "/review src/app.py")

    assert result.exit_code == 0, result.output
    directive = json.loads(result.output)
    assert directive == {
        "command": "review",
        "arguments": "src/app.py",
        "expanded_body": "Review src/app.py",
        "allowed_tools": ["Read"],
        "model_override": "opus",
        "skip_model": False,
    }


def test_exec_skip_model(project):
    """exec records skip_model commands without a model call."""
    with patch("custom_commands.claude.client.ClaudeSDKClient") as sdk_cls:
        result = _invoke("exec", "--cwd", str(project), "/deploy prod")

    assert result.exit_code == 0, result.output
    sdk_cls.assert_not_called()
    assert "/deploy recorded" in result.output


def test_exec_runs_agent(project):
    """exec runs the agent loop and prints its reply."""
    with patch("custom_commands.main.AgentLoop") as loop_cls:
        loop_cls.return_value.run_turn = AsyncMock(return_value=TurnResult(text="Reviewed."))
        result = _invoke("exec", "--cwd", str(project), "/review a.py")

    assert result.exit_code == 0, result.output
    assert "Reviewed." in result.output
    assert loop_cls.call_args.kwargs["cwd"] == project


def test_exec_unknown_command(project):
    """Unknown commands exit non-zero with a not-found message."""
    result = _invoke("exec", "--cwd", str(project), "/nope")

    assert result.exit_code == 1
    assert "Unknown command: /nope" in result.output


def test_exec_builtin_name_is_not_shadowed(project):
    """A custom init.md never resolves."""
    result = _invoke("exec", "--cwd", str(project), "--dry-run", "/init")

    assert result.exit_code == 1


def test_exec_requires_slash_command(project):
    """Plain text is rejected."""
    result = _invoke("exec", "--cwd", str(project), "hello")

    assert result.exit_code == 2


def test_list_shows_commands_and_skipped(project):
    """list prints commands and skipped entries."""
    result = _invoke("list", "--cwd", str(project))

    assert result.exit_code == 0
    assert "/deploy  Deploy it  (project)" in result.output
    assert "/review <file>" in result.output
    assert "skipped init: /init conflicts with built-in command" in result.output


def test_bot_requires_token(monkeypatch):
    """bot exits if TELEGRAM_BOT_TOKEN is not set."""
    monkeypatch.delenv("TELEGRAM_BOT_TOKEN", raising=False)

    with patch("custom_commands.main.load_dotenv"):
        result = _invoke("bot")

    assert result.exit_code == 1


def test_bot_starts_application(monkeypatch, tmp_path):
    """bot builds the application and starts polling."""
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "test_token")

    with patch("custom_commands.bot.application.create_application") as mock_create:
        result = _invoke("bot")

    assert result.exit_code == 0, result.output
    config = mock_create.call_args[0][0]
    assert config.telegram_token == "test_token"
    mock_create.return_value.run_polling.assert_called_once()
