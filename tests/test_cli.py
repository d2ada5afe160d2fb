"""Test suite for the command line interface."""

import pytest
from click.testing import CliRunner

from exaone_chat import cli as cli_module
from exaone_chat.cli import _read_prompt, cli


@pytest.mark.asyncio
async def test_read_prompt_returns_line(monkeypatch):
    """Test the prompt reader hands back the typed line."""
    monkeypatch.setattr("builtins.input", lambda text: "hello")
    assert await _read_prompt("You: ") == "hello"


@pytest.mark.asyncio
async def test_read_prompt_propagates_eof(monkeypatch):
    """Test end of input reaches the chat loop."""
    def closed(text):
        raise EOFError

    monkeypatch.setattr("builtins.input", closed)
    with pytest.raises(EOFError):
        await _read_prompt("You: ")


def test_chat_exits_cleanly_on_interrupt(monkeypatch, tmp_path):
    """Test Ctrl-C outside a reply ends the chat command without a traceback."""
    def interrupted(coro):
        coro.close()
        raise KeyboardInterrupt

    monkeypatch.setattr(cli_module, "DATA_DIR", tmp_path)
    monkeypatch.setattr(cli_module.asyncio, "run", interrupted)

    result = CliRunner().invoke(cli, ["chat"])
    assert result.exit_code == 0
    assert result.exception is None


def test_theme_command(monkeypatch, tmp_path):
    """Test the theme command persists its choice."""
    monkeypatch.setattr(cli_module, "DATA_DIR", tmp_path)
    runner = CliRunner()

    assert runner.invoke(cli, ["theme"]).output.strip() == "light"
    assert runner.invoke(cli, ["theme", "--toggle"]).output.strip() == "dark"
    assert runner.invoke(cli, ["theme"]).output.strip() == "dark"
