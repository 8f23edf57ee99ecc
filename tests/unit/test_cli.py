"""Tests for the CLI application."""

from __future__ import annotations

import json
import logging
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from backlog_readonly_mcp import __version__
from backlog_readonly_mcp.cli.app import cli
from backlog_readonly_mcp.client import BacklogClient
from backlog_readonly_mcp.core.errors import BacklogAuthError
from backlog_readonly_mcp.core.logging import PACKAGE_LOGGER

CLEAN_ENV = {
    "BACKLOG_DOMAIN": None,
    "BACKLOG_API_KEY": None,
    "BACKLOG_DEFAULT_PROJECT": None,
    "BACKLOG_CONFIG_PATH": None,
    "BACKLOG_LOG_LEVEL": None,
    "BACKLOG_LOG_FILE": None,
    "BACKLOG_LOG_FORMAT": None,
}


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture(autouse=True)
def _reset_package_logger():
    yield
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def workspace(tmp_path):
    path = tmp_path / ".backlog-mcp.env"
    path.write_text(
        "BACKLOG_DOMAIN=space.backlog.com\n"
        "BACKLOG_API_KEY=abcd1234efgh5678\n"
        "BACKLOG_DEFAULT_PROJECT=PROJ\n",
        encoding="utf-8",
    )
    return path


# ── Global options ───────────────────────────────────────────────


class TestGlobal:
    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_missing_credentials(self, runner, tmp_path):
        empty = tmp_path / "empty.env"
        empty.write_text("", encoding="utf-8")
        result = runner.invoke(cli, ["--config", str(empty), "config"], env=CLEAN_ENV)
        assert result.exit_code == 1
        assert "Error: BACKLOG_DOMAIN and BACKLOG_API_KEY must be set" in result.output

    def test_no_subcommand_serves(self, runner, workspace):
        with patch("backlog_readonly_mcp.mcp.server.run_server", new_callable=AsyncMock) as run:
            result = runner.invoke(cli, ["--config", str(workspace)], env=CLEAN_ENV)
        assert result.exit_code == 0, result.output
        run.assert_awaited_once()
        assert run.await_args.args[0].domain == "space.backlog.com"

    def test_log_level_override(self, runner, workspace):
        with patch("backlog_readonly_mcp.mcp.server.run_server", new_callable=AsyncMock) as run:
            result = runner.invoke(
                cli, ["--config", str(workspace), "--log-level", "debug", "serve"], env=CLEAN_ENV
            )
        assert result.exit_code == 0, result.output
        assert run.await_args.args[0].logging.level == "DEBUG"
        assert logging.getLogger(PACKAGE_LOGGER).level == logging.DEBUG


# ── config ───────────────────────────────────────────────────────


class TestConfigCommand:
    def test_text(self, runner, workspace):
        result = runner.invoke(cli, ["--config", str(workspace), "config"], env=CLEAN_ENV)
        assert result.exit_code == 0, result.output
        assert "domain: space.backlog.com" in result.output
        assert "default_project: PROJ" in result.output
        assert "abcd********5678" in result.output
        assert "abcd1234efgh5678" not in result.output

    def test_json(self, runner, workspace):
        result = runner.invoke(
            cli,
            ["--config", str(workspace), "--log-level", "warning", "config", "--json"],
            env=CLEAN_ENV,
        )
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["domain"] == "space.backlog.com"
        assert data["masked_api_key"] == "abcd********5678"
        assert data["has_workspace_config"] is True

    def test_loader_messages_reach_stderr(self, runner, workspace):
        result = runner.invoke(cli, ["--config", str(workspace), "config"], env=CLEAN_ENV)
        assert result.exit_code == 0, result.output
        assert "Loaded workspace config file" in result.output
        assert "Configuration loaded: domain=space.backlog.com" in result.output
        assert "abcd1234efgh5678" not in result.output

    def test_quiet_log_level_hides_loader_messages(self, runner, workspace):
        result = runner.invoke(
            cli, ["--config", str(workspace), "--log-level", "warning", "config"], env=CLEAN_ENV
        )
        assert result.exit_code == 0, result.output
        assert "Configuration loaded" not in result.output


# ── tools ────────────────────────────────────────────────────────


class TestToolsCommand:
    def test_lists_catalogue(self, runner, workspace):
        result = runner.invoke(cli, ["--config", str(workspace), "tools"], env=CLEAN_ENV)
        assert result.exit_code == 0, result.output
        assert "get_issues" in result.output
        assert "get_recent_wikis" in result.output
        assert "22 tools" in result.output


# ── check ────────────────────────────────────────────────────────


class TestCheckCommand:
    def test_success(self, runner, workspace):
        user = {"id": 1, "userId": "ann", "name": "Ann"}
        with patch.object(BacklogClient, "get", new_callable=AsyncMock, return_value=user) as get:
            result = runner.invoke(cli, ["--config", str(workspace), "check"], env=CLEAN_ENV)
        assert result.exit_code == 0, result.output
        assert "Connected to space.backlog.com as Ann (ann)" in result.output
        get.assert_awaited_once_with("/users/myself")

    def test_failure(self, runner, workspace):
        err = BacklogAuthError("11", "Authentication failure.", status_code=401)
        with patch.object(BacklogClient, "get", new_callable=AsyncMock, side_effect=err):
            result = runner.invoke(cli, ["--config", str(workspace), "check"], env=CLEAN_ENV)
        assert result.exit_code == 1
        assert "Error: [11] Authentication failure." in result.output
