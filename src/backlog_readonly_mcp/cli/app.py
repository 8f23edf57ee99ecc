"""Main CLI application.

Click commands for the Backlog read-only MCP server: serve, config,
tools, check.
"""

from __future__ import annotations

import asyncio
import json as json_mod
import os
import sys
from typing import TYPE_CHECKING, Any

import click

from backlog_readonly_mcp import __version__
from backlog_readonly_mcp.config.loader import load_config
from backlog_readonly_mcp.config.schema import LoggingConfig
from backlog_readonly_mcp.core.errors import BacklogMcpError, ConfigError
from backlog_readonly_mcp.core.logging import setup_logging

if TYPE_CHECKING:
    from backlog_readonly_mcp.config.schema import BacklogConfig

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


# ── Helpers ──────────────────────────────────────────────────────


def _error(msg: str) -> None:
    """Print an error message to stderr and exit."""
    click.echo(f"Error: {msg}", err=True)
    sys.exit(1)


def _load_config(ctx: click.Context) -> BacklogConfig:
    """Load config with user-friendly error handling and set up logging."""
    log_level = ctx.obj["log_level"]
    # provisional stderr handler so the loader's own messages are shown
    setup_logging(LoggingConfig(level=log_level or os.environ.get("BACKLOG_LOG_LEVEL") or "INFO"))
    try:
        config = load_config(path=ctx.obj["config_path"])
    except ConfigError as e:
        _error(str(e))
        raise  # unreachable, keeps mypy happy
    if log_level:
        config = config.model_copy(
            update={"logging": config.logging.model_copy(update={"level": log_level})}
        )
    setup_logging(config.logging)
    return config


# ── CLI group ────────────────────────────────────────────────────


@click.group(invoke_without_command=True)
@click.version_option(version=__version__, prog_name="backlog-readonly-mcp")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Workspace config file (overrides BACKLOG_CONFIG_PATH).",
)
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Log level (overrides BACKLOG_LOG_LEVEL).",
)
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, log_level: str | None) -> None:
    """backlog-readonly-mcp - Read-only MCP server for Backlog.

    Runs the MCP server on stdio when no command is given.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["log_level"] = log_level.upper() if log_level else None
    if ctx.invoked_subcommand is None:
        ctx.invoke(serve)


# ── serve ───────────────────────────────────────────────────────


@cli.command()
@click.pass_context
def serve(ctx: click.Context) -> None:
    """Start the MCP server on stdio."""
    from backlog_readonly_mcp.mcp.server import run_server

    config = _load_config(ctx)
    try:
        asyncio.run(run_server(config))
    except KeyboardInterrupt:
        pass


# ── config ──────────────────────────────────────────────────────


@cli.command("config")
@click.option("--json", "as_json", is_flag=True, default=False, help="Output as JSON.")
@click.pass_context
def show_config(ctx: click.Context, as_json: bool) -> None:
    """Show the resolved configuration (API key masked)."""
    config = _load_config(ctx)
    summary = config.summary()
    if as_json:
        click.echo(json_mod.dumps(summary, indent=2))
        return
    for key, value in summary.items():
        click.echo(f"{key}: {'-' if value is None else value}")


# ── tools ───────────────────────────────────────────────────────


@cli.command()
@click.pass_context
def tools(ctx: click.Context) -> None:
    """List the available read-only tools."""
    config = _load_config(ctx)
    asyncio.run(_tools_async(config))


async def _tools_async(config: BacklogConfig) -> None:
    """Async implementation for the tools command."""
    from backlog_readonly_mcp.client import BacklogClient
    from backlog_readonly_mcp.tools.catalog import build_registry

    async with BacklogClient(config) as client:
        registry = build_registry(client, config)
        for definition in registry.list_definitions():
            click.echo(f"{definition.name}  {definition.description}")
        click.echo(f"\n{len(registry)} tools")


# ── check ───────────────────────────────────────────────────────


@cli.command()
@click.pass_context
def check(ctx: click.Context) -> None:
    """Verify the domain and API key by reading the current user."""
    config = _load_config(ctx)
    try:
        user = asyncio.run(_check_async(config))
    except BacklogMcpError as e:
        _error(str(e))
        return
    click.echo(f"Connected to {config.domain} as {user.get('name')} ({user.get('userId')})")


async def _check_async(config: BacklogConfig) -> dict[str, Any]:
    """Async implementation for the check command."""
    from backlog_readonly_mcp.client import BacklogClient

    async with BacklogClient(config) as client:
        user: dict[str, Any] = await client.get("/users/myself")
    return user
