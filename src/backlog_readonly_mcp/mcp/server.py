"""MCP server for the Backlog read-only tools."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import TextContent, Tool

from backlog_readonly_mcp import __version__
from backlog_readonly_mcp.client import BacklogClient
from backlog_readonly_mcp.core.errors import ToolError
from backlog_readonly_mcp.tools.catalog import build_registry

if TYPE_CHECKING:
    from backlog_readonly_mcp.config.schema import BacklogConfig
    from backlog_readonly_mcp.tools.registry import ToolRegistry

__all__ = ["build_registry", "configure", "run_server", "server"]

logger = logging.getLogger(__name__)

server = Server("backlog-readonly-mcp")

_registry: ToolRegistry | None = None


def configure(registry: ToolRegistry | None) -> None:
    """Install the registry that backs tools/list and tools/call (None clears it)."""
    global _registry
    _registry = registry


def _get_registry() -> ToolRegistry:
    if _registry is None:
        msg = "MCP server has no tool registry; call configure() first"
        raise RuntimeError(msg)
    return _registry


def _get_tools() -> list[Tool]:
    """Convert registry definitions to MCP tools."""
    return [
        Tool(
            name=d.name,
            description=d.description,
            inputSchema=d.parameters_schema,
        )
        for d in _get_registry().list_definitions()
    ]


@server.list_tools()  # type: ignore[no-untyped-call, untyped-decorator]
async def list_tools() -> list[Tool]:
    """List available MCP tools."""
    return _get_tools()


@server.call_tool(validate_input=False)  # type: ignore[untyped-decorator]
async def call_tool(name: str, arguments: dict[str, Any] | None) -> list[TextContent]:
    """Handle tool calls.

    Raising makes the SDK answer with ``isError: true`` and the message.
    The SDK's own schema check is off: the registry validates and coerces
    arguments, so numeric strings reach integer properties.
    """
    logger.debug("Tool call: %s", name)
    result = await _get_registry().execute(name, arguments or {})
    if result.is_error:
        raise ToolError(result.content)
    return [TextContent(type="text", text=result.content)]


async def run_server(config: BacklogConfig) -> None:
    """Start the MCP server on stdio."""
    async with BacklogClient(config) as client:
        configure(build_registry(client, config))
        logger.info(
            "Backlog read-only MCP server %s starting on stdio (domain=%s, tools=%d)",
            __version__,
            config.domain,
            len(_get_registry()),
        )
        async with stdio_server() as (read_stream, write_stream):
            await server.run(
                read_stream,
                write_stream,
                server.create_initialization_options(),
            )
    logger.info("Backlog read-only MCP server stopped")
