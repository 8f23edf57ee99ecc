"""Tests for the MCP server handlers."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from mcp import types

from backlog_readonly_mcp.core.errors import ToolError, ToolNotFoundError
from backlog_readonly_mcp.mcp import server as server_mod
from backlog_readonly_mcp.mcp.server import (
    _get_tools,
    build_registry,
    call_tool,
    configure,
    list_tools,
    run_server,
)
from backlog_readonly_mcp.tools.catalog import TOOL_CLASSES

EXPECTED_TOOLS = {
    "test_connection",
    "get_space",
    "get_projects",
    "get_project",
    "get_project_users",
    "get_default_project",
    "get_issues",
    "get_issue",
    "get_issue_comments",
    "get_issue_attachments",
    "count_issues",
    "get_users",
    "get_user",
    "get_myself",
    "get_recent_wikis",
    "get_wiki",
    "get_priorities",
    "get_statuses",
    "get_resolutions",
    "get_categories",
    "get_issue_types",
    "get_versions",
}


@pytest.fixture
def registry(client, config) -> Any:
    reg = build_registry(client, config)
    configure(reg)
    yield reg
    configure(None)


# ── Tool listing ─────────────────────────────────────────────────


class TestToolListing:
    """Verify that tool definitions are correct."""

    def test_catalogue_is_complete(self, registry) -> None:
        assert set(registry.list_names()) == EXPECTED_TOOLS
        assert len(TOOL_CLASSES) == len(EXPECTED_TOOLS)

    async def test_list_tools_returns_mcp_tools(self, registry) -> None:
        tools = await list_tools()
        assert {t.name for t in tools} == EXPECTED_TOOLS
        for tool in tools:
            assert "read-only" in tool.description.lower()
            assert tool.inputSchema["type"] == "object"

    def test_required_parameters(self, registry) -> None:
        tools = {t.name: t for t in _get_tools()}
        assert tools["get_issue"].inputSchema["required"] == ["issueIdOrKey"]
        assert tools["get_user"].inputSchema["required"] == ["userId"]
        assert tools["get_wiki"].inputSchema["required"] == ["wikiId"]
        assert tools["get_issues"].inputSchema["required"] == []

    def test_unconfigured_server_raises(self) -> None:
        configure(None)
        with pytest.raises(RuntimeError, match="configure"):
            _get_tools()


# ── call_tool routing ────────────────────────────────────────────


class TestCallTool:
    """Verify call_tool routes to the registry and reports errors."""

    async def test_success_returns_json_text(self, registry, fake_backlog) -> None:
        fake_backlog.add("/priorities", [{"id": 2, "name": "High"}])
        result = await call_tool("get_priorities", {})
        assert len(result) == 1
        assert result[0].type == "text"
        payload = json.loads(result[0].text)
        assert payload["success"] is True
        assert payload["data"] == [{"id": 2, "name": "High"}]

    async def test_none_arguments(self, registry) -> None:
        result = await call_tool("test_connection", None)
        assert json.loads(result[0].text)["status"] == "success"

    async def test_unknown_tool_raises(self, registry) -> None:
        with pytest.raises(ToolNotFoundError, match="Unknown tool: create_issue"):
            await call_tool("create_issue", {})

    async def test_error_result_raises(self, registry, fake_backlog) -> None:
        fake_backlog.add_error("/issues/PROJ-9", 404, "No issue.", 6)
        with pytest.raises(ToolError, match="Error: Failed to get issue: \\[6\\] No issue."):
            await call_tool("get_issue", {"issueIdOrKey": "PROJ-9"})

    async def test_missing_required_argument(self, registry, fake_backlog) -> None:
        with pytest.raises(ToolError, match="'wikiId' is required"):
            await call_tool("get_wiki", {})
        assert fake_backlog.requests == []


# ── tools/call through the SDK request handler ───────────────────


async def _dispatch(name: str, arguments: dict[str, Any] | None) -> types.CallToolResult:
    handler = server_mod.server.request_handlers[types.CallToolRequest]
    request = types.CallToolRequest(
        method="tools/call",
        params=types.CallToolRequestParams(name=name, arguments=arguments),
    )
    result = await handler(request)
    return result.root


class TestCallToolRequest:
    """Requests go through the SDK layer, so arguments reach the registry unchanged."""

    async def test_numeric_string_count_is_coerced(self, registry, fake_backlog) -> None:
        fake_backlog.add("/issues", [{"id": 1}])
        result = await _dispatch("get_issues", {"count": "5"})
        assert result.isError is False
        payload = json.loads(result.content[0].text)
        assert payload["data"] == [{"id": 1}]
        assert fake_backlog.last_request.url.params["count"] == "5"

    async def test_numeric_string_list_items_are_coerced(self, registry, fake_backlog) -> None:
        fake_backlog.add("/issues", [])
        result = await _dispatch("get_issues", {"statusId": ["1", "2"]})
        assert result.isError is False
        assert fake_backlog.last_request.url.params.get_list("statusId[]") == ["1", "2"]

    async def test_missing_required_uses_registry_message(self, registry, fake_backlog) -> None:
        result = await _dispatch("get_wiki", {})
        assert result.isError is True
        text = result.content[0].text
        assert "'wikiId' is required" in text
        assert "Input validation error" not in text
        assert fake_backlog.requests == []

    async def test_api_failure_is_error_result(self, registry, fake_backlog) -> None:
        fake_backlog.add_error("/issues/PROJ-9", 404, "No issue.", 6)
        result = await _dispatch("get_issue", {"issueIdOrKey": "PROJ-9"})
        assert result.isError is True
        assert "Failed to get issue: [6] No issue." in result.content[0].text


# ── run_server ───────────────────────────────────────────────────


class TestRunServer:
    async def test_serves_on_stdio_and_closes_client(self, config) -> None:
        streams = (MagicMock(), MagicMock())
        stdio_cm = MagicMock()
        stdio_cm.__aenter__ = AsyncMock(return_value=streams)
        stdio_cm.__aexit__ = AsyncMock(return_value=None)

        with (
            patch.object(server_mod, "stdio_server", return_value=stdio_cm),
            patch.object(server_mod.server, "run", new_callable=AsyncMock) as run,
            patch.object(server_mod.BacklogClient, "aclose", new_callable=AsyncMock) as aclose,
        ):
            await run_server(config)

        run.assert_awaited_once()
        assert run.await_args.args[:2] == streams
        aclose.assert_awaited_once()
        assert set(server_mod._get_registry().list_names()) == EXPECTED_TOOLS
        configure(None)
