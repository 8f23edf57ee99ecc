"""Server status and space information tools."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from backlog_readonly_mcp.tools.base import BacklogTool

CAPABILITIES = ["read-only", "projects", "issues", "users", "wikis", "master-data"]


class TestConnectionTool(BacklogTool):
    """Reports that the server is up without calling Backlog."""

    __test__ = False  # not a pytest class

    name = "test_connection"
    description = "Check that the MCP server is running (read-only)."

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        return {
            "status": "success",
            "message": "Backlog read-only MCP server is running",
            "timestamp": datetime.now(UTC).isoformat(),
            "domain": self._config.domain,
            "capabilities": CAPABILITIES,
        }


class GetSpaceTool(BacklogTool):
    name = "get_space"
    description = "Get information about the Backlog space (read-only)."

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        try:
            space = await self._client.get("/space")
        except Exception as e:
            raise self._failure("get space", e) from e
        return {
            "success": True,
            "data": space,
            "message": f'Retrieved space "{space.get("name", self._config.domain)}"',
        }
