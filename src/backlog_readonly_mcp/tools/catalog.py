"""The full catalogue of read-only Backlog tools."""

from __future__ import annotations

from typing import TYPE_CHECKING

from backlog_readonly_mcp.tools.issues import (
    CountIssuesTool,
    GetIssueAttachmentsTool,
    GetIssueCommentsTool,
    GetIssuesTool,
    GetIssueTool,
)
from backlog_readonly_mcp.tools.master_data import (
    GetCategoriesTool,
    GetIssueTypesTool,
    GetPrioritiesTool,
    GetResolutionsTool,
    GetStatusesTool,
    GetVersionsTool,
)
from backlog_readonly_mcp.tools.projects import (
    GetDefaultProjectTool,
    GetProjectsTool,
    GetProjectTool,
    GetProjectUsersTool,
)
from backlog_readonly_mcp.tools.registry import ToolRegistry
from backlog_readonly_mcp.tools.system import GetSpaceTool, TestConnectionTool
from backlog_readonly_mcp.tools.users import GetMyselfTool, GetUsersTool, GetUserTool
from backlog_readonly_mcp.tools.wikis import GetRecentWikisTool, GetWikiTool

if TYPE_CHECKING:
    from backlog_readonly_mcp.client import BacklogClient
    from backlog_readonly_mcp.config.schema import BacklogConfig
    from backlog_readonly_mcp.tools.base import BacklogTool

TOOL_CLASSES: tuple[type[BacklogTool], ...] = (
    TestConnectionTool,
    GetSpaceTool,
    GetProjectsTool,
    GetProjectTool,
    GetProjectUsersTool,
    GetDefaultProjectTool,
    GetIssuesTool,
    GetIssueTool,
    GetIssueCommentsTool,
    GetIssueAttachmentsTool,
    CountIssuesTool,
    GetUsersTool,
    GetUserTool,
    GetMyselfTool,
    GetRecentWikisTool,
    GetWikiTool,
    GetPrioritiesTool,
    GetStatusesTool,
    GetResolutionsTool,
    GetCategoriesTool,
    GetIssueTypesTool,
    GetVersionsTool,
)


def build_registry(client: BacklogClient, config: BacklogConfig) -> ToolRegistry:
    """Create a registry holding every Backlog tool."""
    registry = ToolRegistry()
    for tool_cls in TOOL_CLASSES:
        registry.register(tool_cls(client, config))
    return registry
