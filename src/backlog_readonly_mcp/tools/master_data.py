"""Master data tools: priorities, statuses, resolutions, categories,
issue types and versions.
"""

from __future__ import annotations

from typing import Any, ClassVar

from backlog_readonly_mcp.client import encode_path_segment
from backlog_readonly_mcp.tools.base import (
    PROJECT_PROPERTY,
    BacklogTool,
    default_suffix,
    object_schema,
)


class GetPrioritiesTool(BacklogTool):
    name = "get_priorities"
    description = "List issue priorities (read-only)."

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        try:
            priorities = await self._client.get("/priorities")
        except Exception as e:
            raise self._failure("get priorities", e) from e
        return {
            "success": True,
            "data": priorities,
            "count": len(priorities),
            "message": f"Retrieved {len(priorities)} priorities",
        }


class GetResolutionsTool(BacklogTool):
    name = "get_resolutions"
    description = "List issue resolutions (read-only). Resolutions are shared by the whole space."

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        try:
            resolutions = await self._client.get("/resolutions")
        except Exception as e:
            raise self._failure("get resolutions", e) from e
        return {
            "success": True,
            "data": resolutions,
            "count": len(resolutions),
            "message": f"Retrieved {len(resolutions)} resolution(s)",
        }


class _ProjectListTool(BacklogTool):
    """Lists a project sub-resource, falling back to the default project."""

    resource: ClassVar[str] = ""
    label: ClassVar[str] = ""

    parameters_schema = object_schema({"projectIdOrKey": PROJECT_PROPERTY})

    def _params(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        project_key, is_default = self._resolve_project(kwargs.get("projectIdOrKey"))
        endpoint = f"/projects/{encode_path_segment(project_key)}/{self.resource}"
        try:
            items = await self._client.get(endpoint, self._params(kwargs))
        except Exception as e:
            raise self._failure(f"get {self.label}", e) from e
        return {
            "success": True,
            "data": items,
            "count": len(items),
            "message": f"Retrieved {len(items)} {self.label}{default_suffix(is_default)}",
            "is_default_project": is_default,
        }


class GetStatusesTool(_ProjectListTool):
    name = "get_statuses"
    description = (
        "List a project's issue statuses (read-only). Uses the default "
        "project when no project is given."
    )
    resource = "statuses"
    label = "statuses"


class GetCategoriesTool(_ProjectListTool):
    name = "get_categories"
    description = (
        "List a project's categories (read-only). Uses the default project "
        "when no project is given."
    )
    resource = "categories"
    label = "categories"


class GetIssueTypesTool(_ProjectListTool):
    name = "get_issue_types"
    description = (
        "List a project's issue types (read-only). Uses the default project "
        "when no project is given."
    )
    resource = "issueTypes"
    label = "issue types"


class GetVersionsTool(_ProjectListTool):
    name = "get_versions"
    description = (
        "List a project's versions and milestones (read-only). Uses the "
        "default project when no project is given."
    )
    resource = "versions"
    label = "versions"
    parameters_schema = object_schema(
        {
            "projectIdOrKey": PROJECT_PROPERTY,
            "archived": {
                "type": "boolean",
                "description": "Include archived versions (default: true).",
            },
        }
    )

    def _params(self, kwargs: dict[str, Any]) -> dict[str, Any]:
        if kwargs.get("archived") is None:
            return {}
        return {"archived": kwargs["archived"]}
