"""Project tools: list, detail, members and the default project."""

from __future__ import annotations

from typing import Any

from backlog_readonly_mcp.client import encode_path_segment
from backlog_readonly_mcp.tools.base import (
    PROJECT_PROPERTY,
    BacklogTool,
    default_suffix,
    object_schema,
)


class GetProjectsTool(BacklogTool):
    name = "get_projects"
    description = "List projects (read-only)."
    parameters_schema = object_schema(
        {
            "archived": {
                "type": "boolean",
                "description": "Include archived projects (default: false).",
            },
            "all": {
                "type": "boolean",
                "description": (
                    "List every project in the space, not only the ones you "
                    "belong to; requires administrator rights (default: false)."
                ),
            },
        }
    )

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        params: dict[str, Any] = {}
        # Backlog treats archived=false as "only active", so send flags only when set
        if kwargs.get("archived"):
            params["archived"] = True
        if kwargs.get("all"):
            params["all"] = True
        try:
            projects = await self._client.get("/projects", params)
        except Exception as e:
            raise self._failure("get projects", e) from e
        return {
            "success": True,
            "data": projects,
            "count": len(projects),
            "message": f"Retrieved {len(projects)} project(s)",
        }


class GetProjectTool(BacklogTool):
    name = "get_project"
    description = (
        "Get project details (read-only). Uses the default project when no "
        "project is given."
    )
    parameters_schema = object_schema({"projectIdOrKey": PROJECT_PROPERTY})

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        project_key, is_default = self._resolve_project(kwargs.get("projectIdOrKey"))
        try:
            project = await self._client.get(f"/projects/{encode_path_segment(project_key)}")
        except Exception as e:
            raise self._failure("get project", e) from e
        return {
            "success": True,
            "data": project,
            "message": (
                f'Retrieved project "{project.get("name")}"{default_suffix(is_default)}'
            ),
            "is_default_project": is_default,
        }


class GetProjectUsersTool(BacklogTool):
    name = "get_project_users"
    description = (
        "List the members of a project (read-only). Uses the default project "
        "when no project is given."
    )
    parameters_schema = object_schema({"projectIdOrKey": PROJECT_PROPERTY})

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        project_key, is_default = self._resolve_project(kwargs.get("projectIdOrKey"))
        try:
            users = await self._client.get(
                f"/projects/{encode_path_segment(project_key)}/users"
            )
        except Exception as e:
            raise self._failure("get project users", e) from e
        return {
            "success": True,
            "data": users,
            "count": len(users),
            "message": f"Retrieved {len(users)} project member(s){default_suffix(is_default)}",
            "is_default_project": is_default,
        }


class GetDefaultProjectTool(BacklogTool):
    """Never raises: a missing or unreachable default project is reported."""

    name = "get_default_project"
    description = "Get the configured default project (read-only)."

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        default = self._config.default_project
        if not default:
            return {
                "success": False,
                "data": None,
                "message": "No default project is configured (BACKLOG_DEFAULT_PROJECT)",
            }
        try:
            project = await self._client.get(f"/projects/{encode_path_segment(default)}")
        except Exception as e:
            return {
                "success": False,
                "data": None,
                "message": f'Failed to get default project "{default}"',
                "error": str(e),
                "default_project_key": default,
            }
        return {
            "success": True,
            "data": project,
            "message": f'Retrieved default project "{project.get("name")}"',
            "default_project_key": default,
        }
