"""User tools."""

from __future__ import annotations

from typing import Any

from backlog_readonly_mcp.client import encode_path_segment
from backlog_readonly_mcp.tools.base import BacklogTool, object_schema


class GetUsersTool(BacklogTool):
    name = "get_users"
    description = "List the users in the space (read-only)."

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        try:
            users = await self._client.get("/users")
        except Exception as e:
            raise self._failure("get users", e) from e
        return {
            "success": True,
            "data": users,
            "count": len(users),
            "message": f"Retrieved {len(users)} user(s)",
        }


class GetUserTool(BacklogTool):
    name = "get_user"
    description = "Get a user's details (read-only)."
    parameters_schema = object_schema(
        {"userId": {"type": "string", "description": "Numeric user ID."}},
        ["userId"],
    )

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        user_id = kwargs["userId"]
        try:
            user = await self._client.get(f"/users/{encode_path_segment(user_id)}")
        except Exception as e:
            raise self._failure("get user", e) from e
        return {
            "success": True,
            "data": user,
            "message": f'Retrieved user "{user.get("name")}"',
        }


class GetMyselfTool(BacklogTool):
    name = "get_myself"
    description = "Get the user that owns the configured API key (read-only)."

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        try:
            user = await self._client.get("/users/myself")
        except Exception as e:
            raise self._failure("get current user", e) from e
        return {
            "success": True,
            "data": user,
            "message": f'Retrieved current user "{user.get("name")}"',
        }
