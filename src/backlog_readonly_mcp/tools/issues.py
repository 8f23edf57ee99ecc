"""Issue tools: search, count, detail, comments and attachments."""

from __future__ import annotations

from typing import Any

from backlog_readonly_mcp.client import encode_path_segment
from backlog_readonly_mcp.core.errors import ToolError
from backlog_readonly_mcp.tools.base import (
    DEFAULT_COUNT,
    BacklogTool,
    clamp_count,
    default_suffix,
    object_schema,
)

# Backlog encodes the parent/child filter as an integer
PARENT_CHILD_CODES = {
    "all": 0,
    "notChild": 1,
    "child": 2,
    "standalone": 3,
    "parent": 4,
}

SORT_FIELDS = [
    "issueType",
    "category",
    "version",
    "milestone",
    "summary",
    "status",
    "priority",
    "attachment",
    "sharedFile",
    "created",
    "createdUser",
    "updated",
    "updatedUser",
    "assignee",
    "startDate",
    "dueDate",
    "estimatedHours",
    "actualHours",
    "childIssue",
]

ID_LIST_FILTERS = {
    "issueTypeId": "Issue type IDs",
    "categoryId": "Category IDs",
    "versionId": "Version IDs",
    "milestoneId": "Milestone IDs",
    "statusId": "Status IDs",
    "priorityId": "Priority IDs",
    "assigneeId": "Assignee user IDs",
    "createdUserId": "Creator user IDs",
    "resolutionId": "Resolution IDs",
}

DATE_FILTERS = {
    "createdSince": "Created on or after",
    "createdUntil": "Created on or before",
    "updatedSince": "Updated on or after",
    "updatedUntil": "Updated on or before",
    "startDateSince": "Start date on or after",
    "startDateUntil": "Start date on or before",
    "dueDateSince": "Due date on or after",
    "dueDateUntil": "Due date on or before",
}

_DATE_PATTERN = r"\d{4}-\d{2}-\d{2}"

ISSUE_KEY_PROPERTY: dict[str, Any] = {
    "type": "string",
    "description": 'Issue ID or issue key (e.g. "MYPROJ-123" or "12345").',
}


def _filter_properties() -> dict[str, Any]:
    """Search filters shared by get_issues and count_issues."""
    props: dict[str, Any] = {
        "projectId": {
            "type": "string",
            "description": (
                "Project ID or key. Uses the default project when omitted; "
                "searches every project when no default is configured."
            ),
        },
    }
    for name, label in ID_LIST_FILTERS.items():
        props[name] = {
            "type": "array",
            "items": {"type": "integer"},
            "description": f"{label} (multiple allowed).",
        }
    props["parentChild"] = {
        "type": "string",
        "enum": list(PARENT_CHILD_CODES),
        "description": (
            "Parent/child filter: all, parent (parents only), child (children "
            "only), notChild (everything but children), standalone (neither)."
        ),
    }
    props["attachment"] = {
        "type": "boolean",
        "description": "Only issues that have attachments.",
    }
    props["sharedFile"] = {
        "type": "boolean",
        "description": "Only issues that have shared files.",
    }
    for name, label in DATE_FILTERS.items():
        props[name] = {
            "type": "string",
            "pattern": _DATE_PATTERN,
            "format": "date",
            "description": f"{label} this date (YYYY-MM-DD).",
        }
    props["keyword"] = {
        "type": "string",
        "description": "Keyword matched against summary and description.",
    }
    return props


def _paging_properties() -> dict[str, Any]:
    return {
        "sort": {
            "type": "string",
            "enum": SORT_FIELDS,
            "description": "Sort field.",
        },
        "order": {
            "type": "string",
            "enum": ["asc", "desc"],
            "description": "Sort order.",
        },
        "offset": {
            "type": "integer",
            "description": "Offset (default: 0).",
        },
        "count": {
            "type": "integer",
            "description": f"Number of issues (default: {DEFAULT_COUNT}, max: 100).",
        },
    }


class _IssueSearchTool(BacklogTool):
    """Shared query building for the issue search endpoints."""

    async def _search_params(self, kwargs: dict[str, Any]) -> tuple[dict[str, Any], bool]:
        """Build Backlog query params; returns (params, used_default_project)."""
        params: dict[str, Any] = {}
        explicit = kwargs.get("projectId")
        project = explicit or self._config.default_project
        is_default = not explicit and self._config.has_default_project()
        if project:
            project_id = await self._project_numeric_id(project)
            if project_id is None:
                raise ToolError(f"Project not found: {project}")
            params["projectId"] = [project_id]

        for name in ID_LIST_FILTERS:
            if kwargs.get(name):
                params[name] = list(kwargs[name])
        if kwargs.get("parentChild"):
            params["parentChild"] = PARENT_CHILD_CODES[kwargs["parentChild"]]
        for flag in ("attachment", "sharedFile"):
            if kwargs.get(flag) is not None:
                params[flag] = kwargs[flag]
        for name in DATE_FILTERS:
            if kwargs.get(name):
                params[name] = kwargs[name]
        if kwargs.get("keyword"):
            params["keyword"] = kwargs["keyword"]
        return params, is_default


class GetIssuesTool(_IssueSearchTool):
    name = "get_issues"
    description = "Search issues (read-only). Supports filtering, sorting and paging."
    parameters_schema = object_schema({**_filter_properties(), **_paging_properties()})

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        try:
            params, is_default = await self._search_params(kwargs)
            if kwargs.get("sort"):
                params["sort"] = kwargs["sort"]
            if kwargs.get("order"):
                params["order"] = kwargs["order"]
            offset = max(int(kwargs.get("offset", 0)), 0)
            params["offset"] = offset
            params["count"] = clamp_count(kwargs.get("count"))
            issues = await self._client.get("/issues", params)
        except Exception as e:
            raise self._failure("get issues", e) from e
        return {
            "success": True,
            "data": issues,
            "count": len(issues),
            "offset": offset,
            "message": f"Retrieved {len(issues)} issue(s){default_suffix(is_default)}",
            "is_default_project": is_default,
            "search_params": params,
        }


class CountIssuesTool(_IssueSearchTool):
    name = "count_issues"
    description = "Count issues matching the given filters (read-only)."
    parameters_schema = object_schema(_filter_properties())

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        try:
            params, is_default = await self._search_params(kwargs)
            result = await self._client.get("/issues/count", params)
        except Exception as e:
            raise self._failure("count issues", e) from e
        total = int(result.get("count", 0))
        return {
            "success": True,
            "data": result,
            "count": total,
            "message": f"{total} issue(s) match{default_suffix(is_default)}",
            "is_default_project": is_default,
            "search_params": params,
        }


class GetIssueTool(BacklogTool):
    name = "get_issue"
    description = "Get issue details (read-only)."
    parameters_schema = object_schema({"issueIdOrKey": ISSUE_KEY_PROPERTY}, ["issueIdOrKey"])

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        issue_key = kwargs["issueIdOrKey"]
        try:
            issue = await self._client.get(f"/issues/{encode_path_segment(issue_key)}")
        except Exception as e:
            raise self._failure("get issue", e) from e
        return {
            "success": True,
            "data": issue,
            "message": f'Retrieved issue "{issue.get("issueKey")}: {issue.get("summary")}"',
        }


class GetIssueCommentsTool(BacklogTool):
    name = "get_issue_comments"
    description = "List the comments on an issue (read-only)."
    parameters_schema = object_schema(
        {
            "issueIdOrKey": ISSUE_KEY_PROPERTY,
            "minId": {
                "type": "integer",
                "description": "Only comments with an ID greater than this.",
            },
            "maxId": {
                "type": "integer",
                "description": "Only comments with an ID less than this.",
            },
            "count": {
                "type": "integer",
                "description": f"Number of comments (default: {DEFAULT_COUNT}, max: 100).",
            },
            "order": {
                "type": "string",
                "enum": ["asc", "desc"],
                "description": "Sort order (default: asc).",
            },
        },
        ["issueIdOrKey"],
    )

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        issue_key = kwargs["issueIdOrKey"]
        params: dict[str, Any] = {
            "count": clamp_count(kwargs.get("count")),
            "order": kwargs.get("order", "asc"),
            "minId": kwargs.get("minId"),
            "maxId": kwargs.get("maxId"),
        }
        params = {k: v for k, v in params.items() if v is not None}
        try:
            comments = await self._client.get(
                f"/issues/{encode_path_segment(issue_key)}/comments", params
            )
        except Exception as e:
            raise self._failure("get issue comments", e) from e
        return {
            "success": True,
            "data": comments,
            "count": len(comments),
            "message": f'Retrieved {len(comments)} comment(s) on issue "{issue_key}"',
            "search_params": params,
        }


class GetIssueAttachmentsTool(BacklogTool):
    name = "get_issue_attachments"
    description = "List the attachments of an issue (read-only)."
    parameters_schema = object_schema({"issueIdOrKey": ISSUE_KEY_PROPERTY}, ["issueIdOrKey"])

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        issue_key = kwargs["issueIdOrKey"]
        try:
            attachments = await self._client.get(
                f"/issues/{encode_path_segment(issue_key)}/attachments"
            )
        except Exception as e:
            raise self._failure("get issue attachments", e) from e
        return {
            "success": True,
            "data": attachments,
            "count": len(attachments),
            "message": f'Retrieved {len(attachments)} attachment(s) of issue "{issue_key}"',
        }
