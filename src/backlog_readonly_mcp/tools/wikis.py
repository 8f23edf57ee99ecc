"""Wiki tools.

Backlog has no wiki search endpoint that spans projects, so
``get_recent_wikis`` fetches the current user's recently viewed pages and
filters them locally by project and keyword.
"""

from __future__ import annotations

from typing import Any

from backlog_readonly_mcp.client import encode_path_segment
from backlog_readonly_mcp.tools.base import (
    DEFAULT_COUNT,
    MAX_COUNT,
    BacklogTool,
    clamp_count,
    object_schema,
)


def _page(entry: dict[str, Any]) -> dict[str, Any]:
    # recentlyViewedWikis wraps each page as {"page": {...}, "updated": ...}
    page = entry.get("page")
    return page if isinstance(page, dict) else entry


def _matches_keyword(page: dict[str, Any], keyword: str) -> bool:
    needle = keyword.lower()
    name = page.get("name") or ""
    content = page.get("content") or ""
    return needle in name.lower() or needle in content.lower()


class GetRecentWikisTool(BacklogTool):
    name = "get_recent_wikis"
    description = (
        "List recently viewed wiki pages (read-only), optionally filtered "
        "by project and keyword on the client side."
    )
    parameters_schema = object_schema(
        {
            "projectIdOrKey": {
                "type": "string",
                "description": (
                    'Project ID or project key (e.g. "MYPROJ" or "123"). '
                    "Only pages of this project are returned."
                ),
            },
            "keyword": {
                "type": "string",
                "description": "Case-insensitive keyword matched against page name and content.",
            },
            "count": {
                "type": "integer",
                "description": (
                    f"Number of recent pages to fetch (default: {DEFAULT_COUNT}, "
                    f"max: {MAX_COUNT})."
                ),
            },
        }
    )

    async def _project_id_from_list(self, project_id_or_key: str) -> int | None:
        if project_id_or_key.isdigit():
            return int(project_id_or_key)
        try:
            projects = await self._client.get("/projects")
        except Exception as e:
            raise self._failure(
                f'list projects while resolving project key "{project_id_or_key}"', e
            ) from e
        for project in projects:
            if project.get("projectKey") == project_id_or_key:
                return int(project["id"])
        return None

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        project = kwargs.get("projectIdOrKey")
        keyword = kwargs.get("keyword")
        count = clamp_count(kwargs.get("count"))
        try:
            recent = await self._client.get(
                "/users/myself/recentlyViewedWikis", {"count": count}
            )
        except Exception as e:
            raise self._failure("get recently viewed wikis", e) from e

        pages = [_page(entry) for entry in recent]
        if project:
            project_id = await self._project_id_from_list(project)
            if project_id is None:
                pages = []
            else:
                pages = [p for p in pages if p.get("projectId") == project_id]
        if keyword:
            pages = [p for p in pages if _matches_keyword(p, keyword)]

        filters = ""
        if project:
            filters += f" (project: {project})"
        if keyword:
            filters += f" (keyword: {keyword})"
        return {
            "success": True,
            "data": pages,
            "count": len(pages),
            "total_recent_wikis": len(recent),
            "message": (
                f"Retrieved {len(pages)} wiki page(s){filters} from "
                f"{len(recent)} recently viewed"
            ),
            "search_params": {"projectIdOrKey": project, "keyword": keyword, "count": count},
        }


class GetWikiTool(BacklogTool):
    name = "get_wiki"
    description = "Get a wiki page (read-only)."
    parameters_schema = object_schema(
        {"wikiId": {"type": "string", "description": "Numeric wiki page ID."}},
        ["wikiId"],
    )

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        wiki_id = kwargs["wikiId"]
        try:
            wiki = await self._client.get(f"/wikis/{encode_path_segment(wiki_id)}")
        except Exception as e:
            raise self._failure("get wiki page", e) from e
        return {
            "success": True,
            "data": wiki,
            "message": f'Retrieved wiki page "{wiki.get("name")}"',
        }
