"""Tool protocol and data types.

Defines the ``Tool`` protocol that all tool implementations must
satisfy, data classes for tool results and definitions, and the
``BacklogTool`` base class shared by the Backlog catalogue.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, ClassVar, Protocol, runtime_checkable

from backlog_readonly_mcp.client import encode_path_segment
from backlog_readonly_mcp.core.errors import BacklogNotFoundError, ToolError

if TYPE_CHECKING:
    from backlog_readonly_mcp.client import BacklogClient
    from backlog_readonly_mcp.config.schema import BacklogConfig

MAX_COUNT = 100
DEFAULT_COUNT = 20


@dataclass(frozen=True, slots=True)
class ToolDefinition:
    """Schema definition for a tool, as advertised to MCP clients."""

    name: str
    description: str
    parameters_schema: dict[str, Any]


@dataclass(frozen=True, slots=True)
class ToolResult:
    """Result from executing a tool."""

    content: str
    is_error: bool = False


@runtime_checkable
class Tool(Protocol):
    """Protocol that all tool implementations must satisfy."""

    @property
    def name(self) -> str:
        """Unique name for this tool."""
        ...

    @property
    def description(self) -> str:
        """Human-readable description of what the tool does."""
        ...

    @property
    def parameters_schema(self) -> dict[str, Any]:
        """JSON Schema for the tool's parameters."""
        ...

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        """Execute the tool with the given arguments.

        Returns:
            JSON-serialisable result.

        Raises:
            Exception: On execution failure.
        """
        ...


def object_schema(
    properties: dict[str, Any] | None = None,
    required: list[str] | None = None,
) -> dict[str, Any]:
    """Build a JSON Schema object for tool parameters."""
    return {
        "type": "object",
        "properties": properties or {},
        "required": required or [],
    }


PROJECT_PROPERTY: dict[str, Any] = {
    "type": "string",
    "description": (
        'Project ID or project key (e.g. "MYPROJ" or "123"). '
        "Uses the default project when omitted."
    ),
}


class BacklogTool:
    """Base class for tools that read from the Backlog API.

    Subclasses set ``name``, ``description`` and ``parameters_schema``
    and implement :meth:`execute`.
    """

    name: ClassVar[str] = ""
    description: ClassVar[str] = ""
    parameters_schema: ClassVar[dict[str, Any]] = object_schema()

    def __init__(self, client: BacklogClient, config: BacklogConfig) -> None:
        self._client = client
        self._config = config

    async def execute(self, **kwargs: Any) -> dict[str, Any]:
        raise NotImplementedError

    def _resolve_project(self, project_id_or_key: str | None) -> tuple[str, bool]:
        """Return (project, is_default_project)."""
        resolved = self._config.resolve_project_id_or_key(project_id_or_key)
        return resolved, not project_id_or_key

    async def _project_numeric_id(self, project_id_or_key: str) -> int | None:
        """Return the numeric ID of a project; keys are looked up, unknown keys give None."""
        if project_id_or_key.isdigit():
            return int(project_id_or_key)
        try:
            project = await self._client.get(f"/projects/{encode_path_segment(project_id_or_key)}")
        except BacklogNotFoundError:
            return None
        return int(project["id"])

    @staticmethod
    def _failure(action: str, error: Exception) -> ToolError:
        """Wrap error with a description of what failed."""
        return ToolError(f"Failed to {action}: {error}")


def default_suffix(is_default: bool) -> str:
    return " (default project)" if is_default else ""


def clamp_count(value: int | None, default: int = DEFAULT_COUNT) -> int:
    """Clamp a page size to 1..MAX_COUNT."""
    if value is None:
        return default
    return max(1, min(int(value), MAX_COUNT))
