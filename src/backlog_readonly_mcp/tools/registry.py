"""Tool registry -- manages available tools.

Provides registration, lookup, listing, and execution of tools that
implement the :class:`Tool` protocol. Registration enforces the
read-only invariant: a tool whose name or description suggests it
could change data on Backlog is refused.
"""

from __future__ import annotations

import json
import logging
import re
from typing import TYPE_CHECKING, Any

from backlog_readonly_mcp.core.errors import (
    ReadOnlyViolationError,
    ToolError,
    ToolNotFoundError,
)
from backlog_readonly_mcp.tools.base import ToolDefinition, ToolResult

if TYPE_CHECKING:
    from backlog_readonly_mcp.tools.base import Tool

logger = logging.getLogger(__name__)

READ_VERBS = frozenset(
    {"get", "list", "search", "find", "test", "check", "show", "describe", "count"}
)
WRITE_KEYWORDS = frozenset(
    {
        "create",
        "add",
        "update",
        "edit",
        "delete",
        "remove",
        "post",
        "put",
        "patch",
        "set",
        "write",
        "upload",
        "import",
        "move",
        "archive",
        "star",
        "mark",
        "reset",
        "assign",
        "close",
        "merge",
    }
)
READ_ONLY_MARKER = "read-only"

_NAME_RE = re.compile(r"^[a-z][a-z0-9]*(?:_[a-z0-9]+)*$")


def check_read_only(name: str, description: str) -> None:
    """Validate that a tool name and description describe a read-only tool.

    Raises:
        ReadOnlyViolationError: If any rule is broken.
    """
    if not _NAME_RE.match(name):
        msg = f"Tool name must be lower snake case: {name!r}"
        raise ReadOnlyViolationError(msg)
    words = name.split("_")
    if words[0] not in READ_VERBS:
        msg = (
            f"Tool name {name!r} must start with a read verb "
            f"({', '.join(sorted(READ_VERBS))})"
        )
        raise ReadOnlyViolationError(msg)
    forbidden = sorted(WRITE_KEYWORDS.intersection(words))
    if forbidden:
        msg = f"Tool name {name!r} contains write keyword(s): {', '.join(forbidden)}"
        raise ReadOnlyViolationError(msg)
    if READ_ONLY_MARKER not in description.lower():
        msg = f"Tool {name!r} must declare itself {READ_ONLY_MARKER} in its description"
        raise ReadOnlyViolationError(msg)


# ── Argument validation ─────────────────────────────────────────────


def _coerce(name: str, value: Any, schema: dict[str, Any]) -> Any:
    """Check value against a property schema, converting obvious forms."""
    kind = schema.get("type")
    if kind == "string":
        if isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str):
            raise ToolError(f"Parameter '{name}' must be a string.")
        pattern = schema.get("pattern")
        if pattern and not re.fullmatch(pattern, value):
            hint = "YYYY-MM-DD" if schema.get("format") == "date" else pattern
            raise ToolError(f"Parameter '{name}' must match {hint}: {value!r}")
    elif kind in ("integer", "number"):
        if isinstance(value, bool):
            raise ToolError(f"Parameter '{name}' must be a {kind}.")
        if isinstance(value, str):
            try:
                value = int(value) if kind == "integer" else float(value)
            except ValueError:
                raise ToolError(f"Parameter '{name}' must be a {kind}.") from None
        if isinstance(value, float) and kind == "integer":
            if not value.is_integer():
                raise ToolError(f"Parameter '{name}' must be an integer.")
            value = int(value)
        if not isinstance(value, (int, float)):
            raise ToolError(f"Parameter '{name}' must be a {kind}.")
    elif kind == "boolean":
        if isinstance(value, str) and value.lower() in ("true", "false"):
            value = value.lower() == "true"
        if not isinstance(value, bool):
            raise ToolError(f"Parameter '{name}' must be a boolean.")
    elif kind == "array":
        if not isinstance(value, (list, tuple)):
            value = [value]
        item_schema = schema.get("items", {})
        value = [_coerce(f"{name}[]", item, item_schema) for item in value]

    allowed = schema.get("enum")
    if allowed is not None and value not in allowed:
        choices = ", ".join(str(a) for a in allowed)
        raise ToolError(f"Parameter '{name}' must be one of: {choices}")
    return value


def validate_arguments(schema: dict[str, Any], arguments: dict[str, Any]) -> dict[str, Any]:
    """Validate arguments against a tool's parameter schema.

    Returns the cleaned arguments: ``None`` values and unknown keys are
    dropped, declared types are checked and numeric strings converted.

    Raises:
        ToolError: On a missing required parameter or a bad value.
    """
    if not isinstance(arguments, dict):
        raise ToolError("Tool arguments must be an object.")
    properties: dict[str, Any] = schema.get("properties", {})

    for required in schema.get("required", []):
        value = arguments.get(required)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ToolError(f"Parameter '{required}' is required.")

    cleaned: dict[str, Any] = {}
    for key, value in arguments.items():
        if value is None:
            continue
        if key not in properties:
            logger.debug("Ignoring unknown parameter %r", key)
            continue
        cleaned[key] = _coerce(key, value, properties[key])
    return cleaned


class ToolRegistry:
    """Registry for managing available tools.

    Supports registration, lookup by name, listing definitions
    (for the MCP ``tools/list`` response), and executing tool calls.
    """

    def __init__(self) -> None:
        self._tools: dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        """Register a tool.

        Raises:
            ValueError: If a tool with the same name is already registered.
            ReadOnlyViolationError: If the tool does not look read-only.
        """
        if tool.name in self._tools:
            msg = f"Tool already registered: {tool.name}"
            raise ValueError(msg)
        check_read_only(tool.name, tool.description)
        self._tools[tool.name] = tool

    def get(self, name: str) -> Tool:
        """Get a tool by name.

        Raises:
            ToolNotFoundError: If the tool is not found.
        """
        if name not in self._tools:
            raise ToolNotFoundError(name)
        return self._tools[name]

    def list_definitions(self) -> list[ToolDefinition]:
        """Return tool definitions for all registered tools."""
        return [
            ToolDefinition(
                name=t.name,
                description=t.description,
                parameters_schema=t.parameters_schema,
            )
            for t in self._tools.values()
        ]

    async def execute(self, name: str, arguments: dict[str, Any] | None = None) -> ToolResult:
        """Execute a tool and return the result.

        Unknown tools raise :class:`ToolNotFoundError`. Validation and
        execution failures come back as a :class:`ToolResult` with
        ``is_error=True``.
        """
        tool = self.get(name)
        try:
            args = validate_arguments(tool.parameters_schema, arguments or {})
            result = await tool.execute(**args)
        except Exception as exc:
            logger.warning("Tool %s failed: %s", name, exc)
            return ToolResult(content=f"Error: {exc}", is_error=True)
        return ToolResult(
            content=json.dumps(result, ensure_ascii=False, indent=2, default=str),
        )

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools

    def list_names(self) -> list[str]:
        """Return names of all registered tools."""
        return list(self._tools.keys())
