"""Exception hierarchy for backlog-readonly-mcp.

Every module imports from here. The hierarchy is:

    BacklogMcpError
    ├── ConfigError
    ├── ReadOnlyViolationError
    ├── ToolError
    │   └── ToolNotFoundError(name)
    └── BacklogApiError(code, message, status_code, details)
        ├── BacklogAuthError
        ├── BacklogNotFoundError
        ├── BacklogRateLimitError(retry_after)
        ├── BacklogServerError
        └── BacklogNetworkError
"""

from __future__ import annotations

from typing import Any


class BacklogMcpError(Exception):
    """Base exception for all backlog-readonly-mcp errors."""


# ─── Configuration Errors ─────────────────────────────────────


class ConfigError(BacklogMcpError):
    """Missing or invalid configuration."""


# ─── Read-only Guard ──────────────────────────────────────────


class ReadOnlyViolationError(BacklogMcpError):
    """A write operation was attempted, or a tool looks like one."""


# ─── Tool Errors ──────────────────────────────────────────────


class ToolError(BacklogMcpError):
    """A tool rejected its arguments or failed to produce a result."""


class ToolNotFoundError(ToolError):
    """No tool is registered under the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown tool: {name}")


# ─── Backlog API Errors ───────────────────────────────────────


class BacklogApiError(BacklogMcpError):
    """Error returned by (or while talking to) the Backlog API."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        status_code: int | None = None,
        details: Any = None,
    ) -> None:
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(f"[{code}] {message}")

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code, "message": self.message, "details": self.details}


class BacklogAuthError(BacklogApiError):
    """Invalid API key or insufficient permission (401, 403)."""


class BacklogNotFoundError(BacklogApiError):
    """Requested resource does not exist (404)."""


class BacklogRateLimitError(BacklogApiError):
    """Rate limit exceeded (429). Includes retry_after if available."""

    def __init__(
        self,
        code: str,
        message: str,
        *,
        retry_after: float | None = None,
        status_code: int | None = 429,
        details: Any = None,
    ) -> None:
        self.retry_after = retry_after
        if retry_after is not None:
            message = f"{message} (retry after {retry_after:g}s)"
        super().__init__(code, message, status_code=status_code, details=details)


class BacklogServerError(BacklogApiError):
    """Backlog answered with a 5xx status."""


class BacklogNetworkError(BacklogApiError):
    """No response was received (connection failure, timeout)."""

    def __init__(self, message: str, *, details: Any = None) -> None:
        super().__init__("NETWORK_ERROR", message, details=details)
