"""Core errors, retry and logging utilities."""

from backlog_readonly_mcp.core.errors import (
    BacklogApiError,
    BacklogAuthError,
    BacklogMcpError,
    BacklogNetworkError,
    BacklogNotFoundError,
    BacklogRateLimitError,
    BacklogServerError,
    ConfigError,
    ReadOnlyViolationError,
    ToolError,
    ToolNotFoundError,
)
from backlog_readonly_mcp.core.retry import RetryConfig, is_retryable, retry_with_backoff

__all__ = [
    "BacklogApiError",
    "BacklogAuthError",
    "BacklogMcpError",
    "BacklogNetworkError",
    "BacklogNotFoundError",
    "BacklogRateLimitError",
    "BacklogServerError",
    "ConfigError",
    "ReadOnlyViolationError",
    "RetryConfig",
    "ToolError",
    "ToolNotFoundError",
    "is_retryable",
    "retry_with_backoff",
]
