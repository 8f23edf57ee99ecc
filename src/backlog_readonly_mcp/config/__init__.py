"""Configuration loading and validation."""

from backlog_readonly_mcp.config.loader import (
    load_config,
    parse_workspace_file,
    workspace_config_path,
)
from backlog_readonly_mcp.config.schema import BacklogConfig, LoggingConfig

__all__ = [
    "BacklogConfig",
    "LoggingConfig",
    "load_config",
    "parse_workspace_file",
    "workspace_config_path",
]
