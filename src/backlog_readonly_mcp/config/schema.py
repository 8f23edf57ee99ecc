"""Pydantic models for backlog-readonly-mcp configuration."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

from backlog_readonly_mcp.core.errors import ConfigError

DEFAULT_MAX_RETRIES = 3
DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_CONFIG_FILENAME = ".backlog-mcp.env"


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    file: str = ""
    structured: bool = False


class BacklogConfig(BaseModel):
    """Resolved configuration for one Backlog space."""

    domain: str
    api_key: str = Field(repr=False)
    default_project: str | None = None
    max_retries: int = Field(default=DEFAULT_MAX_RETRIES, ge=0, le=10)
    timeout: int = Field(default=DEFAULT_TIMEOUT_MS, ge=1_000, le=300_000)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    config_path: Path = Path(DEFAULT_CONFIG_FILENAME)
    has_workspace_config: bool = False

    @property
    def base_url(self) -> str:
        return f"https://{self.domain}/api/v2"

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000

    def masked_api_key(self) -> str:
        """Return the API key with everything but its ends hidden."""
        key = self.api_key
        if len(key) <= 8:
            return "*" * len(key)
        return key[:4] + "*" * (len(key) - 8) + key[-4:]

    def has_default_project(self) -> bool:
        return bool(self.default_project)

    def resolve_project_id_or_key(self, project_id_or_key: str | None = None) -> str:
        """Return the explicit project, falling back to the default project.

        Raises:
            ConfigError: If neither is available.
        """
        if project_id_or_key:
            return project_id_or_key
        if not self.default_project:
            msg = (
                "No project ID or key was given and no default project is "
                "configured. Set BACKLOG_DEFAULT_PROJECT or pass the project "
                "explicitly."
            )
            raise ConfigError(msg)
        return self.default_project

    def summary(self) -> dict[str, Any]:
        """Configuration overview that is safe to log or print."""
        return {
            "domain": self.domain,
            "masked_api_key": self.masked_api_key(),
            "default_project": self.default_project,
            "max_retries": self.max_retries,
            "timeout": self.timeout,
            "has_workspace_config": self.has_workspace_config,
            "config_path": str(self.config_path),
        }
