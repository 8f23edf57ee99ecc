"""Configuration loading: environment, workspace file, precedence rules.

Sources:
    1. Built-in defaults (Pydantic model defaults)
    2. System environment variables
    3. Workspace file: ``$BACKLOG_CONFIG_PATH`` or ``./.backlog-mcp.env``

Credentials (``BACKLOG_DOMAIN``, ``BACKLOG_API_KEY``) are taken from the
environment first, so a workspace file checked into a repository cannot
redirect them. Every other setting is taken from the workspace file first,
so each workspace can pick its own default project, retries and timeout.
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from backlog_readonly_mcp.core.errors import ConfigError

from .schema import (
    DEFAULT_CONFIG_FILENAME,
    DEFAULT_MAX_RETRIES,
    DEFAULT_TIMEOUT_MS,
    BacklogConfig,
    LoggingConfig,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

logger = logging.getLogger(__name__)

CONFIG_PATH_ENV = "BACKLOG_CONFIG_PATH"

_CREDENTIAL_KEYS = ("BACKLOG_DOMAIN", "BACKLOG_API_KEY")
_QUOTES = re.compile(r"^[\"']|[\"']$")
_SCHEME = re.compile(r"^https?://", re.IGNORECASE)

_MAX_RETRIES_RANGE = (0, 10)
_TIMEOUT_RANGE = (1_000, 300_000)


def workspace_config_path(environ: Mapping[str, str] | None = None) -> Path:
    """Return the workspace config file path.

    ``$BACKLOG_CONFIG_PATH`` wins when it is set and not blank.
    """
    env = os.environ if environ is None else environ
    explicit = env.get(CONFIG_PATH_ENV, "")
    if explicit.strip():
        return Path(explicit).expanduser()
    return Path(DEFAULT_CONFIG_FILENAME)


def parse_workspace_file(path: Path) -> dict[str, str]:
    """Parse a ``KEY=value`` file.

    Blank lines and ``#`` comments are skipped, values may contain ``=``,
    and one leading and one trailing quote are stripped from each value.

    Raises:
        OSError: If the file cannot be read.
    """
    values: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#") or "=" not in stripped:
            continue
        key, value = stripped.split("=", 1)
        key = key.strip()
        if not key:
            continue
        values[key] = _QUOTES.sub("", value.strip())
    return values


def _read_workspace(path: Path) -> dict[str, str]:
    """Read the workspace file, treating absence or read failure as empty."""
    if not path.is_file():
        logger.info("Workspace config file not found: %s", path)
        return {}
    try:
        values = parse_workspace_file(path)
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to load workspace config file %s: %s", path, e)
        return {}
    logger.info("Loaded workspace config file: %s", path)
    return values


def _first(*candidates: str | None) -> str | None:
    """Return the first candidate that is set and not blank."""
    for value in candidates:
        if value is not None and value.strip():
            return value.strip()
    return None


def _bounded_int(
    name: str,
    raw: str | None,
    default: int,
    bounds: tuple[int, int],
) -> int:
    """Parse raw as an int within bounds, warning and falling back otherwise."""
    if raw is None:
        return default
    low, high = bounds
    value: int | None
    try:
        value = int(raw)
    except ValueError:
        value = None
    if value is None or not low <= value <= high:
        logger.warning(
            "Invalid %s %r (expected %d-%d); using default %d",
            name,
            raw,
            low,
            high,
            default,
        )
        return default
    return value


def _normalise_domain(domain: str) -> str:
    return _SCHEME.sub("", domain.strip()).rstrip("/")


def load_config(
    path: str | Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> BacklogConfig:
    """Resolve and validate configuration.

    Args:
        path: Workspace file to read instead of the discovered one.
        environ: Environment mapping; defaults to ``os.environ``.

    Returns:
        Validated BacklogConfig instance.

    Raises:
        ConfigError: When domain or API key is missing, or validation fails.
    """
    env = os.environ if environ is None else environ
    config_path = Path(path).expanduser() if path is not None else workspace_config_path(env)
    workspace = _read_workspace(config_path)

    def env_first(key: str) -> str | None:
        return _first(env.get(key), workspace.get(key))

    def workspace_first(key: str) -> str | None:
        return _first(workspace.get(key), env.get(key))

    domain = env_first("BACKLOG_DOMAIN")
    api_key = env_first("BACKLOG_API_KEY")
    if not domain or not api_key:
        msg = (
            f"{' and '.join(_CREDENTIAL_KEYS)} must be set, either as "
            f"environment variables or in {config_path}."
        )
        raise ConfigError(msg)

    log_format = (workspace_first("BACKLOG_LOG_FORMAT") or "text").lower()
    data: dict[str, Any] = {
        "domain": _normalise_domain(domain),
        "api_key": api_key,
        "default_project": workspace_first("BACKLOG_DEFAULT_PROJECT"),
        "max_retries": _bounded_int(
            "BACKLOG_MAX_RETRIES",
            workspace_first("BACKLOG_MAX_RETRIES"),
            DEFAULT_MAX_RETRIES,
            _MAX_RETRIES_RANGE,
        ),
        "timeout": _bounded_int(
            "BACKLOG_TIMEOUT",
            workspace_first("BACKLOG_TIMEOUT"),
            DEFAULT_TIMEOUT_MS,
            _TIMEOUT_RANGE,
        ),
        "logging": LoggingConfig(
            level=workspace_first("BACKLOG_LOG_LEVEL") or "INFO",
            file=workspace_first("BACKLOG_LOG_FILE") or "",
            structured=log_format == "json",
        ),
        "config_path": config_path,
        "has_workspace_config": config_path.is_file(),
    }

    if not data["domain"]:
        msg = f"BACKLOG_DOMAIN is not a valid host name: {domain!r}"
        raise ConfigError(msg)

    try:
        config = BacklogConfig.model_validate(data)
    except ValidationError as e:
        msg = f"Configuration validation failed: {e}"
        raise ConfigError(msg) from e

    logger.info(
        "Configuration loaded: domain=%s api_key=%s default_project=%s "
        "max_retries=%d timeout=%dms source=%s",
        config.domain,
        "set" if config.api_key else "missing",
        config.default_project or "-",
        config.max_retries,
        config.timeout,
        "workspace + environment" if config.has_workspace_config else "environment",
    )
    return config
