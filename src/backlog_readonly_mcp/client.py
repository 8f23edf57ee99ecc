"""BacklogClient -- read-only async client for the Backlog REST API v2.

Only GET requests ever leave this client. Transient failures (HTTP 5xx
and 429) are retried with backoff; everything else is mapped onto the
:mod:`backlog_readonly_mcp.core.errors` hierarchy.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from backlog_readonly_mcp.core.errors import (
    BacklogApiError,
    BacklogAuthError,
    BacklogNetworkError,
    BacklogNotFoundError,
    BacklogRateLimitError,
    BacklogServerError,
    ReadOnlyViolationError,
)
from backlog_readonly_mcp.core.retry import RetryConfig, retry_with_backoff

if TYPE_CHECKING:
    from collections.abc import Mapping

    from backlog_readonly_mcp.config.schema import BacklogConfig

logger = logging.getLogger(__name__)


def encode_path_segment(value: str | int) -> str:
    """Percent-encode a value for use as a single URL path segment."""
    return quote(str(value), safe="")


def _query_value(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def build_query(params: Mapping[str, Any] | None) -> list[tuple[str, str]]:
    """Flatten params into query pairs.

    ``None`` values are dropped and sequences use Backlog's bracket
    convention (``statusId[]=1&statusId[]=2``).
    """
    pairs: list[tuple[str, str]] = []
    for key, value in (params or {}).items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            name = key if key.endswith("[]") else f"{key}[]"
            pairs.extend((name, _query_value(item)) for item in value)
        else:
            pairs.append((key, _query_value(value)))
    return pairs


def _parse_retry_after(headers: httpx.Headers) -> float | None:
    """Seconds to wait from Retry-After, else from X-RateLimit-Reset."""
    retry_after = headers.get("retry-after")
    if retry_after:
        try:
            return max(float(retry_after), 0.0)
        except ValueError:
            pass
    reset = headers.get("x-ratelimit-reset")
    if reset:
        try:
            return max(float(reset) - time.time(), 0.0)
        except ValueError:
            pass
    return None


def _error_from_response(response: httpx.Response) -> BacklogApiError:
    """Map an HTTP error response onto the error hierarchy."""
    status = response.status_code
    body: Any
    try:
        body = response.json()
    except ValueError:
        body = response.text or None

    code = f"HTTP_{status}"
    message = response.reason_phrase or f"HTTP {status}"
    if isinstance(body, dict):
        errors = body.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            first = errors[0]
            if first.get("code") is not None:
                code = str(first["code"])
            if first.get("message"):
                message = str(first["message"])

    if status == 429:
        return BacklogRateLimitError(
            code,
            message,
            retry_after=_parse_retry_after(response.headers),
            details=body,
        )
    if status in (401, 403):
        return BacklogAuthError(code, message, status_code=status, details=body)
    if status == 404:
        return BacklogNotFoundError(code, message, status_code=status, details=body)
    if status >= 500:
        return BacklogServerError(code, message, status_code=status, details=body)
    return BacklogApiError(code, message, status_code=status, details=body)


class BacklogClient:
    """Client for the Backlog REST API.

    Usage::

        async with BacklogClient(config) as client:
            projects = await client.get("/projects")
    """

    def __init__(
        self,
        config: BacklogConfig,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        retry: RetryConfig | None = None,
    ) -> None:
        self._config = config
        self._retry = retry or RetryConfig(max_retries=config.max_retries)
        self._http = httpx.AsyncClient(
            base_url=config.base_url,
            params={"apiKey": config.api_key},
            timeout=config.timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    @property
    def config(self) -> BacklogConfig:
        return self._config

    async def __aenter__(self) -> BacklogClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # -- Reads -----------------------------------------------------------------

    async def get(self, endpoint: str, params: Mapping[str, Any] | None = None) -> Any:
        """GET endpoint (relative to ``/api/v2``) and return decoded JSON."""
        query = build_query(params)

        async def _call() -> Any:
            return await self._send(endpoint, query)

        return await retry_with_backoff(_call, self._retry, on_retry=self._log_retry)

    async def request(
        self,
        method: str,
        endpoint: str,
        params: Mapping[str, Any] | None = None,
    ) -> Any:
        """Generic entry point; anything but GET is refused."""
        if method.upper() != "GET":
            raise ReadOnlyViolationError(_read_only_message(method))
        return await self.get(endpoint, params)

    async def _send(self, endpoint: str, query: list[tuple[str, str]]) -> Any:
        try:
            response = await self._http.get(endpoint, params=query)
        except httpx.TimeoutException as e:
            msg = f"Request to {endpoint} timed out after {self._config.timeout_seconds:g}s."
            raise BacklogNetworkError(msg, details=str(e)) from e
        except httpx.TransportError as e:
            msg = "A network error occurred. Check your connection and BACKLOG_DOMAIN."
            raise BacklogNetworkError(msg, details=str(e)) from e

        if response.status_code >= 400:
            raise _error_from_response(response)

        try:
            return response.json()
        except ValueError as e:
            msg = f"Backlog returned a response that is not JSON for {endpoint}."
            raise BacklogApiError(
                "INVALID_RESPONSE",
                msg,
                status_code=response.status_code,
                details=response.text[:500],
            ) from e

    def _log_retry(self, attempt: int, delay: float, error: Exception) -> None:
        if isinstance(error, BacklogRateLimitError):
            logger.warning(
                "Rate limited by Backlog; waiting %.0fs before retry %d/%d",
                delay,
                attempt,
                self._retry.max_retries,
            )
        else:
            logger.warning(
                "Request failed (%s); retrying in %.1fs (%d/%d)",
                error,
                delay,
                attempt,
                self._retry.max_retries,
            )

    # -- Writes (always refused) -----------------------------------------------

    async def post(self, *args: Any, **kwargs: Any) -> Any:
        raise ReadOnlyViolationError(_read_only_message("POST"))

    async def put(self, *args: Any, **kwargs: Any) -> Any:
        raise ReadOnlyViolationError(_read_only_message("PUT"))

    async def patch(self, *args: Any, **kwargs: Any) -> Any:
        raise ReadOnlyViolationError(_read_only_message("PATCH"))

    async def delete(self, *args: Any, **kwargs: Any) -> Any:
        raise ReadOnlyViolationError(_read_only_message("DELETE"))

    # -- Diagnostics -----------------------------------------------------------

    async def validate_api_key(self) -> bool:
        """Return True if the configured API key can read ``/users/myself``."""
        try:
            await self.get("/users/myself")
        except BacklogApiError as e:
            logger.warning("API key validation failed: %s", e)
            return False
        return True

    def config_info(self) -> dict[str, Any]:
        return {
            "domain": self._config.domain,
            "masked_api_key": self._config.masked_api_key(),
            "default_project": self._config.default_project,
        }


def _read_only_message(method: str) -> str:
    return f"This server is read-only; {method.upper()} requests are not allowed."
