"""Async HTTP transport for Microsoft Graph.

Each request goes through the same lifecycle:

1. Await the identity's token provider and attach ``Authorization: bearer``.
2. Send the request.
3. On ``2xx`` -- return the response.
4. On ``429`` / ``5xx`` / network error -- back off and retry.
5. On any other ``4xx`` -- raise the matching typed error immediately.
6. When attempts run out -- raise :class:`RetryExhaustedError`.

The token is fetched per attempt rather than baked into the client, so a
refresh that happens between retries is picked up and one transport is
never shared by two identities.
"""

from __future__ import annotations

import asyncio
import json as _json
import sys
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from typing import Any

import httpx

from onenote_todo.config import TodoSyncConfig
from onenote_todo.errors import (
    RemoteAuthError,
    RemoteNetworkError,
    RemoteNotFoundError,
    RemotePermissionError,
    RemoteValidationError,
    RetryExhaustedError,
)
from onenote_todo.observability import get_logger, resolve_metrics

from .retries import _RETRYABLE_STATUSES, compute_backoff, retry_reason, should_retry

log = get_logger("onenote_todo.transport")

TokenProvider = Callable[[], Awaitable[str]]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _parse_retry_after(response: httpx.Response) -> float | None:
    """Return the ``Retry-After`` header as seconds, or ``None``."""
    raw = response.headers.get("retry-after")
    if raw is None:
        return None
    try:
        return float(raw)
    except (ValueError, TypeError):
        return None


def _graph_error(response: httpx.Response) -> tuple[str, str, Any]:
    """Extract ``(code, message, body)`` from a Graph error response.

    Graph wraps failures as ``{"error": {"code": ..., "message": ...}}``;
    anything else falls back to the raw text.
    """
    try:
        body = response.json()
    except ValueError:
        body = {}
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("code", ""), error.get("message", ""), body
    return "", response.text[:500], body


def _raise_for_status(response: httpx.Response, method: str, path: str) -> None:
    """Raise the typed error for a non-retryable 4xx response."""
    status = response.status_code
    graph_code, graph_message, body = _graph_error(response)

    if status == 401:
        raise RemoteAuthError(
            message=f"Authentication failed on {method} {path}: {graph_message}",
            context={"status_code": status, "graph_code": graph_code},
        )
    if status == 403:
        raise RemotePermissionError(
            message=f"Permission denied on {method} {path}: {graph_message}",
            context={
                "status_code": status,
                "graph_code": graph_code,
                "operation": f"{method} {path}",
            },
        )
    if status == 404:
        raise RemoteNotFoundError(
            message=f"Resource not found on {method} {path}: {graph_message}",
            context={"status_code": status, "graph_code": graph_code, "path": path},
        )
    raise RemoteValidationError(
        message=f"Client error {status} on {method} {path}: {graph_message}",
        context={"status_code": status, "graph_code": graph_code, "body": body},
    )


def _dump_payload(
    method: str,
    url: str,
    payload: Any | None,
    response_status: int | None,
    response_body: Any | None,
    token: str | None = None,
) -> None:
    """Write a redacted request/response dump to stderr."""
    from onenote_todo.utils.redact import redact

    dump: dict[str, Any] = {"method": method, "url": url}
    if payload is not None:
        dump["request_body"] = payload
    if response_status is not None:
        dump["response_status"] = response_status
    if response_body is not None:
        dump["response_body"] = response_body
    print(_json.dumps(redact(dump, token), indent=2, default=str), file=sys.stderr)


# ---------------------------------------------------------------------------
# Transport
# ---------------------------------------------------------------------------

class AsyncGraphTransport:
    """Asynchronous Graph transport with per-request auth and retries.

    Parameters
    ----------
    config:
        Shared :class:`TodoSyncConfig`.
    token_provider:
        Zero-argument coroutine function returning a bearer token for the
        identity this transport serves.
    """

    def __init__(self, config: TodoSyncConfig, token_provider: TokenProvider) -> None:
        self._config = config
        self._token_provider = token_provider
        self._metrics = resolve_metrics(config.metrics)
        self._client = httpx.AsyncClient(
            base_url=config.base_url,
            headers={"Accept": "application/json"},
            timeout=httpx.Timeout(config.timeout_seconds),
            proxy=config.http_proxy,
        )

    # -- public API --------------------------------------------------------

    async def send(
        self,
        method: str,
        path: str,
        *,
        retry: bool = True,
        **kwargs: Any,
    ) -> httpx.Response:
        """Execute a request and return the successful :class:`httpx.Response`.

        Parameters
        ----------
        method:
            HTTP method.
        path:
            Path relative to ``base_url``, or an absolute Graph URL (as in
            ``@odata.nextLink``).
        retry:
            ``False`` limits the call to a single attempt.  Used for writes
            whose effect may already have landed.
        **kwargs:
            Forwarded to :meth:`httpx.AsyncClient.request`.

        Raises
        ------
        RemoteAuthError, RemotePermissionError, RemoteNotFoundError,
        RemoteValidationError
            On non-retryable 4xx responses.
        RetryExhaustedError
            When every attempt failed with a retryable status.
        RemoteNetworkError
            When every attempt failed at the network level.
        AuthenticationRequiredError
            Propagated from the token provider.
        """
        max_attempts = self._config.retry_max_attempts if retry else 1
        extra_headers: dict[str, str] = dict(kwargs.pop("headers", None) or {})
        payload = kwargs.get("json")
        last_status: int | None = None
        token = ""

        for attempt in range(max_attempts):
            token = await self._token_provider()
            headers = {**extra_headers, "Authorization": f"bearer {token}"}

            t0 = time.monotonic()
            try:
                response = await self._client.request(method, path, headers=headers, **kwargs)
            except httpx.TransportError as exc:
                last_status = None
                delay = self._on_network_error(method, path, exc, attempt, max_attempts)
                await asyncio.sleep(delay)
                continue
            elapsed_ms = (time.monotonic() - t0) * 1000

            last_status = response.status_code
            tags = {"method": method, "status": str(response.status_code)}
            self._metrics.increment("onenote_todo.requests_total", tags=tags)
            self._metrics.timing("onenote_todo.request_duration_ms", elapsed_ms, tags=tags)

            if self._config.debug_dump_payload:
                _dump_payload(
                    method, str(response.url), payload,
                    response.status_code, response.text[:1000], token=token,
                )

            if 200 <= response.status_code < 300:
                return response

            if response.status_code not in _RETRYABLE_STATUSES:
                _raise_for_status(response, method, path)

            if not should_retry(response.status_code, None, attempt, max_attempts):
                break

            retry_after = _parse_retry_after(response)
            log.warning(
                "Graph request will be retried",
                extra={
                    "extra_fields": {
                        "op": "request",
                        "method": method,
                        "path": path,
                        "status_code": response.status_code,
                        "retry_after": retry_after,
                        "attempt": attempt + 1,
                    }
                },
            )
            self._metrics.increment(
                "onenote_todo.retries_total",
                tags={"method": method, "reason": retry_reason(response.status_code)},
            )
            await asyncio.sleep(self._backoff(attempt, retry_after))

        raise RetryExhaustedError(
            message=(
                f"All {max_attempts} attempts exhausted for {method} {path} "
                f"(last status: {last_status})"
            ),
            context={"attempts": max_attempts, "last_status_code": last_status},
        )

    async def request(self, method: str, path: str, **kwargs: Any) -> dict:
        """Execute a request and return the parsed JSON body (``{}`` if empty)."""
        response = await self.send(method, path, **kwargs)
        if response.status_code == 204 or not response.content:
            return {}
        result: dict = response.json()
        return result

    async def request_text(self, method: str, path: str, **kwargs: Any) -> str:
        """Execute a request and return the decoded body text."""
        response = await self.send(method, path, **kwargs)
        return response.text

    async def paginate(self, path: str, **kwargs: Any) -> AsyncIterator[dict]:
        """Yield every item of a Graph collection, following ``@odata.nextLink``.

        The next link is absolute and already carries the query string, so
        *kwargs* (including ``params``) only apply to the first request.
        """
        data = await self.request("GET", path, **kwargs)
        while True:
            for item in data.get("value", []):
                yield item
            next_link = data.get("@odata.nextLink")
            if not next_link:
                break
            data = await self.request("GET", next_link)

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> AsyncGraphTransport:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    # -- internals ---------------------------------------------------------

    def _backoff(self, attempt: int, retry_after: float | None = None) -> float:
        return compute_backoff(
            attempt,
            base=self._config.retry_base_delay,
            maximum=self._config.retry_max_delay,
            jitter=self._config.retry_jitter,
            retry_after=retry_after,
        )

    def _on_network_error(
        self,
        method: str,
        path: str,
        exc: Exception,
        attempt: int,
        max_attempts: int,
    ) -> float:
        """Return the retry delay, or raise once attempts are exhausted."""
        self._metrics.increment(
            "onenote_todo.requests_total",
            tags={"method": method, "status": "error"},
        )
        log.warning(
            "Graph request network error",
            extra={
                "extra_fields": {
                    "op": "request",
                    "method": method,
                    "path": path,
                    "attempt": attempt + 1,
                    "error": str(exc),
                }
            },
        )
        if should_retry(None, exc, attempt, max_attempts):
            self._metrics.increment(
                "onenote_todo.retries_total",
                tags={"method": method, "reason": retry_reason(None)},
            )
            return self._backoff(attempt)
        raise RemoteNetworkError(
            message=f"Network error on {method} {path}: {exc}",
            context={"url": path, "attempt": attempt + 1},
            cause=exc,
        ) from exc
