"""When, and how long, to retry a Graph request.

Graph throttles with ``429`` and, for OneNote under load, ``503``; both
usually carry a ``Retry-After`` header.  ``500``/``502``/``504`` are
transient gateway failures.  Any transport-level failure (timeout, refused
or dropped connection, a server that disconnects mid-response) is retried
too.  Every other failure is final.
"""

from __future__ import annotations

import random

import httpx

THROTTLE_STATUSES = frozenset({429, 503})
SERVER_ERROR_STATUSES = frozenset({500, 502, 504})
_RETRYABLE_STATUSES = THROTTLE_STATUSES | SERVER_ERROR_STATUSES


def retry_reason(status_code: int | None) -> str:
    """Label used in logs and the ``retries_total`` metric."""
    if status_code is None:
        return "network_error"
    if status_code in THROTTLE_STATUSES:
        return "throttled"
    return "server_error"


def should_retry(
    status_code: int | None,
    exception: Exception | None,
    attempt: int,
    max_attempts: int,
) -> bool:
    """True when another attempt is allowed and could succeed.

    *attempt* is the zero-based index of the attempt that just failed.
    When *exception* is given it decides; otherwise *status_code* does.
    """
    if max_attempts - (attempt + 1) <= 0:
        return False
    if exception is not None:
        return isinstance(exception, httpx.TransportError)
    return status_code in _RETRYABLE_STATUSES


def compute_backoff(
    attempt: int,
    base: float = 1.0,
    maximum: float = 30.0,
    jitter: bool = True,
    retry_after: float | None = None,
) -> float:
    """Seconds to sleep before attempt ``attempt + 1``.

    A server-supplied *retry_after* is obeyed, floored at zero and capped
    at *maximum*.  Without one the delay doubles from *base* per attempt,
    up to *maximum*.  With *jitter* the result is drawn uniformly from the
    upper half of that delay.
    """
    if retry_after is None:
        ceiling = min(maximum, base * 2 ** attempt)
    else:
        ceiling = max(0.0, min(retry_after, maximum))
    if not jitter:
        return ceiling
    return random.uniform(ceiling / 2, ceiling)
