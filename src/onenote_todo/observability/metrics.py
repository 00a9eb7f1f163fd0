"""Pluggable metrics for onenote_todo.

Pass any object with ``increment`` and ``timing`` methods as
``TodoSyncConfig(metrics=...)`` to forward data points to StatsD,
Prometheus or similar.  Names emitted:

================================================  =========  ===============
name                                              kind       tags
================================================  =========  ===============
``onenote_todo.requests_total``                   counter    method, status
``onenote_todo.retries_total``                    counter    method, reason
``onenote_todo.request_duration_ms``              timing     method, status
``onenote_todo.containers_created_total``         counter    kind
``onenote_todo.poll_attempts_total``              counter
``onenote_todo.sync_duration_ms``                 timing     op
================================================  =========  ===============
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

Tags = Optional[dict[str, str]]


@runtime_checkable
class MetricsHook(Protocol):
    """Structural type of a metrics backend."""

    def increment(self, name: str, value: int = 1, tags: Tags = None) -> None:
        """Add *value* to counter *name*."""

    def timing(self, name: str, ms: float, tags: Tags = None) -> None:
        """Record a duration of *ms* milliseconds under *name*."""


class NoopMetricsHook:
    """Backend used when none is configured; drops everything."""

    __slots__ = ()

    def increment(self, name: str, value: int = 1, tags: Tags = None) -> None:
        return None

    def timing(self, name: str, ms: float, tags: Tags = None) -> None:
        return None


def resolve_metrics(metrics: Any | None) -> MetricsHook:
    """*metrics* itself, or a :class:`NoopMetricsHook` stand-in for ``None``."""
    if metrics is None:
        return NoopMetricsHook()
    return metrics
