"""Configuration for onenote_todo.

:class:`TodoSyncConfig` captures every tuneable knob: the MSAL application
registration, the Graph endpoint, the titles of the synchronized notebook,
section and page, the bootstrap poll budget, and the transport's retry and
HTTP settings.  One instance is shared by the auth provider, the client
registry and the sync engine.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urlsplit

DEFAULT_SCOPES: list[str] = ["Notes.ReadWrite"]
"""Delegated Graph scopes needed to read and write the user's notebooks."""

DEFAULT_NOTEBOOK_TITLE = "ToDoGraphDemo"
DEFAULT_SECTION_TITLE = "ToDoGraphDemo"
DEFAULT_PAGE_TITLE = "ToDoGraphDemo: My To Dos"

_LOCAL_HOSTS = ("localhost", "127.0.0.1", "::1")
_NON_NEGATIVE = (
    "poll_interval_seconds",
    "poll_timeout_seconds",
    "retry_base_delay",
    "retry_max_delay",
)


@dataclass
class TodoSyncConfig:
    """Complete configuration for the todo synchronizer.

    Parameters
    ----------
    client_id:
        Application (client) id registered with the identity provider.
    client_secret:
        Client secret shared with the identity provider.  Never logged.
    authority:
        MSAL authority URL.
    scopes:
        Scopes requested during silent token acquisition.
    base_url:
        Graph API root.  Override for proxies or tests.
    notebook_title, section_title, page_title:
        Exact titles used to locate (or create) the synchronized containers.
    page_placeholder_html:
        Body of a freshly created page.  Must contain a ``<div>`` so that
        the first update has an anchor to target.
    poll_interval_seconds:
        Delay between page-list attempts while waiting for a newly created
        page to become visible.
    poll_timeout_seconds:
        Wall-clock budget for that wait.
    retry_max_attempts:
        Maximum attempts per request for retryable HTTP errors.
    retry_base_delay:
        Base delay (seconds) for exponential backoff.
    retry_max_delay:
        Upper cap (seconds) on computed backoff delay.
    retry_jitter:
        Randomly scale backoff intervals to 50-100 %.
    timeout_seconds:
        HTTP request timeout in seconds.
    http_proxy:
        Optional HTTP/HTTPS proxy URL.
    metrics:
        Optional :class:`~onenote_todo.observability.MetricsHook`.
    debug_dump_payload:
        Write redacted request/response dumps to *stderr*.
    """

    # ── Identity provider ───────────────────────────────────────────────
    client_id: str = ""

    client_secret: str = ""

    authority: str = "https://login.microsoftonline.com/common"

    scopes: list[str] = field(default_factory=lambda: list(DEFAULT_SCOPES))

    # ── Graph ───────────────────────────────────────────────────────────
    base_url: str = "https://graph.microsoft.com/v1.0"

    # ── Synchronized containers ─────────────────────────────────────────
    notebook_title: str = DEFAULT_NOTEBOOK_TITLE

    section_title: str = DEFAULT_SECTION_TITLE

    page_title: str = DEFAULT_PAGE_TITLE

    page_placeholder_html: str = "<div><p>placeholder</p></div>"

    # ── Bootstrap polling ───────────────────────────────────────────────
    poll_interval_seconds: float = 0.5

    poll_timeout_seconds: float = 10.0

    # ── Retry ───────────────────────────────────────────────────────────
    retry_max_attempts: int = 4

    retry_base_delay: float = 1.0

    retry_max_delay: float = 30.0

    retry_jitter: bool = True

    # ── HTTP ────────────────────────────────────────────────────────────
    timeout_seconds: float = 30.0

    http_proxy: str | None = None

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    debug_dump_payload: bool = False

    def __post_init__(self) -> None:
        """Reject settings that would leak tokens or stall the engine."""
        url = urlsplit(self.base_url)
        if url.scheme == "http" and url.hostname not in _LOCAL_HOSTS:
            raise ValueError(
                f"base_url uses insecure HTTP for non-local host '{url.hostname}'. "
                "Bearer tokens require HTTPS; plain HTTP is only allowed for localhost."
            )
        if not self.page_title:
            raise ValueError("page_title must not be empty")
        if "<div" not in self.page_placeholder_html:
            raise ValueError("page_placeholder_html must contain a <div> container")

        for name in _NON_NEGATIVE:
            value = getattr(self, name)
            if value < 0:
                raise ValueError(f"{name} must be >= 0, got {value}")
        if self.retry_max_attempts < 1:
            raise ValueError(f"retry_max_attempts must be >= 1, got {self.retry_max_attempts}")
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be > 0, got {self.timeout_seconds}")

    def __repr__(self) -> str:
        """Show every field, with ``client_secret`` reduced to its last 4 characters."""
        shown = []
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if f.name == "client_secret":
                shown.append(f"client_secret='{_mask(value)}'")
            else:
                shown.append(f"{f.name}={value!r}")
        return f"{type(self).__name__}({', '.join(shown)})"


def _mask(secret: str) -> str:
    return f"...{secret[-4:]}" if len(secret) >= 4 else "****"
