"""onenote_todo.graph_api -- Microsoft Graph transport and OneNote endpoints.

* :mod:`.retries` -- retry decisions and backoff.
* :mod:`.transport` -- async HTTP transport with per-request bearer auth.
* :mod:`.store` -- the :class:`RemoteStore` protocol the sync engine uses.
* :mod:`.onenote` -- OneNote notebooks / sections / pages wrappers.
"""

from __future__ import annotations

from .onenote import AsyncOneNoteAPI
from .retries import compute_backoff, retry_reason, should_retry
from .store import RemoteStore
from .transport import AsyncGraphTransport, TokenProvider

__all__ = [
    "AsyncGraphTransport",
    "AsyncOneNoteAPI",
    "RemoteStore",
    "TokenProvider",
    "compute_backoff",
    "retry_reason",
    "should_retry",
]
