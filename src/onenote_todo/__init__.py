"""onenote_todo: keep a todo list in a OneNote page via Microsoft Graph.

Public re-exports
-----------------

* **Engine:** :class:`TodoSyncEngine`
* **Auth:** :class:`AuthSessionProvider`, :class:`SessionTokenCache`
* **Clients:** :class:`ClientRegistry`, :class:`AsyncOneNoteAPI`,
  :class:`RemoteStore`
* **Configuration:** :class:`TodoSyncConfig`
* **Errors:** every :class:`TodoSyncError` subclass and :class:`ErrorCode`
* **Models:** :class:`TodoItem`, :class:`RemoteContainer`, :class:`ContainerKind`

Usage::

    from onenote_todo import (
        AuthSessionProvider, ClientRegistry, TodoSyncConfig, TodoSyncEngine,
    )

    config = TodoSyncConfig(client_id="...", client_secret="...")
    auth = AuthSessionProvider(config, session_store, challenge=redirect_to_login)
    registry = ClientRegistry(config, auth)
    engine = TodoSyncEngine(config, registry.get)

    items = await engine.fetch_list(user_id)
"""

from __future__ import annotations

# ── Engine ─────────────────────────────────────────────────────────────
from onenote_todo.sync import TodoSyncEngine

# ── Auth ───────────────────────────────────────────────────────────────
from onenote_todo.auth import AuthSessionProvider, SessionTokenCache

# ── Clients ────────────────────────────────────────────────────────────
from onenote_todo.clients import ClientRegistry
from onenote_todo.graph_api import AsyncGraphTransport, AsyncOneNoteAPI, RemoteStore

# ── Configuration ───────────────────────────────────────────────────────
from onenote_todo.config import TodoSyncConfig

# ── Errors ──────────────────────────────────────────────────────────────
from onenote_todo.errors import (
    AuthenticationRequiredError,
    ErrorCode,
    MalformedDocumentError,
    RemoteAuthError,
    RemoteNetworkError,
    RemoteNotFoundError,
    RemotePermissionError,
    RemoteUpdateFailedError,
    RemoteValidationError,
    RetryExhaustedError,
    SyncCreationTimeoutError,
    SyncTargetMissingError,
    TodoItemNotFoundError,
    TodoSyncError,
)

# ── Models ──────────────────────────────────────────────────────────────
from onenote_todo.models import ContainerKind, PatchCommand, RemoteContainer, TodoItem

__all__ = [
    # Engine
    "TodoSyncEngine",
    # Auth
    "AuthSessionProvider",
    "SessionTokenCache",
    # Clients
    "ClientRegistry",
    "AsyncGraphTransport",
    "AsyncOneNoteAPI",
    "RemoteStore",
    # Configuration
    "TodoSyncConfig",
    # Errors
    "TodoSyncError",
    "ErrorCode",
    "AuthenticationRequiredError",
    "SyncTargetMissingError",
    "MalformedDocumentError",
    "SyncCreationTimeoutError",
    "RemoteUpdateFailedError",
    "TodoItemNotFoundError",
    "RemoteValidationError",
    "RemoteAuthError",
    "RemotePermissionError",
    "RemoteNotFoundError",
    "RetryExhaustedError",
    "RemoteNetworkError",
    # Models
    "TodoItem",
    "RemoteContainer",
    "ContainerKind",
    "PatchCommand",
]
