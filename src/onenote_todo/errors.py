"""Exceptions raised by onenote_todo.

All of them derive from :class:`TodoSyncError`, which pairs a stable
:class:`ErrorCode` with a readable message, a ``context`` dict of
structured details and, when wrapping another exception, its ``cause``.

Transport errors describe what Microsoft Graph (or the network) did.
Sync errors describe why a todo-list operation could not complete; those
are what web handlers are expected to catch.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Stable identifiers, one per concrete error class."""

    # Graph transport
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_ERROR = "AUTH_ERROR"
    PERMISSION_ERROR = "PERMISSION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    RETRY_EXHAUSTED = "RETRY_EXHAUSTED"
    NETWORK_ERROR = "NETWORK_ERROR"
    # Sync
    AUTHENTICATION_REQUIRED = "AUTHENTICATION_REQUIRED"
    SYNC_TARGET_MISSING = "SYNC_TARGET_MISSING"
    MALFORMED_DOCUMENT = "MALFORMED_DOCUMENT"
    SYNC_CREATION_TIMEOUT = "SYNC_CREATION_TIMEOUT"
    REMOTE_UPDATE_FAILED = "REMOTE_UPDATE_FAILED"
    ITEM_NOT_FOUND = "ITEM_NOT_FOUND"


class TodoSyncError(Exception):
    """Root of every onenote_todo exception.

    Attributes
    ----------
    code:
        An :class:`ErrorCode` member; plain strings are tolerated.
    message:
        Human-readable summary, also returned by ``str()``.
    context:
        Structured details.  Each subclass lists the keys it fills.
    cause:
        The wrapped lower-level exception, mirrored in ``__cause__``.
    """

    def __init__(
        self,
        code: str,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.context: dict[str, Any] = dict(context) if context else {}
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def __repr__(self) -> str:
        fields = [f"code={self.code!r}", f"message={self.message!r}"]
        if self.context:
            fields.append(f"context={self.context!r}")
        return f"{type(self).__name__}({', '.join(fields)})"


class _CodedError(TodoSyncError):
    """Shared constructor for subclasses with a fixed :class:`ErrorCode`."""

    default_code: ErrorCode = ErrorCode.VALIDATION_ERROR

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(self.default_code, message, context, cause)


# ---------------------------------------------------------------------------
# Remote API / transport errors
# ---------------------------------------------------------------------------

class RemoteValidationError(_CodedError):
    """Graph returned 400 (or another non-retryable 4xx).

    Context keys: ``status_code``, ``graph_code``, ``body``.
    """

    default_code = ErrorCode.VALIDATION_ERROR


class RemoteAuthError(_CodedError):
    """Graph returned 401 -- the bearer token was rejected.

    Context keys: ``status_code``, ``graph_code``.
    """

    default_code = ErrorCode.AUTH_ERROR


class RemotePermissionError(_CodedError):
    """Graph returned 403 -- the token lacks the required scope.

    Context keys: ``status_code``, ``graph_code``, ``operation``.
    """

    default_code = ErrorCode.PERMISSION_ERROR


class RemoteNotFoundError(_CodedError):
    """Graph returned 404.

    Context keys: ``status_code``, ``graph_code``, ``path``.
    """

    default_code = ErrorCode.NOT_FOUND


class RetryExhaustedError(_CodedError):
    """All retry attempts have been exhausted for a retryable request.

    Context keys: ``attempts``, ``last_status_code``.
    """

    default_code = ErrorCode.RETRY_EXHAUSTED


class RemoteNetworkError(_CodedError):
    """A transport-level failure occurred (timeout, DNS, connection reset).

    Context keys: ``url``, ``attempt``.
    """

    default_code = ErrorCode.NETWORK_ERROR


# ---------------------------------------------------------------------------
# Sync errors
# ---------------------------------------------------------------------------

class AuthenticationRequiredError(_CodedError):
    """No usable token exists for the identity.

    Raised only after the re-authentication challenge has been triggered.

    Context keys: ``identity``, ``msal_error``.
    """

    default_code = ErrorCode.AUTHENTICATION_REQUIRED


class SyncTargetMissingError(_CodedError):
    """An update was attempted before the synchronized page exists.

    Context keys: ``identity``, ``page_title``.
    """

    default_code = ErrorCode.SYNC_TARGET_MISSING


class MalformedDocumentError(_CodedError):
    """The page content lacks the container element or its id.

    Context keys: ``reason``.
    """

    default_code = ErrorCode.MALFORMED_DOCUMENT


class SyncCreationTimeoutError(_CodedError):
    """A freshly created page did not become visible within the poll budget.

    Context keys: ``page_title``, ``elapsed_seconds``, ``attempts``.
    """

    default_code = ErrorCode.SYNC_CREATION_TIMEOUT


class RemoteUpdateFailedError(_CodedError):
    """Graph rejected the partial page update.

    Context keys: ``page_id``, ``target``, ``status_code``,
    ``remote_message``.
    """

    default_code = ErrorCode.REMOTE_UPDATE_FAILED

    @property
    def status_code(self) -> int | None:
        return self.context.get("status_code")

    @property
    def remote_message(self) -> str | None:
        return self.context.get("remote_message")


class TodoItemNotFoundError(_CodedError):
    """No todo item matched the task text given to update or delete.

    Context keys: ``task``.
    """

    default_code = ErrorCode.ITEM_NOT_FOUND
