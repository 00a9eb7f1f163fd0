"""Tests for the error hierarchy."""

from __future__ import annotations

import pytest

from onenote_todo import errors
from onenote_todo.errors import (
    ErrorCode,
    RemoteUpdateFailedError,
    SyncCreationTimeoutError,
    TodoSyncError,
)

_SUBCLASSES = [
    (errors.RemoteValidationError, ErrorCode.VALIDATION_ERROR),
    (errors.RemoteAuthError, ErrorCode.AUTH_ERROR),
    (errors.RemotePermissionError, ErrorCode.PERMISSION_ERROR),
    (errors.RemoteNotFoundError, ErrorCode.NOT_FOUND),
    (errors.RetryExhaustedError, ErrorCode.RETRY_EXHAUSTED),
    (errors.RemoteNetworkError, ErrorCode.NETWORK_ERROR),
    (errors.AuthenticationRequiredError, ErrorCode.AUTHENTICATION_REQUIRED),
    (errors.SyncTargetMissingError, ErrorCode.SYNC_TARGET_MISSING),
    (errors.MalformedDocumentError, ErrorCode.MALFORMED_DOCUMENT),
    (errors.SyncCreationTimeoutError, ErrorCode.SYNC_CREATION_TIMEOUT),
    (errors.RemoteUpdateFailedError, ErrorCode.REMOTE_UPDATE_FAILED),
    (errors.TodoItemNotFoundError, ErrorCode.ITEM_NOT_FOUND),
]


@pytest.mark.parametrize("cls,code", _SUBCLASSES)
def test_subclass_carries_code(cls, code):
    err = cls("something broke", context={"k": "v"})
    assert isinstance(err, TodoSyncError)
    assert err.code is code
    assert err.message == "something broke"
    assert str(err) == "something broke"
    assert err.context == {"k": "v"}


def test_context_defaults_to_empty_dict():
    assert SyncCreationTimeoutError("late").context == {}


def test_cause_is_chained():
    root = ConnectionError("reset")
    err = errors.RemoteNetworkError("net", cause=root)
    assert err.cause is root
    assert err.__cause__ is root


def test_repr_includes_code_and_context():
    text = repr(SyncCreationTimeoutError("late", context={"attempts": 3}))
    assert text.startswith("SyncCreationTimeoutError(")
    assert "SYNC_CREATION_TIMEOUT" in text
    assert "'attempts': 3" in text


def test_update_failed_accessors():
    err = RemoteUpdateFailedError("no", context={"status_code": 400, "remote_message": "bad"})
    assert err.status_code == 400
    assert err.remote_message == "bad"
    assert RemoteUpdateFailedError("no").status_code is None


def test_error_code_is_str():
    assert ErrorCode.MALFORMED_DOCUMENT == "MALFORMED_DOCUMENT"
