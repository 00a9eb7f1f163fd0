"""Scrub secrets from payloads before they are printed.

Used by the transport's debug dump.  Three things are hidden:

* values under keys that look sensitive (``Authorization``,
  ``access_token``, ``client_secret``, ``client_assertion`` ...);
* ``bearer <token>`` fragments in any string, whatever the case;
* an explicitly supplied token, wherever it occurs.
"""

from __future__ import annotations

import re
from typing import Any

_SENSITIVE_KEY_RE = re.compile(
    r"token|secret|password|credential|authorization|cookie|assertion",
    re.IGNORECASE,
)
_BEARER_RE = re.compile(r"(bearer\s+)\S+", re.IGNORECASE)

_HIDDEN = "<redacted>"


def _is_sensitive(key: Any) -> bool:
    return isinstance(key, str) and _SENSITIVE_KEY_RE.search(key) is not None


def _scrub_text(text: str, token: str | None) -> str:
    if token and token in text:
        tail = token[-4:]
        mark = f"<redacted:...{tail}>" if len(token) > 4 else _HIDDEN
        text = text.replace(token, mark)
    return _BEARER_RE.sub(rf"\1{_HIDDEN}", text)


def _scrub(value: Any, token: str | None, sensitive: bool = False) -> Any:
    if sensitive:
        # Keep a partially masked string (e.g. "bearer <redacted>"), hide
        # everything else outright.
        if isinstance(value, str):
            masked = _scrub_text(value, token)
            return masked if masked != value else _HIDDEN
        return _HIDDEN
    if isinstance(value, dict):
        return {k: _scrub(v, token, _is_sensitive(k)) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_scrub(item, token) for item in value]
    if isinstance(value, str):
        return _scrub_text(value, token)
    if isinstance(value, (bytes, bytearray)):
        return f"<binary:{len(value)}_bytes>"
    return value


def redact(payload: dict, token: str | None = None) -> dict:
    """Return a scrubbed copy of *payload*; the input is left untouched.

    >>> redact({"Authorization": "bearer eyJ0eXAi"})
    {'Authorization': 'bearer <redacted>'}
    >>> redact({"access_token": "abc"})
    {'access_token': '<redacted>'}
    """
    return _scrub(payload, token)
