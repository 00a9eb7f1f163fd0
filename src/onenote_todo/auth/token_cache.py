"""Per-identity MSAL token cache persisted in a keyed session store.

A web process is stateless between requests, so MSAL's in-memory cache has
to be rebuilt from the session on every access and written back whenever
MSAL changes it (a new token, a refresh, an account removal).
:class:`SessionTokenCache` owns that protocol:

* :meth:`load` always deserializes from the store, even when the in-memory
  copy looks current, because another thread or process may have written.
* :meth:`persist` clears the dirty flag *before* writing, so a change that
  lands while the write is in flight marks the cache dirty again and is
  picked up by the next persist instead of being lost.
* :meth:`access` wraps one MSAL operation: load, run, persist-if-dirty.
  Operations for the same identity are serialized across every instance,
  so a refresh made inside one is stored before the next one loads.

Store keys are ``<identity>_TokenCache`` (bytes) and
``<identity>_TokenCache_state`` (str).
"""

from __future__ import annotations

import json
import threading
import weakref
from collections.abc import Iterator, MutableMapping
from contextlib import contextmanager
from typing import Any

import msal

from onenote_todo.observability import get_logger

log = get_logger("onenote_todo.token_cache")


class _ReadWriteLock:
    """Shared/exclusive lock.  Not reentrant.

    Waiting writers block new readers so a steady stream of loads cannot
    starve a persist.
    """

    def __init__(self) -> None:
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writer = False
        self._writers_waiting = 0

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writer or self._writers_waiting:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            self._writers_waiting += 1
            try:
                while self._writer or self._readers:
                    self._cond.wait()
            finally:
                self._writers_waiting -= 1
            self._writer = True
        try:
            yield
        finally:
            with self._cond:
                self._writer = False
                self._cond.notify_all()


class _IdentityLocks:
    """Locks shared by every cache instance of one identity.

    ``rw`` guards individual reads and writes of the stored blob;
    ``operation`` spans a whole :meth:`SessionTokenCache.access` block.
    """

    __slots__ = ("rw", "operation", "__weakref__")

    def __init__(self) -> None:
        self.rw = _ReadWriteLock()
        self.operation = threading.Lock()


# Sharded by identity; an entry lives as long as some cache holds it.
_locks: weakref.WeakValueDictionary[str, _IdentityLocks] = weakref.WeakValueDictionary()
_locks_guard = threading.Lock()


def _locks_for(identity: str) -> _IdentityLocks:
    with _locks_guard:
        locks = _locks.get(identity)
        if locks is None:
            locks = _IdentityLocks()
            _locks[identity] = locks
        return locks


class SessionTokenCache:
    """Thread-safe bridge between an MSAL cache and a session store.

    Parameters
    ----------
    identity:
        The signed-in user's stable id.  Every key is namespaced with it.
    session_store:
        Any mutable mapping that outlives the request, e.g. a server-side
        session.
    msal_cache:
        Cache instance to manage; a fresh :class:`msal.SerializableTokenCache`
        by default.
    """

    def __init__(
        self,
        identity: str,
        session_store: MutableMapping[str, Any],
        *,
        msal_cache: msal.SerializableTokenCache | None = None,
    ) -> None:
        self.identity = identity
        self.cache_key = f"{identity}_TokenCache"
        self.state_key = f"{self.cache_key}_state"
        self._session = session_store
        self._cache = msal_cache if msal_cache is not None else msal.SerializableTokenCache()
        self._locks = _locks_for(identity)
        self._lock = self._locks.rw
        self.load()

    @property
    def msal_cache(self) -> msal.SerializableTokenCache:
        """The managed MSAL cache, to hand to a client application."""
        return self._cache

    # -- persistence -------------------------------------------------------

    def load(self) -> None:
        """Replace the in-memory cache with the stored blob (shared lock)."""
        with self._lock.read():
            blob = self._session.get(self.cache_key)
            self._cache.deserialize(self._decode_blob(blob))

    def persist(self) -> None:
        """Write the in-memory cache to the store (exclusive lock)."""
        with self._lock.write():
            self._cache.has_state_changed = False
            self._session[self.cache_key] = self._cache.serialize().encode("utf-8")
        log.debug(
            "Token cache persisted",
            extra={"extra_fields": {"op": "persist", "identity": self.identity}},
        )

    def clear(self) -> None:
        """Forget every token and the auxiliary state for this identity."""
        with self._lock.write():
            self._session.pop(self.cache_key, None)
            self._session.pop(self.state_key, None)
            self._cache.deserialize(None)

    # -- auxiliary state ---------------------------------------------------

    def save_state(self, state: str) -> None:
        with self._lock.write():
            self._session[self.state_key] = state

    def read_state(self) -> str:
        with self._lock.read():
            return self._session.get(self.state_key) or ""

    # -- access hooks ------------------------------------------------------

    def before_access(self) -> None:
        """Make the in-memory cache reflect the latest persisted bytes."""
        self.load()

    def after_access(self) -> None:
        """Persist the cache if the last operation changed it."""
        if self._cache.has_state_changed:
            self.persist()

    @contextmanager
    def access(self) -> Iterator[msal.SerializableTokenCache]:
        """Run one MSAL operation against a freshly loaded cache.

        Changes are persisted on the way out even if the operation raised,
        so a refresh that succeeded before a later failure is kept.
        The identity's operation lock is held throughout, so a concurrent
        operation loads only after this one's changes are stored and cannot
        overwrite them with a stale copy.  Use one instance per operation;
        calling :meth:`load` on an instance inside another thread's
        :meth:`access` block discards that block's changes.
        """
        with self._locks.operation:
            self.before_access()
            try:
                yield self._cache
            finally:
                self.after_access()

    # -- internals ---------------------------------------------------------

    def _decode_blob(self, blob: Any) -> str | None:
        """Turn a stored blob into MSAL's serialized form; unusable means empty."""
        if blob is None:
            return None
        if isinstance(blob, (bytes, bytearray)):
            try:
                state = bytes(blob).decode("utf-8")
            except UnicodeDecodeError:
                self._warn_corrupt("undecodable bytes")
                return None
        elif isinstance(blob, str):
            state = blob
        else:
            self._warn_corrupt(f"unexpected type {type(blob).__name__}")
            return None

        if not state:
            return None
        try:
            parsed = json.loads(state)
        except ValueError:
            self._warn_corrupt("invalid JSON")
            return None
        if not isinstance(parsed, dict):
            self._warn_corrupt("not a JSON object")
            return None
        return state

    def _warn_corrupt(self, reason: str) -> None:
        log.warning(
            "Stored token cache is unusable, starting empty",
            extra={
                "extra_fields": {
                    "op": "load",
                    "identity": self.identity,
                    "reason": reason,
                }
            },
        )
