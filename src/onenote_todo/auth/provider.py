"""Access tokens for the current identity.

:class:`AuthSessionProvider` acquires tokens silently from the identity's
:class:`SessionTokenCache`.  MSAL transparently refreshes an expired access
token when a refresh token is cached; the refreshed tokens are written back
by the cache's access wrapper before the call returns.

When nothing usable is cached the provider fires the re-authentication
challenge supplied by the web layer (typically a redirect to the sign-in
endpoint) and raises :class:`AuthenticationRequiredError`.  Both always
happen together: a caller that swallows the error still leaves the user
headed to sign-in.
"""

from __future__ import annotations

import asyncio
import functools
from collections.abc import Callable, MutableMapping
from typing import Any

import msal

from onenote_todo.config import TodoSyncConfig
from onenote_todo.errors import AuthenticationRequiredError
from onenote_todo.observability import get_logger

from .token_cache import SessionTokenCache

log = get_logger("onenote_todo.auth")

Challenge = Callable[[str], None]
AppFactory = Callable[[TodoSyncConfig, SessionTokenCache], Any]


def confidential_app_factory(
    config: TodoSyncConfig,
    token_cache: SessionTokenCache,
) -> msal.ConfidentialClientApplication:
    """Build the MSAL web-app client bound to *token_cache*."""
    return msal.ConfidentialClientApplication(
        client_id=config.client_id,
        client_credential=config.client_secret,
        authority=config.authority,
        token_cache=token_cache.msal_cache,
    )


class AuthSessionProvider:
    """Hands out bearer tokens per identity.

    Parameters
    ----------
    config:
        Shared configuration (client registration, scopes).
    session_store:
        Mapping backing every identity's :class:`SessionTokenCache`.
    challenge:
        Called with the identity when interactive sign-in is needed.
    app_factory:
        Builds the MSAL client application for an identity's cache.
        Defaults to :func:`confidential_app_factory`.
    """

    def __init__(
        self,
        config: TodoSyncConfig,
        session_store: MutableMapping[str, Any],
        challenge: Challenge,
        *,
        app_factory: AppFactory | None = None,
    ) -> None:
        self._config = config
        self._session_store = session_store
        self._challenge = challenge
        self._app_factory = app_factory or confidential_app_factory

    async def get_access_token(self, identity: str) -> str:
        """Return a live access token for *identity*.

        Raises
        ------
        AuthenticationRequiredError
            After triggering the challenge, when no token could be obtained
            silently.
        """
        result = await asyncio.to_thread(self._acquire_silent, identity)
        if result and result.get("access_token"):
            return result["access_token"]

        msal_error = result.get("error") if result else None
        log.info(
            "Silent token acquisition failed, challenging user",
            extra={
                "extra_fields": {
                    "op": "get_access_token",
                    "identity": identity,
                    "msal_error": msal_error,
                }
            },
        )
        self._challenge(identity)
        raise AuthenticationRequiredError(
            "Authentication is required.",
            context={"identity": identity, "msal_error": msal_error},
        )

    def token_provider(self, identity: str) -> Callable[[], Any]:
        """Return a zero-argument coroutine function yielding *identity*'s token."""
        return functools.partial(self.get_access_token, identity)

    def sign_out(self, identity: str) -> None:
        """Drop the identity's cached tokens."""
        SessionTokenCache(identity, self._session_store).clear()
        log.info(
            "Signed out",
            extra={"extra_fields": {"op": "sign_out", "identity": identity}},
        )

    # -- internals ---------------------------------------------------------

    def _acquire_silent(self, identity: str) -> dict[str, Any] | None:
        """Blocking MSAL call; runs in a worker thread.

        Each call gets its own cache instance and client application, so
        concurrent calls for one identity never share in-memory MSAL state.
        """
        token_cache = SessionTokenCache(identity, self._session_store)
        app = self._app_factory(self._config, token_cache)
        with token_cache.access():
            accounts = app.get_accounts()
            if not accounts:
                return None
            return app.acquire_token_silent(self._config.scopes, account=accounts[0])
