"""Per-identity registry of authenticated OneNote clients.

Each identity gets its own :class:`AsyncOneNoteAPI` whose transport pulls
tokens for that identity only.  Handles are reused across requests and
dropped on sign-out; one handle is never shared between identities.
"""

from __future__ import annotations

from onenote_todo.auth.provider import AuthSessionProvider
from onenote_todo.config import TodoSyncConfig
from onenote_todo.graph_api.onenote import AsyncOneNoteAPI
from onenote_todo.graph_api.transport import AsyncGraphTransport
from onenote_todo.observability import get_logger

log = get_logger("onenote_todo.clients")


class ClientRegistry:
    """Creates, caches and evicts per-identity OneNote clients."""

    def __init__(self, config: TodoSyncConfig, auth: AuthSessionProvider) -> None:
        self._config = config
        self._auth = auth
        self._clients: dict[str, AsyncOneNoteAPI] = {}

    def get(self, identity: str) -> AsyncOneNoteAPI:
        """Return the client for *identity*, creating it on first use."""
        client = self._clients.get(identity)
        if client is None:
            transport = AsyncGraphTransport(self._config, self._auth.token_provider(identity))
            client = AsyncOneNoteAPI(transport, page_body_html=self._config.page_placeholder_html)
            self._clients[identity] = client
            log.debug(
                "Created OneNote client",
                extra={"extra_fields": {"op": "client_create", "identity": identity}},
            )
        return client

    def __contains__(self, identity: str) -> bool:
        return identity in self._clients

    async def evict(self, identity: str) -> None:
        """Close and forget the client for *identity*, if any."""
        client = self._clients.pop(identity, None)
        if client is not None:
            await client.close()

    async def sign_out(self, identity: str) -> None:
        """Evict the identity's client and clear its cached tokens."""
        await self.evict(identity)
        self._auth.sign_out(identity)

    async def aclose(self) -> None:
        """Close every cached client."""
        clients, self._clients = self._clients, {}
        for client in clients.values():
            await client.close()

    async def __aenter__(self) -> ClientRegistry:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()
