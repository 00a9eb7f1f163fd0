"""OneNote endpoint wrappers for Microsoft Graph.

:class:`AsyncOneNoteAPI` implements :class:`~onenote_todo.graph_api.store.RemoteStore`
on top of :class:`AsyncGraphTransport`.  All HTTP concerns (auth header,
retries, error mapping) stay in the transport; this layer only knows the
OneNote URL layout and payload shapes.
"""

from __future__ import annotations

from onenote_todo.codec import build_page_html
from onenote_todo.errors import (
    RemoteAuthError,
    RemoteNetworkError,
    RemoteNotFoundError,
    RemotePermissionError,
    RemoteUpdateFailedError,
    RemoteValidationError,
    RetryExhaustedError,
)
from onenote_todo.models import ContainerKind, PatchCommand, RemoteContainer

from .transport import AsyncGraphTransport

_UPDATE_FAILURES = (
    RemoteAuthError,
    RemoteNetworkError,
    RemoteNotFoundError,
    RemotePermissionError,
    RemoteValidationError,
    RetryExhaustedError,
)


class AsyncOneNoteAPI:
    """OneNote notebooks, sections and pages of the signed-in user.

    Parameters
    ----------
    transport:
        An :class:`AsyncGraphTransport` bound to a single identity.
    page_body_html:
        Body markup for pages created by :meth:`create_page`.
    """

    def __init__(
        self,
        transport: AsyncGraphTransport,
        page_body_html: str = "<div><p>placeholder</p></div>",
    ) -> None:
        self._transport = transport
        self._page_body_html = page_body_html

    # -- notebooks ---------------------------------------------------------

    async def list_notebooks(self) -> list[RemoteContainer]:
        return [
            RemoteContainer.from_graph(ContainerKind.NOTEBOOK, item)
            async for item in self._transport.paginate(
                "/me/onenote/notebooks", params={"$select": "id,displayName"},
            )
        ]

    async def create_notebook(self, name: str) -> RemoteContainer:
        data = await self._transport.request(
            "POST", "/me/onenote/notebooks", json={"displayName": name},
        )
        return RemoteContainer.from_graph(ContainerKind.NOTEBOOK, data)

    # -- sections ----------------------------------------------------------

    async def list_sections(self) -> list[RemoteContainer]:
        return [
            RemoteContainer.from_graph(ContainerKind.SECTION, item)
            async for item in self._transport.paginate(
                "/me/onenote/sections", params={"$select": "id,displayName"},
            )
        ]

    async def create_section(self, notebook_id: str, name: str) -> RemoteContainer:
        data = await self._transport.request(
            "POST",
            f"/me/onenote/notebooks/{notebook_id}/sections",
            json={"displayName": name},
        )
        return RemoteContainer.from_graph(ContainerKind.SECTION, data)

    # -- pages -------------------------------------------------------------

    async def list_pages(self) -> list[RemoteContainer]:
        return [
            RemoteContainer.from_graph(ContainerKind.PAGE, item)
            async for item in self._transport.paginate(
                "/me/onenote/pages", params={"$select": "id,title"},
            )
        ]

    async def create_page(self, section_id: str, title: str) -> RemoteContainer:
        """Create a page in *section_id*.

        The page endpoint takes a full XHTML document rather than JSON; the
        title comes from its ``<title>`` element.
        """
        data = await self._transport.request(
            "POST",
            f"/me/onenote/sections/{section_id}/pages",
            content=build_page_html(title, self._page_body_html).encode("utf-8"),
            headers={"Content-Type": "text/html"},
        )
        return RemoteContainer.from_graph(ContainerKind.PAGE, data)

    async def get_page_content(self, page_id: str, include_ids: bool = False) -> str:
        params = {"includeIDs": "true"} if include_ids else None
        return await self._transport.request_text(
            "GET",
            f"/me/onenote/pages/{page_id}/content",
            params=params,
            headers={"Accept": "text/html"},
        )

    async def patch_page_content(self, page_id: str, target_id: str, html: str) -> None:
        """Replace the content of element *target_id* on the page.

        The call is made exactly once: a failed replace may still have been
        applied server-side, so retrying is left to the caller.
        """
        command = PatchCommand(target=target_id, content=html)
        try:
            await self._transport.send(
                "PATCH",
                f"/me/onenote/pages/{page_id}/content",
                retry=False,
                json=[command.to_dict()],
                headers={"Content-Type": "application/json"},
            )
        except _UPDATE_FAILURES as exc:
            status = exc.context.get("status_code", exc.context.get("last_status_code"))
            raise RemoteUpdateFailedError(
                message=f"Failed to update page {page_id}: {exc.message}",
                context={
                    "page_id": page_id,
                    "target": target_id,
                    "status_code": status,
                    "remote_message": exc.message,
                },
                cause=exc,
            ) from exc

    # -- lifecycle ---------------------------------------------------------

    async def close(self) -> None:
        await self._transport.close()
