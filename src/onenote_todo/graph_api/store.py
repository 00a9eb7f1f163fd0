"""The remote-store capability consumed by the sync engine.

:class:`TodoSyncEngine` only talks to this protocol.  The production
implementation is :class:`~onenote_todo.graph_api.onenote.AsyncOneNoteAPI`;
tests plug in an in-memory fake.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from onenote_todo.models import RemoteContainer


@runtime_checkable
class RemoteStore(Protocol):
    """Notebook / section / page operations scoped to one identity."""

    async def list_notebooks(self) -> list[RemoteContainer]:
        ...

    async def create_notebook(self, name: str) -> RemoteContainer:
        ...

    async def list_sections(self) -> list[RemoteContainer]:
        ...

    async def create_section(self, notebook_id: str, name: str) -> RemoteContainer:
        ...

    async def list_pages(self) -> list[RemoteContainer]:
        ...

    async def create_page(self, section_id: str, title: str) -> RemoteContainer:
        ...

    async def get_page_content(self, page_id: str, include_ids: bool = False) -> str:
        """Return the page's HTML, with OneNote element ids when *include_ids*."""
        ...

    async def patch_page_content(self, page_id: str, target_id: str, html: str) -> None:
        """Replace the children of element *target_id* with *html*.

        Raises :class:`~onenote_todo.errors.RemoteUpdateFailedError` when the
        store rejects the update.
        """
        ...
