"""Synchronize a todo list with a single OneNote page.

The page titled ``config.page_title`` is the durable store of each user's
list.  :class:`TodoSyncEngine` reads it, writes it through a targeted
partial update, and creates it (with its section and notebook) the first
time the list is read.

Containers are located by exact title.  Newly created pages take a moment
to show up in page listings, so creation is followed by polling until the
page is visible or ``config.poll_timeout_seconds`` runs out.

Writes are read-modify-write without any lock on the remote side: two
concurrent saves for the same identity resolve as last writer wins.
"""

from __future__ import annotations

import asyncio
import time
import weakref
from collections.abc import Callable

import httpx

from onenote_todo.codec import decode, encode, find_anchor
from onenote_todo.config import TodoSyncConfig
from onenote_todo.errors import (
    AuthenticationRequiredError,
    SyncCreationTimeoutError,
    SyncTargetMissingError,
    TodoItemNotFoundError,
    TodoSyncError,
)
from onenote_todo.graph_api.store import RemoteStore
from onenote_todo.models import ContainerKind, RemoteContainer, TodoItem
from onenote_todo.observability import get_logger, resolve_metrics

log = get_logger("onenote_todo.sync")

StoreFactory = Callable[[str], RemoteStore]


def _match_title(containers: list[RemoteContainer], title: str) -> RemoteContainer | None:
    """First container whose title equals *title* exactly."""
    for container in containers:
        if container.title == title:
            return container
    return None


class TodoSyncEngine:
    """Reads and writes todo lists stored in OneNote.

    Parameters
    ----------
    config:
        Titles, poll budget and metrics hook.
    store_for:
        Returns the :class:`RemoteStore` for an identity, usually
        :meth:`ClientRegistry.get <onenote_todo.clients.ClientRegistry.get>`.
    """

    def __init__(self, config: TodoSyncConfig, store_for: StoreFactory) -> None:
        self._config = config
        self._store_for = store_for
        self._metrics = resolve_metrics(config.metrics)
        # An entry lives while some bootstrap for that identity holds or awaits it.
        self._bootstrap_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    # ------------------------------------------------------------------
    # List synchronization
    # ------------------------------------------------------------------

    async def fetch_list(self, identity: str) -> list[TodoItem]:
        """Return the identity's todo list, creating the page if needed."""
        t0 = time.monotonic()
        store = self._store_for(identity)

        page = await self._find_page(store)
        if page is None:
            page = await self._bootstrap(identity, store)

        items = decode(await store.get_page_content(page.id))

        self._metrics.timing(
            "onenote_todo.sync_duration_ms",
            (time.monotonic() - t0) * 1000,
            tags={"op": "fetch"},
        )
        log.debug(
            "Todo list fetched",
            extra={
                "extra_fields": {
                    "op": "fetch_list",
                    "identity": identity,
                    "page_id": page.id,
                    "items": len(items),
                }
            },
        )
        return items

    async def save_list(self, identity: str, items: list[TodoItem]) -> None:
        """Replace the synchronized page's list with *items*.

        Raises
        ------
        SyncTargetMissingError
            If the page does not exist; nothing is written.
        MalformedDocumentError
            If the page has no ``<div>`` anchor with an id.
        RemoteUpdateFailedError
            If Graph rejects the update.
        """
        t0 = time.monotonic()
        store = self._store_for(identity)

        page = await self._find_page(store)
        if page is None:
            raise SyncTargetMissingError(
                "Cannot update todo list: the synchronized OneNote page does not exist.",
                context={"identity": identity, "page_title": self._config.page_title},
            )

        # Element ids are only present when explicitly requested.
        content = await store.get_page_content(page.id, include_ids=True)
        anchor = find_anchor(content)
        await store.patch_page_content(page.id, anchor, encode(items))

        self._metrics.timing(
            "onenote_todo.sync_duration_ms",
            (time.monotonic() - t0) * 1000,
            tags={"op": "save"},
        )
        log.info(
            "Todo list saved",
            extra={
                "extra_fields": {
                    "op": "save_list",
                    "identity": identity,
                    "page_id": page.id,
                    "items": len(items),
                }
            },
        )

    # ------------------------------------------------------------------
    # Item operations
    # ------------------------------------------------------------------

    async def add_item(self, identity: str, task: str, done: bool = False) -> list[TodoItem]:
        """Append an item and return the saved list."""
        items = await self.fetch_list(identity)
        items.append(TodoItem(task=task, done=done))
        await self.save_list(identity, items)
        return items

    async def update_item(self, identity: str, task: str, done: bool) -> list[TodoItem]:
        """Set ``done`` on the first item whose text is *task*."""
        items = await self.fetch_list(identity)
        for item in items:
            if item.task == task:
                item.done = done
                break
        else:
            raise TodoItemNotFoundError(f"No todo item with task {task!r}", context={"task": task})
        await self.save_list(identity, items)
        return items

    async def delete_item(self, identity: str, task: str, done: bool) -> list[TodoItem]:
        """Remove the first item matching both *task* and *done*."""
        items = await self.fetch_list(identity)
        try:
            items.remove(TodoItem(task=task, done=done))
        except ValueError:
            raise TodoItemNotFoundError(
                f"No todo item with task {task!r}", context={"task": task},
            ) from None
        await self.save_list(identity, items)
        return items

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    async def _find_page(self, store: RemoteStore) -> RemoteContainer | None:
        return _match_title(await store.list_pages(), self._config.page_title)

    async def _bootstrap(self, identity: str, store: RemoteStore) -> RemoteContainer:
        """Create the page (and its ancestry) and wait until it is listed.

        Serialized per identity.  The page lookup is repeated under the lock
        because a concurrent caller may have finished creating it while we
        waited; the lock is held through polling so that caller's page is
        already visible when we look.  Separate processes are not covered.
        """
        lock = self._bootstrap_locks.get(identity)
        if lock is None:
            lock = asyncio.Lock()
            self._bootstrap_locks[identity] = lock

        async with lock:
            page = await self._find_page(store)
            if page is not None:
                return page

            section = await self._ensure_section(identity, store)
            await store.create_page(section.id, self._config.page_title)
            self._created(identity, ContainerKind.PAGE, self._config.page_title)
            return await self._wait_for_page(identity, store)

    async def _ensure_section(self, identity: str, store: RemoteStore) -> RemoteContainer:
        title = self._config.section_title
        section = _match_title(await store.list_sections(), title)
        if section is not None:
            return section
        notebook = await self._ensure_notebook(identity, store)
        section = await store.create_section(notebook.id, title)
        self._created(identity, ContainerKind.SECTION, title)
        return section

    async def _ensure_notebook(self, identity: str, store: RemoteStore) -> RemoteContainer:
        title = self._config.notebook_title
        notebook = _match_title(await store.list_notebooks(), title)
        if notebook is not None:
            return notebook
        notebook = await store.create_notebook(title)
        self._created(identity, ContainerKind.NOTEBOOK, title)
        return notebook

    async def _wait_for_page(self, identity: str, store: RemoteStore) -> RemoteContainer:
        """Poll the page listing until the new page appears.

        Remote and transport errors other than
        :class:`AuthenticationRequiredError` are treated as transient and
        retried; only running out of time is fatal.
        """
        title = self._config.page_title
        interval = self._config.poll_interval_seconds
        budget = self._config.poll_timeout_seconds
        start = time.monotonic()
        attempts = 0

        while True:
            attempts += 1
            self._metrics.increment("onenote_todo.poll_attempts_total")
            try:
                page = await self._find_page(store)
            except AuthenticationRequiredError:
                raise
            except (TodoSyncError, httpx.TransportError) as exc:
                log.warning(
                    "Transient error while waiting for new page",
                    extra={
                        "extra_fields": {
                            "op": "bootstrap_poll",
                            "identity": identity,
                            "attempt": attempts,
                            "error": str(exc),
                        }
                    },
                )
                page = None

            if page is not None:
                return page

            elapsed = time.monotonic() - start
            if elapsed >= budget:
                raise SyncCreationTimeoutError(
                    "Failed to create synchronized OneNote page: "
                    f"not visible after {elapsed:.1f}s.",
                    context={
                        "page_title": title,
                        "elapsed_seconds": elapsed,
                        "attempts": attempts,
                    },
                )
            await asyncio.sleep(min(interval, budget - elapsed))

    def _created(self, identity: str, kind: ContainerKind, title: str) -> None:
        self._metrics.increment(
            "onenote_todo.containers_created_total", tags={"kind": kind.value},
        )
        log.info(
            f"OneNote {kind.value} created",
            extra={
                "extra_fields": {
                    "op": "bootstrap",
                    "identity": identity,
                    "kind": kind.value,
                    "title": title,
                }
            },
        )
