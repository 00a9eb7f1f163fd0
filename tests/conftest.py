"""Shared test fixtures for the onenote_todo test suite."""

from __future__ import annotations

import asyncio
import itertools
import re

import pytest

from onenote_todo.config import TodoSyncConfig
from onenote_todo.models import ContainerKind, RemoteContainer

_ID_ATTR_RE = re.compile(r'\s+id="[^"]*"')


class FakeOneNote:
    """In-memory :class:`RemoteStore` with eventually consistent page listings.

    A page created through :meth:`create_page` stays out of
    :meth:`list_pages` results for ``visibility_delay`` listings.  Every
    method yields to the event loop once so concurrent callers interleave.
    """

    def __init__(self, visibility_delay: int = 0) -> None:
        self.visibility_delay = visibility_delay
        self.notebooks: list[RemoteContainer] = []
        self.sections: list[RemoteContainer] = []
        self.pages: list[RemoteContainer] = []
        self.section_parent: dict[str, str] = {}
        self.page_parent: dict[str, str] = {}
        self.bodies: dict[str, str] = {}
        self.patches: list[tuple[str, str, str]] = []
        self.calls: list[str] = []
        self.errors_after_create: list[Exception] = []
        self.patch_error: Exception | None = None
        self._hidden: dict[str, int] = {}
        self._created_page = False
        self._ids = itertools.count(1)

    # -- helpers for tests -------------------------------------------------

    def add_page(self, title: str, body: str) -> RemoteContainer:
        page = RemoteContainer(f"page-{next(self._ids)}", title, ContainerKind.PAGE)
        self.pages.append(page)
        self.bodies[page.id] = body
        return page

    def titles(self, kind: ContainerKind) -> list[str]:
        containers = {
            ContainerKind.NOTEBOOK: self.notebooks,
            ContainerKind.SECTION: self.sections,
            ContainerKind.PAGE: self.pages,
        }[kind]
        return [c.title for c in containers]

    # -- RemoteStore -------------------------------------------------------

    async def list_notebooks(self) -> list[RemoteContainer]:
        self.calls.append("list_notebooks")
        await asyncio.sleep(0)
        return list(self.notebooks)

    async def create_notebook(self, name: str) -> RemoteContainer:
        self.calls.append("create_notebook")
        await asyncio.sleep(0)
        notebook = RemoteContainer(f"nb-{next(self._ids)}", name, ContainerKind.NOTEBOOK)
        self.notebooks.append(notebook)
        return notebook

    async def list_sections(self) -> list[RemoteContainer]:
        self.calls.append("list_sections")
        await asyncio.sleep(0)
        return list(self.sections)

    async def create_section(self, notebook_id: str, name: str) -> RemoteContainer:
        self.calls.append("create_section")
        await asyncio.sleep(0)
        section = RemoteContainer(f"sec-{next(self._ids)}", name, ContainerKind.SECTION)
        self.sections.append(section)
        self.section_parent[section.id] = notebook_id
        return section

    async def list_pages(self) -> list[RemoteContainer]:
        self.calls.append("list_pages")
        await asyncio.sleep(0)
        if self._created_page and self.errors_after_create:
            raise self.errors_after_create.pop(0)
        visible = []
        for page in self.pages:
            if self._hidden.get(page.id, 0) > 0:
                self._hidden[page.id] -= 1
                continue
            visible.append(page)
        return visible

    async def create_page(self, section_id: str, title: str) -> RemoteContainer:
        self.calls.append("create_page")
        await asyncio.sleep(0)
        page = self.add_page(title, f'<div id="div:{{{next(self._ids)}}}"><p>placeholder</p></div>')
        self.page_parent[page.id] = section_id
        self._hidden[page.id] = self.visibility_delay
        self._created_page = True
        return page

    async def get_page_content(self, page_id: str, include_ids: bool = False) -> str:
        self.calls.append("get_page_content_ids" if include_ids else "get_page_content")
        await asyncio.sleep(0)
        body = self.bodies[page_id]
        if not include_ids:
            body = _ID_ATTR_RE.sub("", body)
        return f"<html><head><title>t</title></head><body>{body}</body></html>"

    async def patch_page_content(self, page_id: str, target_id: str, html: str) -> None:
        self.calls.append("patch")
        await asyncio.sleep(0)
        if self.patch_error is not None:
            raise self.patch_error
        self.patches.append((page_id, target_id, html))
        self.bodies[page_id] = f'<div id="{target_id}">{html}</div>'


class RecordingMetrics:
    """Metrics hook that keeps every data point."""

    def __init__(self) -> None:
        self.counters: list[tuple[str, int, dict | None]] = []
        self.timings: list[tuple[str, float, dict | None]] = []

    def increment(self, name: str, value: int = 1, tags: dict | None = None) -> None:
        self.counters.append((name, value, tags))

    def timing(self, name: str, ms: float, tags: dict | None = None) -> None:
        self.timings.append((name, ms, tags))

    def count(self, name: str) -> int:
        return sum(value for n, value, _ in self.counters if n == name)


@pytest.fixture
def config() -> TodoSyncConfig:
    """Fast, deterministic configuration."""
    return TodoSyncConfig(
        client_id="client-id",
        client_secret="client-secret-9876",
        poll_interval_seconds=0.0,
        poll_timeout_seconds=1.0,
        retry_max_attempts=3,
        retry_base_delay=0.0,
        retry_max_delay=0.0,
        retry_jitter=False,
    )


@pytest.fixture
def fake_store() -> FakeOneNote:
    return FakeOneNote()


@pytest.fixture
def metrics() -> RecordingMetrics:
    return RecordingMetrics()


@pytest.fixture
def make_store():
    """Factory for additional :class:`FakeOneNote` instances."""
    return FakeOneNote
