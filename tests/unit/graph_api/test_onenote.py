"""Tests for AsyncOneNoteAPI against a mocked transport."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from onenote_todo.errors import (
    AuthenticationRequiredError,
    RemoteNetworkError,
    RemoteNotFoundError,
    RemoteUpdateFailedError,
    RemoteValidationError,
    RetryExhaustedError,
)
from onenote_todo.graph_api.onenote import AsyncOneNoteAPI
from onenote_todo.graph_api.store import RemoteStore
from onenote_todo.models import ContainerKind, RemoteContainer


def _agen(items):
    async def gen(*args, **kwargs):
        for item in items:
            yield item
    return gen


def make_api(paginate_items=None, **transport_attrs) -> tuple[AsyncOneNoteAPI, MagicMock]:
    transport = MagicMock()
    transport.request = AsyncMock(return_value={})
    transport.request_text = AsyncMock(return_value="")
    transport.send = AsyncMock()
    transport.close = AsyncMock()
    transport.paginate = MagicMock(side_effect=_agen(paginate_items or []))
    for name, value in transport_attrs.items():
        setattr(transport, name, value)
    return AsyncOneNoteAPI(transport), transport


def test_satisfies_remote_store_protocol():
    api, _ = make_api()
    assert isinstance(api, RemoteStore)


class TestListing:
    async def test_list_notebooks(self):
        api, transport = make_api([{"id": "nb-1", "displayName": "ToDoGraphDemo"}])

        result = await api.list_notebooks()

        assert result == [RemoteContainer("nb-1", "ToDoGraphDemo", ContainerKind.NOTEBOOK)]
        transport.paginate.assert_called_once_with(
            "/me/onenote/notebooks", params={"$select": "id,displayName"},
        )

    async def test_list_sections(self):
        api, transport = make_api([{"id": "s1", "displayName": "A"}, {"id": "s2", "displayName": "B"}])

        result = await api.list_sections()

        assert [s.id for s in result] == ["s1", "s2"]
        assert all(s.kind is ContainerKind.SECTION for s in result)
        assert transport.paginate.call_args.args[0] == "/me/onenote/sections"

    async def test_list_pages_reads_title(self):
        api, transport = make_api([{"id": "p1", "title": "ToDoGraphDemo: My To Dos"}])

        result = await api.list_pages()

        assert result == [RemoteContainer("p1", "ToDoGraphDemo: My To Dos", ContainerKind.PAGE)]
        assert transport.paginate.call_args.kwargs["params"] == {"$select": "id,title"}


class TestCreation:
    async def test_create_notebook(self):
        api, transport = make_api()
        transport.request.return_value = {"id": "nb-9", "displayName": "ToDoGraphDemo"}

        notebook = await api.create_notebook("ToDoGraphDemo")

        assert notebook == RemoteContainer("nb-9", "ToDoGraphDemo", ContainerKind.NOTEBOOK)
        transport.request.assert_awaited_once_with(
            "POST", "/me/onenote/notebooks", json={"displayName": "ToDoGraphDemo"},
        )

    async def test_create_section_under_notebook(self):
        api, transport = make_api()
        transport.request.return_value = {"id": "s-9", "displayName": "ToDoGraphDemo"}

        section = await api.create_section("nb-9", "ToDoGraphDemo")

        assert section.id == "s-9"
        transport.request.assert_awaited_once_with(
            "POST", "/me/onenote/notebooks/nb-9/sections", json={"displayName": "ToDoGraphDemo"},
        )

    async def test_create_page_posts_html_document(self):
        api, transport = make_api()
        transport.request.return_value = {"id": "p-9", "title": "ToDoGraphDemo: My To Dos"}

        page = await api.create_page("s-9", "ToDoGraphDemo: My To Dos")

        assert page.kind is ContainerKind.PAGE
        args, kwargs = transport.request.call_args
        assert args == ("POST", "/me/onenote/sections/s-9/pages")
        assert kwargs["headers"] == {"Content-Type": "text/html"}
        body = kwargs["content"].decode("utf-8")
        assert "<title>ToDoGraphDemo: My To Dos</title>" in body
        assert "<div><p>placeholder</p></div>" in body

    async def test_custom_page_body(self):
        transport = MagicMock()
        transport.request = AsyncMock(return_value={"id": "p", "title": "t"})
        api = AsyncOneNoteAPI(transport, page_body_html="<div><p>start here</p></div>")

        await api.create_page("s", "t")

        assert b"start here" in transport.request.call_args.kwargs["content"]


class TestContent:
    async def test_get_content_without_ids(self):
        api, transport = make_api()
        transport.request_text.return_value = "<html></html>"

        assert await api.get_page_content("p1") == "<html></html>"
        transport.request_text.assert_awaited_once_with(
            "GET", "/me/onenote/pages/p1/content",
            params=None, headers={"Accept": "text/html"},
        )

    async def test_get_content_with_ids(self):
        api, transport = make_api()

        await api.get_page_content("p1", include_ids=True)

        assert transport.request_text.call_args.kwargs["params"] == {"includeIDs": "true"}

    async def test_patch_sends_single_replace_command(self):
        api, transport = make_api()

        await api.patch_page_content("p1", "div:{a}{1}", '<p data-tag="to-do">x</p>')

        transport.send.assert_awaited_once_with(
            "PATCH",
            "/me/onenote/pages/p1/content",
            retry=False,
            json=[{"target": "div:{a}{1}", "action": "replace", "content": '<p data-tag="to-do">x</p>'}],
            headers={"Content-Type": "application/json"},
        )

    @pytest.mark.parametrize(
        "error,status",
        [
            (RemoteValidationError("bad target", context={"status_code": 400}), 400),
            (RemoteNotFoundError("gone", context={"status_code": 404}), 404),
            (RetryExhaustedError("busy", context={"last_status_code": 503}), 503),
            (RemoteNetworkError("Server disconnected without sending a response."), None),
        ],
    )
    async def test_patch_failure_becomes_update_failed(self, error, status):
        api, transport = make_api(send=AsyncMock(side_effect=error))

        with pytest.raises(RemoteUpdateFailedError) as exc_info:
            await api.patch_page_content("p1", "d1", "")

        assert exc_info.value.status_code == status
        assert exc_info.value.context["page_id"] == "p1"
        assert exc_info.value.context["target"] == "d1"
        assert exc_info.value.remote_message == error.message
        assert exc_info.value.cause is error

    async def test_patch_does_not_wrap_authentication_required(self):
        api, _ = make_api(send=AsyncMock(side_effect=AuthenticationRequiredError("sign in")))

        with pytest.raises(AuthenticationRequiredError):
            await api.patch_page_content("p1", "d1", "")


async def test_close_closes_transport():
    api, transport = make_api()
    await api.close()
    transport.close.assert_awaited_once()
