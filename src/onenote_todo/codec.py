"""Translation between todo lists and OneNote page markup.

OneNote renders a to-do checkbox as a paragraph tagged with
``data-tag="to-do"`` (unchecked) or ``data-tag="to-do:completed"``
(checked).  A list therefore round-trips as a run of such paragraphs inside
the first ``<div>`` on the page::

    <div id="div:{...}{1}">
      <p data-tag="to-do">Buy milk</p>
      <p data-tag="to-do:completed">Pay bills</p>
    </div>

All functions here are pure.
"""

from __future__ import annotations

import html as _html

from bs4 import BeautifulSoup

from onenote_todo.errors import MalformedDocumentError
from onenote_todo.models import TodoItem

TODO_TAG = "to-do"
TODO_COMPLETED_TAG = "to-do:completed"

_PARSER = "html.parser"


def decode(markup: str) -> list[TodoItem]:
    """Extract the todo items from page markup, in document order.

    Only ``<p>`` elements whose ``data-tag`` is exactly ``to-do`` or
    ``to-do:completed`` count; every other paragraph (including ones with a
    different OneNote tag such as ``important``) is ignored.
    """
    soup = BeautifulSoup(markup, _PARSER)
    items: list[TodoItem] = []
    for node in soup.find_all("p"):
        data_tag = node.get("data-tag")
        if data_tag not in (TODO_TAG, TODO_COMPLETED_TAG):
            continue
        items.append(TodoItem(task=node.get_text(), done=data_tag == TODO_COMPLETED_TAG))
    return items


def encode(items: list[TodoItem]) -> str:
    """Render *items* as the replacement content of the anchor container.

    Task text is escaped, so ``<``, ``>`` and ``&`` survive a round trip
    instead of being interpreted as markup.
    """
    soup = BeautifulSoup("", _PARSER)
    parts: list[str] = []
    for item in items:
        node = soup.new_tag(
            "p", attrs={"data-tag": TODO_COMPLETED_TAG if item.done else TODO_TAG},
        )
        node.string = item.task
        parts.append(str(node))
    return "".join(parts)


def find_anchor(markup: str) -> str:
    """Return the ``id`` of the first ``<div>`` in *markup*.

    The markup must have been fetched with element ids included.

    Raises
    ------
    MalformedDocumentError
        If the page has no ``<div>`` or the first one carries no id.
    """
    soup = BeautifulSoup(markup, _PARSER)
    div = soup.find("div")
    if div is None:
        raise MalformedDocumentError(
            "Cannot update todo list: page content has no <div> container.",
            context={"reason": "missing_container"},
        )
    anchor = div.get("id")
    if not anchor:
        raise MalformedDocumentError(
            "Cannot update todo list: container <div> has no id.",
            context={"reason": "missing_anchor_id"},
        )
    return anchor


def build_page_html(title: str, body_html: str) -> str:
    """Build the XHTML document posted when creating a page."""
    return (
        "<!DOCTYPE html><html><head>"
        f"<title>{_html.escape(title, quote=False)}</title>"
        f"</head><body>{body_html}</body></html>"
    )
