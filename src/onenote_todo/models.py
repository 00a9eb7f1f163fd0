"""Data models for onenote_todo.

Plain dataclasses with no behaviour beyond construction helpers and
structural equality.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ContainerKind(str, Enum):
    """The three levels of the OneNote hierarchy."""

    NOTEBOOK = "notebook"
    SECTION = "section"
    PAGE = "page"


@dataclass
class TodoItem:
    """A single todo entry.

    The ``task`` text doubles as the item's identity for update and delete:
    two items with identical text cannot be told apart.

    Attributes
    ----------
    task:
        Plain text of the todo.
    done:
        ``True`` once the item has been completed.
    """

    task: str
    done: bool = False


@dataclass
class RemoteContainer:
    """A notebook, section or page as returned by Graph.

    Only ``id`` and ``title`` matter to the sync engine; containers are
    matched on exact title and addressed by id.
    """

    id: str
    title: str
    kind: ContainerKind

    @classmethod
    def from_graph(cls, kind: ContainerKind, data: dict[str, Any]) -> RemoteContainer:
        # Pages expose ``title``; notebooks and sections expose ``displayName``.
        if kind is ContainerKind.PAGE:
            title = data.get("title") or ""
        else:
            title = data.get("displayName") or ""
        return cls(id=data["id"], title=title, kind=kind)


@dataclass
class PatchCommand:
    """One entry of the JSON array accepted by the page-content PATCH endpoint."""

    target: str
    content: str
    action: str = "replace"

    def to_dict(self) -> dict[str, str]:
        return {"action": self.action, "target": self.target, "content": self.content}
