"""
Design module values handed to the orchestrator.

A design module bundles an optional design document (indexes and views
that must exist in every target database) with an optional editor that
rewrites documents one at a time.
"""

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Union

Document = dict[str, Any]


@dataclass(frozen=True)
class EditResult:
    """
    Outcome of running an editor over one document.

    Attributes:
        edited: Replacement for the source document. Must keep the
            source ``_id`` and ``_rev``.
        created: New document to insert alongside the source.
    """

    edited: Document | None = None
    created: Document | None = None

    @property
    def is_empty(self) -> bool:
        return self.edited is None and self.created is None


Editor = Callable[[Document], Union[EditResult, None, Awaitable[Union[EditResult, None]]]]


@dataclass(frozen=True)
class DesignModule:
    """
    Resolved design module.

    Attributes:
        design: Design document to publish, identified by its ``_id``
        editor: Per-document transform, sync or async
        name: Module path the module was loaded from
    """

    design: Document | None = None
    editor: Editor | None = None
    name: str = ""

    def __post_init__(self) -> None:
        if self.design is not None and "_id" not in self.design:
            raise ValueError("design document must have an '_id'")
        if self.editor is not None and not callable(self.editor):
            raise TypeError("editor must be callable")
