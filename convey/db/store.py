"""
Document store abstraction.

The orchestrator only talks to these interfaces. A store hands out
database handles; each handle reads and writes revisioned documents:

- every write assigns a new ``_rev`` of the form ``"<n>-<hex>"``
- writing an existing ``_id`` requires the current ``_rev``, otherwise
  DocumentConflictError is raised
- deleting leaves a tombstone, so later reads report ``reason="deleted"``
- any call against a database that does not exist raises
  DatabaseMissingError
"""

import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

from convey.exceptions import DocumentNotFoundError
from convey.models.design import Document

DESIGN_PREFIX = "_design/"


@dataclass(frozen=True)
class WriteResult:
    """Identity of a document after a successful write."""

    id: str
    rev: str


@dataclass(frozen=True)
class ViewRow:
    """One row of a view query."""

    id: str
    key: Any
    value: Any


def new_revision(previous: str | None = None) -> str:
    """
    Generate the revision that follows ``previous``.

    Args:
        previous: Current revision, or None for a first write

    Returns:
        Revision token such as ``"2-9f86d081..."``
    """
    generation = 0
    if previous:
        number, _, _ = previous.partition("-")
        generation = int(number) if number.isdigit() else 0
    return f"{generation + 1}-{uuid.uuid4().hex}"


def new_document_id() -> str:
    """Generate an id for a document created without one."""
    return uuid.uuid4().hex


def design_id(name: str) -> str:
    """Full document id of a design document."""
    return name if name.startswith(DESIGN_PREFIX) else f"{DESIGN_PREFIX}{name}"


def get_field(document: Document, path: str | None) -> Any:
    """
    Read a possibly dotted field from a document.

    Returns None when any segment is absent.
    """
    if path is None:
        return None
    value: Any = document
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def view_definition(design: Document, view: str) -> dict[str, Any]:
    """
    Extract a view definition from a design document.

    A definition looks like ``{"filter": {...}, "key": "field", "value": "field"}``.

    Raises:
        DocumentNotFoundError: If the design has no such view
    """
    views = design.get("views") or {}
    definition = views.get(view)
    if not isinstance(definition, dict):
        raise DocumentNotFoundError(f"{design.get('_id')}/_view/{view}")
    return definition


def build_rows(definition: dict[str, Any], documents: list[Document]) -> list[ViewRow]:
    """Project matched documents into view rows sorted by key, then id."""
    rows = [
        ViewRow(
            id=str(doc["_id"]),
            key=get_field(doc, definition.get("key")),
            value=get_field(doc, definition.get("value")),
        )
        for doc in documents
    ]
    rows.sort(key=lambda row: (_sort_key(row.key), row.id))
    return rows


def _sort_key(value: Any) -> tuple[int, str]:
    # None sorts first, then everything else by its string form
    if value is None:
        return (0, "")
    return (1, str(value))


class DocumentDatabase(ABC):
    """
    Handle to a single database in a document store.

    Handles are cheap: opening one performs no I/O.
    """

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"

    @abstractmethod
    async def exists(self) -> bool:
        """Whether the database exists."""
        ...

    @abstractmethod
    async def get(self, doc_id: str) -> Document:
        """
        Fetch a full document.

        Raises:
            DocumentNotFoundError: With reason ``"missing"`` or ``"deleted"``
            DatabaseMissingError: If the database does not exist
        """
        ...

    @abstractmethod
    async def head(self, doc_id: str) -> str:
        """Fetch only the current revision of a document."""
        ...

    @abstractmethod
    async def insert(self, document: Document) -> WriteResult:
        """
        Create or update a document.

        The caller's mapping is not modified.

        Raises:
            DocumentConflictError: If ``_rev`` does not match the stored revision
            DatabaseMissingError: If the database does not exist
        """
        ...

    @abstractmethod
    async def delete(self, doc_id: str, rev: str) -> WriteResult:
        """Delete a document, leaving a tombstone."""
        ...

    @abstractmethod
    async def list_ids(self) -> list[str]:
        """Ids of all live documents, sorted."""
        ...

    @abstractmethod
    async def view(self, design: str, view: str) -> list[ViewRow]:
        """
        Query a view defined in a design document.

        Raises:
            DocumentNotFoundError: If the design or the view does not exist
        """
        ...


class DocumentStore(ABC):
    """A server holding many databases."""

    @abstractmethod
    def database(self, name: str) -> DocumentDatabase:
        """Open a handle to a database (no I/O)."""
        ...

    @abstractmethod
    async def create_database(self, name: str) -> DocumentDatabase:
        """Create a database, returning its handle."""
        ...

    @abstractmethod
    async def drop_database(self, name: str) -> None:
        """Drop a database and all of its documents."""
        ...

    @abstractmethod
    async def database_names(self) -> list[str]:
        """Names of all existing databases."""
        ...

    async def database_exists(self, name: str) -> bool:
        return name in await self.database_names()

