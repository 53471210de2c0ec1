"""
In-memory document store.

Implements the DocumentStore contract without a server, for:
- Unit and orchestration tests
- Dry runs of a configuration on a developer machine

Invariants:
    - All data is lost on process exit
    - Same revision, conflict, tombstone and view semantics as the Motor store
    - Documents are deep-copied on the way in and out, so callers never
      share state with the store

View filters support plain equality on (dotted) fields only.
"""

import copy
from typing import Any

import structlog

from convey.db.store import (
    DESIGN_PREFIX,
    DocumentDatabase,
    DocumentStore,
    ViewRow,
    WriteResult,
    build_rows,
    design_id,
    get_field,
    new_document_id,
    new_revision,
    view_definition,
)
from convey.exceptions import (
    DatabaseMissingError,
    DocumentConflictError,
    DocumentNotFoundError,
)
from convey.models.design import Document

logger = structlog.get_logger(__name__)


def _matches(document: Document, filter: dict[str, Any]) -> bool:
    return all(get_field(document, path) == expected for path, expected in filter.items())


class MemoryDatabase(DocumentDatabase):
    """Database handle backed by a MemoryDocumentStore."""

    def __init__(self, store: "MemoryDocumentStore", name: str) -> None:
        super().__init__(name)
        self._store = store

    def _documents(self) -> dict[str, Document]:
        documents = self._store._databases.get(self.name)
        if documents is None:
            raise DatabaseMissingError(self.name)
        return documents

    def _live(self, doc_id: str) -> Document:
        current = self._documents().get(doc_id)
        if current is None:
            raise DocumentNotFoundError(doc_id, "missing")
        if current.get("_deleted"):
            raise DocumentNotFoundError(doc_id, "deleted")
        return current

    async def exists(self) -> bool:
        return self.name in self._store._databases

    async def get(self, doc_id: str) -> Document:
        return copy.deepcopy(self._live(doc_id))

    async def head(self, doc_id: str) -> str:
        return self._live(doc_id)["_rev"]

    async def insert(self, document: Document) -> WriteResult:
        documents = self._documents()
        new_doc = copy.deepcopy(dict(document))
        doc_id = str(new_doc.get("_id") or new_document_id())
        rev = new_doc.get("_rev")

        current = documents.get(doc_id)
        if current is None:
            if rev is not None:
                raise DocumentConflictError(doc_id)
        elif current.get("_deleted"):
            if rev is not None and rev != current["_rev"]:
                raise DocumentConflictError(doc_id)
        elif rev != current["_rev"]:
            raise DocumentConflictError(doc_id)

        new_doc["_id"] = doc_id
        new_doc["_rev"] = new_revision(current["_rev"] if current else None)
        new_doc.pop("_deleted", None)
        documents[doc_id] = new_doc
        self._store.write_count += 1

        return WriteResult(id=doc_id, rev=new_doc["_rev"])

    async def delete(self, doc_id: str, rev: str) -> WriteResult:
        current = self._live(doc_id)
        if rev != current["_rev"]:
            raise DocumentConflictError(doc_id)

        tombstone = {"_id": doc_id, "_rev": new_revision(rev), "_deleted": True}
        self._documents()[doc_id] = tombstone
        self._store.write_count += 1

        return WriteResult(id=doc_id, rev=tombstone["_rev"])

    async def list_ids(self) -> list[str]:
        return sorted(
            doc_id for doc_id, doc in self._documents().items() if not doc.get("_deleted")
        )

    async def view(self, design: str, view: str) -> list[ViewRow]:
        definition = view_definition(await self.get(design_id(design)), view)
        filter = definition.get("filter") or {}
        matched = [
            doc
            for doc_id, doc in self._documents().items()
            if not doc.get("_deleted")
            and not doc_id.startswith(DESIGN_PREFIX)
            and _matches(doc, filter)
        ]
        return build_rows(definition, matched)


class MemoryDocumentStore(DocumentStore):
    """
    Document store that keeps every database in a dict.

    Attributes:
        write_count: Number of successful writes across all databases

    Example:
        >>> store = MemoryDocumentStore()
        >>> db = await store.create_database("app")
        >>> await db.insert({"resource": "thing"})
    """

    def __init__(self) -> None:
        self._databases: dict[str, dict[str, Document]] = {}
        self.write_count = 0

    def __repr__(self) -> str:
        return f"MemoryDocumentStore(databases={sorted(self._databases)!r})"

    def database(self, name: str) -> MemoryDatabase:
        return MemoryDatabase(self, name)

    async def create_database(self, name: str) -> MemoryDatabase:
        self._databases.setdefault(name, {})
        logger.debug("Created in-memory database", database=name)
        return self.database(name)

    async def drop_database(self, name: str) -> None:
        self._databases.pop(name, None)

    async def database_names(self) -> list[str]:
        return sorted(self._databases)
