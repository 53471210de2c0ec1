"""
MongoDB document store using Motor.

Each logical database maps to a MongoDB database; its documents live in
a single collection (``documents`` by default). Revisions are kept in a
``_rev`` field and enforced with ``replace_one`` filtered on the expected
revision, which gives the same optimistic concurrency the orchestrator
relies on. Deletes leave ``{"_deleted": true}`` tombstones.

A database exists once its documents collection exists; MongoDB would
otherwise create databases implicitly on first write.
"""

import copy
import re
from functools import wraps
from typing import Any, Callable

import structlog
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import ASCENDING
from pymongo.errors import CollectionInvalid, DuplicateKeyError, PyMongoError

from convey.db.store import (
    DESIGN_PREFIX,
    DocumentDatabase,
    DocumentStore,
    ViewRow,
    WriteResult,
    build_rows,
    design_id,
    new_document_id,
    new_revision,
    view_definition,
)
from convey.exceptions import (
    DatabaseMissingError,
    DocumentConflictError,
    DocumentNotFoundError,
    StoreError,
)
from convey.models.design import Document

logger = structlog.get_logger(__name__)

DEFAULT_COLLECTION = "documents"

LIVE_FILTER: dict[str, Any] = {"_deleted": {"$ne": True}}
NOT_DESIGN_FILTER: dict[str, Any] = {"_id": {"$not": re.compile(f"^{re.escape(DESIGN_PREFIX)}")}}


def translate_errors(f: Callable) -> Callable:
    """Decorator turning driver errors into StoreError."""

    @wraps(f)
    async def wrapper(*args, **kwargs):
        try:
            return await f(*args, **kwargs)
        except PyMongoError as e:
            raise StoreError(str(e)) from e

    return wrapper


class MotorDatabase(DocumentDatabase):
    """Database handle backed by a MongoDB database."""

    def __init__(
        self,
        client: AsyncIOMotorClient,
        name: str,
        collection_name: str = DEFAULT_COLLECTION,
    ) -> None:
        super().__init__(name)
        self._client = client
        self._collection_name = collection_name
        self._collection: AsyncIOMotorCollection = client[name][collection_name]
        self._known_to_exist = False

    @property
    def collection(self) -> AsyncIOMotorCollection:
        """Get the Motor collection holding the documents."""
        return self._collection

    @translate_errors
    async def exists(self) -> bool:
        if self._known_to_exist:
            return True
        names = await self._client[self.name].list_collection_names(
            filter={"name": self._collection_name}
        )
        self._known_to_exist = self._collection_name in names
        return self._known_to_exist

    async def _require(self) -> None:
        if not await self.exists():
            raise DatabaseMissingError(self.name)

    async def _find(self, doc_id: str, projection: dict[str, Any] | None = None) -> Document:
        document = await self._collection.find_one({"_id": doc_id}, projection)
        if document is None:
            await self._require()
            raise DocumentNotFoundError(doc_id, "missing")
        if document.get("_deleted"):
            raise DocumentNotFoundError(doc_id, "deleted")
        return document

    @translate_errors
    async def get(self, doc_id: str) -> Document:
        return await self._find(doc_id)

    @translate_errors
    async def head(self, doc_id: str) -> str:
        document = await self._find(doc_id, {"_rev": 1, "_deleted": 1})
        return document["_rev"]

    @translate_errors
    async def insert(self, document: Document) -> WriteResult:
        await self._require()

        new_doc = copy.deepcopy(dict(document))
        doc_id = str(new_doc.get("_id") or new_document_id())
        rev = new_doc.pop("_rev", None)
        new_doc.pop("_deleted", None)
        new_doc["_id"] = doc_id

        if rev is None:
            new_doc["_rev"] = new_revision()
            try:
                await self._collection.insert_one(new_doc)
            except DuplicateKeyError:
                await self._recreate(doc_id, new_doc)
        else:
            new_doc["_rev"] = new_revision(rev)
            result = await self._collection.replace_one({"_id": doc_id, "_rev": rev}, new_doc)
            if result.matched_count == 0:
                raise DocumentConflictError(doc_id)

        logger.debug("Document written", database=self.name, id=doc_id, rev=new_doc["_rev"])
        return WriteResult(id=doc_id, rev=new_doc["_rev"])

    async def _recreate(self, doc_id: str, new_doc: Document) -> None:
        # Only a tombstone may be overwritten without a revision
        current = await self._collection.find_one({"_id": doc_id}, {"_rev": 1, "_deleted": 1})
        if current is None or not current.get("_deleted"):
            raise DocumentConflictError(doc_id)

        new_doc["_rev"] = new_revision(current["_rev"])
        result = await self._collection.replace_one(
            {"_id": doc_id, "_rev": current["_rev"], "_deleted": True},
            new_doc,
        )
        if result.matched_count == 0:
            raise DocumentConflictError(doc_id)

    @translate_errors
    async def delete(self, doc_id: str, rev: str) -> WriteResult:
        await self._require()

        tombstone = {"_id": doc_id, "_rev": new_revision(rev), "_deleted": True}
        result = await self._collection.replace_one(
            {"_id": doc_id, "_rev": rev, **LIVE_FILTER},
            tombstone,
        )
        if result.matched_count == 0:
            await self._find(doc_id, {"_rev": 1, "_deleted": 1})
            raise DocumentConflictError(doc_id)

        return WriteResult(id=doc_id, rev=tombstone["_rev"])

    @translate_errors
    async def list_ids(self) -> list[str]:
        await self._require()

        cursor = self._collection.find(LIVE_FILTER, {"_id": 1}).sort("_id", ASCENDING)
        return [str(document["_id"]) async for document in cursor]

    @translate_errors
    async def view(self, design: str, view: str) -> list[ViewRow]:
        definition = view_definition(await self._find(design_id(design)), view)
        query = {"$and": [definition.get("filter") or {}, LIVE_FILTER, NOT_DESIGN_FILTER]}

        documents = await self._collection.find(query).to_list(length=None)
        return build_rows(definition, documents)


class MotorDocumentStore(DocumentStore):
    """
    Document store over a Motor client.

    Usage:
        client = AsyncIOMotorClient(uri)
        store = MotorDocumentStore(client)
        db = store.database("app")
    """

    def __init__(
        self,
        client: AsyncIOMotorClient,
        collection_name: str = DEFAULT_COLLECTION,
    ) -> None:
        self._client = client
        self._collection_name = collection_name

    def __repr__(self) -> str:
        return f"MotorDocumentStore(collection={self._collection_name!r})"

    @property
    def client(self) -> AsyncIOMotorClient:
        """Get the Motor client instance."""
        return self._client

    def database(self, name: str) -> MotorDatabase:
        return MotorDatabase(self._client, name, self._collection_name)

    @translate_errors
    async def create_database(self, name: str) -> MotorDatabase:
        try:
            await self._client[name].create_collection(self._collection_name)
            logger.info("Created database", database=name)
        except CollectionInvalid:
            logger.debug("Database already exists", database=name)
        return self.database(name)

    @translate_errors
    async def drop_database(self, name: str) -> None:
        await self._client.drop_database(name)
        logger.info("Dropped database", database=name)

    @translate_errors
    async def database_names(self) -> list[str]:
        names = []
        for name in await self._client.list_database_names():
            if await self.database(name).exists():
                names.append(name)
        return names

    async def database_exists(self, name: str) -> bool:
        return await self.database(name).exists()
