"""
Per-document migration.

Runs every document of a database through an editor and writes back what
the editor returns. Documents are processed one at a time in id order;
the first failure aborts the run and leaves earlier writes in place.
"""

import inspect
from dataclasses import dataclass

import structlog

from convey.db.store import DocumentDatabase
from convey.exceptions import DatabaseMissingError
from convey.models.design import Document, EditResult, Editor

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class UpdateCounts:
    """Documents written by one migration pass."""

    updated: int = 0
    created: int = 0
    database_missing: bool = False


async def run_editor(editor: Editor, document: Document) -> EditResult:
    """
    Invoke an editor, awaiting it when it is asynchronous.

    ``None`` is treated as an empty result.
    """
    result = editor(document)
    if inspect.isawaitable(result):
        result = await result
    if result is None:
        return EditResult()
    if not isinstance(result, EditResult):
        raise TypeError(f"Editor must return an EditResult or None, got {type(result).__name__}")
    return result


class DocumentMigrator:
    """Streams documents through an editor and applies the results."""

    async def update(self, database: DocumentDatabase, editor: Editor) -> UpdateCounts:
        """
        Apply an editor to every document in a database.

        Args:
            database: Target database
            editor: Per-document transform

        Returns:
            Update and create counts; zero counts with ``database_missing``
            set when the database does not exist

        Raises:
            StoreError: On any read or write failure
        """
        try:
            doc_ids = await database.list_ids()
        except DatabaseMissingError:
            logger.warning("Target database missing", database=database.name)
            return UpdateCounts(database_missing=True)

        updated = 0
        created = 0

        for doc_id in doc_ids:
            document = await database.get(doc_id)
            result = await run_editor(editor, document)
            if result.is_empty:
                continue

            if result.edited is not None:
                await database.insert(result.edited)
                updated += 1

            if result.created is not None:
                await database.insert(result.created)
                created += 1

        logger.info(
            "Documents migrated",
            database=database.name,
            scanned=len(doc_ids),
            updated=updated,
            created=created,
        )
        return UpdateCounts(updated=updated, created=created)
