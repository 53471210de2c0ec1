"""
Design document publishing.

Publishing is an upsert: insert the design, and on conflict fetch the
current revision and retry once with it. The retry works on a copy, so
the caller's design mapping never picks up a ``_rev``.
"""

import copy
from enum import Enum

import structlog

from convey.db.store import DocumentDatabase
from convey.exceptions import DatabaseMissingError, DocumentConflictError
from convey.models.design import Document

logger = structlog.get_logger(__name__)


class PublishOutcome(str, Enum):
    """Result of publishing a design document."""

    CREATED = "created"
    UPDATED = "updated"
    DATABASE_MISSING = "database_missing"


class DesignPublisher:
    """Idempotently upserts design documents."""

    async def publish(self, database: DocumentDatabase, design: Document) -> PublishOutcome:
        """
        Publish a design document, replacing any existing version.

        Args:
            database: Target database
            design: Design document with an ``_id``

        Returns:
            What happened; DATABASE_MISSING means nothing was written

        Raises:
            StoreError: On any failure other than a missing database or
                the first conflict
        """
        payload = copy.deepcopy(design)
        payload.pop("_rev", None)

        try:
            await database.insert(payload)
        except DatabaseMissingError:
            logger.warning("Target database missing", database=database.name)
            return PublishOutcome.DATABASE_MISSING
        except DocumentConflictError:
            pass
        else:
            logger.info("Design published", database=database.name, design=design["_id"])
            return PublishOutcome.CREATED

        payload["_rev"] = await database.head(design["_id"])
        await database.insert(payload)

        logger.info("Design updated", database=database.name, design=design["_id"])
        return PublishOutcome.UPDATED
