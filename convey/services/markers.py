"""
Version marker persistence.
"""

from typing import Any

import structlog
from pydantic import ValidationError

from convey.db.store import DocumentDatabase
from convey.exceptions import DocumentNotFoundError, StoreError
from convey.models.marker import MARKER_ID, VersionMarker

logger = structlog.get_logger(__name__)


class VersionMarkerStore:
    """
    Reads and writes the per-database ``convey-version`` document.

    Usage:
        markers = VersionMarkerStore()
        marker, created = await markers.load(db)
        marker.record("users", "1.2.0")
        await markers.save(db, marker)
    """

    async def load(self, database: DocumentDatabase) -> tuple[VersionMarker, bool]:
        """
        Load the marker of a database.

        Args:
            database: Database handle

        Returns:
            ``(marker, was_created)``; a missing or deleted marker yields a
            fresh one with ``was_created`` set

        Raises:
            StoreError: On any other read failure
        """
        try:
            document = await database.get(MARKER_ID)
        except DocumentNotFoundError as e:
            logger.debug("No version marker", database=database.name, reason=e.reason)
            return VersionMarker(), True

        try:
            return VersionMarker.from_document(document), False
        except ValidationError as e:
            raise StoreError(f"Malformed version marker in '{database.name}': {e}") from e

    async def save(
        self,
        database: DocumentDatabase,
        marker: VersionMarker,
        extensions: dict[str, Any] | None = None,
    ) -> None:
        """
        Persist a marker, merging in caller extension fields.

        A revision conflict is not retried.

        Args:
            database: Database handle
            marker: Marker to write
            extensions: Extra fields to store alongside ``versions``
        """
        result = await database.insert(marker.merged_document(extensions))
        marker.rev = result.rev
        logger.debug("Version marker saved", database=database.name, versions=marker.versions)
