"""
Version marker document.

One marker per database records the last version each resource was
synced to. Callers may attach extension fields; the engine-owned keys
(``_id``, ``_rev``, ``versions``) always win over them.
"""

from typing import Any

from pydantic import Field

from convey.models.base import DocumentModel

MARKER_ID = "convey-version"

# Keys an extension mapping can never override
RESERVED_FIELDS = frozenset({"_id", "_rev", "versions"})


class VersionMarker(DocumentModel):
    """Per-database record of each resource's last-synced version."""

    id: str = Field(default=MARKER_ID, alias="_id", description="Fixed marker ID")
    versions: dict[str, str] = Field(
        default_factory=dict,
        description="Resource name to last-synced version",
    )

    def version_of(self, resource: str) -> str | None:
        """Get the recorded version of a resource, if any."""
        return self.versions.get(resource)

    def record(self, resource: str, version: str) -> None:
        """Record that a resource has been synced to a version."""
        self.versions[resource] = version

    def merged_document(self, extensions: dict[str, Any] | None = None) -> dict[str, Any]:
        """
        Build the document to persist, shallow-merging caller extensions.

        Extension values replace extension fields stored by earlier runs
        but never the reserved keys.

        Args:
            extensions: Caller-supplied fields to merge in

        Returns:
            Raw document ready for insertion
        """
        document = self.to_document()
        for key, value in (extensions or {}).items():
            if key not in RESERVED_FIELDS:
                document[key] = value
        return document
