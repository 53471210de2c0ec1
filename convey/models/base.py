"""
Base model classes for store documents with Pydantic v2.

Provides foundational classes that handle:
- ``_id`` / ``_rev`` aliasing for revisioned documents
- Conversion to/from raw store documents
- Common configuration for frozen value models
"""

from datetime import datetime, timezone
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field


def utc_now() -> datetime:
    """Get current UTC datetime."""
    return datetime.now(timezone.utc)


class DocumentModel(BaseModel):
    """
    Base model for documents stored through a DocumentStore.

    Provides:
    - ``id`` / ``rev`` fields aliased to ``_id`` / ``_rev``
    - Extra fields preserved, so unknown keys survive a read/write cycle
    - Conversion to/from raw store documents

    Usage:
        class Settings(DocumentModel):
            theme: str = "dark"
    """

    model_config = ConfigDict(
        # Allow population by field name or alias
        populate_by_name=True,
        # Keep fields this model does not declare
        extra="allow",
        validate_assignment=True,
    )

    id: str = Field(..., alias="_id", description="Document ID")
    rev: str | None = Field(
        default=None,
        alias="_rev",
        description="Store-assigned revision token",
    )

    @classmethod
    def from_document(cls, document: dict[str, Any] | None) -> Self | None:
        """
        Create model instance from a raw store document.

        Args:
            document: Raw document dict

        Returns:
            Model instance or None if document is None
        """
        if document is None:
            return None
        return cls.model_validate(document)

    def to_document(self) -> dict[str, Any]:
        """
        Convert model to a raw store document.

        ``_rev`` is omitted when the document was never written.
        """
        exclude = {"rev"} if self.rev is None else None
        return self.model_dump(by_alias=True, exclude=exclude)


class ValueModel(BaseModel):
    """
    Base model for immutable value objects (no ``_id``).

    Used for configuration entries and other plain records.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
    )
