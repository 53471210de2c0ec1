"""
Exception hierarchy for convey.

Every error raised by the orchestrator derives from ConveyError so callers
can catch the whole family at once. Store adapters translate driver errors
into StoreError subclasses.
"""


class ConveyError(Exception):
    """Base exception for convey errors."""

    pass


class ConfigurationError(ConveyError):
    """Raised when the configuration file cannot be loaded or validated."""

    pass


class InvalidVersionError(ConveyError):
    """Raised when a version string is not a valid semantic version."""

    def __init__(self, version: object) -> None:
        self.version = version
        super().__init__(f"Invalid version: {version!r}")


class ModuleLoadError(ConveyError):
    """Raised when a design module cannot be resolved or imported."""

    def __init__(self, module_path: str, reason: str) -> None:
        self.module_path = module_path
        self.reason = reason
        super().__init__(f"Could not load design module '{module_path}': {reason}")


class StoreError(ConveyError):
    """Raised for any document store failure."""

    pass


class DatabaseMissingError(StoreError):
    """Raised when an operation targets a database that does not exist."""

    def __init__(self, database: str) -> None:
        self.database = database
        super().__init__(f"Database '{database}' does not exist")


class DocumentNotFoundError(StoreError):
    """
    Raised when a document does not exist.

    ``reason`` is ``"missing"`` for ids that were never written and
    ``"deleted"`` for ids that only have a tombstone left.
    """

    def __init__(self, doc_id: str, reason: str = "missing") -> None:
        self.doc_id = doc_id
        self.reason = reason
        super().__init__(f"Document '{doc_id}' not found ({reason})")


class DocumentConflictError(StoreError):
    """Raised when a write does not match the stored revision."""

    def __init__(self, doc_id: str) -> None:
        self.doc_id = doc_id
        super().__init__(f"Document update conflict on '{doc_id}'")
