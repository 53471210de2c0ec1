"""
Convey: version-gated design and document migrations for document stores.

Keeps design documents (indexes and views) and document transforms in step
with an application's release version, applying each exactly once per
database.
"""

from convey.exceptions import (
    ConfigurationError,
    ConveyError,
    DatabaseMissingError,
    DocumentConflictError,
    DocumentNotFoundError,
    InvalidVersionError,
    ModuleLoadError,
    StoreError,
)
from convey.models import (
    CheckReport,
    Configuration,
    DesignModule,
    EditResult,
    EventName,
    LifecycleEvent,
    MultiTarget,
    SingleTarget,
    VersionMarker,
)
from convey.services import (
    Convey,
    EventRecorder,
    FileModuleLoader,
    LoggingListener,
    MappingModuleLoader,
    check,
)

__version__ = "0.1.0"

__all__ = [
    "CheckReport",
    "Configuration",
    "ConfigurationError",
    "Convey",
    "ConveyError",
    "DatabaseMissingError",
    "DesignModule",
    "DocumentConflictError",
    "DocumentNotFoundError",
    "EditResult",
    "EventName",
    "EventRecorder",
    "FileModuleLoader",
    "InvalidVersionError",
    "LifecycleEvent",
    "LoggingListener",
    "MappingModuleLoader",
    "ModuleLoadError",
    "MultiTarget",
    "SingleTarget",
    "StoreError",
    "VersionMarker",
    "check",
]
