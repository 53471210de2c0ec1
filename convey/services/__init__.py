"""
Service layer for the orchestration engine.

Each service owns one step of a check: resolving targets, publishing
designs, migrating documents, tracking version markers and loading
design modules. The Convey orchestrator drives them in order.
"""

from convey.services.listeners import EventRecorder, LifecycleListener, LoggingListener
from convey.services.markers import VersionMarkerStore
from convey.services.migrator import DocumentMigrator, UpdateCounts
from convey.services.modules import FileModuleLoader, MappingModuleLoader, ModuleLoader
from convey.services.orchestrator import Convey, check
from convey.services.publisher import DesignPublisher, PublishOutcome
from convey.services.targets import Target, TargetResolver

__all__ = [
    "Convey",
    "check",
    "DesignPublisher",
    "DocumentMigrator",
    "EventRecorder",
    "FileModuleLoader",
    "LifecycleListener",
    "LoggingListener",
    "MappingModuleLoader",
    "ModuleLoader",
    "PublishOutcome",
    "Target",
    "TargetResolver",
    "UpdateCounts",
    "VersionMarkerStore",
]
