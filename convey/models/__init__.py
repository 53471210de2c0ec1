"""
Models for convey.

This module exports the value types the orchestrator works with:
- Configuration and resource specs
- Design modules and edit results
- The per-database version marker
- Lifecycle events and check reports
"""

from convey.models.base import DocumentModel, ValueModel, utc_now
from convey.models.design import DesignModule, Document, EditResult, Editor
from convey.models.events import CheckReport, EventName, LifecycleEvent, TargetTotals
from convey.models.marker import MARKER_ID, VersionMarker
from convey.models.resources import Configuration, MultiTarget, ResourceSpec, SingleTarget

__all__ = [
    # Base
    "DocumentModel",
    "ValueModel",
    "utc_now",
    # Resources
    "Configuration",
    "ResourceSpec",
    "SingleTarget",
    "MultiTarget",
    # Design
    "DesignModule",
    "Document",
    "EditResult",
    "Editor",
    # Marker
    "MARKER_ID",
    "VersionMarker",
    # Events
    "CheckReport",
    "EventName",
    "LifecycleEvent",
    "TargetTotals",
]
