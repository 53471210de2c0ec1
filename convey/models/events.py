"""
Lifecycle events emitted while a check runs, and the report that
collects them.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Iterator

from convey.models.base import utc_now


class EventName(str, Enum):
    """Lifecycle notification names, in the order a run can emit them."""

    START = "start"
    DATABASE_START = "database:start"
    UNTOUCHED = "untouched"
    RESOURCE_FRESH = "resource:fresh"
    RESOURCE_STALE = "resource:stale"
    DATABASE_MISSING = "database:missing"
    TARGET_DONE = "target:done"
    RESOURCE_DONE = "resource:done"
    DATABASE_DONE = "database:done"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class LifecycleEvent:
    """A single notification with its payload."""

    name: EventName
    payload: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime = field(default_factory=utc_now)

    def __getitem__(self, key: str) -> Any:
        return self.payload[key]

    def get(self, key: str, default: Any = None) -> Any:
        return self.payload.get(key, default)


@dataclass
class TargetTotals:
    """Document counts accumulated for one target database."""

    updated: int = 0
    created: int = 0


@dataclass
class CheckReport:
    """
    Result of a check run.

    Holds every lifecycle event in emission order, so callers that do not
    subscribe to listeners can still inspect what happened.
    """

    version: str
    forced: bool = False
    events: list[LifecycleEvent] = field(default_factory=list)
    error: BaseException | None = None
    started_at: datetime = field(default_factory=utc_now)
    finished_at: datetime | None = None

    def __iter__(self) -> Iterator[LifecycleEvent]:
        return iter(self.events)

    @property
    def succeeded(self) -> bool:
        return self.finished_at is not None and self.error is None

    @property
    def duration_seconds(self) -> float:
        end = self.finished_at or utc_now()
        return (end - self.started_at).total_seconds()

    @property
    def names(self) -> list[EventName]:
        """Event names in emission order."""
        return [event.name for event in self.events]

    def of(self, name: EventName) -> list[LifecycleEvent]:
        """Events with the given name, in emission order."""
        return [event for event in self.events if event.name == name]

    def totals(self) -> dict[str, TargetTotals]:
        """
        Sum updated/created counts per target database.

        Returns:
            Mapping of target database name to its totals
        """
        totals: dict[str, TargetTotals] = {}
        for event in self.of(EventName.TARGET_DONE):
            entry = totals.setdefault(event["database"], TargetTotals())
            entry.updated += event["updated"]
            entry.created += event["created"]
        return totals
