"""
Lifecycle listeners.

A listener is any callable taking a LifecycleEvent; it may be a coroutine
function. Listeners run in subscription order, before the orchestrator
moves on, so they observe events in exactly the emitted order.
"""

from typing import Any, Awaitable, Callable, Union

import structlog

from convey.models.events import EventName, LifecycleEvent

LifecycleListener = Callable[[LifecycleEvent], Union[None, Awaitable[None]]]


class EventRecorder:
    """
    Listener that keeps every event it sees.

    Usage:
        recorder = EventRecorder()
        convey.subscribe(recorder)
        await convey.check(...)
        assert recorder.names[0] == "start"
    """

    def __init__(self) -> None:
        self.events: list[LifecycleEvent] = []

    def __call__(self, event: LifecycleEvent) -> None:
        self.events.append(event)

    @property
    def names(self) -> list[EventName]:
        """Event names in emission order."""
        return [event.name for event in self.events]

    def of(self, name: EventName | str) -> list[LifecycleEvent]:
        return [event for event in self.events if event.name == EventName(name)]

    def clear(self) -> None:
        self.events.clear()


class LoggingListener:
    """Listener that writes each event as a structured log line."""

    MESSAGES: dict[EventName, str] = {
        EventName.START: "Check started",
        EventName.DATABASE_START: "Checking database",
        EventName.UNTOUCHED: "Database has no version marker",
        EventName.RESOURCE_FRESH: "Resource is up to date",
        EventName.RESOURCE_STALE: "Resource is stale",
        EventName.DATABASE_MISSING: "Target database missing",
        EventName.TARGET_DONE: "Target migrated",
        EventName.RESOURCE_DONE: "Resource done",
        EventName.DATABASE_DONE: "Database done",
        EventName.DONE: "Check finished",
        EventName.ERROR: "Check failed",
    }

    def __init__(self, logger: Any = None) -> None:
        self.logger = logger or structlog.get_logger("convey.lifecycle")

    def __call__(self, event: LifecycleEvent) -> None:
        context = dict(event.payload)
        if event.name is EventName.START:
            context = {"version": context.get("version")}
        if event.name is EventName.ERROR:
            self.logger.error(self.MESSAGES[event.name], error=str(context.get("err")))
            return
        self.logger.info(self.MESSAGES[event.name], lifecycle=event.name.value, **context)
