"""
Migration orchestrator.

Walks a configuration database by database and resource by resource,
decides from the version marker whether each resource is stale, and
applies stale resources to their targets: publish the design, run the
editor over every document, record the new version.

Everything runs strictly in sequence on the calling task. The first
error aborts the whole run; nothing after the failing step executes.
"""

import inspect
from typing import Any, Awaitable, Callable, Union

import structlog

from convey.db.store import DocumentDatabase, DocumentStore
from convey.exceptions import ModuleLoadError
from convey.models.base import utc_now
from convey.models.design import DesignModule
from convey.models.events import CheckReport, EventName, LifecycleEvent
from convey.models.resources import Configuration, ResourceMap
from convey.services.listeners import LifecycleListener
from convey.services.markers import VersionMarkerStore
from convey.services.migrator import DocumentMigrator, UpdateCounts
from convey.services.modules import ModuleLoader
from convey.services.publisher import DesignPublisher, PublishOutcome
from convey.services.targets import Target, TargetResolver
from convey.versioning import compare, is_fresh, parse_version

logger = structlog.get_logger(__name__)

Completion = Callable[[Union[BaseException, None]], Union[None, Awaitable[None]]]


async def _maybe_await(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


class Convey:
    """
    Version-gated migration orchestrator.

    Usage:
        convey = Convey(FileModuleLoader("deploy"), extend_document={"app": "api"})
        convey.on(EventName.TARGET_DONE, lambda e: print(e["database"], e["updated"]))
        report = await convey.check(store, "1.4.0", load_configuration("convey.json"))
    """

    def __init__(
        self,
        loader: ModuleLoader,
        extend_document: dict[str, Any] | None = None,
        listeners: list[LifecycleListener] | None = None,
        publisher: DesignPublisher | None = None,
        migrator: DocumentMigrator | None = None,
        markers: VersionMarkerStore | None = None,
        resolver: TargetResolver | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Args:
            loader: Resolves module paths into design modules
            extend_document: Extra fields stored on every version marker
            listeners: Lifecycle listeners, called in order
            publisher: Design publisher
            migrator: Document migrator
            markers: Version marker store
            resolver: Target resolver
        """
        self.loader = loader
        self.extend_document = dict(extend_document or {})
        self.publisher = publisher or DesignPublisher()
        self.migrator = migrator or DocumentMigrator()
        self.markers = markers or VersionMarkerStore()
        self.resolver = resolver or TargetResolver()
        self._listeners: list[LifecycleListener] = list(listeners or [])

    # =========================================================================
    # Listeners
    # =========================================================================

    def subscribe(self, listener: LifecycleListener) -> LifecycleListener:
        """Register a listener for every event."""
        self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: LifecycleListener) -> None:
        """Remove a previously registered listener."""
        self._listeners.remove(listener)

    def on(self, name: EventName | str, handler: LifecycleListener) -> "Convey":
        """
        Register a handler for a single event name.

        Returns self, so registrations can be chained.
        """
        wanted = EventName(name)

        def listener(event: LifecycleEvent) -> Any:
            if event.name is wanted:
                return handler(event)
            return None

        self._listeners.append(listener)
        return self

    async def _emit(self, report: CheckReport, name: EventName, **payload: Any) -> None:
        event = LifecycleEvent(name=name, payload=payload)
        report.events.append(event)
        for listener in list(self._listeners):
            await _maybe_await(listener(event))

    # =========================================================================
    # Check
    # =========================================================================

    async def check(
        self,
        store: DocumentStore,
        version: str,
        configuration: Configuration,
        force: bool = False,
        completion: Completion | None = None,
    ) -> CheckReport:
        """
        Bring every configured resource up to ``version``.

        Exactly one completion path fires. With a ``completion`` callback
        it receives the error (or None) and this method does not raise.
        Without one, ``done`` is emitted on success; on failure ``error`` is
        emitted and the exception propagates. A listener failing on ``done``
        is reported through ``error`` like any other failure.

        Args:
            store: Document store holding the configured databases
            version: Target semantic version
            configuration: Databases and resources to check
            force: Process every resource regardless of stored versions
            completion: Optional callback receiving the outcome

        Returns:
            Report with every lifecycle event in order

        Raises:
            InvalidVersionError: If ``version`` is malformed (before any I/O)
            ModuleLoadError: If a design module cannot be loaded
            StoreError: On any fatal store failure
        """
        report = CheckReport(version=version, forced=force)

        try:
            parse_version(version)
            await self._emit(
                report,
                EventName.START,
                connection=store,
                version=version,
                config=configuration,
            )
            for database_name, resources in configuration.items():
                await self._check_database(report, store, database_name, resources)

            report.finished_at = utc_now()
            if completion is None:
                seconds = report.duration_seconds
                await self._emit(
                    report,
                    EventName.DONE,
                    duration_seconds=seconds,
                    duration_millis=int(round(seconds * 1000)),
                )
        except Exception as e:
            report.error = e
            report.finished_at = utc_now()
            logger.error("Check aborted", version=version, error=str(e))
            if completion is not None:
                await _maybe_await(completion(e))
                return report
            await self._emit(report, EventName.ERROR, err=e)
            raise

        if completion is not None:
            await _maybe_await(completion(None))
        return report

    async def _check_database(
        self,
        report: CheckReport,
        store: DocumentStore,
        database_name: str,
        resources: ResourceMap,
    ) -> None:
        version = report.version
        force = report.forced

        await self._emit(report, EventName.DATABASE_START, database=database_name)
        database = store.database(database_name)

        marker, created = await self.markers.load(database)
        if created:
            await self._emit(report, EventName.UNTOUCHED, database=database_name)

        for resource, spec in resources.items():
            stored = marker.version_of(resource)

            if is_fresh(stored, version) and not force:
                await self._emit(
                    report,
                    EventName.RESOURCE_FRESH,
                    database=database_name,
                    resource=resource,
                )
                continue

            await self._emit(
                report,
                EventName.RESOURCE_STALE,
                database=database_name,
                resource=resource,
                forced=force,
            )
            if stored is not None and compare(stored, version) > 0:
                logger.warning(
                    "Forced check records a lower version",
                    database=database_name,
                    resource=resource,
                    stored=stored,
                    version=version,
                )

            targets = await self.resolver.resolve(store, database_name, database, spec)
            module = self._load_module(spec.module_path)

            for target in targets:
                counts = await self._apply(report, target, module)
                await self._emit(
                    report,
                    EventName.TARGET_DONE,
                    database=target.name,
                    updated=counts.updated,
                    created=counts.created,
                )

            await self._emit(
                report,
                EventName.RESOURCE_DONE,
                database=database_name,
                resource=resource,
            )
            marker.record(resource, version)

        await self.markers.save(database, marker, self.extend_document)
        await self._emit(report, EventName.DATABASE_DONE, database=database_name)

    def _load_module(self, module_path: str) -> DesignModule:
        try:
            return self.loader.load(module_path)
        except ModuleLoadError:
            raise
        except Exception as e:
            raise ModuleLoadError(module_path, f"{type(e).__name__}: {e}") from e

    async def _apply(
        self,
        report: CheckReport,
        target: Target,
        module: DesignModule,
    ) -> UpdateCounts:
        database: DocumentDatabase = target.database
        counts = UpdateCounts()

        if module.design is not None:
            outcome = await self.publisher.publish(database, module.design)
            if outcome is PublishOutcome.DATABASE_MISSING:
                counts = UpdateCounts(database_missing=True)

        if module.editor is not None and not counts.database_missing:
            counts = await self.migrator.update(database, module.editor)

        if counts.database_missing:
            await self._emit(report, EventName.DATABASE_MISSING, database=target.name)
        return counts


async def check(
    store: DocumentStore,
    version: str,
    configuration: Configuration,
    loader: ModuleLoader,
    force: bool = False,
    completion: Completion | None = None,
    extend_document: dict[str, Any] | None = None,
    listeners: list[LifecycleListener] | None = None,
) -> CheckReport:
    """
    Run a single check with a throwaway orchestrator.

    See Convey.check for the completion and error semantics.
    """
    convey = Convey(loader, extend_document=extend_document, listeners=listeners)
    return await convey.check(store, version, configuration, force=force, completion=completion)
