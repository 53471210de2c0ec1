"""
Target resolution for resources.

A single-target resource applies to its owning database. A multi-target
resource applies to every database named by the ``value`` of each row of
a view on the owning database.
"""

from dataclasses import dataclass

import structlog

from convey.db.store import DocumentDatabase, DocumentStore
from convey.models.resources import MultiTarget, ResourceSpec, SingleTarget

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class Target:
    """A concrete database a resource's design module is applied to."""

    database: DocumentDatabase
    name: str
    module_path: str


class TargetResolver:
    """
    Resolves resource specs into ordered target lists.

    Usage:
        resolver = TargetResolver()
        targets = await resolver.resolve(store, "app", store.database("app"), spec)
    """

    async def resolve(
        self,
        store: DocumentStore,
        database_name: str,
        database: DocumentDatabase,
        spec: ResourceSpec,
    ) -> list[Target]:
        """
        Resolve the targets for a resource.

        View rows whose value is not a non-empty string name no database
        and are skipped.

        Args:
            store: Store the target databases live in
            database_name: Name of the owning database
            database: Handle to the owning database
            spec: Resource specification

        Returns:
            Targets in view row order (or the owning database alone)

        Raises:
            StoreError: If the view cannot be read
        """
        if isinstance(spec, SingleTarget):
            return [Target(database=database, name=database_name, module_path=spec.module_path)]

        if isinstance(spec, MultiTarget):
            rows = await database.view(spec.design_name, spec.view_name)
            targets = []
            for row in rows:
                if not isinstance(row.value, str) or not row.value:
                    logger.warning(
                        "View row names no database",
                        database=database_name,
                        view=spec.view,
                        row=row.id,
                        value=row.value,
                    )
                    continue
                targets.append(
                    Target(
                        database=store.database(row.value),
                        name=row.value,
                        module_path=spec.module_path,
                    )
                )
            logger.debug(
                "Resolved targets from view",
                database=database_name,
                view=spec.view,
                targets=[target.name for target in targets],
            )
            return targets

        raise TypeError(f"Unsupported resource spec: {spec!r}")
