"""
Pytest configuration and fixtures for testing.

Provides in-memory store fixtures, design module factories, and
orchestrator builders for testing convey.
"""

from pathlib import Path
from typing import Any, Callable

import pytest
import pytest_asyncio

from convey.db.memory_store import MemoryDatabase, MemoryDocumentStore
from convey.models.design import DesignModule, EditResult
from convey.models.resources import Configuration
from convey.services.listeners import EventRecorder
from convey.services.modules import FileModuleLoader, MappingModuleLoader
from convey.services.orchestrator import Convey

TESTS_DIR = Path(__file__).parent


# =============================================================================
# Store Fixtures
# =============================================================================


@pytest.fixture
def store() -> MemoryDocumentStore:
    """Create an empty in-memory document store."""
    return MemoryDocumentStore()


@pytest_asyncio.fixture
async def app_db(store: MemoryDocumentStore) -> MemoryDatabase:
    """Create the ``app`` database."""
    return await store.create_database("app")


# =============================================================================
# Design Module Fixtures
# =============================================================================


def tag_editor(resource: str, field: str) -> Callable[[dict[str, Any]], EditResult | None]:
    """Editor that sets ``field`` on documents of one resource type."""

    def editor(doc: dict[str, Any]) -> EditResult | None:
        if doc.get("resource") != resource:
            return None
        return EditResult(edited={**doc, field: True})

    return editor


@pytest.fixture
def users_design() -> dict[str, Any]:
    """A design document with one view."""
    return {
        "_id": "_design/users",
        "views": {
            "byEmail": {"filter": {"type": "user"}, "key": "email", "value": "name"},
        },
    }


@pytest.fixture
def modules(users_design: dict[str, Any]) -> dict[str, DesignModule]:
    """Registry of design modules keyed by module path."""
    return {
        "mods/init.py": DesignModule(design=users_design, name="mods/init.py"),
        "mods/things.py": DesignModule(editor=tag_editor("thing", "migrated"), name="mods/things.py"),
        "mods/empty.py": DesignModule(name="mods/empty.py"),
        "mods/dbs.py": DesignModule(
            design={
                "_id": "_design/dbs",
                "views": {
                    "allById": {"filter": {"resource": "dbRef"}, "key": "_id", "value": "target"},
                },
            },
            name="mods/dbs.py",
        ),
    }


@pytest.fixture
def loader(modules: dict[str, DesignModule]) -> MappingModuleLoader:
    """Module loader serving the ``modules`` registry."""
    return MappingModuleLoader(modules)


@pytest.fixture
def file_loader() -> FileModuleLoader:
    """Module loader reading the fixture modules under tests/."""
    return FileModuleLoader(TESTS_DIR)


# =============================================================================
# Orchestrator Fixtures
# =============================================================================


@pytest.fixture
def recorder() -> EventRecorder:
    """Listener recording every lifecycle event."""
    return EventRecorder()


@pytest.fixture
def make_convey(modules: dict[str, DesignModule], recorder: EventRecorder):
    """
    Factory for orchestrators wired to the recorder.

    The default loader is built on each call from the live ``modules``
    registry, so modules registered inside a test body are visible.

    Usage:
        def test_something(make_convey):
            convey = make_convey(extend_document={"team": "api"})
    """

    def _make(**kwargs: Any) -> Convey:
        kwargs.setdefault("listeners", [recorder])
        loader = kwargs.pop("loader", None) or MappingModuleLoader(modules)
        return Convey(loader, **kwargs)

    return _make


@pytest.fixture
def config() -> Callable[[dict[str, Any]], Configuration]:
    """Build a Configuration from raw JSON-shaped data."""
    return Configuration.model_validate


@pytest.fixture
def configs_dir() -> Path:
    return TESTS_DIR / "configs"
