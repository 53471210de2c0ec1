"""
Tests for the in-memory document store.

These pin down the revision, conflict, tombstone and view semantics every
store adapter must share.
"""

import pytest

from convey.db.store import build_rows, design_id, get_field, new_revision, view_definition
from convey.exceptions import DatabaseMissingError, DocumentConflictError, DocumentNotFoundError

# =============================================================================
# Helper Tests
# =============================================================================


class TestHelpers:
    """Tests for the store helper functions."""

    def test_new_revision_increments_generation(self):
        first = new_revision()
        second = new_revision(first)

        assert first.startswith("1-")
        assert second.startswith("2-")
        assert first != new_revision()

    def test_design_id(self):
        assert design_id("users") == "_design/users"
        assert design_id("_design/users") == "_design/users"

    def test_get_field_dotted(self):
        doc = {"a": {"b": {"c": 3}}, "x": 1}

        assert get_field(doc, "a.b.c") == 3
        assert get_field(doc, "x") == 1
        assert get_field(doc, "a.z") is None
        assert get_field(doc, "x.y") is None
        assert get_field(doc, None) is None

    def test_view_definition_missing(self):
        with pytest.raises(DocumentNotFoundError):
            view_definition({"_id": "_design/x", "views": {}}, "nope")

    def test_rows_sorted_by_key_then_id(self):
        rows = build_rows(
            {"key": "k", "value": "v"},
            [
                {"_id": "3", "k": "b", "v": 1},
                {"_id": "2", "k": "a", "v": 2},
                {"_id": "1", "k": "b", "v": 3},
                {"_id": "4", "v": 4},
            ],
        )

        assert [row.id for row in rows] == ["4", "2", "1", "3"]
        assert rows[0].key is None
        assert rows[1].value == 2


# =============================================================================
# Database Tests
# =============================================================================


class TestMemoryDatabase:
    """Tests for document reads and writes."""

    async def test_insert_assigns_id_and_rev(self, app_db):
        result = await app_db.insert({"name": "a"})

        doc = await app_db.get(result.id)
        assert doc["_rev"] == result.rev
        assert result.rev.startswith("1-")

    async def test_update_requires_current_rev(self, app_db):
        first = await app_db.insert({"_id": "doc", "n": 1})

        with pytest.raises(DocumentConflictError):
            await app_db.insert({"_id": "doc", "n": 2})
        with pytest.raises(DocumentConflictError):
            await app_db.insert({"_id": "doc", "_rev": "1-stale", "n": 2})

        second = await app_db.insert({"_id": "doc", "_rev": first.rev, "n": 2})
        assert second.rev.startswith("2-")
        assert (await app_db.get("doc"))["n"] == 2

    async def test_new_document_with_rev_conflicts(self, app_db):
        with pytest.raises(DocumentConflictError):
            await app_db.insert({"_id": "doc", "_rev": "1-abc"})

    async def test_head_returns_current_rev(self, app_db):
        result = await app_db.insert({"_id": "doc"})

        assert await app_db.head("doc") == result.rev

    async def test_get_missing(self, app_db):
        with pytest.raises(DocumentNotFoundError) as exc_info:
            await app_db.get("nope")

        assert exc_info.value.reason == "missing"

    async def test_delete_leaves_tombstone(self, app_db):
        result = await app_db.insert({"_id": "doc"})
        await app_db.delete("doc", result.rev)

        with pytest.raises(DocumentNotFoundError) as exc_info:
            await app_db.get("doc")

        assert exc_info.value.reason == "deleted"
        assert await app_db.list_ids() == []

    async def test_recreate_over_tombstone(self, app_db):
        """Test a deleted id can be written again without a revision."""
        result = await app_db.insert({"_id": "doc"})
        deleted = await app_db.delete("doc", result.rev)

        recreated = await app_db.insert({"_id": "doc", "again": True})

        assert recreated.rev.startswith("3-")
        assert deleted.rev.startswith("2-")
        assert (await app_db.get("doc"))["again"] is True

    async def test_delete_with_stale_rev(self, app_db):
        await app_db.insert({"_id": "doc"})

        with pytest.raises(DocumentConflictError):
            await app_db.delete("doc", "1-stale")

    async def test_caller_mapping_not_modified(self, app_db):
        document = {"_id": "doc", "nested": {"a": 1}}

        await app_db.insert(document)
        stored = await app_db.get("doc")
        stored["nested"]["a"] = 2

        assert document == {"_id": "doc", "nested": {"a": 1}}
        assert (await app_db.get("doc"))["nested"] == {"a": 1}

    async def test_list_ids_sorted(self, app_db):
        for doc_id in ("b", "_design/x", "a"):
            await app_db.insert({"_id": doc_id})

        assert await app_db.list_ids() == ["_design/x", "a", "b"]

    async def test_missing_database(self, store):
        ghost = store.database("ghost")

        assert not await ghost.exists()
        with pytest.raises(DatabaseMissingError):
            await ghost.list_ids()
        with pytest.raises(DatabaseMissingError):
            await ghost.insert({"_id": "a"})
        with pytest.raises(DatabaseMissingError):
            await ghost.get("a")


class TestMemoryViews:
    """Tests for view queries."""

    async def test_view_filters_and_projects(self, app_db, users_design):
        await app_db.insert(users_design)
        await app_db.insert({"_id": "u2", "type": "user", "email": "b@x.io", "name": "Bea"})
        await app_db.insert({"_id": "u1", "type": "user", "email": "a@x.io", "name": "Al"})
        await app_db.insert({"_id": "g1", "type": "group", "email": "g@x.io"})

        rows = await app_db.view("users", "byEmail")

        assert [(row.id, row.key, row.value) for row in rows] == [
            ("u1", "a@x.io", "Al"),
            ("u2", "b@x.io", "Bea"),
        ]

    async def test_view_skips_deleted_documents(self, app_db, users_design):
        await app_db.insert(users_design)
        result = await app_db.insert({"_id": "u1", "type": "user", "email": "a@x.io"})
        await app_db.delete("u1", result.rev)

        assert await app_db.view("_design/users", "byEmail") == []

    async def test_view_dotted_filter(self, app_db):
        await app_db.insert(
            {"_id": "_design/d", "views": {"v": {"filter": {"meta.kind": "x"}, "key": "_id"}}}
        )
        await app_db.insert({"_id": "a", "meta": {"kind": "x"}})
        await app_db.insert({"_id": "b", "meta": {"kind": "y"}})

        assert [row.id for row in await app_db.view("d", "v")] == ["a"]

    async def test_view_missing_design(self, app_db):
        with pytest.raises(DocumentNotFoundError):
            await app_db.view("nope", "v")


class TestMemoryDocumentStore:
    """Tests for database lifecycle."""

    async def test_create_and_drop(self, store):
        await store.create_database("b")
        await store.create_database("a")

        assert await store.database_names() == ["a", "b"]
        assert await store.database_exists("a")

        await store.drop_database("a")
        assert not await store.database_exists("a")

    async def test_create_is_idempotent(self, store):
        db = await store.create_database("app")
        await db.insert({"_id": "keep"})

        await store.create_database("app")

        assert await db.list_ids() == ["keep"]

    async def test_write_count(self, store, app_db):
        result = await app_db.insert({"_id": "a"})
        await app_db.delete("a", result.rev)

        assert store.write_count == 2
