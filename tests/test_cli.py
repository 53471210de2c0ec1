"""
Tests for the command-line interface.

Commands run through click's CliRunner with the store connection swapped
for an in-memory store.
"""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from convey import __version__
from convey.cli import cli
from convey.db.memory_store import MemoryDocumentStore
from convey.models.marker import MARKER_ID

TESTS_DIR = Path(__file__).parent


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def cli_store():
    """In-memory store served to every command instead of MongoDB."""
    store = MemoryDocumentStore()

    @asynccontextmanager
    async def fake_open_store(uri=None):
        yield store

    with patch("convey.cli.commands.open_store", fake_open_store):
        yield store


def run(coro):
    return asyncio.run(coro)


def check_args(config: str, *extra: str) -> list[str]:
    return [
        "check",
        *extra,
        "--config",
        str(TESTS_DIR / "configs" / config),
        "--modules-dir",
        str(TESTS_DIR),
    ]


class TestCli:
    """Tests for the top-level group."""

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ("check", "status", "db"):
            assert command in result.output


class TestCheckCommand:
    """Tests for `convey check`."""

    def test_check_applies_resources(self, runner, cli_store):
        db = run(cli_store.create_database("test-convey"))
        run(db.insert({"_id": "t1", "resource": "thing"}))

        result = runner.invoke(cli, check_args("single.json", "1.0.0"))

        assert result.exit_code == 0, result.output
        assert "Done" in result.output
        marker = run(db.get(MARKER_ID))
        assert marker["versions"] == {"test": "1.0.0"}
        assert run(db.get("_design/single"))["views"]["allTheThings"]["key"] == "_id"

    def test_check_with_extensions(self, runner, cli_store):
        db = run(cli_store.create_database("test-convey"))

        result = runner.invoke(
            cli, check_args("single.json", "1.0.0", "--extend", "deployedBy=ci", "-e", "ticket=42")
        )

        assert result.exit_code == 0, result.output
        marker = run(db.get(MARKER_ID))
        assert marker["deployedBy"] == "ci"
        assert marker["ticket"] == "42"

    def test_bad_extension(self, runner, cli_store):
        result = runner.invoke(cli, check_args("single.json", "1.0.0", "--extend", "novalue"))

        assert result.exit_code == 2
        assert "KEY=VALUE" in result.output

    def test_invalid_version(self, runner, cli_store):
        run(cli_store.create_database("test-convey"))

        result = runner.invoke(cli, check_args("single.json", "one"))

        assert result.exit_code == 1
        assert "Invalid version" in result.output

    def test_missing_database(self, runner, cli_store):
        result = runner.invoke(cli, check_args("single.json", "1.0.0"))

        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_bad_config_file(self, runner, cli_store):
        result = runner.invoke(cli, check_args("bad.json", "1.0.0"))

        assert result.exit_code == 1
        assert "could not be parsed" in result.output

    def test_force_reapplies(self, runner, cli_store):
        db = run(cli_store.create_database("test-convey"))
        run(db.insert({"_id": "t1", "resource": "thing"}))

        assert runner.invoke(cli, check_args("single.json", "2.0.0")).exit_code == 0
        result = runner.invoke(cli, check_args("single.json", "1.0.0", "--force"))

        assert result.exit_code == 0, result.output
        assert "forced" in result.output
        assert run(db.get(MARKER_ID))["versions"] == {"test": "1.0.0"}


class TestStatusCommand:
    """Tests for `convey status`."""

    def test_status_shows_versions(self, runner, cli_store):
        db = run(cli_store.create_database("test-convey"))
        run(db.insert({"_id": MARKER_ID, "versions": {"test": "3.1.0"}}))

        result = runner.invoke(
            cli, ["status", "--config", str(TESTS_DIR / "configs" / "single.json")]
        )

        assert result.exit_code == 0, result.output
        assert "3.1.0" in result.output

    def test_status_missing_database(self, runner, cli_store):
        result = runner.invoke(
            cli, ["status", "--config", str(TESTS_DIR / "configs" / "single.json")]
        )

        assert result.exit_code == 0, result.output
        assert "database missing" in result.output


class TestDbPing:
    """Tests for `convey db ping`."""

    def test_ping_healthy(self, runner):
        with patch("convey.cli.commands.DatabaseConnection") as conn_cls:
            conn = conn_cls.return_value
            conn.connect = AsyncMock()
            conn.disconnect = AsyncMock()
            conn.health_check = AsyncMock(
                return_value={"healthy": True, "server_version": "7.0.2", "latency_ms": 1.5}
            )

            result = runner.invoke(cli, ["db", "ping"])

        assert result.exit_code == 0
        assert "Connected" in result.output
        conn.disconnect.assert_awaited_once()

    def test_ping_connect_failure(self, runner):
        with patch("convey.cli.commands.DatabaseConnection") as conn_cls:
            conn_cls.return_value.connect = AsyncMock(side_effect=OSError("refused"))

            result = runner.invoke(cli, ["db", "ping"])

        assert result.exit_code == 1
        assert "refused" in result.output
