"""Tests for the database migration system."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest


def _async_cm(value=None):
    cm = MagicMock()
    cm.__aenter__ = AsyncMock(return_value=value)
    cm.__aexit__ = AsyncMock(return_value=None)
    return cm


class TestMigrationSystem:
    """Tests for the migration module."""

    @pytest.fixture
    def cursor(self):
        cur = MagicMock()
        cur.fetchone = AsyncMock(return_value=(0,))
        return cur

    @pytest.fixture
    def mock_connection(self, cursor):
        """Create a mock psycopg connection."""
        conn = MagicMock()
        conn.execute = AsyncMock(return_value=cursor)
        conn.transaction.return_value = _async_cm()
        return conn

    @pytest.fixture
    def patched(self, mock_connection):
        with patch("devevent.db.migrations._get_connection", return_value=_async_cm(mock_connection)):
            yield mock_connection

    @pytest.mark.asyncio
    async def test_get_current_version_creates_table(self, patched):
        from devevent.db.migrations import get_current_version

        version = await get_current_version()

        create_call = patched.execute.call_args_list[0]
        assert "CREATE TABLE IF NOT EXISTS schema_migrations" in create_call[0][0]
        assert version == 0

    @pytest.mark.asyncio
    async def test_get_current_version_returns_max(self, patched, cursor):
        cursor.fetchone = AsyncMock(return_value=(5,))

        from devevent.db.migrations import get_current_version

        assert await get_current_version() == 5

    @pytest.mark.asyncio
    async def test_apply_migration_skips_if_already_applied(self, patched, cursor):
        cursor.fetchone = AsyncMock(return_value=(5,))

        from devevent.db.migrations import apply_migration

        assert await apply_migration(3, "SELECT 1;", "test") is False
        patched.transaction.assert_not_called()

    @pytest.mark.asyncio
    async def test_apply_migration_applies_new_migration(self, patched, cursor):
        cursor.fetchone = AsyncMock(return_value=(2,))

        from devevent.db.migrations import apply_migration

        result = await apply_migration(3, "CREATE TABLE test (id INT);", "test migration")

        assert result is True
        executed = [call[0][0] for call in patched.execute.call_args_list]
        assert "CREATE TABLE test (id INT);" in executed
        record = patched.execute.call_args_list[-1]
        assert "INSERT INTO schema_migrations" in record[0][0]
        assert record[0][1] == (3, "test migration")
        patched.transaction.assert_called_once()

    @pytest.mark.asyncio
    async def test_get_pending_migrations_finds_sql_files(self, patched):
        from devevent.db.migrations import get_pending_migrations

        pending = await get_pending_migrations()

        assert pending[0].version == 1
        assert pending[0].path.name == "001_initial.sql"
        assert pending[0].description == "initial"

    @pytest.mark.asyncio
    async def test_get_pending_migrations_excludes_applied(self, patched, cursor):
        cursor.fetchone = AsyncMock(return_value=(1,))

        from devevent.db.migrations import get_pending_migrations

        versions = [m.version for m in await get_pending_migrations()]
        assert 1 not in versions

    @pytest.mark.asyncio
    async def test_run_migrations_applies_pending(self, patched):
        from devevent.db import migrations

        with patch.object(migrations, "apply_migration", AsyncMock(return_value=True)) as apply:
            count = await migrations.run_migrations()

        assert count == apply.await_count
        first = apply.await_args_list[0][0]
        assert first[0] == 1
        assert "CREATE TABLE IF NOT EXISTS events" in first[1]


class TestInitialMigration:
    """The initial schema carries the constraints the store relies on."""

    def test_slug_is_unique(self):
        from devevent.db.migrations import MIGRATIONS_DIR

        sql = (MIGRATIONS_DIR / "001_initial.sql").read_text()

        assert "CREATE UNIQUE INDEX IF NOT EXISTS ux_events_slug ON events (slug)" in sql
        assert "tags TEXT[]" in sql
        assert "CREATE TABLE IF NOT EXISTS bookings" in sql


class TestDiscoverMigrations:
    def test_ignores_files_without_version(self, tmp_path):
        from devevent.db.migrations import discover_migrations

        (tmp_path / "002_add_index.sql").write_text("SELECT 1;")
        (tmp_path / "001_initial.sql").write_text("SELECT 1;")
        (tmp_path / "notes.sql").write_text("SELECT 1;")

        found = discover_migrations(tmp_path)

        assert [(m.version, m.description) for m in found] == [(1, "initial"), (2, "add_index")]
