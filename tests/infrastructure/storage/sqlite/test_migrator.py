"""Tests for the schema migrator."""

from pathlib import Path

import aiosqlite
import pytest

from remindsync.core.exceptions import DatabaseError
from remindsync.infrastructure.storage.sqlite.migrations.migrator import (
    Migration,
    applied_versions,
    load_migrations,
    migrate,
    run_migrations,
)


async def _tables(db_path: Path) -> set[str]:
    async with aiosqlite.connect(db_path) as conn:
        cursor = await conn.execute("SELECT name FROM sqlite_master WHERE type = 'table'")
        return {row[0] for row in await cursor.fetchall()}


class TestLoadMigrations:
    def test_bundled(self):
        migrations = load_migrations()
        assert migrations[0].version == 1
        assert migrations[0].label == "v001_reminder_documents"

    def test_skips_bad_names_and_sorts(self, tmp_path: Path):
        (tmp_path / "vbad.sql").write_text("SELECT 1;")
        (tmp_path / "v010_later.sql").write_text("SELECT 1;")
        (tmp_path / "v002_sooner.sql").write_text("SELECT 1;")

        assert [m.version for m in load_migrations(tmp_path)] == [2, 10]

    def test_checksum_tracks_content(self):
        assert Migration(1, "a", "SELECT 1;").checksum != Migration(1, "a", "SELECT 2;").checksum


class TestRunMigrations:
    """Tests for applying migrations to a database file."""

    async def test_creates_tables(self, tmp_path: Path):
        db_path = tmp_path / "server.db"

        applied = await run_migrations(db_path)

        assert [m.version for m in applied] == [1]
        assert {"schema_migrations", "reminder_documents", "devices"} <= await _tables(db_path)

    async def test_second_run_applies_nothing(self, tmp_path: Path):
        db_path = tmp_path / "server.db"
        await run_migrations(db_path)
        assert await run_migrations(db_path) == []

    async def test_failed_migration_leaves_nothing_behind(self, tmp_path: Path):
        good = Migration(1, "good", "CREATE TABLE kept (id INTEGER);")
        bad = Migration(2, "bad", "CREATE TABLE half (id INTEGER);\nNOT SQL;")

        async with aiosqlite.connect(tmp_path / "server.db") as conn:
            with pytest.raises(DatabaseError):
                await migrate(conn, [good, bad])
            versions = await applied_versions(conn)

        assert list(versions) == [1]
        tables = await _tables(tmp_path / "server.db")
        assert "kept" in tables
        assert "half" not in tables
