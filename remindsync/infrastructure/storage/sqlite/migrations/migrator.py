"""
Versioned schema migrations for the server database.

``vNNN_name.sql`` files in this directory run in version order. Each file
runs in one transaction together with its ``schema_migrations`` row, so a
failing file leaves neither partial tables nor a version record behind.
"""

import hashlib
import re
from dataclasses import dataclass
from pathlib import Path

import aiosqlite

from remindsync.config import get_logger
from remindsync.core.exceptions import DatabaseError

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

_FILENAME = re.compile(r"v(\d{3})_([a-z0-9_]+)\.sql")

_BOOKKEEPING = """
CREATE TABLE IF NOT EXISTS schema_migrations (
    version INTEGER PRIMARY KEY,
    name TEXT NOT NULL,
    checksum TEXT NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
)
"""


@dataclass(frozen=True)
class Migration:
    version: int
    name: str
    sql: str

    @property
    def checksum(self) -> str:
        return hashlib.sha256(self.sql.encode()).hexdigest()[:16]

    @property
    def label(self) -> str:
        return f"v{self.version:03d}_{self.name}"

    @classmethod
    def from_file(cls, path: Path) -> "Migration":
        match = _FILENAME.fullmatch(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")
        return cls(
            version=int(match.group(1)),
            name=match.group(2),
            sql=path.read_text(encoding="utf-8"),
        )


def load_migrations(directory: Path = MIGRATIONS_DIR) -> list[Migration]:
    """Migrations in version order; badly named files are skipped."""
    migrations = []
    for path in directory.glob("v*.sql"):
        try:
            migrations.append(Migration.from_file(path))
        except ValueError as e:
            logger.warning("migration_file_skipped", path=str(path), error=str(e))
    return sorted(migrations, key=lambda m: m.version)


async def applied_versions(conn: aiosqlite.Connection) -> dict[int, str]:
    """Recorded versions mapped to the checksum they were applied with."""
    cursor = await conn.execute("SELECT version, checksum FROM schema_migrations")
    return {row[0]: row[1] for row in await cursor.fetchall()}


async def _apply(conn: aiosqlite.Connection, migration: Migration) -> None:
    record = (
        "INSERT INTO schema_migrations (version, name, checksum) "
        f"VALUES ({migration.version}, '{migration.name}', '{migration.checksum}');"
    )
    try:
        await conn.executescript(f"BEGIN IMMEDIATE;\n{migration.sql}\n{record}\nCOMMIT;")
    except aiosqlite.Error as e:
        await conn.rollback()
        raise DatabaseError(f"migration {migration.label}", str(e)) from e


async def migrate(
    conn: aiosqlite.Connection, migrations: list[Migration] | None = None
) -> list[Migration]:
    """
    Apply every migration not yet recorded.

    Returns:
        The migrations applied by this call

    Raises:
        DatabaseError: On the first migration that fails; later ones are
            not attempted
    """
    await conn.execute(_BOOKKEEPING)
    await conn.commit()
    applied = await applied_versions(conn)

    done = []
    for migration in migrations if migrations is not None else load_migrations():
        recorded = applied.get(migration.version)
        if recorded is not None:
            if recorded != migration.checksum:
                logger.warning("migration_checksum_changed", migration=migration.label)
            continue
        await _apply(conn, migration)
        logger.info("migration_applied", migration=migration.label)
        done.append(migration)
    return done


async def run_migrations(db_path: Path) -> list[Migration]:
    """Bring the database file at ``db_path`` up to date."""
    db_path.parent.mkdir(parents=True, exist_ok=True)
    async with aiosqlite.connect(db_path) as conn:
        await conn.execute("PRAGMA journal_mode=WAL")
        done = await migrate(conn)
    if done:
        logger.info("database_migrated", db_path=str(db_path), applied=len(done))
    return done
