"""
Schema migrations for the entity store.

Migrations are ``NNN_name.sql`` files applied in filename order. Only the
part before a ``-- Down`` marker runs; a leading ``-- Up`` marker is
optional. Applied filenames are recorded in ``_migrations``.
"""

import logging
import sqlite3
from contextlib import closing
from dataclasses import dataclass
from pathlib import Path

logger = logging.getLogger(__name__)

_LEDGER_DDL = """
    CREATE TABLE IF NOT EXISTS _migrations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        filename TEXT UNIQUE NOT NULL,
        applied_at DATETIME DEFAULT CURRENT_TIMESTAMP
    );
"""


@dataclass(frozen=True)
class Migration:
    filename: str
    up_sql: str

    @classmethod
    def from_file(cls, path: Path) -> "Migration":
        up_sql, _, _ = path.read_text().partition("-- Down")
        return cls(filename=path.name, up_sql=up_sql)


class SQLiteMigrator:
    def __init__(self, db_path: str, migrations_dir: str):
        self.db_path = db_path
        self.migrations_dir = Path(migrations_dir)

    def discover(self) -> list[Migration]:
        return [Migration.from_file(p) for p in sorted(self.migrations_dir.glob("*.sql"))]

    def run_migrations(self) -> list[str]:
        """Apply pending migrations. Returns the filenames applied, in order."""
        applied_now: list[str] = []
        with closing(sqlite3.connect(self.db_path)) as conn:
            conn.execute("PRAGMA foreign_keys = ON;")
            conn.execute(_LEDGER_DDL)
            done = {row[0] for row in conn.execute("SELECT filename FROM _migrations")}

            for migration in self.discover():
                if migration.filename in done:
                    continue
                logger.debug("Applying migration %s", migration.filename)
                self._apply(conn, migration)
                applied_now.append(migration.filename)

        if applied_now:
            logger.info("Applied %d migration(s) to %s", len(applied_now), self.db_path)
        return applied_now

    @staticmethod
    def _apply(conn: sqlite3.Connection, migration: Migration) -> None:
        try:
            conn.executescript(migration.up_sql)
            conn.execute("INSERT INTO _migrations (filename) VALUES (?)", (migration.filename,))
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RuntimeError(f"Migration {migration.filename} failed: {e}") from e
