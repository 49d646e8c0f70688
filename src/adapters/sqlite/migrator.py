import logging
import sqlite3
from datetime import datetime
from pathlib import Path

logger = logging.getLogger(__name__)

DOWN_MARKER = "-- Down"

_LEDGER_DDL = """
    CREATE TABLE IF NOT EXISTS _migrations (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        filename TEXT UNIQUE NOT NULL,
        applied_at TEXT NOT NULL
    );
"""


class SQLiteMigrator:
    """
    Forward-only schema migrations for the shop database.

    Each ``NNNN_name.sql`` file runs once, in filename order, and is
    recorded in ``_migrations``. Text after a ``-- Down`` line documents
    the rollback and is never executed.
    """

    def __init__(self, db_path: str, migrations_dir: str):
        self.db_path = Path(db_path)
        self.migrations_dir = Path(migrations_dir)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.execute("PRAGMA foreign_keys = ON;")
        conn.executescript(_LEDGER_DDL)
        return conn

    def applied_migrations(self) -> set[str]:
        conn = self._connect()
        try:
            return {name for (name,) in conn.execute("SELECT filename FROM _migrations")}
        finally:
            conn.close()

    def pending_migrations(self) -> list[str]:
        done = self.applied_migrations()
        return [p.name for p in sorted(self.migrations_dir.glob("*.sql")) if p.name not in done]

    def run_migrations(self) -> list[str]:
        """Apply everything pending and return the filenames applied."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        pending = self.pending_migrations()
        if not pending:
            logger.debug("Schema at %s is up to date", self.db_path)
            return []

        conn = self._connect()
        try:
            for name in pending:
                self._apply(conn, name)
        finally:
            conn.close()
        logger.info("Applied %d migration(s) to %s", len(pending), self.db_path)
        return pending

    def _apply(self, conn: sqlite3.Connection, name: str) -> None:
        text = (self.migrations_dir / name).read_text(encoding="utf-8")
        up, _, _ = text.partition(DOWN_MARKER)
        logger.info("Applying migration %s", name)
        try:
            conn.executescript(up)
            conn.execute(
                "INSERT INTO _migrations (filename, applied_at) VALUES (?, ?)",
                (name, datetime.utcnow().isoformat()),
            )
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise RuntimeError(f"Migration {name} failed: {e}") from e
