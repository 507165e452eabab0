"""SQLite store for the persisted auto-node settings snapshot."""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from autonode.errors import PersistenceError
from autonode.models import AutoNodeRecord, MatchRule, Settings

SCHEMA_VERSION = 1


class SQLiteSettingsStore:
    """Key-value persistence for registry snapshots."""

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        try:
            self._conn = sqlite3.connect(self.db_path, check_same_thread=False)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL;")
            self._conn.execute("PRAGMA synchronous=NORMAL;")
            self._ensure_schema()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot open settings database {self.db_path}: {exc}") from exc

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        try:
            yield self._conn
            self._conn.commit()
        except Exception:
            self._conn.rollback()
            raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS auto_nodes (
                    path TEXT PRIMARY KEY,
                    keyword TEXT NOT NULL,
                    case_sensitive INTEGER NOT NULL DEFAULT 0,
                    match_whole_word INTEGER NOT NULL DEFAULT 0,
                    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS meta (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL
                )
                """
            )

    def load(self) -> Optional[Settings]:
        """Return the saved snapshot, or None when nothing was ever saved."""
        try:
            version = self._conn.execute(
                "SELECT value FROM meta WHERE key = 'schema_version'"
            ).fetchone()
            if version is None:
                return None
            rows = self._conn.execute(
                "SELECT path, keyword, case_sensitive, match_whole_word FROM auto_nodes"
            ).fetchall()
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot load settings: {exc}") from exc

        nodes = {
            row["path"]: AutoNodeRecord(
                path=row["path"],
                rule=MatchRule(
                    keyword=row["keyword"],
                    case_sensitive=bool(row["case_sensitive"]),
                    match_whole_word=bool(row["match_whole_word"]),
                ),
            )
            for row in rows
        }
        return Settings(nodes=nodes, schema_version=int(version["value"]))

    def save(self, settings: Settings) -> None:
        """Replace the stored snapshot in one transaction."""
        try:
            with self.transaction() as conn:
                conn.execute("DELETE FROM auto_nodes")
                conn.executemany(
                    """
                    INSERT INTO auto_nodes(path, keyword, case_sensitive, match_whole_word)
                    VALUES (?, ?, ?, ?)
                    """,
                    [
                        (
                            record.path,
                            record.rule.keyword,
                            int(record.rule.case_sensitive),
                            int(record.rule.match_whole_word),
                        )
                        for record in settings.nodes.values()
                    ],
                )
                conn.execute(
                    "INSERT OR REPLACE INTO meta(key, value) VALUES ('schema_version', ?)",
                    (str(settings.schema_version),),
                )
        except sqlite3.Error as exc:
            raise PersistenceError(f"Cannot save settings: {exc}") from exc
