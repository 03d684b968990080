from __future__ import annotations
import logging

import psycopg2

from gh_forum.domain.errors import StorageError
from gh_forum.domain.interfaces import IStorageBackend

log = logging.getLogger(__name__)

SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS kv_store (
    key        TEXT PRIMARY KEY,
    value      TEXT NOT NULL,
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
)
"""


class PostgresStorageBackend(IStorageBackend):
    """
    Concrete implementation of IStorageBackend using PostgreSQL.

    Receives an already-connected psycopg2 connection (injected).
    Does not create or manage the connection itself; that's the
    responsibility of the caller (main.py / dependency wiring).

    Every psycopg2 failure rolls the transaction back and is re-raised as
    StorageError, which the key-value adapter turns into a fallback value.
    """

    def __init__(self, conn) -> None:
        self._conn = conn

    def _run(self, sql: str, params: tuple = ()) -> list[tuple]:
        try:
            with self._conn.cursor() as cur:
                cur.execute(sql, params)
                rows = cur.fetchall() if cur.description else []
            self._conn.commit()
            return rows
        except psycopg2.Error as exc:
            self._conn.rollback()
            raise StorageError(str(exc)) from exc

    def ensure_schema(self) -> None:
        self._run(SCHEMA_SQL)
        log.debug("kv_store table ready")

    def read(self, key: str) -> str | None:
        rows = self._run("SELECT value FROM kv_store WHERE key = %s", (key,))
        return rows[0][0] if rows else None

    def write(self, key: str, value: str) -> None:
        """
        ON CONFLICT (key) DO UPDATE means:
          - New key      → INSERT
          - Existing key → overwrite value and bump updated_at
        """
        self._run(
            """
            INSERT INTO kv_store (key, value, updated_at)
            VALUES (%s, %s, NOW())
            ON CONFLICT (key) DO UPDATE SET
                value      = EXCLUDED.value,
                updated_at = EXCLUDED.updated_at
            """,
            (key, value),
        )

    def delete(self, key: str) -> None:
        self._run("DELETE FROM kv_store WHERE key = %s", (key,))

    def keys(self, prefix: str = "") -> list[str]:
        # escape LIKE wildcards so a prefix like "a_b" matches literally
        pattern = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_") + "%"
        rows = self._run("SELECT key FROM kv_store WHERE key LIKE %s ORDER BY key", (pattern,))
        return [r[0] for r in rows]
