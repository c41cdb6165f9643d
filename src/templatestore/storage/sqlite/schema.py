"""
Schema and pragma helpers for template databases.
"""

from __future__ import annotations

import logging
import sqlite3

from templatestore.storage.sqlite.utils import set_pragmas

__all__ = [
    "SCHEMA_VERSION",
    "apply_default_pragmas",
    "ensure_schema",
    "get_user_version",
    "set_user_version",
    "table_names",
]

log = logging.getLogger(__name__)

SCHEMA_VERSION = 1


def apply_default_pragmas(
    conn: sqlite3.Connection,
    *,
    wal: bool = True,
    busy_timeout_ms: int = 5000,
) -> str:
    """
    Apply the pragmas every store connection runs with.

    WAL is used for file databases unless ``wal`` is False, in which case the
    single-file DELETE journal is selected. Returns the journal mode SQLite
    reports back (``memory`` for in-memory databases).
    """
    pragmas: dict[str, object] = {
        "foreign_keys": True,
        "busy_timeout_ms": busy_timeout_ms,
        "journal_mode": "WAL" if wal else "DELETE",
    }
    if wal:
        pragmas["synchronous"] = "NORMAL"  # safe with WAL
    set_pragmas(conn, pragmas)
    row = conn.execute("PRAGMA journal_mode").fetchone()
    return str(row[0]).lower() if row else ""


def ensure_schema(conn: sqlite3.Connection, *, schema_version: int = SCHEMA_VERSION) -> None:
    """
    Create the ``templates`` and ``substitutes`` tables when missing.

    Idempotent; existing rows are never touched.
    """

    existing = table_names(conn)
    conn.executescript(
        """
        CREATE TABLE IF NOT EXISTS templates (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL UNIQUE
        );

        CREATE TABLE IF NOT EXISTS substitutes (
            id INTEGER PRIMARY KEY,
            name TEXT NOT NULL,
            template_id INTEGER NOT NULL REFERENCES templates(id),
            UNIQUE(name, template_id)
        );
        """
    )
    if not {"templates", "substitutes"} <= existing:
        log.info("Created template schema (version %s)", schema_version)
    if get_user_version(conn) < schema_version:
        set_user_version(conn, schema_version)


def table_names(conn: sqlite3.Connection) -> set[str]:
    """Return the names of user tables in ``conn``."""

    rows = conn.execute(
        "SELECT name FROM sqlite_master WHERE type = 'table' AND name NOT LIKE 'sqlite_%'"
    ).fetchall()
    return {str(row[0]) for row in rows}


def get_user_version(conn: sqlite3.Connection) -> int:
    """Return the PRAGMA user_version value."""

    cur = conn.execute("PRAGMA user_version")
    row = cur.fetchone()
    return int(row[0]) if row and row[0] is not None else 0


def set_user_version(conn: sqlite3.Connection, version: int) -> None:
    """Update the PRAGMA user_version value."""

    conn.execute(f"PRAGMA user_version = {int(version)}")
