"""
Utility helpers for SQLite-backed template storage.

Connection helpers, pragmas and the transaction context manager.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, cast
from urllib.parse import quote

__all__ = ["open_db", "set_pragmas", "transaction"]


# ---- Connections ------------------------------------------------------------


def open_db(path: str) -> sqlite3.Connection:
    """
    Open (creating if needed) a SQLite database in autocommit mode.

    Transactions are opened explicitly with :func:`transaction`.
    """
    if path == ":memory:":
        return sqlite3.connect(":memory:", check_same_thread=False, isolation_level=None)
    uri = f"file:{quote(path)}?mode=rwc"
    return sqlite3.connect(uri, uri=True, check_same_thread=False, isolation_level=None)


def _to_int(value: object) -> int:
    """Best-effort conversion to ``int`` for pragmatic pragmas."""

    return int(cast(Any, value))


def set_pragmas(conn: sqlite3.Connection, opts: Mapping[str, object]) -> None:
    """Apply selected pragmas.

    Only keys present in ``opts`` are applied. Supported keys include
    ``foreign_keys``, ``journal_mode``, ``synchronous`` and ``busy_timeout_ms``.
    """

    norm = {str(key).lower(): value for key, value in opts.items()}
    for key, value in norm.items():
        if key == "foreign_keys":
            conn.execute(f"PRAGMA foreign_keys={'ON' if value else 'OFF'}")
        elif key == "journal_mode":
            conn.execute(f"PRAGMA journal_mode={value}")
        elif key == "synchronous":
            conn.execute(f"PRAGMA synchronous={value}")
        elif key == "busy_timeout_ms":
            conn.execute(f"PRAGMA busy_timeout={_to_int(value)}")


# ---- Transactions ----------------------------------------------------------


@contextmanager
def transaction(
    conn: sqlite3.Connection,
    *,
    begin: str = "BEGIN IMMEDIATE",
) -> Iterator[sqlite3.Connection]:
    """
    Transaction wrapper that commits on success and rolls back on error.
    Uses BEGIN IMMEDIATE by default to take the write lock up front.
    """

    conn.execute(begin)
    try:
        yield conn
        conn.execute("COMMIT")
    except BaseException:
        if conn.in_transaction:
            conn.execute("ROLLBACK")
        raise
