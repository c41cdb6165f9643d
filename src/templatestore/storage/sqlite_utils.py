"""Shared SQLite utility helpers for template databases."""

from __future__ import annotations

import contextlib
import os
import sqlite3
import tempfile
from pathlib import Path

__all__ = [
    "connect_rw",
    "set_delete_mode",
    "optimize",
    "delete_sidecars",
    "backup_connection",
]


def connect_rw(path: str | os.PathLike[str], *, timeout: float = 30.0) -> sqlite3.Connection:
    """Open ``path`` in read/write mode with autocommit semantics."""

    return sqlite3.connect(str(path), timeout=timeout, isolation_level=None)


def set_delete_mode(conn: sqlite3.Connection) -> None:
    """Configure ``conn`` to use DELETE journal mode when possible."""

    with contextlib.suppress(sqlite3.Error):
        conn.execute("PRAGMA journal_mode=DELETE")


def optimize(conn: sqlite3.Connection) -> None:
    """Run ``PRAGMA optimize`` when available."""

    with contextlib.suppress(sqlite3.Error):
        conn.execute("PRAGMA optimize")


def delete_sidecars(path: str | os.PathLike[str]) -> None:
    """Remove ``-wal``/``-shm`` files adjacent to ``path`` if present."""

    base = str(Path(path))
    for suffix in ("-wal", "-shm"):
        try:
            os.remove(base + suffix)
        except FileNotFoundError:
            continue


def backup_connection(src: sqlite3.Connection, dst_path: str | os.PathLike[str]) -> Path:
    """
    Copy the database behind ``src`` into ``dst_path`` using DELETE journal mode.

    The copy is written to a temporary file next to the destination and moved
    into place once complete, so readers never observe a partial backup.
    """

    dst = Path(dst_path)
    dst.parent.mkdir(parents=True, exist_ok=True)
    with tempfile.NamedTemporaryFile(
        prefix=dst.name + ".", suffix=".tmp", dir=dst.parent, delete=False
    ) as tmp:
        tmp_path = tmp.name
    try:
        dst_conn = connect_rw(tmp_path)
        try:
            src.backup(dst_conn)
            set_delete_mode(dst_conn)
            optimize(dst_conn)
        finally:
            dst_conn.close()
        delete_sidecars(tmp_path)
        os.replace(tmp_path, dst)
    finally:
        if os.path.exists(tmp_path):
            with contextlib.suppress(OSError):
                os.remove(tmp_path)
    delete_sidecars(dst)
    return dst
