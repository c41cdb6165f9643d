"""
Template and substitute table helpers.

Every helper takes an open connection and runs inside the caller's
transaction; none of them commit.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Iterator

__all__ = [
    "find_template_id",
    "insert_template",
    "insert_substitutes",
    "delete_substitutes",
    "delete_template",
    "rename_template",
    "rename_substitute",
    "delete_all",
    "fetch_substitutes",
    "fetch_templates",
    "fetch_random_substitute",
    "iter_pairs",
]


def find_template_id(conn: sqlite3.Connection, template: str) -> int | None:
    """Return the id of ``template`` or ``None`` when it does not exist."""

    row = conn.execute("SELECT id FROM templates WHERE name = ?", (template,)).fetchone()
    return int(row[0]) if row else None


def insert_template(conn: sqlite3.Connection, template: str) -> bool:
    """Insert ``template`` if absent; return whether a row was created."""

    cur = conn.execute("INSERT OR IGNORE INTO templates (name) VALUES (?)", (template,))
    return cur.rowcount > 0


def insert_substitutes(
    conn: sqlite3.Connection, template_id: int, substitutes: Iterable[str]
) -> list[str]:
    """Insert each substitute, skipping existing ones; return those inserted."""

    inserted: list[str] = []
    for sub in substitutes:
        cur = conn.execute(
            "INSERT OR IGNORE INTO substitutes (name, template_id) VALUES (?, ?)",
            (sub, template_id),
        )
        if cur.rowcount > 0:
            inserted.append(str(sub))
    return inserted


def delete_substitutes(
    conn: sqlite3.Connection, template_id: int, substitutes: Iterable[str]
) -> list[str]:
    """Delete each present substitute; return those removed in input order."""

    removed: list[str] = []
    for sub in substitutes:
        cur = conn.execute(
            "DELETE FROM substitutes WHERE template_id = ? AND name = ?",
            (template_id, sub),
        )
        if cur.rowcount > 0:
            removed.append(str(sub))
    return removed


def delete_template(conn: sqlite3.Connection, template_id: int) -> bool:
    """Delete a template and its substitutes, substitutes first."""

    conn.execute("DELETE FROM substitutes WHERE template_id = ?", (template_id,))
    cur = conn.execute("DELETE FROM templates WHERE id = ?", (template_id,))
    return cur.rowcount > 0


def rename_template(conn: sqlite3.Connection, old: str, new: str) -> bool:
    cur = conn.execute("UPDATE templates SET name = ? WHERE name = ?", (new, old))
    return cur.rowcount > 0


def rename_substitute(
    conn: sqlite3.Connection, template_id: int, old_sub: str, new_sub: str
) -> bool:
    cur = conn.execute(
        "UPDATE substitutes SET name = ? WHERE name = ? AND template_id = ?",
        (new_sub, old_sub, template_id),
    )
    return cur.rowcount > 0


def delete_all(conn: sqlite3.Connection) -> None:
    conn.execute("DELETE FROM substitutes")
    conn.execute("DELETE FROM templates")


def fetch_substitutes(conn: sqlite3.Connection, template_id: int) -> list[str]:
    """Return the substitutes of a template ordered case-insensitively."""

    rows = conn.execute(
        """
        SELECT name
          FROM substitutes
         WHERE template_id = ?
         ORDER BY LOWER(name) ASC, name ASC
        """,
        (template_id,),
    ).fetchall()
    return [str(row[0]) for row in rows]


def fetch_templates(conn: sqlite3.Connection) -> list[str]:
    rows = conn.execute(
        "SELECT name FROM templates ORDER BY LOWER(name) ASC, name ASC"
    ).fetchall()
    return [str(row[0]) for row in rows]


def fetch_random_substitute(conn: sqlite3.Connection, template_id: int) -> str | None:
    """Return one uniformly selected substitute, or ``None`` if there are none."""

    row = conn.execute(
        "SELECT name FROM substitutes WHERE template_id = ? ORDER BY RANDOM() LIMIT 1",
        (template_id,),
    ).fetchone()
    return str(row[0]) if row else None


def iter_pairs(conn: sqlite3.Connection) -> Iterator[tuple[str, str | None]]:
    """Yield ``(template, substitute)`` pairs; empty templates pair with ``None``."""

    cur = conn.execute(
        """
        SELECT templates.name, substitutes.name
          FROM templates
          LEFT JOIN substitutes
            ON substitutes.template_id = templates.id
         ORDER BY LOWER(templates.name) ASC, templates.name ASC,
                  LOWER(substitutes.name) ASC, substitutes.name ASC
        """
    )
    for template, sub in cur:
        yield str(template), (str(sub) if sub is not None else None)
