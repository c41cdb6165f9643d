"""Integrity checks for template databases."""

from __future__ import annotations

import logging
import sqlite3
from typing import Any

log = logging.getLogger(__name__)

__all__ = [
    "integrity_issues",
    "foreign_key_issues",
    "orphan_substitute_issues",
    "blank_template_issues",
    "quick_validate_store",
]


def integrity_issues(conn: sqlite3.Connection) -> list[dict[str, Any]]:
    """Run ``PRAGMA integrity_check`` and report anything other than ``ok``."""

    rows = conn.execute("PRAGMA integrity_check").fetchall()
    messages = [str(row[0]) for row in rows]
    if messages == ["ok"]:
        return []
    return [{"kind": "integrity_check", "detail": message} for message in messages]


def foreign_key_issues(conn: sqlite3.Connection) -> list[dict[str, Any]]:
    rows = conn.execute("PRAGMA foreign_key_check").fetchall()
    return [
        {
            "kind": "foreign_key",
            "table": str(row[0]),
            "rowid": row[1],
            "parent": str(row[2]),
        }
        for row in rows
    ]


def orphan_substitute_issues(conn: sqlite3.Connection) -> list[dict[str, Any]]:
    """Find substitutes whose template row is gone."""

    rows = conn.execute(
        """
        SELECT substitutes.id, substitutes.name, substitutes.template_id
          FROM substitutes
          LEFT JOIN templates ON templates.id = substitutes.template_id
         WHERE templates.id IS NULL
         ORDER BY substitutes.id
        """
    ).fetchall()
    return [
        {
            "kind": "orphan_substitutes",
            "substitute_id": int(row[0]),
            "substitute": str(row[1]),
            "template_id": int(row[2]),
        }
        for row in rows
    ]


def blank_template_issues(conn: sqlite3.Connection) -> list[dict[str, Any]]:
    rows = conn.execute(
        """
        SELECT id, name
          FROM templates
         WHERE TRIM(name, ' ' || char(9) || char(10) || char(13)) = ''
         ORDER BY id
        """
    ).fetchall()
    return [
        {"kind": "blank_template", "template_id": int(row[0]), "template": str(row[1])}
        for row in rows
    ]


def quick_validate_store(
    conn: sqlite3.Connection, *, allow_blank_templates: bool = False
) -> list[dict[str, Any]]:
    """
    Run every check and return the combined list of issues.

    Blank template names are only reported when the store disallows them.
    """

    issues: list[dict[str, Any]] = []
    issues.extend(integrity_issues(conn))
    issues.extend(foreign_key_issues(conn))
    issues.extend(orphan_substitute_issues(conn))
    if not allow_blank_templates:
        issues.extend(blank_template_issues(conn))
    if issues:
        log.warning("Store validation found %d issue(s)", len(issues))
    return issues
