"""
SQLite-backed template storage.

A :class:`TemplateStore` owns exactly one connection. Every public operation
runs as a single transaction under the store lock: it either commits all of
its statements or rolls all of them back and raises.
"""

from __future__ import annotations

import contextlib
import logging
import os
import sqlite3
import threading
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from templatestore.errors import NotFoundError, StorageError, translate_errors
from templatestore.models import ChangeRecord, StoreSettings
from templatestore.storage import validation
from templatestore.storage.sqlite import schema as _schema
from templatestore.storage.sqlite import templates as _templates
from templatestore.storage.sqlite.utils import open_db, transaction

from .sqlite_utils import backup_connection as _sqlite_backup
from .sqlite_utils import optimize as _sqlite_optimize

log = logging.getLogger(__name__)

__all__ = ["TemplateStore", "open_store", "MEMORY_PATH"]

MEMORY_PATH = ":memory:"


def _is_blank(name: str) -> bool:
    return not name.strip()


def _as_sequence(values: Iterable[str], argument: str) -> list[str]:
    # A bare string would otherwise be iterated character by character.
    if isinstance(values, str):
        raise TypeError(f"{argument} must be a sequence of strings, not a string")
    return list(values)


@dataclass
class TemplateStore:
    """Open template database plus the lock serializing access to it."""

    path: str
    conn: sqlite3.Connection
    settings: StoreSettings = field(default_factory=StoreSettings)
    journal_mode: str | None = None
    _lock: threading.RLock = field(default_factory=threading.RLock, repr=False)
    _closed: bool = field(default=False, repr=False)

    # ------------------------------------------------------------------ #
    # Lifecycle                                                          #
    # ------------------------------------------------------------------ #
    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            try:
                _sqlite_optimize(self.conn)
            finally:
                self.conn.close()
            log.info("Closed template store %s", self.path)

    def __enter__(self) -> TemplateStore:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    @contextlib.contextmanager
    def _session(self, action: str, *, write: bool = True) -> Iterator[sqlite3.Connection]:
        """Hold the lock and run the block in one transaction."""

        with self._lock:
            if self._closed:
                raise StorageError(f"{action}: store {self.path} is closed")
            with translate_errors(action):
                with transaction(self.conn, begin="BEGIN IMMEDIATE" if write else "BEGIN"):
                    yield self.conn

    def _rejects_blank(self, template: str) -> bool:
        if self.settings.allow_blank_templates or not _is_blank(template):
            return False
        log.warning("Rejected blank template name %r", template)
        return True

    @staticmethod
    def _require_template_id(conn: sqlite3.Connection, template: str) -> int:
        template_id = _templates.find_template_id(conn, template)
        if template_id is None:
            raise NotFoundError(template)
        return template_id

    # ------------------------------------------------------------------ #
    # Mutations                                                          #
    # ------------------------------------------------------------------ #
    def insert_substitutions(
        self, template: str, substitutes: Iterable[str] | None = None
    ) -> ChangeRecord:
        """
        Create ``template`` if missing and add any new ``substitutes`` to it.

        Existing substitutes are skipped. The returned record lists only the
        substitutes that were newly inserted, in the order given. A blank
        template name is rejected without touching the database unless the
        store allows blank templates.
        """
        subs = _as_sequence(substitutes, "substitutes") if substitutes is not None else None
        if self._rejects_blank(template):
            return ChangeRecord(template=template)

        with self._session("insert substitutions") as conn:
            created = _templates.insert_template(conn, template)
            inserted: list[str] = []
            if subs:
                template_id = self._require_template_id(conn, template)
                inserted = _templates.insert_substitutes(conn, template_id, subs)

        log.debug(
            "Inserted %d substitute(s) into %r (template created: %s)",
            len(inserted),
            template,
            created,
        )
        return ChangeRecord(template=template, template_created=created, substitutes=inserted)

    def import_mapping(self, mapping: Mapping[str, Iterable[str] | None]) -> list[ChangeRecord]:
        """Insert several templates and their substitutes in one transaction."""

        prepared = [
            (template, _as_sequence(subs, "substitutes") if subs is not None else None)
            for template, subs in mapping.items()
        ]
        records: list[ChangeRecord] = []
        with self._session("import substitutions") as conn:
            for template, subs in prepared:
                if self._rejects_blank(template):
                    records.append(ChangeRecord(template=template))
                    continue
                created = _templates.insert_template(conn, template)
                inserted: list[str] = []
                if subs:
                    template_id = self._require_template_id(conn, template)
                    inserted = _templates.insert_substitutes(conn, template_id, subs)
                records.append(
                    ChangeRecord(template=template, template_created=created, substitutes=inserted)
                )
        log.info("Imported %d template(s)", len(records))
        return records

    def remove_template(self, template: str) -> bool:
        """Delete ``template`` and its substitutes; ``NotFoundError`` if absent."""

        with self._session("remove template") as conn:
            template_id = self._require_template_id(conn, template)
            removed = _templates.delete_template(conn, template_id)
        log.debug("Removed template %r", template)
        return removed

    def remove_substitutes(self, template: str, substitutes: Iterable[str]) -> ChangeRecord:
        """Delete the given substitutes; the record lists those actually removed."""

        subs = _as_sequence(substitutes, "substitutes")
        with self._session("remove substitutes") as conn:
            template_id = self._require_template_id(conn, template)
            removed = _templates.delete_substitutes(conn, template_id, subs)
        log.debug("Removed %d substitute(s) from %r", len(removed), template)
        return ChangeRecord(template=template, substitutes=removed)

    def rename_template(self, old: str, new: str) -> bool:
        """
        Rename a template in place, keeping its id and substitutes.

        Returns False when ``old`` does not exist or already is ``new``.
        Raises ``ConflictError`` when ``new`` is already taken.
        """
        if old == new or self._rejects_blank(new):
            return False
        with self._session("rename template") as conn:
            changed = _templates.rename_template(conn, old, new)
        log.debug("Renamed template %r -> %r: %s", old, new, changed)
        return changed

    def rename_substitute(self, template: str, old_sub: str, new_sub: str) -> bool:
        with self._session("rename substitute") as conn:
            template_id = self._require_template_id(conn, template)
            changed = old_sub != new_sub and _templates.rename_substitute(
                conn, template_id, old_sub, new_sub
            )
        log.debug("Renamed substitute %r -> %r in %r: %s", old_sub, new_sub, template, changed)
        return changed

    def clear(self) -> None:
        with self._session("clear") as conn:
            _templates.delete_all(conn)
        log.info("Cleared template store %s", self.path)

    # ------------------------------------------------------------------ #
    # Queries                                                            #
    # ------------------------------------------------------------------ #
    def list_substitutes(self, template: str) -> list[str]:
        """Return the substitutes of ``template`` in case-insensitive order."""

        with self._session("list substitutes", write=False) as conn:
            template_id = self._require_template_id(conn, template)
            return _templates.fetch_substitutes(conn, template_id)

    def random_substitute(self, template: str) -> str | None:
        """Return a uniformly chosen substitute, or None if the template has none."""

        with self._session("random substitute", write=False) as conn:
            template_id = self._require_template_id(conn, template)
            return _templates.fetch_random_substitute(conn, template_id)

    def list_templates(self) -> list[str]:
        with self._session("list templates", write=False) as conn:
            return _templates.fetch_templates(conn)

    def has_template(self, template: str) -> bool:
        with self._session("look up template", write=False) as conn:
            return _templates.find_template_id(conn, template) is not None

    def iter_pairs(self) -> Iterator[tuple[str, str | None]]:
        """Iterate a snapshot of every (template, substitute) pair."""

        with self._session("list pairs", write=False) as conn:
            pairs = list(_templates.iter_pairs(conn))
        return iter(pairs)

    # ------------------------------------------------------------------ #
    # Maintenance                                                        #
    # ------------------------------------------------------------------ #
    def check(self) -> list[dict[str, Any]]:
        """Return integrity issues found in the database (empty when healthy)."""

        with self._session("check", write=False) as conn:
            return validation.quick_validate_store(
                conn, allow_blank_templates=self.settings.allow_blank_templates
            )

    def backup(self, dest: str | os.PathLike[str]) -> Path:
        """Write a consistent single-file copy of the database to ``dest``."""

        with self._lock:
            if self._closed:
                raise StorageError(f"backup: store {self.path} is closed")
            with translate_errors("backup"):
                target = _sqlite_backup(self.conn, dest)
        log.info("Backed up template store %s to %s", self.path, target)
        return target


def open_store(
    path: str | os.PathLike[str] | None = None,
    settings: StoreSettings | None = None,
) -> TemplateStore:
    """
    Open (or create) the template database at ``path``.

    ``path`` defaults to ``settings.db_path``. The schema is created when
    missing, so opening the same file repeatedly is safe.
    """

    settings = settings or StoreSettings()
    target = os.fspath(path) if path is not None else os.fspath(settings.db_path)

    if target != MEMORY_PATH:
        try:
            Path(target).parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"open {target}: {exc}") from exc

    try:
        conn = open_db(target)
    except sqlite3.Error as exc:
        raise StorageError(f"open {target}: {exc}") from exc

    try:
        journal_mode = _schema.apply_default_pragmas(
            conn, wal=settings.wal, busy_timeout_ms=settings.busy_timeout_ms
        )
        _schema.ensure_schema(conn)
    except sqlite3.Error as exc:
        conn.close()
        raise StorageError(f"open {target}: {exc}") from exc

    log.info("Opened template store %s (journal=%s)", target, journal_mode)
    return TemplateStore(path=target, conn=conn, settings=settings, journal_mode=journal_mode)
