# TemplateStore
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Error taxonomy raised by the template store."""

from __future__ import annotations

import contextlib
import sqlite3
from collections.abc import Iterator

__all__ = [
    "TemplateStoreError",
    "NotFoundError",
    "ConflictError",
    "StorageError",
    "translate_errors",
]


class TemplateStoreError(RuntimeError):
    """Base class for every error surfaced by the store."""


class NotFoundError(TemplateStoreError, LookupError):
    """Raised when an operation references a template that does not exist."""

    def __init__(self, template: str):
        self.template = template
        super().__init__(f"Template {template!r} does not exist")


class ConflictError(TemplateStoreError):
    """Raised when a rename would violate a uniqueness constraint."""


class StorageError(TemplateStoreError):
    """Raised for engine level failures (I/O, corruption, closed connection)."""


def _is_unique_violation(exc: sqlite3.IntegrityError) -> bool:
    # sqlite_errorname exists on Python 3.11+.
    errorname = getattr(exc, "sqlite_errorname", None)
    if errorname:
        return errorname == "SQLITE_CONSTRAINT_UNIQUE"
    return "UNIQUE" in str(exc).upper()


@contextlib.contextmanager
def translate_errors(action: str) -> Iterator[None]:
    """Re-raise ``sqlite3`` errors from the wrapped block as store errors."""

    try:
        yield
    except sqlite3.IntegrityError as exc:
        if not _is_unique_violation(exc):
            raise StorageError(f"{action}: {exc}") from exc
        raise ConflictError(f"{action}: {exc}") from exc
    except sqlite3.Error as exc:
        raise StorageError(f"{action}: {exc}") from exc
