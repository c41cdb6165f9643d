# TemplateStore
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Public package interface for TemplateStore."""

from templatestore.errors import (
    ConflictError,
    NotFoundError,
    StorageError,
    TemplateStoreError,
)
from templatestore.models import ChangeRecord, StoreSettings
from templatestore.storage.template_store import MEMORY_PATH, TemplateStore, open_store

__version__ = "0.4.0"

__all__ = [
    "ChangeRecord",
    "ConflictError",
    "MEMORY_PATH",
    "NotFoundError",
    "StorageError",
    "StoreSettings",
    "TemplateStore",
    "TemplateStoreError",
    "open_store",
    "__version__",
]
