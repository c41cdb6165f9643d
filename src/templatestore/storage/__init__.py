"""Storage backends for template databases."""

from templatestore.storage.template_store import MEMORY_PATH, TemplateStore, open_store

__all__ = ["MEMORY_PATH", "TemplateStore", "open_store"]
