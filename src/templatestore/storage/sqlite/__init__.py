"""SQLite helpers backing :mod:`templatestore.storage.template_store`."""

from __future__ import annotations

__all__: list[str] = ["schema", "templates", "utils"]
