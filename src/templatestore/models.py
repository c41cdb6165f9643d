from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = ["ChangeRecord", "StoreSettings"]


class ChangeRecord(BaseModel):
    """Substitutes an operation actually inserted or removed, in caller order."""

    template: str
    template_created: bool = False
    substitutes: list[str] = Field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.template_created or bool(self.substitutes)


class StoreSettings(BaseModel):
    model_config = ConfigDict(frozen=True)

    db_path: Path = Path("templates.db")
    allow_blank_templates: bool = False
    wal: bool = True
    busy_timeout_ms: int = 5000

    @field_validator("busy_timeout_ms")
    def _timeout_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("busy_timeout_ms must be >= 0")
        return value
