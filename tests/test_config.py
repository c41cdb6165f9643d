from pathlib import Path

import pytest
from pydantic import ValidationError

from templatestore import StoreSettings
from templatestore.config import (
    BUSY_TIMEOUT_ENV_VAR,
    DB_ENV_VAR,
    FEATURES_ENV_VAR,
    load_settings,
    parse_features,
    resolve_features,
)


def test_feature_token_parsing():
    parsed = parse_features("allow-blank-templates, !wal, other=off, junk=maybe, -gone,,")

    assert parsed == {
        "allow_blank_templates": True,
        "wal": False,
        "other": False,
        "gone": False,
    }


def test_resolve_features_fills_defaults():
    assert resolve_features({}) == {"allow_blank_templates": False, "wal": True}
    assert resolve_features({FEATURES_ENV_VAR: "Allow_Blank_Templates=yes,unknown"}) == {
        "allow_blank_templates": True,
        "wal": True,
    }


def test_defaults_without_environment():
    settings = load_settings({})

    assert settings == StoreSettings()
    assert settings.db_path == Path("templates.db")
    assert not settings.allow_blank_templates
    assert settings.wal


def test_environment_settings(tmp_path):
    env = {
        FEATURES_ENV_VAR: "allow_blank_templates,wal=off",
        DB_ENV_VAR: str(tmp_path / "env.db"),
        BUSY_TIMEOUT_ENV_VAR: "250",
    }

    settings = load_settings(env)

    assert settings.allow_blank_templates
    assert not settings.wal
    assert settings.db_path == tmp_path / "env.db"
    assert settings.busy_timeout_ms == 250


def test_reads_process_environment(monkeypatch):
    monkeypatch.setenv(FEATURES_ENV_VAR, "!wal")
    monkeypatch.delenv(DB_ENV_VAR, raising=False)
    monkeypatch.delenv(BUSY_TIMEOUT_ENV_VAR, raising=False)

    assert not load_settings().wal


def test_overrides_win_and_none_is_ignored(tmp_path):
    env = {DB_ENV_VAR: str(tmp_path / "env.db"), BUSY_TIMEOUT_ENV_VAR: "not-a-number"}

    settings = load_settings(env, db_path=tmp_path / "cli.db", allow_blank_templates=None)

    assert settings.db_path == tmp_path / "cli.db"
    assert settings.busy_timeout_ms == 5000
    assert not settings.allow_blank_templates


def test_negative_busy_timeout_is_rejected():
    with pytest.raises(ValidationError):
        StoreSettings(busy_timeout_ms=-1)
