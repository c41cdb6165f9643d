# TemplateStore
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Resolve :class:`StoreSettings` from the environment."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from templatestore.models import StoreSettings

log = logging.getLogger(__name__)

DB_ENV_VAR = "TEMPLATESTORE_DB"
BUSY_TIMEOUT_ENV_VAR = "TEMPLATESTORE_BUSY_TIMEOUT_MS"
FEATURES_ENV_VAR = "TEMPLATESTORE_FEATURES"

# Feature name -> default when the environment does not mention it.
KNOWN_FEATURES: dict[str, bool] = {
    "allow_blank_templates": False,
    "wal": True,
}

_FALSE_VALUES = {"0", "false", "off", "no", "disable", "disabled"}
_TRUE_VALUES = {"1", "true", "on", "yes", "enable", "enabled"}


def _feature_key(name: str) -> str:
    return name.strip().lower().replace("-", "_")


def parse_features(raw: str) -> dict[str, bool]:
    """
    Parse a comma separated feature list.

    ``name`` switches a feature on, ``!name`` or ``-name`` switches it off and
    ``name=value`` accepts the usual boolean spellings. Tokens with an
    unrecognised value are ignored.
    """
    features: dict[str, bool] = {}
    for token in (part.strip() for part in raw.split(",")):
        if not token:
            continue
        if token[0] in "!-":
            features[_feature_key(token[1:])] = False
            continue
        name, sep, value = token.partition("=")
        if not sep:
            features[_feature_key(name)] = True
            continue
        value = value.strip().lower()
        if value in _TRUE_VALUES:
            features[_feature_key(name)] = True
        elif value in _FALSE_VALUES:
            features[_feature_key(name)] = False
        else:
            log.warning("Ignoring feature token %r", token)
    return features


def resolve_features(environ: Mapping[str, str] | None = None) -> dict[str, bool]:
    """Return every known feature with environment overrides applied."""

    env = os.environ if environ is None else environ
    parsed = parse_features(env.get(FEATURES_ENV_VAR, ""))
    unknown = sorted(set(parsed) - set(KNOWN_FEATURES))
    if unknown:
        log.warning("Unknown features in %s: %s", FEATURES_ENV_VAR, ", ".join(unknown))
    return {name: parsed.get(name, default) for name, default in KNOWN_FEATURES.items()}


def load_settings(environ: Mapping[str, str] | None = None, **overrides: Any) -> StoreSettings:
    """
    Build settings from environment variables.

    Keyword arguments that are not ``None`` take precedence over the
    environment, so callers can pass parsed CLI options straight through.
    """
    env = os.environ if environ is None else environ
    values: dict[str, Any] = dict(resolve_features(env))

    db_path = env.get(DB_ENV_VAR)
    if db_path:
        values["db_path"] = Path(db_path).expanduser()

    raw_timeout = env.get(BUSY_TIMEOUT_ENV_VAR)
    if raw_timeout:
        try:
            values["busy_timeout_ms"] = int(raw_timeout)
        except ValueError:
            log.warning("Ignoring non-integer %s=%r", BUSY_TIMEOUT_ENV_VAR, raw_timeout)

    values.update({key: value for key, value in overrides.items() if value is not None})
    return StoreSettings(**values)
