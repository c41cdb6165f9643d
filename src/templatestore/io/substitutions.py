# TemplateStore
# Copyright © 2025 Osvaldo J. Vega Rodríguez
# Licensed under CC BY-NC-SA 4.0 International
# http://creativecommons.org/licenses/by-nc-sa/4.0/

"""Read and write template/substitute pairs as CSV tables."""

from __future__ import annotations

import logging
import re
from pathlib import Path

import pandas as pd

from templatestore.models import ChangeRecord
from templatestore.storage.template_store import TemplateStore

log = logging.getLogger(__name__)

TEMPLATE_COLUMN = "template"
SUBSTITUTE_COLUMN = "substitute"

# Substitute cell of a template that has no substitutes. An empty cell is an
# empty-string substitute.
NO_SUBSTITUTE = "\\N"
# Real substitutes spelled like the marker get one extra leading backslash.
_MARKER_LIKE = re.compile(r"\\+N")

HEADER_ALIASES: dict[str, str] = {
    # Template
    "template": TEMPLATE_COLUMN,
    "templates": TEMPLATE_COLUMN,
    "templatename": TEMPLATE_COLUMN,
    "name": TEMPLATE_COLUMN,
    "key": TEMPLATE_COLUMN,
    # Substitute
    "substitute": SUBSTITUTE_COLUMN,
    "substitutes": SUBSTITUTE_COLUMN,
    "substitution": SUBSTITUTE_COLUMN,
    "sub": SUBSTITUTE_COLUMN,
    "value": SUBSTITUTE_COLUMN,
    "word": SUBSTITUTE_COLUMN,
}


def _normalize_column_name(name: str) -> str:
    return re.sub(r"[^a-z0-9]", "", str(name).lower())


def _standardize_headers(df: pd.DataFrame) -> pd.DataFrame:
    """Return ``df`` with aliased headers renamed to the canonical names."""

    rename_map = {}
    for col in df.columns:
        target = HEADER_ALIASES.get(_normalize_column_name(col))
        if not target or col == target:
            continue
        # A column already carrying the canonical name wins over its aliases.
        if target in df.columns or target in rename_map.values():
            log.debug("Ignoring column %r; %r is already present", col, target)
            continue
        rename_map[col] = target
    if rename_map:
        df = df.rename(columns=rename_map)
    return df


def _escape_substitute(sub: str) -> str:
    return "\\" + sub if _MARKER_LIKE.fullmatch(sub) else sub


def _unescape_substitute(sub: str) -> str:
    return sub[1:] if _MARKER_LIKE.fullmatch(sub) else sub


def substitutions_frame(store: TemplateStore) -> pd.DataFrame:
    """Return every pair in ``store`` as a two-column DataFrame."""

    rows = list(store.iter_pairs())
    return pd.DataFrame(rows, columns=[TEMPLATE_COLUMN, SUBSTITUTE_COLUMN])


def read_substitutions_csv(path: str | Path) -> dict[str, list[str]]:
    """
    Load a template -> substitutes mapping from ``path``.

    Rows keep their file order. A ``\\N`` substitute cell, or a file without
    a substitute column, registers the template without adding a substitute;
    an empty cell is the empty-string substitute.
    """
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df = _standardize_headers(df)
    if TEMPLATE_COLUMN not in df.columns:
        raise ValueError(f"{path}: missing a '{TEMPLATE_COLUMN}' column")
    if SUBSTITUTE_COLUMN not in df.columns:
        df[SUBSTITUTE_COLUMN] = NO_SUBSTITUTE

    mapping: dict[str, list[str]] = {}
    for template, sub in df[[TEMPLATE_COLUMN, SUBSTITUTE_COLUMN]].itertuples(index=False):
        subs = mapping.setdefault(str(template), [])
        if sub != NO_SUBSTITUTE:
            subs.append(_unescape_substitute(str(sub)))
    log.debug("Read %d template(s) from %s", len(mapping), path)
    return mapping


def import_substitutions_csv(store: TemplateStore, path: str | Path) -> list[ChangeRecord]:
    """Insert every pair from ``path`` into ``store`` atomically."""

    return store.import_mapping(read_substitutions_csv(path))


def export_substitutions_csv(store: TemplateStore, path: str | Path) -> int:
    """Write every pair in ``store`` to ``path``; return the number of rows."""

    rows = [
        (template, NO_SUBSTITUTE if sub is None else _escape_substitute(sub))
        for template, sub in store.iter_pairs()
    ]
    df = pd.DataFrame(rows, columns=[TEMPLATE_COLUMN, SUBSTITUTE_COLUMN])
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out, index=False)
    log.info("Exported %d row(s) to %s", len(df), out)
    return len(df)
