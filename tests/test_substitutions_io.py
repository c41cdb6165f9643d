import pandas as pd
import pytest

from templatestore import open_store
from templatestore.io.substitutions import (
    NO_SUBSTITUTE,
    export_substitutions_csv,
    import_substitutions_csv,
    read_substitutions_csv,
    substitutions_frame,
)


def _write_csv(path, text):
    path.write_text(text, encoding="utf-8")
    return path


def test_read_normalizes_headers_and_keeps_order(tmp_path):
    csv_path = _write_csv(
        tmp_path / "words.csv",
        "Template,Value\nnoun,cat\nnoun,dog\nverb,run\nadj,\\N\nnoun,cat\n",
    )

    mapping = read_substitutions_csv(csv_path)

    assert mapping == {"noun": ["cat", "dog", "cat"], "verb": ["run"], "adj": []}


def test_read_empty_cell_is_empty_substitute(tmp_path):
    csv_path = _write_csv(tmp_path / "words.csv", "template,substitute\nnoun,\nnoun,cat\n")

    assert read_substitutions_csv(csv_path) == {"noun": ["", "cat"]}


def test_read_without_substitute_column_registers_templates(tmp_path):
    csv_path = _write_csv(tmp_path / "words.csv", "template\nnoun\nverb\n")

    assert read_substitutions_csv(csv_path) == {"noun": [], "verb": []}


def test_read_prefers_canonical_header_over_alias(tmp_path):
    csv_path = _write_csv(
        tmp_path / "words.csv",
        "name,template,value\nignored,noun,cat\nalso-ignored,verb,run\n",
    )

    assert read_substitutions_csv(csv_path) == {"noun": ["cat"], "verb": ["run"]}


def test_read_without_template_column_fails(tmp_path):
    csv_path = _write_csv(tmp_path / "bad.csv", "word\ncat\n")

    with pytest.raises(ValueError):
        read_substitutions_csv(csv_path)


def test_import_then_export(tmp_path):
    csv_path = _write_csv(
        tmp_path / "words.csv",
        "template,substitute\nnoun,dog\nnoun,Ape\nnoun,cat\nadj,\\N\n",
    )

    with open_store(tmp_path / "templates.db") as store:
        records = import_substitutions_csv(store, csv_path)
        again = import_substitutions_csv(store, csv_path)

        assert [record.template for record in records] == ["noun", "adj"]
        assert records[0].substitutes == ["dog", "Ape", "cat"]
        assert records[1].template_created
        assert all(not record.changed for record in again)
        assert store.list_substitutes("noun") == ["Ape", "cat", "dog"]
        assert store.list_substitutes("adj") == []

        rows = export_substitutions_csv(store, tmp_path / "out" / "export.csv")

    assert rows == 4
    exported = pd.read_csv(tmp_path / "out" / "export.csv", dtype=str, keep_default_na=False)
    assert list(exported.columns) == ["template", "substitute"]
    assert exported.values.tolist() == [
        ["adj", NO_SUBSTITUTE],
        ["noun", "Ape"],
        ["noun", "cat"],
        ["noun", "dog"],
    ]


def test_export_and_reimport_keeps_empty_and_marker_like_substitutes(tmp_path):
    csv_path = tmp_path / "export.csv"
    with open_store(tmp_path / "source.db") as source:
        source.insert_substitutions("noun", ["", "cat"])
        source.insert_substitutions("odd", ["\\N", "\\\\N", "N"])
        source.insert_substitutions("bare")
        export_substitutions_csv(source, csv_path)

    with open_store(tmp_path / "copy.db") as copy:
        import_substitutions_csv(copy, csv_path)

        assert copy.list_templates() == ["bare", "noun", "odd"]
        assert copy.list_substitutes("noun") == ["", "cat"]
        assert copy.list_substitutes("odd") == ["\\\\N", "\\N", "N"]
        assert copy.list_substitutes("bare") == []


def test_substitutions_frame():
    with open_store(":memory:") as store:
        store.insert_substitutions("verb", ["run", "jump"])
        df = substitutions_frame(store)

    assert df.shape == (2, 2)
    assert df["substitute"].tolist() == ["jump", "run"]
