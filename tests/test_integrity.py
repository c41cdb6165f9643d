import sqlite3
import threading
from pathlib import Path

from templatestore import StoreSettings, open_store
from templatestore.storage.sqlite import schema as _schema


def _make_store(tmp_path: Path, **settings):
    store = open_store(tmp_path / "templates.db", StoreSettings(**settings))
    store.insert_substitutions("noun", ["cat", "dog", "Ape"])
    store.insert_substitutions("verb", ["run", "jump"])
    return store


def test_schema_matches_durable_layout(tmp_path):
    store = _make_store(tmp_path)
    try:
        assert _schema.table_names(store.conn) >= {"templates", "substitutes"}
        assert _schema.get_user_version(store.conn) == _schema.SCHEMA_VERSION
        assert store.conn.execute("PRAGMA foreign_keys").fetchone()[0] == 1
        assert store.journal_mode == "wal"
        assert store.conn.execute("PRAGMA synchronous").fetchone()[0] == 1
        assert store.conn.execute("PRAGMA busy_timeout").fetchone()[0] == 5000
        columns = [row[1] for row in store.conn.execute("PRAGMA table_info(substitutes)")]
        assert columns == ["id", "name", "template_id"]
    finally:
        store.close()


def test_delete_journal_when_wal_disabled(tmp_path):
    store = open_store(tmp_path / "plain.db", StoreSettings(wal=False))
    try:
        assert store.journal_mode == "delete"
    finally:
        store.close()


def test_concurrent_writers_are_serialized(tmp_path):
    store = _make_store(tmp_path)
    errors = []

    def _writer(index: int):
        try:
            for n in range(25):
                store.insert_substitutions(f"t{index}", [f"s{n}"])
                store.list_substitutes(f"t{index}")
        except Exception as exc:  # pragma: no cover - surfaced by the assert below
            errors.append(exc)

    threads = [threading.Thread(target=_writer, args=(i,)) for i in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    try:
        assert not errors
        for i in range(6):
            assert len(store.list_substitutes(f"t{i}")) == 25
        assert store.check() == []
    finally:
        store.close()


def test_open_close_soak_keeps_contents(tmp_path):
    store = _make_store(tmp_path)
    path = store.path
    store.close()

    for _ in range(20):
        reopened = open_store(path)
        assert reopened.check() == []
        assert reopened.list_templates() == ["noun", "verb"]
        assert reopened.list_substitutes("noun") == ["Ape", "cat", "dog"]
        reopened.close()


def test_check_reports_orphans(tmp_path):
    store = _make_store(tmp_path)
    try:
        store.conn.execute("PRAGMA foreign_keys = OFF")
        store.conn.execute(
            "INSERT INTO substitutes (name, template_id) VALUES (?, ?)", ("lost", 999)
        )
        store.conn.execute("PRAGMA foreign_keys = ON")

        kinds = {issue["kind"] for issue in store.check()}

        assert {"orphan_substitutes", "foreign_key"} <= kinds
    finally:
        store.close()


def test_check_reports_blank_templates_only_when_disallowed(tmp_path):
    store = _make_store(tmp_path, allow_blank_templates=True)
    store.insert_substitutions(" ", ["x"])
    assert store.check() == []
    path = store.path
    store.close()

    strict = open_store(path)
    try:
        issues = strict.check()
        assert [issue["kind"] for issue in issues] == ["blank_template"]
        assert issues[0]["template"] == " "
    finally:
        strict.close()


def test_backup_is_single_file_copy(tmp_path):
    store = _make_store(tmp_path)
    try:
        target = store.backup(tmp_path / "backups" / "copy.db")
    finally:
        store.close()

    assert target.exists()
    assert not Path(str(target) + "-wal").exists()
    with sqlite3.connect(target) as conn:
        assert conn.execute("PRAGMA journal_mode").fetchone()[0] == "delete"
        assert conn.execute("PRAGMA integrity_check").fetchone()[0] == "ok"

    with open_store(target, StoreSettings(wal=False)) as copy:
        assert copy.list_templates() == ["noun", "verb"]
        assert copy.list_substitutes("verb") == ["jump", "run"]


def test_backup_from_memory(tmp_path):
    with open_store(":memory:") as store:
        store.insert_substitutions("adj", ["cool"])
        target = store.backup(tmp_path / "memory-copy.db")

    with open_store(target) as copy:
        assert copy.list_substitutes("adj") == ["cool"]
