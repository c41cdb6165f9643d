from __future__ import annotations

import argparse
import json
import logging
import sys

from .config import load_settings
from .errors import ConflictError, NotFoundError, TemplateStoreError
from .logging_config import setup_logging
from .models import ChangeRecord
from .storage.template_store import TemplateStore, open_store

log = logging.getLogger(__name__)

EXIT_ERROR = 1
EXIT_NOT_FOUND = 2
EXIT_CONFLICT = 3


def _open(args: argparse.Namespace) -> TemplateStore:
    settings = load_settings(
        db_path=args.db,
        allow_blank_templates=True if args.allow_blank else None,
    )
    return open_store(settings=settings)


def _print_record(record: ChangeRecord) -> None:
    print(json.dumps(record.model_dump(mode="json"), indent=2))


def cmd_add(args: argparse.Namespace) -> int:
    with _open(args) as store:
        _print_record(store.insert_substitutions(args.template, args.substitutes))
    return 0


def cmd_remove(args: argparse.Namespace) -> int:
    with _open(args) as store:
        removed = store.remove_template(args.template)
    print(json.dumps({"template": args.template, "removed": removed}))
    return 0


def cmd_remove_subs(args: argparse.Namespace) -> int:
    with _open(args) as store:
        _print_record(store.remove_substitutes(args.template, args.substitutes))
    return 0


def cmd_rename(args: argparse.Namespace) -> int:
    with _open(args) as store:
        renamed = store.rename_template(args.old, args.new)
    print(json.dumps({"old": args.old, "new": args.new, "renamed": renamed}))
    return 0


def cmd_rename_sub(args: argparse.Namespace) -> int:
    with _open(args) as store:
        renamed = store.rename_substitute(args.template, args.old, args.new)
    print(
        json.dumps(
            {"template": args.template, "old": args.old, "new": args.new, "renamed": renamed}
        )
    )
    return 0


def cmd_subs(args: argparse.Namespace) -> int:
    with _open(args) as store:
        for sub in store.list_substitutes(args.template):
            print(sub)
    return 0


def cmd_templates(args: argparse.Namespace) -> int:
    with _open(args) as store:
        for template in store.list_templates():
            print(template)
    return 0


def cmd_random(args: argparse.Namespace) -> int:
    with _open(args) as store:
        choice = store.random_substitute(args.template)
    if choice is not None:
        print(choice)
    return 0


def cmd_clear(args: argparse.Namespace) -> int:
    with _open(args) as store:
        store.clear()
    print("Cleared")
    return 0


def cmd_import(args: argparse.Namespace) -> int:
    from .io.substitutions import import_substitutions_csv

    with _open(args) as store:
        records = import_substitutions_csv(store, args.csv)
    summary = {
        "templates_created": sum(1 for record in records if record.template_created),
        "substitutes_inserted": sum(len(record.substitutes) for record in records),
    }
    print(json.dumps(summary, indent=2))
    return 0


def cmd_export(args: argparse.Namespace) -> int:
    from .io.substitutions import export_substitutions_csv

    with _open(args) as store:
        rows = export_substitutions_csv(store, args.csv)
    print(f"Exported {rows} row(s) to {args.csv}")
    return 0


def cmd_check(args: argparse.Namespace) -> int:
    with _open(args) as store:
        issues = store.check()
    print(json.dumps(issues, indent=2))
    return EXIT_ERROR if issues else 0


def cmd_backup(args: argparse.Namespace) -> int:
    with _open(args) as store:
        target = store.backup(args.dest)
    print(f"Backed up to {target}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("templatestore")
    parser.add_argument(
        "--db",
        default=None,
        help="Database path (default: $TEMPLATESTORE_DB or templates.db)",
    )
    parser.add_argument(
        "--allow-blank",
        action="store_true",
        help="Accept blank template names",
    )
    parser.add_argument("-v", "--verbose", action="count", default=0)
    parser.add_argument("--log-file", default=None)
    sub = parser.add_subparsers(dest="cmd", required=True)

    sp = sub.add_parser("add", help="Create a template and add substitutes")
    sp.add_argument("template")
    sp.add_argument("substitutes", nargs="*")
    sp.set_defaults(func=cmd_add)

    sp = sub.add_parser("remove", help="Delete a template and its substitutes")
    sp.add_argument("template")
    sp.set_defaults(func=cmd_remove)

    sp = sub.add_parser("remove-subs", help="Delete substitutes from a template")
    sp.add_argument("template")
    sp.add_argument("substitutes", nargs="+")
    sp.set_defaults(func=cmd_remove_subs)

    sp = sub.add_parser("rename", help="Rename a template")
    sp.add_argument("old")
    sp.add_argument("new")
    sp.set_defaults(func=cmd_rename)

    sp = sub.add_parser("rename-sub", help="Rename a substitute within a template")
    sp.add_argument("template")
    sp.add_argument("old")
    sp.add_argument("new")
    sp.set_defaults(func=cmd_rename_sub)

    sp = sub.add_parser("subs", help="List the substitutes of a template")
    sp.add_argument("template")
    sp.set_defaults(func=cmd_subs)

    sp = sub.add_parser("templates", help="List templates")
    sp.set_defaults(func=cmd_templates)

    sp = sub.add_parser("random", help="Print one random substitute")
    sp.add_argument("template")
    sp.set_defaults(func=cmd_random)

    sp = sub.add_parser("clear", help="Delete every template")
    sp.set_defaults(func=cmd_clear)

    sp = sub.add_parser("import", help="Import template,substitute rows from CSV")
    sp.add_argument("csv")
    sp.set_defaults(func=cmd_import)

    sp = sub.add_parser("export", help="Export template,substitute rows to CSV")
    sp.add_argument("csv")
    sp.set_defaults(func=cmd_export)

    sp = sub.add_parser("check", help="Run integrity checks")
    sp.set_defaults(func=cmd_check)

    sp = sub.add_parser("backup", help="Copy the database to DEST")
    sp.add_argument("dest")
    sp.set_defaults(func=cmd_backup)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    console_level = logging.WARNING
    if args.verbose == 1:
        console_level = logging.INFO
    elif args.verbose > 1:
        console_level = logging.DEBUG
    setup_logging(console_level=console_level, log_file=args.log_file)

    try:
        return args.func(args)
    except NotFoundError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_NOT_FOUND
    except ConflictError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_CONFLICT
    except (TemplateStoreError, ValueError, OSError) as exc:
        log.debug("Command %s failed", args.cmd, exc_info=True)
        print(f"error: {exc}", file=sys.stderr)
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
