from __future__ import annotations

import argparse
import sys
from collections.abc import Sequence

from prettytable import PrettyTable

from app.services import NavService
from app.use_cases import BuildDashboard, BuildMonthAnalytics, ExportData, ImportData, RefreshNav
from bootstrap import bootstrap_storage, configure_logging
from config import DATA_DIR
from domain.errors import (
    DomainError,
    NotFoundError,
    PartialImportError,
    PersistenceError,
    ValidationError,
)
from domain.records import Expense, Income, Investment
from domain.validation import ensure_month
from storage.json_storage import JsonStorage
from utils.backup_utils import export_bundle_to_json, import_bundle_from_json
from utils.payloads import COLLECTIONS, record_to_payload, settings_to_payload

EXIT_OK = 0
EXIT_CALLER_ERROR = 1
EXIT_STORAGE_ERROR = 2

_COLUMNS = {
    "investments": ["id", "name", "type", "invested", "current", "date", "schemeCode", "units"],
    "incomes": ["id", "source", "amount", "category", "date", "addedBy", "paymentMethod"],
    "expenses": ["id", "desc", "amount", "category", "date", "addedBy", "paymentMethod"],
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Family finance tracker.")
    parser.add_argument(
        "--data-dir",
        default=DATA_DIR,
        help="Directory holding investments/incomes/expenses/settings JSON files",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    summary = commands.add_parser("summary", help="Show dashboard summary")
    summary.add_argument("--month", help="Month for expense figures (YYYY-MM)")

    analytics = commands.add_parser("analytics", help="Show figures for one month")
    analytics.add_argument("--month", help="Month to analyse (YYYY-MM)")

    list_cmd = commands.add_parser("list", help="List stored records")
    list_cmd.add_argument("kind", choices=[*COLLECTIONS, "settings"])

    investment = commands.add_parser("add-investment", help="Add an investment")
    investment.add_argument("--name", required=True)
    investment.add_argument("--type", required=True)
    investment.add_argument("--invested", type=float, required=True)
    investment.add_argument("--current", type=float)
    investment.add_argument("--date", required=True)
    investment.add_argument("--scheme-code", default="")
    investment.add_argument("--units", type=float, default=0.0)

    for name, label in (("add-income", "source"), ("add-expense", "desc")):
        cmd = commands.add_parser(name, help=f"Add an {name[4:]}")
        cmd.add_argument(f"--{label}", required=True)
        cmd.add_argument("--amount", type=float, required=True)
        cmd.add_argument("--category", required=True)
        cmd.add_argument("--date", required=True)
        cmd.add_argument("--added-by", required=True)
        cmd.add_argument("--payment-method", default="")

    delete = commands.add_parser("delete", help="Delete a record by id")
    delete.add_argument("kind", choices=COLLECTIONS)
    delete.add_argument("id")

    export = commands.add_parser("export", help="Write a backup bundle")
    export.add_argument("path")

    import_cmd = commands.add_parser("import", help="Restore a backup bundle")
    import_cmd.add_argument("path")

    commands.add_parser("refresh-nav", help="Revalue mutual funds from latest NAV")
    return parser


def _records_table(kind: str, records: Sequence) -> str:
    table = PrettyTable()
    table.field_names = _COLUMNS[kind]
    for record in records:
        payload = record_to_payload(record)
        table.add_row([payload.get(column, "") for column in _COLUMNS[kind]])
    return str(table)


def _settings_table(storage: JsonStorage) -> str:
    table = PrettyTable()
    table.field_names = ["Setting", "Values"]
    table.align["Values"] = "l"
    for key, values in settings_to_payload(storage.settings.get()).items():
        table.add_row([key, ", ".join(values)])
    return str(table)


def run(args: argparse.Namespace, storage: JsonStorage) -> int:
    command = args.command
    if command == "summary":
        month = ensure_month(args.month) if args.month else None
        print(BuildDashboard(storage).execute(month=month).as_table())
    elif command == "analytics":
        month = ensure_month(args.month) if args.month else None
        print(BuildMonthAnalytics(storage).execute(month=month).as_table())
    elif command == "list":
        if args.kind == "settings":
            print(_settings_table(storage))
        else:
            print(_records_table(args.kind, getattr(storage, args.kind).list()))
    elif command == "add-investment":
        current = args.current if args.current is not None else args.invested
        created = storage.investments.add(
            Investment(
                name=args.name,
                type=args.type,
                invested=args.invested,
                current=current,
                date=args.date,
                scheme_code=args.scheme_code,
                units=args.units,
            )
        )
        print(f"Investment added: {created.id}")
    elif command == "add-income":
        created = storage.incomes.add(
            Income(
                source=args.source,
                amount=args.amount,
                category=args.category,
                date=args.date,
                added_by=args.added_by,
                payment_method=args.payment_method,
            )
        )
        print(f"Income added: {created.id}")
    elif command == "add-expense":
        created = storage.expenses.add(
            Expense(
                desc=args.desc,
                amount=args.amount,
                category=args.category,
                date=args.date,
                added_by=args.added_by,
                payment_method=args.payment_method,
            )
        )
        print(f"Expense added: {created.id}")
    elif command == "delete":
        getattr(storage, args.kind).delete(args.id)
        print(f"Deleted {args.id}")
    elif command == "export":
        export_bundle_to_json(args.path, ExportData(storage).execute())
        print(f"Exported to {args.path}")
    elif command == "import":
        bundle, errors = import_bundle_from_json(args.path)
        for error in errors:
            print(f"[warn] {error}", file=sys.stderr)
        summary = ImportData(storage).execute(bundle)
        print(f"Replaced: {', '.join(summary.replaced) or '-'}")
        print(f"Unchanged: {', '.join(summary.skipped) or '-'}")
    elif command == "refresh-nav":
        report = RefreshNav(storage, NavService()).execute()
        print(
            f"NAV refresh: {len(report.updated)} updated of {report.total}"
            f" ({len(report.failed_ids)} failed)"
        )
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging()
    storage = bootstrap_storage(args.data_dir)
    try:
        return run(args, storage)
    except (ValidationError, NotFoundError) as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return EXIT_CALLER_ERROR
    except PartialImportError as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return EXIT_STORAGE_ERROR
    except PersistenceError as exc:
        print(f"[warn] change kept in memory but not saved: {exc}", file=sys.stderr)
        return EXIT_STORAGE_ERROR
    except (DomainError, ValueError, OSError) as exc:
        print(f"[error] {exc}", file=sys.stderr)
        return EXIT_CALLER_ERROR


if __name__ == "__main__":
    sys.exit(main())
