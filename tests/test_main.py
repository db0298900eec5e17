from __future__ import annotations

import json
from unittest.mock import patch

import pytest

from main import EXIT_CALLER_ERROR, EXIT_OK, EXIT_STORAGE_ERROR, build_parser, main


def run_cli(tmp_path, *args: str) -> int:
    return main(["--data-dir", str(tmp_path), *args])


def test_parser_requires_command() -> None:
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_add_and_list_expense(tmp_path, capsys) -> None:
    code = run_cli(
        tmp_path,
        "add-expense",
        "--desc",
        "Groceries",
        "--amount",
        "250",
        "--category",
        "Food",
        "--date",
        "2025-01-05",
        "--added-by",
        "Ravi",
        "--payment-method",
        "UPI",
    )
    assert code == EXIT_OK
    assert "Expense added:" in capsys.readouterr().out

    assert run_cli(tmp_path, "list", "expenses") == EXIT_OK
    out = capsys.readouterr().out
    assert "Groceries" in out
    assert "UPI" in out


def test_add_investment_defaults_current_to_invested(tmp_path) -> None:
    code = run_cli(
        tmp_path,
        "add-investment",
        "--name",
        "Fund A",
        "--type",
        "Mutual Fund",
        "--invested",
        "10000",
        "--date",
        "2025-01-01",
    )
    assert code == EXIT_OK
    payload = json.loads((tmp_path / "investments.json").read_text(encoding="utf-8"))
    assert payload[0]["current"] == 10000.0


def test_validation_error_exit_code(tmp_path, capsys) -> None:
    code = run_cli(
        tmp_path,
        "add-income",
        "--source",
        "Salary",
        "--amount",
        "0",
        "--category",
        "Salary",
        "--date",
        "2025-01-01",
        "--added-by",
        "Ravi",
    )
    assert code == EXIT_CALLER_ERROR
    assert "income amount must be greater than 0" in capsys.readouterr().err
    assert not (tmp_path / "incomes.json").exists()


def test_delete_unknown_id(tmp_path, capsys) -> None:
    assert run_cli(tmp_path, "delete", "incomes", "missing") == EXIT_CALLER_ERROR
    assert "not found" in capsys.readouterr().err


def test_list_settings(tmp_path, capsys) -> None:
    assert run_cli(tmp_path, "list", "settings") == EXIT_OK
    out = capsys.readouterr().out
    assert "investmentTypes" in out
    assert "Mutual Fund" in out


def test_summary_with_invalid_month(tmp_path, capsys) -> None:
    assert run_cli(tmp_path, "summary", "--month", "2025-13") == EXIT_CALLER_ERROR


def test_summary_table(tmp_path, capsys) -> None:
    assert run_cli(tmp_path, "summary", "--month", "2025-01") == EXIT_OK
    out = capsys.readouterr().out
    assert "NET TOTAL" in out
    assert "Expenses (2025-01)" in out


def test_export_and_import(tmp_path, capsys) -> None:
    run_cli(
        tmp_path,
        "add-investment",
        "--name",
        "FD",
        "--type",
        "FD",
        "--invested",
        "5000",
        "--current",
        "5200",
        "--date",
        "2024-06-01",
    )
    bundle_path = tmp_path / "out" / "bundle.json"
    assert run_cli(tmp_path, "export", str(bundle_path)) == EXIT_OK
    assert json.loads(bundle_path.read_text(encoding="utf-8"))["investments"][0]["name"] == "FD"

    other = tmp_path / "restore"
    assert main(["--data-dir", str(other), "import", str(bundle_path)]) == EXIT_OK
    out = capsys.readouterr().out
    assert "Replaced: investments, settings" in out
    assert "Unchanged: incomes, expenses" in out
    restored = json.loads((other / "investments.json").read_text(encoding="utf-8"))
    assert restored[0]["current"] == 5200.0


def test_import_missing_file(tmp_path, capsys) -> None:
    assert run_cli(tmp_path, "import", str(tmp_path / "nope.json")) == EXIT_CALLER_ERROR
    assert "not found" in capsys.readouterr().err


def test_persistence_failure_exit_code(tmp_path, capsys) -> None:
    with patch("infrastructure.repositories._write_json", side_effect=OSError("read-only")):
        code = run_cli(
            tmp_path,
            "add-expense",
            "--desc",
            "Tea",
            "--amount",
            "10",
            "--category",
            "Food",
            "--date",
            "2025-01-05",
            "--added-by",
            "Ravi",
        )
    assert code == EXIT_STORAGE_ERROR
    assert "not saved" in capsys.readouterr().err


def test_refresh_nav_uses_service(tmp_path, capsys) -> None:
    with patch("main.NavService") as service_cls:
        service_cls.return_value.latest_price.return_value = None
        assert run_cli(tmp_path, "refresh-nav") == EXIT_OK
    assert "0 updated of 0" in capsys.readouterr().out


def test_analytics_for_month(tmp_path, capsys) -> None:
    run_cli(
        tmp_path,
        "add-investment",
        "--name",
        "SIP",
        "--type",
        "Mutual Fund",
        "--invested",
        "1000",
        "--current",
        "1100",
        "--date",
        "2025-02-05",
    )
    capsys.readouterr()
    assert run_cli(tmp_path, "analytics", "--month", "2025-02") == EXIT_OK
    out = capsys.readouterr().out
    assert "2025-02" in out
    assert "100.00 (10.00%)" in out

    assert run_cli(tmp_path, "analytics", "--month", "2025-03") == EXIT_OK
    assert "0.00 (0.00%)" in capsys.readouterr().out
