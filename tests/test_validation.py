from datetime import date
from types import SimpleNamespace

import pytest

from domain.errors import ValidationError
from domain.validation import (
    EXPENSE_RULES,
    INCOME_RULES,
    INVESTMENT_RULES,
    current_month,
    ensure_month,
    shift_month,
    validate_record,
)


def test_rule_tables_cover_required_fields():
    assert [rule[0] for rule in INVESTMENT_RULES] == ["name", "type", "invested", "current", "date"]
    assert [rule[0] for rule in INCOME_RULES] == ["source", "amount", "category", "date", "added_by"]
    assert [rule[0] for rule in EXPENSE_RULES] == ["desc", "amount", "category", "date", "added_by"]


def test_first_violation_is_reported():
    record = SimpleNamespace(name="", type="", invested=0, current=-1, date="")
    with pytest.raises(ValidationError) as exc_info:
        validate_record(record, INVESTMENT_RULES)
    assert exc_info.value.field == "name"


def test_non_numeric_amount_rejected():
    record = SimpleNamespace(
        desc="Taxi", amount="abc", category="Transport", date="2025-01-01", added_by="Ravi"
    )
    with pytest.raises(ValidationError) as exc_info:
        validate_record(record, EXPENSE_RULES)
    assert exc_info.value.field == "amount"


def test_missing_attribute_treated_as_empty():
    with pytest.raises(ValidationError):
        validate_record(SimpleNamespace(), INCOME_RULES)


def test_current_month():
    assert current_month(date(2025, 3, 17)) == "2025-03"


@pytest.mark.parametrize("value", ["2025-01", " 2025-12 "])
def test_ensure_month_valid(value):
    assert ensure_month(value) == value.strip()


@pytest.mark.parametrize("value", ["2025-13", "2025-00", "2025/01", "2025-1", "", "2025-01-01"])
def test_ensure_month_invalid(value):
    with pytest.raises(ValueError):
        ensure_month(value)


@pytest.mark.parametrize(
    ("year", "month", "delta", "expected"),
    [
        (2025, 3, -1, (2025, 2)),
        (2025, 1, -1, (2024, 12)),
        (2025, 6, -5, (2025, 1)),
        (2025, 2, -14, (2023, 12)),
        (2025, 12, 1, (2026, 1)),
    ],
)
def test_shift_month(year, month, delta, expected):
    assert shift_month(year, month, delta) == expected
