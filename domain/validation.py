import re
from collections.abc import Callable
from datetime import date

from .errors import ValidationError

Rule = tuple[str, Callable[[object], bool], str]


def _non_empty(value: object) -> bool:
    return bool(str(value or "").strip())


def _positive(value: object) -> bool:
    try:
        return float(value) > 0  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False


def _non_negative(value: object) -> bool:
    try:
        return float(value) >= 0  # type: ignore[arg-type]
    except (TypeError, ValueError):
        return False


INVESTMENT_RULES: tuple[Rule, ...] = (
    ("name", _non_empty, "investment name is required"),
    ("type", _non_empty, "investment type is required"),
    ("invested", _positive, "invested amount must be greater than 0"),
    ("current", _non_negative, "current value cannot be negative"),
    ("date", _non_empty, "investment date is required"),
)

INCOME_RULES: tuple[Rule, ...] = (
    ("source", _non_empty, "income source is required"),
    ("amount", _positive, "income amount must be greater than 0"),
    ("category", _non_empty, "income category is required"),
    ("date", _non_empty, "income date is required"),
    ("added_by", _non_empty, "added by (member name) is required"),
)

EXPENSE_RULES: tuple[Rule, ...] = (
    ("desc", _non_empty, "expense description is required"),
    ("amount", _positive, "expense amount must be greater than 0"),
    ("category", _non_empty, "expense category is required"),
    ("date", _non_empty, "expense date is required"),
    ("added_by", _non_empty, "added by (member name) is required"),
)


def validate_record(record: object, rules: tuple[Rule, ...]) -> None:
    """Raise ValidationError for the first rule the record violates."""
    for field_name, check, reason in rules:
        if not check(getattr(record, field_name, None)):
            raise ValidationError(field_name, reason)


def current_month(today: date | None = None) -> str:
    return (today or date.today()).strftime("%Y-%m")


def ensure_month(value: str) -> str:
    month = (value or "").strip()
    if not re.fullmatch(r"\d{4}-\d{2}", month):
        raise ValueError("Invalid month format. Use YYYY-MM")
    if not (1 <= int(month[5:7]) <= 12):
        raise ValueError("Invalid month")
    return month


def shift_month(year: int, month: int, delta: int) -> tuple[int, int]:
    index = year * 12 + (month - 1) + delta
    return index // 12, index % 12 + 1
