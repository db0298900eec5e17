from collections.abc import Callable
from typing import Any

from domain.records import Expense, Income, Investment, Record, Settings

COLLECTIONS = ("investments", "incomes", "expenses")


def as_float(value: Any, default: float = 0.0) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def as_text(value: Any) -> str:
    return str(value if value is not None else "")


def as_text_list(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    return [str(item) for item in value if item is not None]


def record_to_payload(record: Record) -> dict:
    if isinstance(record, Investment):
        return {
            "id": record.id,
            "name": record.name,
            "type": record.type,
            "invested": float(record.invested),
            "current": float(record.current),
            "date": record.date,
            "schemeCode": record.scheme_code,
            "units": float(record.units or 0.0),
            "createdAt": record.created_at,
            "updatedAt": record.updated_at,
        }
    payload = {"id": record.id}
    if isinstance(record, Income):
        payload["source"] = record.source
    else:
        payload["desc"] = record.desc
    payload.update(
        {
            "amount": float(record.amount),
            "category": record.category,
            "date": record.date,
            "addedBy": record.added_by,
            "paymentMethod": record.payment_method,
            "createdAt": record.created_at,
            "updatedAt": record.updated_at,
        }
    )
    return payload


def parse_investment(item: dict) -> Investment:
    return Investment(
        id=as_text(item.get("id")),
        name=as_text(item.get("name")),
        type=as_text(item.get("type")),
        invested=as_float(item.get("invested")),
        current=as_float(item.get("current")),
        date=as_text(item.get("date")),
        scheme_code=as_text(item.get("schemeCode")),
        units=as_float(item.get("units")),
        created_at=as_text(item.get("createdAt")),
        updated_at=as_text(item.get("updatedAt")),
    )


def parse_income(item: dict) -> Income:
    return Income(
        id=as_text(item.get("id")),
        source=as_text(item.get("source")),
        amount=as_float(item.get("amount")),
        category=as_text(item.get("category")),
        date=as_text(item.get("date")),
        added_by=as_text(item.get("addedBy")),
        payment_method=as_text(item.get("paymentMethod")),
        created_at=as_text(item.get("createdAt")),
        updated_at=as_text(item.get("updatedAt")),
    )


def parse_expense(item: dict) -> Expense:
    return Expense(
        id=as_text(item.get("id")),
        desc=as_text(item.get("desc")),
        amount=as_float(item.get("amount")),
        category=as_text(item.get("category")),
        date=as_text(item.get("date")),
        added_by=as_text(item.get("addedBy")),
        payment_method=as_text(item.get("paymentMethod")),
        created_at=as_text(item.get("createdAt")),
        updated_at=as_text(item.get("updatedAt")),
    )


PARSERS: dict[str, Callable[[dict], Record]] = {
    "investments": parse_investment,
    "incomes": parse_income,
    "expenses": parse_expense,
}


def parse_records(kind: str, items: Any) -> tuple[list, list[str]]:
    """Decode a JSON array of records, skipping items that are not objects."""
    if not isinstance(items, list):
        return [], [f"{kind}: expected an array"]
    parser = PARSERS[kind]
    records = []
    errors: list[str] = []
    for idx, item in enumerate(items):
        if not isinstance(item, dict):
            errors.append(f"{kind}[{idx}]: invalid item type")
            continue
        records.append(parser(item))
    return records, errors


def settings_to_payload(settings: Settings) -> dict:
    return {
        "categories": list(settings.categories),
        "investmentTypes": list(settings.investment_types),
        "incomeCategories": list(settings.income_categories),
        "paymentMethods": list(settings.payment_methods),
        "members": list(settings.members),
    }


def parse_settings(item: Any) -> Settings:
    if not isinstance(item, dict):
        return Settings()
    return Settings(
        categories=as_text_list(item.get("categories")),
        investment_types=as_text_list(item.get("investmentTypes")),
        income_categories=as_text_list(item.get("incomeCategories")),
        payment_methods=as_text_list(item.get("paymentMethods")),
        members=as_text_list(item.get("members")),
    )
