import json
import logging
import os
from typing import Any

from domain.records import ExportBundle

from .payloads import COLLECTIONS, parse_records, parse_settings, record_to_payload, settings_to_payload

logger = logging.getLogger(__name__)


def bundle_to_payload(bundle: ExportBundle) -> dict:
    return {
        "version": bundle.version,
        "exportedAt": bundle.exported_at,
        "investments": [record_to_payload(item) for item in bundle.investments],
        "incomes": [record_to_payload(item) for item in bundle.incomes],
        "expenses": [record_to_payload(item) for item in bundle.expenses],
        "settings": settings_to_payload(bundle.settings),
    }


def parse_bundle(data: Any) -> tuple[ExportBundle, list[str]]:
    """Decode a bundle payload; absent or null collections decode as empty."""
    if not isinstance(data, dict):
        raise ValueError("Invalid backup JSON structure: root must be object")

    errors: list[str] = []
    collections: dict[str, list] = {}
    for kind in COLLECTIONS:
        raw = data.get(kind)
        if raw is None:
            collections[kind] = []
            continue
        if not isinstance(raw, list):
            raise ValueError(f"Invalid backup JSON structure: {kind} must be an array")
        records, item_errors = parse_records(kind, raw)
        collections[kind] = records
        errors.extend(item_errors)

    raw_settings = data.get("settings")
    if raw_settings is not None and not isinstance(raw_settings, dict):
        raise ValueError("Invalid backup JSON structure: settings must be an object")

    bundle = ExportBundle(
        version=str(data.get("version", "") or ""),
        exported_at=str(data.get("exportedAt", "") or ""),
        investments=collections["investments"],
        incomes=collections["incomes"],
        expenses=collections["expenses"],
        settings=parse_settings(raw_settings),
    )
    return bundle, errors


def export_bundle_to_json(filepath: str, bundle: ExportBundle) -> None:
    directory = os.path.dirname(filepath)
    if directory:
        os.makedirs(directory, exist_ok=True)
    with open(filepath, "w", encoding="utf-8") as fp:
        json.dump(bundle_to_payload(bundle), fp, ensure_ascii=False, indent=2)
    logger.info("Backup exported to %s", filepath)


def import_bundle_from_json(filepath: str) -> tuple[ExportBundle, list[str]]:
    if not os.path.exists(filepath):
        raise FileNotFoundError(f"JSON file not found: {filepath}")

    with open(filepath, encoding="utf-8") as fp:
        data = json.load(fp)

    bundle, errors = parse_bundle(data)
    logger.info(
        "Backup read: investments=%s incomes=%s expenses=%s skipped=%s file=%s version=%s",
        len(bundle.investments),
        len(bundle.incomes),
        len(bundle.expenses),
        len(errors),
        filepath,
        bundle.version or "-",
    )
    return bundle, errors
