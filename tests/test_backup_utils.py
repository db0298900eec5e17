import json
import os
import tempfile

import pytest

from domain.records import Expense, ExportBundle, Income, Investment, Settings
from utils.backup_utils import (
    bundle_to_payload,
    export_bundle_to_json,
    import_bundle_from_json,
    parse_bundle,
)


def sample_bundle() -> ExportBundle:
    return ExportBundle(
        version="1.0",
        exported_at="2025-03-01T10:00:00.000000+00:00",
        investments=[
            Investment(
                id="i1",
                name="Fund A",
                type="Mutual Fund",
                invested=10000.0,
                current=11000.0,
                date="2025-01-01",
                scheme_code="122639",
                units=250.0,
            )
        ],
        incomes=[
            Income(id="n1", source="Salary", amount=50000.0, category="Salary", date="2025-02-01", added_by="Ravi")
        ],
        expenses=[
            Expense(
                id="e1",
                desc="Rent",
                amount=15000.0,
                category="Utilities",
                date="2025-02-03",
                added_by="Asha",
                payment_method="Bank Transfer",
            )
        ],
        settings=Settings.defaults(),
    )


class TestBundlePayload:
    def test_payload_keys(self):
        payload = bundle_to_payload(sample_bundle())
        assert set(payload) == {"version", "exportedAt", "investments", "incomes", "expenses", "settings"}
        assert payload["investments"][0]["schemeCode"] == "122639"
        assert payload["expenses"][0]["paymentMethod"] == "Bank Transfer"
        assert payload["settings"]["investmentTypes"] == Settings.defaults().investment_types

    def test_parse_restores_bundle(self):
        bundle, errors = parse_bundle(bundle_to_payload(sample_bundle()))
        assert errors == []
        assert bundle == sample_bundle()

    def test_null_and_absent_collections_are_empty(self):
        bundle, errors = parse_bundle({"version": "1.0", "investments": None})
        assert errors == []
        assert bundle.investments == []
        assert bundle.incomes == []
        assert bundle.expenses == []
        assert bundle.settings == Settings()

    def test_invalid_items_reported(self):
        bundle, errors = parse_bundle({"expenses": [{"id": "e1", "desc": "Tea", "amount": "12.5"}, "junk"]})
        assert [item.amount for item in bundle.expenses] == [12.5]
        assert errors == ["expenses[1]: invalid item type"]

    @pytest.mark.parametrize(
        "data",
        [[], "text", {"investments": {"id": "x"}}, {"settings": ["Food"]}],
    )
    def test_invalid_structure(self, data):
        with pytest.raises(ValueError):
            parse_bundle(data)


class TestBundleFiles:
    def setup_method(self):
        self.tmpdir = tempfile.TemporaryDirectory()

    def teardown_method(self):
        self.tmpdir.cleanup()

    def test_export_and_import_file(self):
        path = os.path.join(self.tmpdir.name, "nested", "backup.json")
        export_bundle_to_json(path, sample_bundle())
        with open(path, encoding="utf-8") as f:
            assert json.load(f)["version"] == "1.0"
        bundle, errors = import_bundle_from_json(path)
        assert errors == []
        assert bundle == sample_bundle()

    def test_import_missing_file(self):
        with pytest.raises(FileNotFoundError):
            import_bundle_from_json(os.path.join(self.tmpdir.name, "missing.json"))

    def test_import_malformed_file(self):
        path = os.path.join(self.tmpdir.name, "broken.json")
        with open(path, "w", encoding="utf-8") as f:
            f.write("{")
        with pytest.raises(ValueError):
            import_bundle_from_json(path)
