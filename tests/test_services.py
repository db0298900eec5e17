from datetime import date
from unittest.mock import Mock

import requests

from app.services import NavService


def make_response(payload=None, *, status_error=None, json_error=None):
    response = Mock()
    if status_error is not None:
        response.raise_for_status.side_effect = status_error
    if json_error is not None:
        response.json.side_effect = json_error
    else:
        response.json.return_value = payload
    return response


MF_PAYLOAD = {
    "meta": {"scheme_code": 122639, "scheme_name": "Flexi Cap Fund - Direct Growth"},
    "data": [
        {"date": "17-01-2025", "nav": "80.50000"},
        {"date": "15-01-2025", "nav": "79.25000"},
        {"date": "10-01-2025", "nav": "78.00000"},
        {"date": "not-a-date", "nav": "1.0"},
    ],
    "status": "SUCCESS",
}


class TestNavService:
    def setup_method(self):
        self.session = Mock(spec=requests.Session)
        self.session.get.return_value = make_response(MF_PAYLOAD)
        self.service = NavService(base_url="https://mf.example/", timeout=3, session=self.session)

    def test_latest_price(self):
        assert self.service.latest_price("122639") == 80.5
        self.session.get.assert_called_once_with("https://mf.example/mf/122639", timeout=3)

    def test_price_on_exact_date(self):
        assert self.service.price_on_date("122639", "2025-01-15") == 79.25

    def test_price_on_date_uses_closest_earlier_entry(self):
        assert self.service.price_on_date("122639", "2025-01-12") == 78.0
        assert self.service.price_on_date("122639", "2025-03-01") == 80.5

    def test_price_before_history_is_unavailable(self):
        assert self.service.price_on_date("122639", "2024-12-31") is None

    def test_invalid_date_is_unavailable(self):
        assert self.service.price_on_date("122639", "15-01-2025") is None

    def test_history_is_cached_and_sorted(self):
        history = self.service.history("122639")
        self.service.latest_price("122639")
        self.service.price_on_date("122639", "2025-01-15")
        assert self.session.get.call_count == 1
        assert history[0] == (date(2025, 1, 17), 80.5)
        assert len(history) == 3

    def test_clear_cache_refetches(self):
        self.service.latest_price("122639")
        self.service.clear_cache()
        self.service.latest_price("122639")
        assert self.session.get.call_count == 2

    def test_network_error_returns_none(self):
        self.session.get.side_effect = requests.ConnectionError("offline")
        assert self.service.latest_price("122639") is None
        assert self.service.price_on_date("122639", "2025-01-15") is None

    def test_http_error_returns_none_and_is_not_cached(self):
        self.session.get.return_value = make_response(
            status_error=requests.HTTPError("404 Client Error")
        )
        assert self.service.latest_price("999") is None
        self.session.get.return_value = make_response(MF_PAYLOAD)
        assert self.service.latest_price("999") == 80.5

    def test_invalid_json_returns_none(self):
        self.session.get.return_value = make_response(json_error=ValueError("bad json"))
        assert self.service.latest_price("122639") is None

    def test_missing_data_returns_none(self):
        self.session.get.return_value = make_response({"status": "FAIL"})
        assert self.service.latest_price("122639") is None

    def test_blank_scheme_code_does_not_call_api(self):
        assert self.service.latest_price("  ") is None
        self.session.get.assert_not_called()
