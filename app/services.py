from __future__ import annotations

import logging
import threading
from datetime import date as dt_date
from datetime import datetime

import requests

from config import HTTP_TIMEOUT, MF_API_BASE

logger = logging.getLogger(__name__)

NavHistory = list[tuple[dt_date, float]]


class NavService:
    """Mutual fund NAV lookups over the public mfapi.in API.

    Scheme histories are fetched once per scheme and cached for the lifetime
    of the service. Every failure (network, HTTP status, malformed payload)
    is logged and reported as ``None`` so callers can skip the record.
    """

    def __init__(
        self,
        base_url: str = MF_API_BASE,
        timeout: float = HTTP_TIMEOUT,
        session: requests.Session | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._cache: dict[str, NavHistory] = {}
        self._lock = threading.Lock()

    def latest_price(self, scheme_code: str) -> float | None:
        history = self.history(scheme_code)
        if not history:
            return None
        return history[0][1]

    def price_on_date(self, scheme_code: str, date: str) -> float | None:
        """NAV on ``date`` (YYYY-MM-DD) or on the closest earlier date."""
        try:
            target = datetime.strptime(date, "%Y-%m-%d").date()
        except (TypeError, ValueError):
            logger.warning("Invalid NAV lookup date %r for scheme %s", date, scheme_code)
            return None
        for nav_date, nav in self.history(scheme_code):
            if nav_date <= target:
                return nav
        return None

    def history(self, scheme_code: str) -> NavHistory:
        code = str(scheme_code or "").strip()
        if not code:
            return []
        with self._lock:
            cached = self._cache.get(code)
        if cached is not None:
            return cached
        history = self._fetch(code)
        if history:
            with self._lock:
                self._cache[code] = history
        return history

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    def _fetch(self, scheme_code: str) -> NavHistory:
        url = f"{self._base_url}/mf/{scheme_code}"
        try:
            resp = self._session.get(url, timeout=self._timeout)
            resp.raise_for_status()
            payload = resp.json()
        except requests.RequestException as e:
            logger.warning("Network error fetching NAV for %s: %s", scheme_code, e)
            return []
        except ValueError as e:
            logger.warning("Invalid NAV response for %s: %s", scheme_code, e)
            return []

        entries = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(entries, list):
            logger.warning("No NAV data for scheme %s", scheme_code)
            return []

        history: NavHistory = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            try:
                nav_date = datetime.strptime(str(entry.get("date", "")), "%d-%m-%Y").date()
                nav = float(entry.get("nav"))
            except (TypeError, ValueError) as e:
                logger.warning("Skipping NAV entry %r for %s (%s)", entry, scheme_code, e)
                continue
            if nav > 0:
                history.append((nav_date, nav))
        history.sort(key=lambda item: item[0], reverse=True)
        return history
