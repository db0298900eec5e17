from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace

from .errors import PriceUnavailable
from .records import Investment

logger = logging.getLogger(__name__)

LatestPriceFn = Callable[[str], "float | None"]
PriceOnDateFn = Callable[[str, str], "float | None"]


def compute_units(invested_amount: float, price_at_purchase: float | None) -> float:
    """Units bought for ``invested_amount``; 0.0 when the price is missing or zero."""
    if not invested_amount or not price_at_purchase:
        return 0.0
    return float(invested_amount) / float(price_at_purchase)


def compute_current_value(units: float, latest_price: float) -> float:
    if not units or not latest_price:
        return 0.0
    return float(units) * float(latest_price)


def _lookup(fn: Callable[..., float | None], *args: str) -> float | None:
    try:
        price = fn(*args)
    except PriceUnavailable as exc:
        logger.warning("%s", exc)
        return None
    except Exception:
        logger.warning("Price lookup failed for %s", args[0], exc_info=True)
        return None
    if price is None or price <= 0:
        return None
    return float(price)


def refresh_one(
    investment: Investment,
    latest_price: LatestPriceFn,
    price_on_date: PriceOnDateFn,
) -> Investment:
    """Return the investment revalued at the latest price.

    Units are back-derived from the purchase-date price when none are recorded.
    If any lookup fails the investment is returned unchanged.
    """
    code = (investment.scheme_code or "").strip()
    if not code:
        return investment

    latest = _lookup(latest_price, code)
    if latest is None:
        logger.warning("Could not fetch latest NAV for %s (%s)", investment.name, code)
        return investment

    if investment.units and investment.units > 0:
        return replace(investment, current=compute_current_value(investment.units, latest))

    if not investment.invested or not investment.date:
        return investment
    purchase = _lookup(price_on_date, code, investment.date)
    if purchase is None:
        logger.warning(
            "Could not fetch NAV for %s (%s) on %s", investment.name, code, investment.date
        )
        return investment
    units = compute_units(investment.invested, purchase)
    if units <= 0:
        return investment
    return replace(investment, units=units, current=compute_current_value(units, latest))


@dataclass
class NavRefreshReport:
    updated: list[Investment] = field(default_factory=list)
    skipped: list[Investment] = field(default_factory=list)
    failed_ids: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.updated) + len(self.skipped) + len(self.failed_ids)


def refresh_many(
    investments: Iterable[Investment],
    latest_price: LatestPriceFn,
    price_on_date: PriceOnDateFn,
) -> NavRefreshReport:
    report = NavRefreshReport()
    for investment in investments:
        refreshed = refresh_one(investment, latest_price, price_on_date)
        if refreshed is investment:
            report.skipped.append(investment)
        else:
            report.updated.append(refreshed)
    return report
