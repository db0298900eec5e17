import logging
from collections.abc import Iterable
from dataclasses import dataclass, field, replace
from datetime import date as dt_date

from config import EXPORT_VERSION, TREND_MONTHS
from domain.errors import NotFoundError, PartialImportError, PersistenceError, ValidationError
from domain.nav import NavRefreshReport, refresh_many
from domain.records import ExportBundle, Investment
from domain.reports import Dashboard, MonthAnalytics, build_dashboard, build_month_analytics
from infrastructure.repositories import Clock, format_timestamp, utc_now
from storage.base import Storage

from .services import NavService

logger = logging.getLogger(__name__)


class ExportData:
    def __init__(self, storage: Storage, clock: Clock = utc_now):
        self._storage = storage
        self._clock = clock

    def execute(self) -> ExportBundle:
        """Snapshot every collection into one versioned bundle."""
        bundle = ExportBundle(
            version=EXPORT_VERSION,
            exported_at=format_timestamp(self._clock()),
            investments=self._storage.investments.list(),
            incomes=self._storage.incomes.list(),
            expenses=self._storage.expenses.list(),
            settings=self._storage.settings.get(),
        )
        logger.info(
            "Export created investments=%s incomes=%s expenses=%s",
            len(bundle.investments),
            len(bundle.incomes),
            len(bundle.expenses),
        )
        return bundle


@dataclass(frozen=True)
class ImportSummary:
    replaced: list[str]
    skipped: list[str]


class ImportData:
    """Replace each non-empty collection of the bundle wholesale.

    An empty collection in the bundle leaves the stored one untouched;
    settings are replaced only when the bundle carries categories. Each
    collection is its own critical section, there is no rollback.
    """

    def __init__(self, storage: Storage):
        self._storage = storage

    def execute(self, bundle: ExportBundle) -> ImportSummary:
        replaced: list[str] = []
        skipped: list[str] = []
        failed: list[str] = []

        steps = (
            ("investments", bundle.investments, self._storage.investments),
            ("incomes", bundle.incomes, self._storage.incomes),
            ("expenses", bundle.expenses, self._storage.expenses),
        )
        for name, records, repository in steps:
            if not records:
                skipped.append(name)
                continue
            try:
                repository.replace_all(records)
                replaced.append(name)
            except PersistenceError:
                failed.append(name)

        if bundle.settings.categories:
            try:
                self._storage.settings.set(bundle.settings)
                replaced.append("settings")
            except PersistenceError:
                failed.append("settings")
        else:
            skipped.append("settings")

        if failed:
            logger.error("Import partially failed: replaced=%s failed=%s", replaced, failed)
            raise PartialImportError(replaced, failed)
        logger.info("Import completed: replaced=%s skipped=%s", replaced, skipped)
        return ImportSummary(replaced=replaced, skipped=skipped)


@dataclass
class NavUpdateResult:
    updated: int = 0
    total: int = 0
    failed_ids: list[str] = field(default_factory=list)


class ApplyNavUpdates:
    """Write back client-refreshed investments one by one.

    Entries without an id, unknown ids and invalid payloads are skipped.
    """

    def __init__(self, storage: Storage):
        self._storage = storage

    def execute(self, updates: Iterable[Investment]) -> NavUpdateResult:
        result = NavUpdateResult()
        persistence_error: PersistenceError | None = None
        for investment in updates:
            result.total += 1
            if not investment.id:
                continue
            try:
                self._storage.investments.update(investment.id, investment)
            except (NotFoundError, ValidationError) as exc:
                logger.warning("NAV update skipped for %s: %s", investment.id, exc)
                result.failed_ids.append(investment.id)
                continue
            except PersistenceError as exc:
                persistence_error = exc
            result.updated += 1

        logger.info("NAV refresh completed updated=%s total=%s", result.updated, result.total)
        if persistence_error is not None:
            raise PersistenceError(persistence_error.cause, persistence_error.path, result)
        return result


class RefreshNav:
    def __init__(self, storage: Storage, nav_service: NavService):
        self._storage = storage
        self._nav = nav_service

    def execute(self) -> NavRefreshReport:
        """Revalue every stored investment that has a scheme code.

        Prices are looked up without holding the store lock. Only ``units``
        and ``current`` are written back, onto the record as stored at
        write time, so edits made during the lookups are kept.
        """
        candidates = [inv for inv in self._storage.investments.list() if inv.scheme_code]
        priced = refresh_many(candidates, self._nav.latest_price, self._nav.price_on_date)
        report = NavRefreshReport(skipped=priced.skipped)
        persistence_error: PersistenceError | None = None
        for refreshed in priced.updated:
            try:
                stored = self._storage.investments.modify(
                    refreshed.id,
                    lambda inv, r=refreshed: replace(inv, units=r.units, current=r.current),
                )
            except (NotFoundError, ValidationError) as exc:
                logger.warning("NAV write-back skipped for %s: %s", refreshed.id, exc)
                report.failed_ids.append(refreshed.id)
                continue
            except PersistenceError as exc:
                persistence_error = exc
                stored = exc.result
            report.updated.append(stored)

        logger.info(
            "NAV refresh from source: updated=%s skipped=%s failed=%s",
            len(report.updated),
            len(report.skipped),
            len(report.failed_ids),
        )
        if persistence_error is not None:
            raise PersistenceError(persistence_error.cause, persistence_error.path, report)
        return report


class BuildDashboard:
    def __init__(self, storage: Storage):
        self._storage = storage

    def execute(
        self, month: str | None = None, today: dt_date | None = None
    ) -> Dashboard:
        return build_dashboard(
            self._storage.investments.list(),
            self._storage.incomes.list(),
            self._storage.expenses.list(),
            month=month,
            today=today,
            months_back=TREND_MONTHS,
        )


class BuildMonthAnalytics:
    def __init__(self, storage: Storage):
        self._storage = storage

    def execute(
        self, month: str | None = None, today: dt_date | None = None
    ) -> MonthAnalytics:
        return build_month_analytics(
            self._storage.investments.list(),
            self._storage.incomes.list(),
            self._storage.expenses.list(),
            month=month,
            today=today,
        )
