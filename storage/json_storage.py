from __future__ import annotations

import os

from domain.records import Expense, Income, Investment
from infrastructure.repositories import (
    Clock,
    JsonFileCollectionRepository,
    JsonFileSettingsRepository,
    utc_now,
)

from .base import Storage

DATA_FILES = {
    "investments": "investments.json",
    "incomes": "incomes.json",
    "expenses": "expenses.json",
    "settings": "settings.json",
}


def data_files(data_dir: str) -> list[str]:
    return [os.path.join(data_dir, name) for name in DATA_FILES.values()]


class JsonStorage(Storage):
    """One JSON file per entity type inside ``data_dir``."""

    def __init__(self, data_dir: str = "data", *, clock: Clock = utc_now) -> None:
        self._data_dir = data_dir
        os.makedirs(data_dir, exist_ok=True)
        self._investments: JsonFileCollectionRepository[Investment] = JsonFileCollectionRepository(
            self.path_for("investments"), "investments", clock=clock
        )
        self._incomes: JsonFileCollectionRepository[Income] = JsonFileCollectionRepository(
            self.path_for("incomes"), "incomes", clock=clock
        )
        self._expenses: JsonFileCollectionRepository[Expense] = JsonFileCollectionRepository(
            self.path_for("expenses"), "expenses", clock=clock
        )
        self._settings = JsonFileSettingsRepository(self.path_for("settings"))

    @property
    def data_dir(self) -> str:
        return self._data_dir

    def path_for(self, name: str) -> str:
        return os.path.join(self._data_dir, DATA_FILES[name])

    def data_files(self) -> list[str]:
        return data_files(self._data_dir)

    @property
    def investments(self) -> JsonFileCollectionRepository[Investment]:
        return self._investments

    @property
    def incomes(self) -> JsonFileCollectionRepository[Income]:
        return self._incomes

    @property
    def expenses(self) -> JsonFileCollectionRepository[Expense]:
        return self._expenses

    @property
    def settings(self) -> JsonFileSettingsRepository:
        return self._settings
