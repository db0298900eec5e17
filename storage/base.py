from __future__ import annotations

from typing import Protocol

from domain.records import Expense, Income, Investment
from infrastructure.repositories import CollectionRepository, SettingsRepository


class Storage(Protocol):
    """The four independently locked stores of one data directory."""

    @property
    def investments(self) -> CollectionRepository[Investment]:
        ...

    @property
    def incomes(self) -> CollectionRepository[Income]:
        ...

    @property
    def expenses(self) -> CollectionRepository[Expense]:
        ...

    @property
    def settings(self) -> SettingsRepository:
        ...
