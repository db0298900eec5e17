from dataclasses import dataclass, field

from .validation import EXPENSE_RULES, INCOME_RULES, INVESTMENT_RULES, validate_record

INVESTMENT_TYPES = ("Mutual Fund", "Stocks", "FD", "Gold", "PPF", "NPS", "Chit", "Other")


@dataclass(frozen=True)
class Investment:
    name: str
    type: str
    invested: float
    current: float
    date: str
    scheme_code: str = ""
    units: float = 0.0
    id: str = ""
    created_at: str = ""
    updated_at: str = ""

    def validate(self) -> None:
        validate_record(self, INVESTMENT_RULES)

    @property
    def gain(self) -> float:
        return float(self.current) - float(self.invested)


@dataclass(frozen=True)
class Income:
    source: str
    amount: float
    category: str
    date: str
    added_by: str
    payment_method: str = ""
    id: str = ""
    created_at: str = ""
    updated_at: str = ""

    def validate(self) -> None:
        validate_record(self, INCOME_RULES)


@dataclass(frozen=True)
class Expense:
    desc: str
    amount: float
    category: str
    date: str
    added_by: str
    payment_method: str = ""
    id: str = ""
    created_at: str = ""
    updated_at: str = ""

    def validate(self) -> None:
        validate_record(self, EXPENSE_RULES)


Record = Investment | Income | Expense


def _default_categories() -> list[str]:
    return ["Food", "Transport", "Utilities", "Shopping", "Entertainment", "Health", "EMI", "Other"]


def _default_investment_types() -> list[str]:
    return list(INVESTMENT_TYPES)


def _default_income_categories() -> list[str]:
    return ["Salary", "Business", "Rental", "Interest", "Dividend", "Freelance", "Other"]


def _default_payment_methods() -> list[str]:
    return ["Cash", "UPI", "Card", "Online", "Bank Transfer"]


@dataclass
class Settings:
    """Ordered option lists shown by the UI. Uniqueness is not enforced."""

    categories: list[str] = field(default_factory=list)
    investment_types: list[str] = field(default_factory=list)
    income_categories: list[str] = field(default_factory=list)
    payment_methods: list[str] = field(default_factory=list)
    members: list[str] = field(default_factory=list)

    @classmethod
    def defaults(cls) -> "Settings":
        return cls(
            categories=_default_categories(),
            investment_types=_default_investment_types(),
            income_categories=_default_income_categories(),
            payment_methods=_default_payment_methods(),
            members=["Family"],
        )

    def copy(self) -> "Settings":
        return Settings(
            categories=list(self.categories),
            investment_types=list(self.investment_types),
            income_categories=list(self.income_categories),
            payment_methods=list(self.payment_methods),
            members=list(self.members),
        )


@dataclass(frozen=True)
class ExportBundle:
    version: str
    exported_at: str
    investments: list[Investment]
    incomes: list[Income]
    expenses: list[Expense]
    settings: Settings
