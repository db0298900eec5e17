from __future__ import annotations

from typing import Any


class DomainError(Exception):
    """Base class for finance tracker domain errors."""


class ValidationError(DomainError):
    def __init__(self, field: str, reason: str) -> None:
        super().__init__(reason)
        self.field = field
        self.reason = reason


class NotFoundError(DomainError):
    def __init__(self, record_id: str, kind: str = "record") -> None:
        super().__init__(f"{kind} not found: {record_id}")
        self.id = record_id
        self.kind = kind


class PersistenceError(DomainError):
    """Disk write failed after the in-memory change was committed.

    ``result`` holds the logical outcome of the operation (the added or
    updated record, or None for deletes) so callers can still report it.
    """

    def __init__(self, cause: BaseException, path: str = "", result: Any = None) -> None:
        super().__init__(f"Failed to persist {path or 'data'}: {cause}")
        self.cause = cause
        self.path = path
        self.result = result


class PartialImportError(DomainError):
    def __init__(self, succeeded: list[str], failed: list[str]) -> None:
        super().__init__(
            "Import partially failed: "
            f"succeeded={', '.join(succeeded) or '-'} failed={', '.join(failed) or '-'}"
        )
        self.succeeded = list(succeeded)
        self.failed = list(failed)


class PriceUnavailable(DomainError):
    def __init__(self, scheme_code: str, date: str | None = None) -> None:
        where = f" on {date}" if date else ""
        super().__init__(f"Price unavailable for scheme {scheme_code}{where}")
        self.scheme_code = scheme_code
        self.date = date
