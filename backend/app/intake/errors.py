from __future__ import annotations

from typing import Any, Optional


class IntakeError(Exception):
    """Base class for failures that abort an ingestion call."""


class CsvParseError(IntakeError, ValueError):
    """The upload is not structurally valid CSV. Raised before any row is processed."""

    def __init__(self, message: str, *, line_no: Optional[int] = None):
        self.line_no = line_no
        if line_no is not None:
            message = f"CSV parse error on line {line_no}: {message}"
        super().__init__(message)


class MissingContextError(IntakeError):
    """Required upload context (company, workflow, kind) could not be resolved."""


class StoreInsertError(IntakeError):
    """
    The batch of valid rows was refused by the store.

    `message` and `detail` are kept verbatim so an operator can diagnose a
    store-side rejection (constraint violation, bad column, etc).
    """

    def __init__(self, message: str, *, detail: Optional[Any] = None):
        self.message = message
        self.detail = detail
        super().__init__(message)
