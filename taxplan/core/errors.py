from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    NON_FINITE = "non_finite"
    NEGATIVE = "negative"
    EXCEEDS_MAXIMUM = "exceeds_maximum"
    BELOW_MINIMUM = "below_minimum"
    INVALID_INPUT = "invalid_input"
    UNKNOWN_FILING_STATUS = "unknown_filing_status"
    UNKNOWN_STATE_CODE = "unknown_state_code"


class TaxInputError(ValueError):
    """Raised before any arithmetic when an input cannot be used.

    ``kind`` is stable and meant for callers to map to their own messages;
    the exception text is for logs only.
    """

    def __init__(self, kind: ErrorKind, message: str, *, field: str | None = None):
        super().__init__(message)
        self.kind = kind
        self.field = field

    def __repr__(self) -> str:
        return f"TaxInputError(kind={self.kind.value!r}, field={self.field!r}, message={str(self)!r})"


__all__ = ["ErrorKind", "TaxInputError"]
