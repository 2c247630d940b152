from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

from taxplan.core.errors import ErrorKind, TaxInputError


@dataclass(frozen=True)
class ErrorKindInfo:
    """User-facing description for a calculation input error."""

    kind: ErrorKind
    status_code: int
    summary: str
    remediation: str

    @property
    def friendly_message(self) -> str:
        return self.summary


_KIND_INFO: Dict[ErrorKind, ErrorKindInfo] = {
    ErrorKind.NON_FINITE: ErrorKindInfo(
        kind=ErrorKind.NON_FINITE,
        status_code=422,
        summary="Invalid numeric value.",
        remediation="Enter a dollar amount using digits only.",
    ),
    ErrorKind.NEGATIVE: ErrorKindInfo(
        kind=ErrorKind.NEGATIVE,
        status_code=422,
        summary="Value cannot be less than $0.00.",
        remediation="Enter zero or a positive amount.",
    ),
    ErrorKind.EXCEEDS_MAXIMUM: ErrorKindInfo(
        kind=ErrorKind.EXCEEDS_MAXIMUM,
        status_code=422,
        summary="Value exceeds the largest amount the planner supports.",
        remediation="Reduce the amount and try again.",
    ),
    ErrorKind.BELOW_MINIMUM: ErrorKindInfo(
        kind=ErrorKind.BELOW_MINIMUM,
        status_code=422,
        summary="Value is below the smallest amount allowed here.",
        remediation="Increase the amount and try again.",
    ),
    ErrorKind.INVALID_INPUT: ErrorKindInfo(
        kind=ErrorKind.INVALID_INPUT,
        status_code=422,
        summary="One of the calculation inputs is not valid.",
        remediation="Check that amounts are non-negative numbers and rates are within range.",
    ),
    ErrorKind.UNKNOWN_FILING_STATUS: ErrorKindInfo(
        kind=ErrorKind.UNKNOWN_FILING_STATUS,
        status_code=422,
        summary="Filing status must be one of: SINGLE, MARRIED_JOINT, HEAD_OF_HOUSEHOLD.",
        remediation="Choose Single, Married Filing Jointly, or Head of Household.",
    ),
    ErrorKind.UNKNOWN_STATE_CODE: ErrorKindInfo(
        kind=ErrorKind.UNKNOWN_STATE_CODE,
        status_code=422,
        summary="Tax state must be a valid 2-letter state code.",
        remediation="Use the two-letter postal abbreviation, for example CA or TX.",
    ),
}


def get_error_details(kind: ErrorKind) -> ErrorKindInfo:
    return _KIND_INFO[kind]


def explain_error(exc: TaxInputError) -> dict[str, str | None]:
    info = get_error_details(exc.kind)
    return {
        "kind": exc.kind.value,
        "field": exc.field,
        "message": info.friendly_message,
        "remediation": info.remediation,
    }
