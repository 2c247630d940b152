from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Union

from taxplan.core.brackets import MAX_SUPPORTED_AMOUNT
from taxplan.core.errors import ErrorKind, TaxInputError

D = Decimal

AmountLike = Union[Decimal, int, float, str]


@dataclass(frozen=True)
class ValidationResult:
    ok: bool
    amount: D | None = None
    kind: ErrorKind | None = None
    message: str | None = None


def to_decimal(value: AmountLike, *, field: str = "amount") -> D:
    # bool is an int subclass; True/False are never meaningful amounts
    if isinstance(value, bool):
        raise TaxInputError(ErrorKind.INVALID_INPUT, f"{field} must be numeric, got bool", field=field)
    if isinstance(value, D):
        return value
    try:
        if isinstance(value, float):
            return D(str(value))
        if isinstance(value, (int, str)):
            return D(value.strip() if isinstance(value, str) else value)
    except InvalidOperation as exc:
        raise TaxInputError(ErrorKind.INVALID_INPUT, f"{field} is not a number: {value!r}", field=field) from exc
    raise TaxInputError(
        ErrorKind.INVALID_INPUT,
        f"{field} must be numeric, got {type(value).__name__}",
        field=field,
    )


def validate_amount(
    amount: AmountLike,
    *,
    allow_negative: bool = False,
    minimum: AmountLike | None = None,
    maximum: AmountLike | None = None,
    field: str = "amount",
) -> D:
    value = to_decimal(amount, field=field)
    if not value.is_finite():
        raise TaxInputError(ErrorKind.NON_FINITE, f"{field} must be finite, got {value}", field=field)
    if value < 0 and not allow_negative:
        raise TaxInputError(ErrorKind.NEGATIVE, f"{field} cannot be negative, got {value}", field=field)
    if minimum is not None and value < to_decimal(minimum, field="minimum"):
        raise TaxInputError(
            ErrorKind.BELOW_MINIMUM, f"{field} {value} is below minimum {minimum}", field=field
        )
    ceiling = MAX_SUPPORTED_AMOUNT if maximum is None else to_decimal(maximum, field="maximum")
    if value > ceiling:
        raise TaxInputError(
            ErrorKind.EXCEEDS_MAXIMUM, f"{field} {value} exceeds maximum {ceiling}", field=field
        )
    return value


def check_amount(amount: AmountLike, **constraints) -> ValidationResult:
    """Non-raising form of :func:`validate_amount` for form-style callers."""
    try:
        value = validate_amount(amount, **constraints)
    except TaxInputError as exc:
        return ValidationResult(ok=False, kind=exc.kind, message=str(exc))
    return ValidationResult(ok=True, amount=value)


__all__ = ["AmountLike", "ValidationResult", "check_amount", "to_decimal", "validate_amount"]
