from __future__ import annotations

from decimal import Decimal

from taxplan.core.brackets import DEFAULT_STATE_TAX_RATE, NO_INCOME_TAX_STATES, SUPPORTED_STATES
from taxplan.core.errors import ErrorKind, TaxInputError
from taxplan.core.models import StateTaxPolicy, round_cents
from taxplan.core.validate import AmountLike, validate_amount

D = Decimal

DEFAULT_STATE_POLICY = StateTaxPolicy.flat(DEFAULT_STATE_TAX_RATE)


class UnknownStateError(TaxInputError):
    def __init__(self, state_code: object):
        super().__init__(
            ErrorKind.UNKNOWN_STATE_CODE,
            f"Unknown state code {state_code!r}",
            field="state_code",
        )


def normalize_state_code(state_code: str) -> str:
    if not isinstance(state_code, str):
        raise UnknownStateError(state_code)
    code = state_code.strip().upper()
    if code not in SUPPORTED_STATES:
        raise UnknownStateError(state_code)
    return code


def has_income_tax(state_code: str) -> bool:
    return normalize_state_code(state_code) not in NO_INCOME_TAX_STATES


def resolve_state_policy(state_code: str, flat_rate: D | str | None = None) -> StateTaxPolicy:
    if not has_income_tax(state_code):
        return StateTaxPolicy.no_income_tax()
    if flat_rate is None:
        return DEFAULT_STATE_POLICY
    return StateTaxPolicy.flat(flat_rate)


def state_tax(
    amount: AmountLike,
    state_code: str,
    policy: StateTaxPolicy | None = None,
    *,
    maximum: AmountLike | None = None,
) -> D:
    """Flat state tax on ``amount``; zero for states without an income tax.

    ``policy`` only supplies the rate for income-taxing states, it cannot
    switch a no-tax state on.
    """
    value = validate_amount(amount, maximum=maximum)
    if not has_income_tax(state_code):
        return D("0.00")
    applied = policy or DEFAULT_STATE_POLICY
    if applied.kind == "no_income_tax":
        return D("0.00")
    return round_cents(value * applied.rate)


__all__ = [
    "DEFAULT_STATE_POLICY",
    "UnknownStateError",
    "has_income_tax",
    "normalize_state_code",
    "resolve_state_policy",
    "state_tax",
]
