from __future__ import annotations

from decimal import Decimal

from taxplan.core.errors import ErrorKind, TaxInputError
from taxplan.core.models import round_rate
from taxplan.core.validate import AmountLike, to_decimal

D = Decimal


def effective_rate(total_tax: AmountLike, total_income: AmountLike) -> D:
    tax = to_decimal(total_tax, field="total_tax")
    income = to_decimal(total_income, field="total_income")
    for name, value in (("total_tax", tax), ("total_income", income)):
        if not value.is_finite():
            raise TaxInputError(ErrorKind.NON_FINITE, f"{name} must be finite", field=name)
        if value < 0:
            raise TaxInputError(ErrorKind.INVALID_INPUT, f"{name} cannot be negative", field=name)
    if income == 0:
        return D("0")
    return round_rate(tax / income)


__all__ = ["effective_rate"]
