from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from taxplan.core.brackets import FEDERAL_BRACKETS
from taxplan.core.models import (
    BracketTable,
    BracketTier,
    FilingStatus,
    TierAllocation,
    round_cents,
)
from taxplan.core.validate import AmountLike, validate_amount

D = Decimal


def allocate(
    amount: AmountLike,
    table: Iterable[BracketTier],
    *,
    maximum: AmountLike | None = None,
) -> tuple[TierAllocation, ...]:
    """Spread ``amount`` across ``table`` tier by tier.

    Each tier absorbs up to its upper bound of whatever is still remaining,
    so the ``taxable`` values always add back up to ``amount``.
    """
    remaining = validate_amount(amount, maximum=maximum)
    allocations: list[TierAllocation] = []
    for tier in table:
        if remaining <= 0:
            break
        taxable = remaining if tier.upper_bound is None else min(remaining, tier.upper_bound)
        allocations.append(
            TierAllocation(
                rate=tier.rate,
                upper_bound=tier.upper_bound,
                taxable=taxable,
                tax=taxable * tier.rate,
            )
        )
        remaining -= taxable
    return tuple(allocations)


def progressive_tax(
    amount: AmountLike,
    table: Iterable[BracketTier],
    *,
    maximum: AmountLike | None = None,
) -> D:
    tax = sum((a.tax for a in allocate(amount, table, maximum=maximum)), D("0"))
    return round_cents(tax)


def top_rate(amount: AmountLike, table: BracketTable, *, maximum: AmountLike | None = None) -> D:
    allocations = allocate(amount, table, maximum=maximum)
    if not allocations:
        return table[0].rate
    return allocations[-1].rate


def federal_income_tax(income: AmountLike, filing_status: FilingStatus | str) -> D:
    """Fully progressive federal tax on ordinary income.

    Unlike :func:`allocate`, each tier here is only as wide as the gap to the
    previous upper bound.
    """
    status = FilingStatus.parse(filing_status)
    ti = validate_amount(income, field="income")
    tax = D("0")
    lower = D("0")
    for tier in FEDERAL_BRACKETS[status]:
        upper = tier.upper_bound if tier.upper_bound is not None else ti
        if ti > lower:
            span = min(ti, upper) - lower
            if span > 0:
                tax += span * tier.rate
        if tier.upper_bound is None or ti <= tier.upper_bound:
            break
        lower = tier.upper_bound
    return round_cents(tax)


__all__ = ["allocate", "federal_income_tax", "progressive_tax", "top_rate"]
