from __future__ import annotations

from decimal import Decimal

from taxplan.core.brackets import FEDERAL_BRACKETS
from taxplan.core.models import BracketTable, BracketTier, FilingStatus
from taxplan.core.validate import AmountLike, validate_amount

D = Decimal


def resolve_tier(income: D, table: BracketTable) -> BracketTier:
    for tier in table:
        if tier.upper_bound is None or income <= tier.upper_bound:
            return tier
    return table[-1]


def marginal_rate(
    income: AmountLike,
    filing_status: FilingStatus | str,
    *,
    maximum: AmountLike | None = None,
) -> D:
    """Rate of the first federal tier whose upper bound covers ``income``.

    Bounds are inclusive: a Single filer at exactly 11,000 is still in the
    10% tier.
    """
    status = FilingStatus.parse(filing_status)
    value = validate_amount(income, maximum=maximum, field="income")
    return resolve_tier(value, FEDERAL_BRACKETS[status]).rate


def bracket_ceiling(income: AmountLike, filing_status: FilingStatus | str) -> D | None:
    status = FilingStatus.parse(filing_status)
    value = validate_amount(income, field="income")
    return resolve_tier(value, FEDERAL_BRACKETS[status]).upper_bound


__all__ = ["bracket_ceiling", "marginal_rate", "resolve_tier"]
