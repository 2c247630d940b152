from __future__ import annotations

import logging
from decimal import Decimal

from taxplan.core.brackets import CAPITAL_GAINS_BRACKETS
from taxplan.core.marginal import marginal_rate
from taxplan.core.models import FilingStatus, StateTaxPolicy, TaxImpact, round_cents
from taxplan.core.progressive import progressive_tax, top_rate
from taxplan.core.rates import effective_rate
from taxplan.core.state import normalize_state_code, state_tax
from taxplan.core.validate import AmountLike, validate_amount

D = Decimal

logger = logging.getLogger("taxplan.core")


def _impact(amount: D, federal: D, state: D, rate: D) -> TaxImpact:
    total = federal + state
    return TaxImpact(
        federal_tax=federal,
        state_tax=state,
        total_tax=total,
        effective_rate=effective_rate(total, amount),
        marginal_rate=rate,
        taxable_amount=amount,
    )


def calculate_roth_conversion_tax(
    amount: AmountLike,
    filing_status: FilingStatus | str,
    state_code: str,
    *,
    policy: StateTaxPolicy | None = None,
    maximum: AmountLike | None = None,
) -> TaxImpact:
    """Tax owed on converting ``amount`` from a traditional to a Roth IRA.

    The whole conversion is taxed at the single marginal rate its size falls
    into; it is not stacked on other income or spread across tiers.
    """
    value = validate_amount(amount, maximum=maximum, field="conversion_amount")
    status = FilingStatus.parse(filing_status)
    code = normalize_state_code(state_code)

    rate = marginal_rate(value, status, maximum=maximum)
    federal = round_cents(value * rate)
    state = state_tax(value, code, policy, maximum=maximum)
    impact = _impact(value, federal, state, rate)
    logger.debug(
        "roth conversion status=%s state=%s rate=%s total=%s",
        status.value,
        code,
        rate,
        impact.total_tax,
    )
    return impact


def calculate_capital_gains_tax(
    amount: AmountLike,
    filing_status: FilingStatus | str,
    state_code: str,
    *,
    policy: StateTaxPolicy | None = None,
    maximum: AmountLike | None = None,
) -> TaxImpact:
    value = validate_amount(amount, maximum=maximum, field="gain_amount")
    status = FilingStatus.parse(filing_status)
    code = normalize_state_code(state_code)

    table = CAPITAL_GAINS_BRACKETS[status]
    federal = progressive_tax(value, table, maximum=maximum)
    state = state_tax(value, code, policy, maximum=maximum)
    impact = _impact(value, federal, state, top_rate(value, table, maximum=maximum))
    logger.debug(
        "capital gains status=%s state=%s federal=%s total=%s",
        status.value,
        code,
        federal,
        impact.total_tax,
    )
    return impact


__all__ = ["calculate_capital_gains_tax", "calculate_roth_conversion_tax"]
