from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Mapping

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from taxplan.core.brackets import CAPITAL_GAINS_BRACKETS
from taxplan.core.calc import calculate_capital_gains_tax, calculate_roth_conversion_tax
from taxplan.core.errors import ErrorKind, TaxInputError
from taxplan.core.marginal import bracket_ceiling
from taxplan.core.models import FilingStatus, StateTaxPolicy, TaxImpact, round_cents, round_rate
from taxplan.core.progressive import federal_income_tax
from taxplan.core.state import normalize_state_code
from taxplan.core.validate import AmountLike, to_decimal, validate_amount

D = Decimal

logger = logging.getLogger("taxplan.core")

MINIMUM_CONVERSION = D("1000")
MAXIMUM_CONVERSION = D("1000000")
CONVERSION_STEP = D("1000")
MAX_ACCOUNT_BALANCE = D("5000000")
MAX_PROJECTED_VALUE = D("1000000000000")

GAINS_THRESHOLDS: tuple[D, ...] = (D("10000"), D("50000"), D("100000"))

DEFAULT_TIME_HORIZON = 20
MIN_TIME_HORIZON = 1
MAX_TIME_HORIZON = 40

DEFAULT_DISCOUNT_RATE = D("0.07")
MIN_DISCOUNT_RATE = D("0.01")
MAX_DISCOUNT_RATE = D("0.15")

DEFAULT_GROWTH_RATE = D("0.07")

DEFAULT_RISK_TOLERANCE = 3
MIN_RISK_TOLERANCE = 1
MAX_RISK_TOLERANCE = 5
DEFAULT_STATE_TAX_WEIGHT = D("1")


def _check_horizon(years: int) -> int:
    if isinstance(years, bool) or not isinstance(years, int):
        raise TaxInputError(ErrorKind.INVALID_INPUT, f"time_horizon must be an integer, got {years!r}", field="time_horizon")
    if not (MIN_TIME_HORIZON <= years <= MAX_TIME_HORIZON):
        raise TaxInputError(
            ErrorKind.INVALID_INPUT,
            f"time_horizon {years} outside {MIN_TIME_HORIZON}..{MAX_TIME_HORIZON}",
            field="time_horizon",
        )
    return years


def _check_rate(rate: AmountLike, field: str, low: D, high: D) -> D:
    value = to_decimal(rate, field=field)
    if not value.is_finite() or not (low <= value <= high):
        raise TaxInputError(ErrorKind.INVALID_INPUT, f"{field} {rate} outside {low}..{high}", field=field)
    return value


def future_value(
    amount: AmountLike,
    years: int = DEFAULT_TIME_HORIZON,
    growth_rate: AmountLike = DEFAULT_GROWTH_RATE,
) -> D:
    value = validate_amount(amount, maximum=MAX_PROJECTED_VALUE)
    n = _check_horizon(years)
    rate = _check_rate(growth_rate, "growth_rate", D("0"), MAX_DISCOUNT_RATE)
    return round_cents(value * (1 + rate) ** n)


def present_value(
    future: AmountLike,
    years: int = DEFAULT_TIME_HORIZON,
    discount_rate: AmountLike = DEFAULT_DISCOUNT_RATE,
) -> D:
    value = validate_amount(future, maximum=MAX_PROJECTED_VALUE, field="future_value")
    n = _check_horizon(years)
    rate = _check_rate(discount_rate, "discount_rate", MIN_DISCOUNT_RATE, MAX_DISCOUNT_RATE)
    return round_cents(value / (1 + rate) ** n)


def _check_risk(risk_tolerance: int) -> int:
    if isinstance(risk_tolerance, bool) or not isinstance(risk_tolerance, int):
        raise TaxInputError(
            ErrorKind.INVALID_INPUT,
            f"risk_tolerance must be an integer, got {risk_tolerance!r}",
            field="risk_tolerance",
        )
    if not (MIN_RISK_TOLERANCE <= risk_tolerance <= MAX_RISK_TOLERANCE):
        raise TaxInputError(
            ErrorKind.INVALID_INPUT,
            f"risk_tolerance {risk_tolerance} outside {MIN_RISK_TOLERANCE}..{MAX_RISK_TOLERANCE}",
            field="risk_tolerance",
        )
    return risk_tolerance


def risk_factor(risk_tolerance: int = DEFAULT_RISK_TOLERANCE) -> D:
    """Scale a 1-5 tolerance to 1.0-0.2; the more tolerant the investor, the less a cost weighs."""
    return (MAX_RISK_TOLERANCE + 1 - _check_risk(risk_tolerance)) / D(MAX_RISK_TOLERANCE)


def weighted_tax_impact(
    impact: TaxImpact,
    risk_tolerance: int = DEFAULT_RISK_TOLERANCE,
    state_tax_weight: AmountLike = DEFAULT_STATE_TAX_WEIGHT,
) -> D:
    """Federal tax plus weighted state tax, scaled by :func:`risk_factor`."""
    weight = _check_rate(state_tax_weight, "state_tax_weight", D("0"), D("1"))
    return round_cents((impact.federal_tax + impact.state_tax * weight) * risk_factor(risk_tolerance))


def _weighted_rate(impact: TaxImpact, state_tax_weight: D) -> D:
    if impact.taxable_amount == 0:
        return D("0")
    return round_rate((impact.federal_tax + impact.state_tax * state_tax_weight) / impact.taxable_amount)


@dataclass(frozen=True)
class ConversionRecommendation:
    amount: D
    impact: TaxImpact
    bracket_ceiling: D | None
    time_horizon: int
    discount_rate: D
    future_value: D
    npv: D
    potential_savings: D
    weighted_tax: D

    def as_dict(self) -> dict[str, Any]:
        return {
            "amount": str(self.amount),
            "impact": self.impact.as_dict(),
            "bracket_ceiling": None if self.bracket_ceiling is None else str(self.bracket_ceiling),
            "time_horizon": self.time_horizon,
            "discount_rate": str(self.discount_rate),
            "future_value": str(self.future_value),
            "npv": str(self.npv),
            "potential_savings": str(self.potential_savings),
            "weighted_tax": str(self.weighted_tax),
        }


@dataclass(frozen=True)
class GainsRecommendation:
    amount: D
    impact: TaxImpact
    full_realization: TaxImpact
    potential_savings: D
    weighted_tax: D

    def as_dict(self) -> dict[str, Any]:
        return {
            "amount": str(self.amount),
            "impact": self.impact.as_dict(),
            "full_realization": self.full_realization.as_dict(),
            "potential_savings": str(self.potential_savings),
            "weighted_tax": str(self.weighted_tax),
        }


def _fill_bracket(cap: D, ceiling: D | None) -> D:
    # largest MINIMUM_CONVERSION + k * CONVERSION_STEP that stays inside the bracket,
    # unless the cap itself already fits
    if ceiling is None or cap <= ceiling:
        return cap
    steps = (ceiling - MINIMUM_CONVERSION) // CONVERSION_STEP
    return MINIMUM_CONVERSION + steps * CONVERSION_STEP


def recommend_roth_conversion(
    traditional_balance: AmountLike,
    filing_status: FilingStatus | str,
    state_code: str,
    *,
    time_horizon: int = DEFAULT_TIME_HORIZON,
    discount_rate: AmountLike = DEFAULT_DISCOUNT_RATE,
    risk_tolerance: int = DEFAULT_RISK_TOLERANCE,
    state_tax_weight: AmountLike = DEFAULT_STATE_TAX_WEIGHT,
    policy: StateTaxPolicy | None = None,
    maximum: AmountLike | None = None,
) -> ConversionRecommendation:
    """Largest conversion that stays in the marginal bracket of the minimum conversion.

    Amounts move in ``CONVERSION_STEP`` increments from ``MINIMUM_CONVERSION``
    and never exceed the balance or ``MAXIMUM_CONVERSION``. A balance under
    the minimum is recommended in full. ``maximum`` caps the taxed amount the
    same way it does for :func:`calculate_roth_conversion_tax`.
    """
    balance = validate_amount(traditional_balance, maximum=MAX_ACCOUNT_BALANCE, field="traditional_ira_balance")
    status = FilingStatus.parse(filing_status)
    code = normalize_state_code(state_code)
    years = _check_horizon(time_horizon)
    rate = _check_rate(discount_rate, "discount_rate", MIN_DISCOUNT_RATE, MAX_DISCOUNT_RATE)

    cap = min(balance, MAXIMUM_CONVERSION)
    if cap < MINIMUM_CONVERSION:
        amount, ceiling = cap, bracket_ceiling(cap, status)
    else:
        ceiling = bracket_ceiling(MINIMUM_CONVERSION, status)
        amount = _fill_bracket(cap, ceiling)

    impact = calculate_roth_conversion_tax(amount, status, code, policy=policy, maximum=maximum)
    fv = future_value(amount, years)
    npv = present_value(fv, years, rate)
    savings = round_cents(fv - impact.total_tax)
    logger.debug("roth recommendation status=%s state=%s amount=%s", status.value, code, amount)
    return ConversionRecommendation(
        amount=amount,
        impact=impact,
        bracket_ceiling=ceiling,
        time_horizon=years,
        discount_rate=rate,
        future_value=fv,
        npv=npv,
        potential_savings=savings,
        weighted_tax=weighted_tax_impact(impact, risk_tolerance, state_tax_weight),
    )


def recommend_gains_realization(
    total_gains: AmountLike,
    filing_status: FilingStatus | str,
    state_code: str,
    *,
    risk_tolerance: int = DEFAULT_RISK_TOLERANCE,
    state_tax_weight: AmountLike = DEFAULT_STATE_TAX_WEIGHT,
    policy: StateTaxPolicy | None = None,
    maximum: AmountLike | None = None,
) -> GainsRecommendation:
    """Pick the realization amount with the lowest weighted tax rate.

    Candidates are the fixed thresholds, the top of the 0% tier, and the full
    gain, each capped at the gain available. State tax counts at
    ``state_tax_weight`` when ranking them. Ties go to the larger amount.
    """
    total = validate_amount(total_gains, maximum=maximum, field="capital_gains")
    status = FilingStatus.parse(filing_status)
    code = normalize_state_code(state_code)
    weight = _check_rate(state_tax_weight, "state_tax_weight", D("0"), D("1"))

    zero_tier = CAPITAL_GAINS_BRACKETS[status][0].upper_bound
    candidates = {min(t, total) for t in GAINS_THRESHOLDS}
    if zero_tier is not None:
        candidates.add(min(zero_tier, total))
    candidates.add(total)

    ordered = sorted(candidates)
    best = calculate_capital_gains_tax(ordered[0], status, code, policy=policy, maximum=maximum)
    for amount in ordered[1:]:
        impact = calculate_capital_gains_tax(amount, status, code, policy=policy, maximum=maximum)
        if _weighted_rate(impact, weight) <= _weighted_rate(best, weight):
            best = impact

    full = calculate_capital_gains_tax(total, status, code, policy=policy, maximum=maximum)
    gap = full.effective_rate - best.effective_rate
    savings = round_cents(gap * best.taxable_amount) if gap > 0 else D("0.00")
    return GainsRecommendation(
        amount=best.taxable_amount,
        impact=best,
        full_realization=full,
        potential_savings=savings,
        weighted_tax=weighted_tax_impact(best, risk_tolerance, weight),
    )


class CalculationParameters(BaseModel):
    traditional_ira_balance: Decimal = Field(
        ...,
        ge=0,
        le=MAX_ACCOUNT_BALANCE,
        decimal_places=2,
        validation_alias=AliasChoices("traditional_ira_balance", "traditionalIRABalance"),
    )
    roth_ira_balance: Decimal = Field(
        D("0.00"),
        ge=0,
        le=MAX_ACCOUNT_BALANCE,
        decimal_places=2,
        validation_alias=AliasChoices("roth_ira_balance", "rothIRABalance"),
    )
    capital_gains: Decimal = Field(
        D("0.00"),
        ge=0,
        le=MAX_ACCOUNT_BALANCE,
        decimal_places=2,
        validation_alias=AliasChoices("capital_gains", "capitalGains"),
    )
    tax_state: str = Field(..., validation_alias=AliasChoices("tax_state", "taxState", "state_code"))
    filing_status: FilingStatus = Field(
        FilingStatus.SINGLE,
        validation_alias=AliasChoices("filing_status", "filingStatus"),
    )
    time_horizon: int = Field(
        DEFAULT_TIME_HORIZON,
        ge=MIN_TIME_HORIZON,
        le=MAX_TIME_HORIZON,
        validation_alias=AliasChoices("time_horizon", "timeHorizon"),
    )
    discount_rate: Decimal = Field(
        DEFAULT_DISCOUNT_RATE,
        ge=MIN_DISCOUNT_RATE,
        le=MAX_DISCOUNT_RATE,
        validation_alias=AliasChoices("discount_rate", "discountRate"),
    )
    risk_tolerance: int = Field(
        DEFAULT_RISK_TOLERANCE,
        ge=MIN_RISK_TOLERANCE,
        le=MAX_RISK_TOLERANCE,
        validation_alias=AliasChoices("risk_tolerance", "riskTolerance"),
    )
    state_tax_weight: Decimal = Field(
        DEFAULT_STATE_TAX_WEIGHT,
        ge=0,
        le=1,
        decimal_places=2,
        validation_alias=AliasChoices("state_tax_weight", "stateTaxWeight"),
    )

    model_config = ConfigDict(populate_by_name=True, extra="forbid", frozen=True)

    @field_validator("tax_state", mode="before")
    @classmethod
    def _normalize_state(cls, value: str) -> str:
        return normalize_state_code(value)

    @field_validator("filing_status", mode="before")
    @classmethod
    def _parse_status(cls, value: FilingStatus | str) -> FilingStatus:
        return FilingStatus.parse(value)


def _field_name(key: object) -> str:
    # errors report whichever alias the caller used; name the field itself
    for name, info in CalculationParameters.model_fields.items():
        alias = info.validation_alias
        if key == name or (isinstance(alias, AliasChoices) and key in alias.choices):
            return name
    return str(key)


def parse_parameters(data: Mapping[str, Any]) -> CalculationParameters:
    """Build :class:`CalculationParameters`, re-raising our own input errors unwrapped."""
    try:
        return CalculationParameters.model_validate(dict(data))
    except ValidationError as exc:
        errors = exc.errors()
        for err in errors:
            cause = (err.get("ctx") or {}).get("error")
            if isinstance(cause, TaxInputError):
                raise cause from exc
        first = errors[0] if errors else {}
        loc = first.get("loc") or ("parameters",)
        raise TaxInputError(
            ErrorKind.INVALID_INPUT,
            str(first.get("msg", "invalid parameters")),
            field=_field_name(loc[-1]),
        ) from exc


@dataclass(frozen=True)
class StrategyResult:
    roth_conversion: ConversionRecommendation
    capital_gains: GainsRecommendation
    combined_tax: D
    combined_savings: D
    progressive_federal_tax: D
    roth_ira_balance: D
    projected_roth_balance: D
    risk_adjusted_score: D

    def as_dict(self) -> dict[str, Any]:
        return {
            "roth_conversion": self.roth_conversion.as_dict(),
            "capital_gains": self.capital_gains.as_dict(),
            "combined_tax": str(self.combined_tax),
            "combined_savings": str(self.combined_savings),
            "progressive_federal_tax": str(self.progressive_federal_tax),
            "roth_ira_balance": str(self.roth_ira_balance),
            "projected_roth_balance": str(self.projected_roth_balance),
            "risk_adjusted_score": str(self.risk_adjusted_score),
        }


def plan_strategy(
    params: CalculationParameters,
    *,
    policy: StateTaxPolicy | None = None,
    maximum: AmountLike | None = None,
) -> StrategyResult:
    """Run both recommendations and score them together.

    The existing Roth balance plus the recommended conversion is grown over
    ``time_horizon`` at the default growth rate. ``risk_adjusted_score`` is
    the combined savings scaled by :func:`risk_factor`.
    """
    roth = recommend_roth_conversion(
        params.traditional_ira_balance,
        params.filing_status,
        params.tax_state,
        time_horizon=params.time_horizon,
        discount_rate=params.discount_rate,
        risk_tolerance=params.risk_tolerance,
        state_tax_weight=params.state_tax_weight,
        policy=policy,
        maximum=maximum,
    )
    gains = recommend_gains_realization(
        params.capital_gains,
        params.filing_status,
        params.tax_state,
        risk_tolerance=params.risk_tolerance,
        state_tax_weight=params.state_tax_weight,
        policy=policy,
        maximum=maximum,
    )
    combined_savings = roth.potential_savings + gains.potential_savings
    return StrategyResult(
        roth_conversion=roth,
        capital_gains=gains,
        combined_tax=roth.impact.total_tax + gains.impact.total_tax,
        combined_savings=combined_savings,
        progressive_federal_tax=federal_income_tax(roth.amount, params.filing_status),
        roth_ira_balance=params.roth_ira_balance,
        projected_roth_balance=future_value(params.roth_ira_balance + roth.amount, params.time_horizon),
        risk_adjusted_score=round_cents(combined_savings * risk_factor(params.risk_tolerance)),
    )


__all__ = [
    "CONVERSION_STEP",
    "CalculationParameters",
    "ConversionRecommendation",
    "GAINS_THRESHOLDS",
    "GainsRecommendation",
    "MAXIMUM_CONVERSION",
    "MINIMUM_CONVERSION",
    "StrategyResult",
    "future_value",
    "parse_parameters",
    "plan_strategy",
    "present_value",
    "recommend_gains_realization",
    "recommend_roth_conversion",
    "risk_factor",
    "weighted_tax_impact",
]
