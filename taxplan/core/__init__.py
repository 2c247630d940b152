from taxplan.core.brackets import (
    CAPITAL_GAINS_BRACKETS,
    FEDERAL_BRACKETS,
    NO_INCOME_TAX_STATES,
    SUPPORTED_STATES,
)
from taxplan.core.calc import calculate_capital_gains_tax, calculate_roth_conversion_tax
from taxplan.core.errors import ErrorKind, TaxInputError
from taxplan.core.marginal import marginal_rate
from taxplan.core.models import BracketTier, FilingStatus, StateTaxPolicy, TaxImpact
from taxplan.core.optimize import (
    CalculationParameters,
    parse_parameters,
    plan_strategy,
    recommend_gains_realization,
    recommend_roth_conversion,
    risk_factor,
    weighted_tax_impact,
)
from taxplan.core.progressive import allocate, federal_income_tax, progressive_tax
from taxplan.core.rates import effective_rate
from taxplan.core.state import state_tax
from taxplan.core.validate import check_amount, validate_amount

__all__ = [
    "BracketTier",
    "CAPITAL_GAINS_BRACKETS",
    "CalculationParameters",
    "ErrorKind",
    "FEDERAL_BRACKETS",
    "FilingStatus",
    "NO_INCOME_TAX_STATES",
    "SUPPORTED_STATES",
    "StateTaxPolicy",
    "TaxImpact",
    "TaxInputError",
    "allocate",
    "calculate_capital_gains_tax",
    "calculate_roth_conversion_tax",
    "check_amount",
    "effective_rate",
    "federal_income_tax",
    "marginal_rate",
    "parse_parameters",
    "plan_strategy",
    "progressive_tax",
    "recommend_gains_realization",
    "recommend_roth_conversion",
    "risk_factor",
    "state_tax",
    "validate_amount",
    "weighted_tax_impact",
]
