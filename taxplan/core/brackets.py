from __future__ import annotations

from decimal import Decimal
from types import MappingProxyType
from typing import Mapping

from taxplan.core.models import BracketTable, BracketTier, FilingStatus, validate_table

D = Decimal


def _table(*tiers: tuple[str, str | None]) -> BracketTable:
    return validate_table(
        tuple(BracketTier(rate=D(rate), upper_bound=None if upper is None else D(upper)) for rate, upper in tiers)
    )


# Ordinary income, 2023 IRS thresholds.
FEDERAL_BRACKETS: Mapping[FilingStatus, BracketTable] = MappingProxyType({
    FilingStatus.SINGLE: _table(
        ("0.10", "11000"),
        ("0.12", "44725"),
        ("0.22", "95375"),
        ("0.24", "182100"),
        ("0.32", "231250"),
        ("0.35", "578125"),
        ("0.37", None),
    ),
    FilingStatus.MARRIED_JOINT: _table(
        ("0.10", "22000"),
        ("0.12", "89450"),
        ("0.22", "190750"),
        ("0.24", "364200"),
        ("0.32", "462500"),
        ("0.35", "693750"),
        ("0.37", None),
    ),
    FilingStatus.HEAD_OF_HOUSEHOLD: _table(
        ("0.10", "15700"),
        ("0.12", "59850"),
        ("0.22", "95350"),
        ("0.24", "182100"),
        ("0.32", "231250"),
        ("0.35", "578100"),
        ("0.37", None),
    ),
})

# Long-term capital gains.
CAPITAL_GAINS_BRACKETS: Mapping[FilingStatus, BracketTable] = MappingProxyType({
    FilingStatus.SINGLE: _table(
        ("0.00", "44625"),
        ("0.15", "492300"),
        ("0.20", None),
    ),
    FilingStatus.MARRIED_JOINT: _table(
        ("0.00", "89250"),
        ("0.15", "553850"),
        ("0.20", None),
    ),
    FilingStatus.HEAD_OF_HOUSEHOLD: _table(
        ("0.00", "59750"),
        ("0.15", "523050"),
        ("0.20", None),
    ),
})

DEFAULT_STATE_TAX_RATE = D("0.05")

NO_INCOME_TAX_STATES: frozenset[str] = frozenset({"AK", "FL", "NV", "SD", "TX", "WA", "WY"})

SUPPORTED_STATES: frozenset[str] = frozenset(
    {
        "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DC", "DE", "FL",
        "GA", "HI", "ID", "IL", "IN", "IA", "KS", "KY", "LA", "ME",
        "MD", "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV", "NH",
        "NJ", "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI",
        "SC", "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI",
        "WY",
    }
)

MAX_SUPPORTED_AMOUNT = D("10000000")


def federal_brackets(filing_status: FilingStatus | str) -> BracketTable:
    return FEDERAL_BRACKETS[FilingStatus.parse(filing_status)]


def capital_gains_brackets(filing_status: FilingStatus | str) -> BracketTable:
    return CAPITAL_GAINS_BRACKETS[FilingStatus.parse(filing_status)]


__all__ = [
    "CAPITAL_GAINS_BRACKETS",
    "DEFAULT_STATE_TAX_RATE",
    "FEDERAL_BRACKETS",
    "MAX_SUPPORTED_AMOUNT",
    "NO_INCOME_TAX_STATES",
    "SUPPORTED_STATES",
    "capital_gains_brackets",
    "federal_brackets",
]
