from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Literal

from taxplan.core.errors import ErrorKind, TaxInputError

D = Decimal

_CENT = D("0.01")
_RATE_PLACES = D("0.000001")


def round_cents(value: D) -> D:
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def round_rate(value: D) -> D:
    return value.quantize(_RATE_PLACES, rounding=ROUND_HALF_UP)


class FilingStatus(str, Enum):
    SINGLE = "SINGLE"
    MARRIED_JOINT = "MARRIED_JOINT"
    HEAD_OF_HOUSEHOLD = "HEAD_OF_HOUSEHOLD"

    @classmethod
    def parse(cls, value: "FilingStatus | str") -> "FilingStatus":
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().upper())
            except ValueError:
                pass
        raise TaxInputError(
            ErrorKind.UNKNOWN_FILING_STATUS,
            f"Unknown filing status {value!r}",
            field="filing_status",
        )


FILING_STATUS_LABELS: dict[FilingStatus, str] = {
    FilingStatus.SINGLE: "Single",
    FilingStatus.MARRIED_JOINT: "Married Filing Jointly",
    FilingStatus.HEAD_OF_HOUSEHOLD: "Head of Household",
}


@dataclass(frozen=True)
class BracketTier:
    rate: D
    upper_bound: D | None  # None marks the open-ended top tier

    @property
    def unbounded(self) -> bool:
        return self.upper_bound is None


BracketTable = tuple[BracketTier, ...]


def validate_table(table: BracketTable) -> BracketTable:
    """Check a bracket table is ascending, contiguous and closed by an unbounded tier."""
    if not table:
        raise TaxInputError(ErrorKind.INVALID_INPUT, "Bracket table is empty", field="brackets")
    previous: D | None = None
    for index, tier in enumerate(table):
        if not (D("0") <= tier.rate <= D("1")):
            raise TaxInputError(
                ErrorKind.INVALID_INPUT,
                f"Tier {index} rate {tier.rate} outside [0, 1]",
                field="brackets",
            )
        last = index == len(table) - 1
        if tier.upper_bound is None:
            if not last:
                raise TaxInputError(
                    ErrorKind.INVALID_INPUT,
                    f"Tier {index} is unbounded but is not the final tier",
                    field="brackets",
                )
            continue
        if last:
            raise TaxInputError(
                ErrorKind.INVALID_INPUT, "Final tier must be unbounded", field="brackets"
            )
        if tier.upper_bound <= 0 or (previous is not None and tier.upper_bound <= previous):
            raise TaxInputError(
                ErrorKind.INVALID_INPUT,
                f"Tier {index} upper bound {tier.upper_bound} is not strictly increasing",
                field="brackets",
            )
        previous = tier.upper_bound
    return table


@dataclass(frozen=True)
class TierAllocation:
    rate: D
    upper_bound: D | None
    taxable: D
    tax: D


@dataclass(frozen=True)
class StateTaxPolicy:
    kind: Literal["flat", "no_income_tax"]
    rate: D

    @classmethod
    def flat(cls, rate: D | str) -> "StateTaxPolicy":
        value = D(str(rate))
        if not value.is_finite() or not (D("0") <= value <= D("1")):
            raise TaxInputError(
                ErrorKind.INVALID_INPUT,
                f"State flat rate {rate} outside [0, 1]",
                field="state_rate",
            )
        return cls(kind="flat", rate=value)

    @classmethod
    def no_income_tax(cls) -> "StateTaxPolicy":
        return cls(kind="no_income_tax", rate=D("0"))


@dataclass(frozen=True)
class TaxImpact:
    federal_tax: D
    state_tax: D
    total_tax: D
    effective_rate: D
    marginal_rate: D
    taxable_amount: D

    def as_dict(self) -> dict[str, str]:
        return {
            "federal_tax": str(self.federal_tax),
            "state_tax": str(self.state_tax),
            "total_tax": str(self.total_tax),
            "effective_rate": str(self.effective_rate),
            "marginal_rate": str(self.marginal_rate),
            "taxable_amount": str(self.taxable_amount),
        }


__all__ = [
    "BracketTable",
    "BracketTier",
    "FILING_STATUS_LABELS",
    "FilingStatus",
    "StateTaxPolicy",
    "TaxImpact",
    "TierAllocation",
    "round_cents",
    "round_rate",
    "validate_table",
]
