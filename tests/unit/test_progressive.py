from decimal import Decimal as D

import pytest
from hypothesis import given, strategies as st

from taxplan.core.brackets import CAPITAL_GAINS_BRACKETS, FEDERAL_BRACKETS
from taxplan.core.errors import ErrorKind, TaxInputError
from taxplan.core.models import FilingStatus
from taxplan.core.progressive import allocate, federal_income_tax, progressive_tax, top_rate

GAINS_SINGLE = CAPITAL_GAINS_BRACKETS[FilingStatus.SINGLE]


def test_gains_walk_single_100k():
    tiers = allocate(D("100000"), GAINS_SINGLE)
    assert [(t.rate, t.taxable) for t in tiers] == [
        (D("0.00"), D("44625")),
        (D("0.15"), D("55375")),
    ]
    assert progressive_tax(D("100000"), GAINS_SINGLE) == D("8306.25")
    assert top_rate(D("100000"), GAINS_SINGLE) == D("0.15")


def test_inside_zero_tier():
    assert progressive_tax(D("44625"), GAINS_SINGLE) == D("0.00")
    assert top_rate(D("44625"), GAINS_SINGLE) == D("0.00")


def test_zero_amount():
    assert allocate(0, GAINS_SINGLE) == ()
    assert progressive_tax(0, GAINS_SINGLE) == D("0.00")
    assert top_rate(0, GAINS_SINGLE) == D("0.00")


def test_walk_takes_full_upper_bound_from_remaining():
    # each tier absorbs min(remaining, upper_bound), not the width between bounds
    tiers = allocate(D("600000"), GAINS_SINGLE)
    assert [t.taxable for t in tiers] == [D("44625"), D("492300"), D("63075")]
    assert tiers[-1].rate == D("0.20")


def test_rejects_negative():
    with pytest.raises(TaxInputError) as exc:
        progressive_tax(-1, GAINS_SINGLE)
    assert exc.value.kind is ErrorKind.NEGATIVE


@given(
    st.sampled_from(list(FilingStatus)),
    st.decimals(min_value=0, max_value=10_000_000, places=2, allow_nan=False, allow_infinity=False),
)
def test_allocations_cover_the_amount(status, amount):
    tiers = allocate(amount, CAPITAL_GAINS_BRACKETS[status])
    assert sum((t.taxable for t in tiers), D("0")) == amount
    assert all(t.taxable > 0 for t in tiers)


@given(
    st.integers(min_value=0, max_value=10_000_000),
    st.integers(min_value=0, max_value=10_000_000),
)
def test_progressive_tax_is_monotonic(a, b):
    low, high = sorted((a, b))
    assert progressive_tax(low, GAINS_SINGLE) <= progressive_tax(high, GAINS_SINGLE)


@pytest.mark.parametrize(
    "status, income, expected",
    [
        (FilingStatus.SINGLE, "11000", D("1100.00")),
        (FilingStatus.SINGLE, "50000", D("6307.50")),
        (FilingStatus.MARRIED_JOINT, "22000", D("2200.00")),
        (FilingStatus.HEAD_OF_HOUSEHOLD, "0", D("0.00")),
    ],
)
def test_federal_income_tax(status, income, expected):
    assert federal_income_tax(income, status) == expected


@given(st.integers(min_value=0, max_value=10_000_000))
def test_federal_income_tax_below_top_rate(income):
    tax = federal_income_tax(income, FilingStatus.SINGLE)
    assert D("0") <= tax <= D(income) * FEDERAL_BRACKETS[FilingStatus.SINGLE][-1].rate
