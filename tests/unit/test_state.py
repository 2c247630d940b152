from decimal import Decimal as D

import pytest

from taxplan.core.errors import ErrorKind, TaxInputError
from taxplan.core.models import StateTaxPolicy
from taxplan.core.state import (
    DEFAULT_STATE_POLICY,
    UnknownStateError,
    has_income_tax,
    normalize_state_code,
    resolve_state_policy,
    state_tax,
)


@pytest.mark.parametrize("code", ["AK", "FL", "NV", "SD", "TX", "WA", "WY"])
def test_no_income_tax_states(code):
    assert state_tax(D("100000"), code) == D("0.00")
    assert not has_income_tax(code)
    assert resolve_state_policy(code).kind == "no_income_tax"


def test_flat_default_rate():
    assert DEFAULT_STATE_POLICY.rate == D("0.05")
    assert state_tax(D("100000"), "CA") == D("5000.00")
    assert state_tax(D("0.10"), "NY") == D("0.01")


def test_codes_are_normalized():
    assert normalize_state_code(" ca ") == "CA"
    assert state_tax(1000, "ny") == D("50.00")


@pytest.mark.parametrize("code", ["ZZ", "", "California", None, 12])
def test_unknown_codes(code):
    with pytest.raises(UnknownStateError) as exc:
        normalize_state_code(code)
    assert exc.value.kind is ErrorKind.UNKNOWN_STATE_CODE
    assert exc.value.field == "state_code"


def test_custom_policy_applies_only_to_taxing_states():
    policy = StateTaxPolicy.flat("0.0725")
    assert state_tax(D("10000"), "CA", policy) == D("725.00")
    assert state_tax(D("10000"), "TX", policy) == D("0.00")
    assert state_tax(D("10000"), "CA", StateTaxPolicy.no_income_tax()) == D("0.00")
    assert resolve_state_policy("CA", "0.03").rate == D("0.03")


def test_policy_rate_is_bounded():
    with pytest.raises(TaxInputError) as exc:
        StateTaxPolicy.flat("1.5")
    assert exc.value.kind is ErrorKind.INVALID_INPUT


def test_amount_is_validated_first():
    with pytest.raises(TaxInputError) as exc:
        state_tax(-10, "ZZ")
    assert exc.value.kind is ErrorKind.NEGATIVE
