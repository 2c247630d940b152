from decimal import Decimal as D

import pytest
from pydantic import ValidationError

from taxplan.core.calc import calculate_roth_conversion_tax
from taxplan.core.errors import ErrorKind, TaxInputError
from taxplan.core.models import FilingStatus
from taxplan.core.optimize import (
    CalculationParameters,
    future_value,
    parse_parameters,
    plan_strategy,
    present_value,
    recommend_gains_realization,
    recommend_roth_conversion,
    risk_factor,
    weighted_tax_impact,
)
from tests.fixtures.scenarios import make_strategy_payload


@pytest.mark.parametrize(
    "balance, status, expected",
    [
        ("100000", FilingStatus.SINGLE, D("11000")),
        ("100000", FilingStatus.MARRIED_JOINT, D("22000")),
        ("100000", FilingStatus.HEAD_OF_HOUSEHOLD, D("15000")),
        ("11500", FilingStatus.SINGLE, D("11000")),
        ("8000", FilingStatus.SINGLE, D("8000")),
        ("500", FilingStatus.SINGLE, D("500")),
        ("0", FilingStatus.SINGLE, D("0")),
    ],
)
def test_roth_fills_the_first_bracket(balance, status, expected):
    rec = recommend_roth_conversion(balance, status, "CA")
    assert rec.amount == expected
    assert rec.impact.taxable_amount == expected
    assert rec.impact.marginal_rate == D("0.10")


def test_roth_recommendation_projection():
    rec = recommend_roth_conversion(D("100000"), "SINGLE", "CA")
    assert rec.bracket_ceiling == D("11000")
    assert rec.time_horizon == 20
    assert rec.future_value == D("42566.53")
    assert abs(rec.npv - rec.amount) <= D("0.01")
    assert rec.potential_savings == rec.future_value - rec.impact.total_tax
    assert rec.as_dict()["amount"] == "11000"


def test_roth_balance_bounds():
    with pytest.raises(TaxInputError) as exc:
        recommend_roth_conversion("5000000.01", "SINGLE", "CA")
    assert exc.value.kind is ErrorKind.EXCEEDS_MAXIMUM
    with pytest.raises(TaxInputError) as exc:
        recommend_roth_conversion(100000, "SINGLE", "CA", time_horizon=41)
    assert exc.value.kind is ErrorKind.INVALID_INPUT


def test_gains_prefers_zero_tier():
    rec = recommend_gains_realization(D("200000"), FilingStatus.SINGLE, "TX")
    assert rec.amount == D("44625")
    assert rec.impact.federal_tax == D("0.00")
    assert rec.full_realization.effective_rate == D("0.116531")
    assert rec.potential_savings == D("5200.20")


def test_gains_small_total_is_realized_in_full():
    rec = recommend_gains_realization(D("30000"), FilingStatus.SINGLE, "CA")
    assert rec.amount == D("30000")
    assert rec.potential_savings == D("0.00")


def test_gains_nothing_to_realize():
    rec = recommend_gains_realization(0, FilingStatus.SINGLE, "TX")
    assert rec.amount == D("0")
    assert rec.potential_savings == D("0.00")


def test_future_and_present_value():
    assert future_value(1000, 20, "0.07") == D("3869.68")
    assert present_value(D("3869.68"), 20, "0.07") == D("1000.00")
    assert future_value(1000, 1, 0) == D("1000.00")


@pytest.mark.parametrize(
    "call",
    [
        lambda: future_value(1000, 0),
        lambda: future_value(1000, 41),
        lambda: future_value(1000, True),
        lambda: future_value(1000, 10, "0.2"),
        lambda: present_value(1000, 10, "0.005"),
        lambda: present_value(1000, 10, "0.16"),
    ],
)
def test_projection_inputs_are_bounded(call):
    with pytest.raises(TaxInputError) as exc:
        call()
    assert exc.value.kind is ErrorKind.INVALID_INPUT


def test_parameters_accept_camel_case_and_normalize():
    params = CalculationParameters.model_validate(make_strategy_payload(taxState=" tx ", filingStatus="single"))
    assert params.tax_state == "TX"
    assert params.filing_status is FilingStatus.SINGLE
    assert params.traditional_ira_balance == D("100000.00")
    assert params.time_horizon == 20


def test_parameters_reject_extras_and_bad_values():
    with pytest.raises(ValidationError):
        CalculationParameters.model_validate(make_strategy_payload(surprise=1))
    with pytest.raises(ValidationError):
        CalculationParameters.model_validate(make_strategy_payload(capitalGains="-1"))
    with pytest.raises(ValidationError):
        CalculationParameters.model_validate(make_strategy_payload(rothIRABalance="1.001"))


def test_parse_parameters_keeps_specific_kinds():
    with pytest.raises(TaxInputError) as exc:
        parse_parameters(make_strategy_payload(taxState="ZZ"))
    assert exc.value.kind is ErrorKind.UNKNOWN_STATE_CODE

    with pytest.raises(TaxInputError) as exc:
        parse_parameters(make_strategy_payload(filingStatus="MARRIED_SEPARATE"))
    assert exc.value.kind is ErrorKind.UNKNOWN_FILING_STATUS

    with pytest.raises(TaxInputError) as exc:
        parse_parameters({"traditional_ira_balance": "-1", "tax_state": "CA"})
    assert exc.value.kind is ErrorKind.INVALID_INPUT
    assert exc.value.field == "traditional_ira_balance"


def test_plan_strategy():
    result = plan_strategy(parse_parameters(make_strategy_payload()))
    assert result.roth_conversion.amount == D("11000")
    assert result.capital_gains.amount == D("44625")
    assert result.combined_tax == D("1100.00")
    assert result.progressive_federal_tax == D("1100.00")
    assert result.combined_savings == result.roth_conversion.potential_savings + D("5200.20")
    payload = result.as_dict()
    assert payload["combined_tax"] == "1100.00"
    assert payload["capital_gains"]["impact"]["state_tax"] == "0.00"


@pytest.mark.parametrize("tolerance, expected", [(1, D("1")), (3, D("0.6")), (5, D("0.2"))])
def test_risk_factor(tolerance, expected):
    assert risk_factor(tolerance) == expected


@pytest.mark.parametrize("tolerance", [0, 6, True, "3"])
def test_risk_factor_rejects_out_of_range(tolerance):
    with pytest.raises(TaxInputError) as exc:
        risk_factor(tolerance)
    assert exc.value.kind is ErrorKind.INVALID_INPUT
    assert exc.value.field == "risk_tolerance"


def test_weighted_tax_impact():
    impact = calculate_roth_conversion_tax(D("11000"), FilingStatus.SINGLE, "CA")
    assert weighted_tax_impact(impact) == D("990.00")
    assert weighted_tax_impact(impact, 1, "0") == D("1100.00")
    assert weighted_tax_impact(impact, 5, "0.5") == D("275.00")
    with pytest.raises(TaxInputError):
        weighted_tax_impact(impact, 3, "1.5")


def test_recommendations_report_weighted_tax():
    roth = recommend_roth_conversion(D("100000"), FilingStatus.SINGLE, "CA", risk_tolerance=1)
    assert roth.weighted_tax == D("1650.00")
    assert roth.as_dict()["weighted_tax"] == "1650.00"

    gains = recommend_gains_realization(D("200000"), FilingStatus.SINGLE, "CA", state_tax_weight="0")
    assert gains.amount == D("44625")
    assert gains.weighted_tax == D("0.00")
    gains = recommend_gains_realization(D("200000"), FilingStatus.SINGLE, "CA", risk_tolerance=5)
    assert gains.weighted_tax == D("446.25")


def test_planner_honours_amount_ceiling():
    params = parse_parameters(make_strategy_payload())
    with pytest.raises(TaxInputError) as exc:
        plan_strategy(params, maximum=D("5000"))
    assert exc.value.kind is ErrorKind.EXCEEDS_MAXIMUM
    assert exc.value.field == "conversion_amount"

    with pytest.raises(TaxInputError) as exc:
        recommend_gains_realization(D("200000"), FilingStatus.SINGLE, "TX", maximum=D("100000"))
    assert exc.value.kind is ErrorKind.EXCEEDS_MAXIMUM
    assert exc.value.field == "capital_gains"


def test_parameters_risk_fields():
    params = parse_parameters(make_strategy_payload(riskTolerance=5, stateTaxWeight="0.25"))
    assert params.risk_tolerance == 5
    assert params.state_tax_weight == D("0.25")

    defaults = parse_parameters(make_strategy_payload())
    assert defaults.risk_tolerance == 3
    assert defaults.state_tax_weight == D("1")

    for overrides, field in (
        ({"riskTolerance": 6}, "risk_tolerance"),
        ({"stateTaxWeight": "1.5"}, "state_tax_weight"),
        ({"stateTaxWeight": "0.125"}, "state_tax_weight"),
    ):
        with pytest.raises(TaxInputError) as exc:
            parse_parameters(make_strategy_payload(**overrides))
        assert exc.value.kind is ErrorKind.INVALID_INPUT
        assert exc.value.field == field


def test_plan_strategy_scores_and_roth_projection():
    result = plan_strategy(parse_parameters(make_strategy_payload(riskTolerance=1)))
    assert result.roth_ira_balance == D("25000.00")
    assert result.projected_roth_balance == future_value(D("36000.00"), 20)
    assert result.risk_adjusted_score == result.combined_savings

    cautious = plan_strategy(parse_parameters(make_strategy_payload(riskTolerance=5)))
    assert cautious.risk_adjusted_score == (cautious.combined_savings * D("0.2")).quantize(D("0.01"))
    payload = cautious.as_dict()
    assert payload["roth_ira_balance"] == "25000.00"
    assert "risk_adjusted_score" in payload
