from decimal import Decimal as D

from taxplan.core.models import FilingStatus


def make_impact_payload(amount="50000", filing_status="SINGLE", state_code="CA", **overrides):
    payload = {
        "amount": amount,
        "filing_status": filing_status,
        "state_code": state_code,
    }
    payload.update(overrides)
    return payload


def make_strategy_payload(**overrides):
    payload = {
        "traditionalIRABalance": "100000.00",
        "rothIRABalance": "25000.00",
        "capitalGains": "200000.00",
        "taxState": "TX",
        "filingStatus": "SINGLE",
        "timeHorizon": 20,
        "discountRate": "0.07",
    }
    payload.update(overrides)
    return payload


# (status, amount, expected marginal rate) at and just past a tier edge
BRACKET_EDGES = [
    (FilingStatus.SINGLE, D("11000"), D("0.10")),
    (FilingStatus.SINGLE, D("11001"), D("0.12")),
    (FilingStatus.MARRIED_JOINT, D("22000"), D("0.10")),
    (FilingStatus.MARRIED_JOINT, D("22001"), D("0.12")),
    (FilingStatus.HEAD_OF_HOUSEHOLD, D("15700"), D("0.10")),
    (FilingStatus.HEAD_OF_HOUSEHOLD, D("15701"), D("0.12")),
    (FilingStatus.SINGLE, D("578125"), D("0.35")),
    (FilingStatus.SINGLE, D("578126"), D("0.37")),
]
