import pytest

from taxplan.api.error_map import explain_error, get_error_details
from taxplan.core.errors import ErrorKind, TaxInputError


@pytest.mark.parametrize("kind", list(ErrorKind))
def test_every_kind_has_details(kind):
    info = get_error_details(kind)
    assert info.kind is kind
    assert info.status_code == 422
    assert info.friendly_message
    assert info.remediation


@pytest.mark.parametrize(
    "kind, expected",
    [
        (ErrorKind.NEGATIVE, "Value cannot be less than $0.00."),
        (ErrorKind.NON_FINITE, "Invalid numeric value."),
        (ErrorKind.UNKNOWN_STATE_CODE, "Tax state must be a valid 2-letter state code."),
    ],
)
def test_friendly_messages(kind, expected):
    assert get_error_details(kind).friendly_message == expected


def test_explain_error():
    exc = TaxInputError(ErrorKind.NEGATIVE, "gain_amount cannot be negative", field="gain_amount")
    details = explain_error(exc)
    assert details["kind"] == "negative"
    assert details["field"] == "gain_amount"
    assert details["message"] == "Value cannot be less than $0.00."
    assert "negative" in repr(exc)
