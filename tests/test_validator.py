import pytest

from open_finance_data.exceptions import (
    AuthError,
    InvalidSymbolError,
    Outcome,
    RateLimitedError,
    UnavailableError,
)
from open_finance_data.validator import classify, validate

NOT_FOUND_BODY = (
    '{"quoteSummary":{"result":null,"error":{"code":"Not Found",'
    '"description":"Quote not found for symbol: ZZZZ. No data found, symbol may be delisted"}}}'
)


@pytest.mark.parametrize("status", [401, 403])
@pytest.mark.parametrize("body", ["", "   ", '{"quoteResponse":{}}', "<html>", NOT_FOUND_BODY])
def test_auth_status_wins_over_any_body(status, body):
    assert classify(status, body) is Outcome.AUTH_ERROR


def test_rate_limited():
    assert classify(429, '{"ok":true}') is Outcome.RATE_LIMITED


@pytest.mark.parametrize("status", [500, 502, 503, 504, 599])
def test_server_errors_are_unavailable_regardless_of_body(status):
    assert classify(status, "<html>challenge</html>") is Outcome.UNAVAILABLE
    assert classify(status, NOT_FOUND_BODY) is Outcome.UNAVAILABLE


@pytest.mark.parametrize("body", ["", "   ", "\n\t", None])
def test_blank_body_is_unavailable(body):
    assert classify(200, body) is Outcome.UNAVAILABLE


@pytest.mark.parametrize("body", ["<html><body>consent</body></html>", "<!DOCTYPE html><html></html>"])
def test_html_page_with_200_is_auth_error(body):
    assert classify(200, body) is Outcome.AUTH_ERROR


def test_html_marker_is_case_sensitive():
    assert classify(200, "<HTML>") is Outcome.ACCEPTED


def test_not_found_payload_is_invalid_symbol():
    assert classify(404, NOT_FOUND_BODY) is Outcome.INVALID_SYMBOL


def test_not_found_code_alone_is_generic_error_payload():
    body = '{"error":{"code":"Not Found","description":"gone"}}'
    assert classify(404, body) is Outcome.UNAVAILABLE


def test_generic_error_envelope_is_unavailable():
    body = '{"finance":{"result":null,"error":{"code":"Bad Request","description":"x"}}}'
    assert classify(400, body) is Outcome.UNAVAILABLE


def test_regular_payload_is_accepted():
    assert classify(200, '{"quoteResponse":{"result":[],"error":null}}') is Outcome.ACCEPTED


@pytest.mark.parametrize(
    "status, body, error",
    [
        (401, "", AuthError),
        (200, "<html>", AuthError),
        (429, "", RateLimitedError),
        (503, "", UnavailableError),
        (200, "", UnavailableError),
        (404, NOT_FOUND_BODY, InvalidSymbolError),
    ],
)
def test_validate_raises_typed_error(status, body, error):
    with pytest.raises(error) as excinfo:
        validate(status, body)
    assert excinfo.value.outcome is classify(status, body)


def test_validate_keeps_status_on_unavailable():
    with pytest.raises(UnavailableError, match="status=502") as excinfo:
        validate(502, "")
    assert excinfo.value.status_code == 502


def test_validate_accepts_good_payload():
    assert validate(200, '{"chart":{"result":[]}}') is None
