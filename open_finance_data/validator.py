"""Classification of raw Yahoo Finance responses.

Yahoo does not report a broken crumb consistently: sometimes it answers
401/403, sometimes 200 with an HTML consent or challenge page. The rules
below map every response onto one :class:`Outcome`; the first matching
rule wins and status-code rules always run before body rules.
"""

from typing import Optional, Tuple

from .exceptions import ERRORS_BY_OUTCOME, Outcome, UnavailableError

HTML_MARKERS = ("<!DOCTYPE html", "<html")
NOT_FOUND_MARKER = '"code":"Not Found"'
NO_DATA_MARKER = "No data found"
ERROR_KEY_MARKER = '"error"'
CODE_KEY_MARKER = '"code"'


def _classify(status_code: int, body: Optional[str]) -> Tuple[Outcome, str]:
    # 1. Status codes
    if status_code in (401, 403):
        return Outcome.AUTH_ERROR, "unauthorized"
    if status_code == 429:
        return Outcome.RATE_LIMITED, "rate limit exceeded"
    if status_code >= 500:
        return Outcome.UNAVAILABLE, f"service unavailable, status={status_code}"

    # 2. Body
    if body is None or not body.strip():
        return Outcome.UNAVAILABLE, "empty response"
    if body.startswith(HTML_MARKERS):
        return Outcome.AUTH_ERROR, "html response received"
    if NOT_FOUND_MARKER in body and NO_DATA_MARKER in body:
        return (
            Outcome.INVALID_SYMBOL,
            "invalid or unsupported symbol, expected a valid ticker (e.g. AAPL, MSFT, PETR4.SA)",
        )
    if ERROR_KEY_MARKER in body and CODE_KEY_MARKER in body:
        return Outcome.UNAVAILABLE, "error payload"

    return Outcome.ACCEPTED, "ok"


def classify(status_code: int, body: Optional[str]) -> Outcome:
    """Classify an HTTP response without side effects.

    Parameters
    ----------
    status_code : int
        HTTP status returned by Yahoo.
    body : str or None
        Decoded response body.

    Returns
    -------
    Outcome
        ``Outcome.ACCEPTED`` or one of the four error kinds.
    """
    return _classify(status_code, body)[0]


def validate(status_code: int, body: Optional[str]) -> None:
    """Raise the typed error matching the response, if any.

    Raises
    ------
    AuthError, RateLimitedError, UnavailableError, InvalidSymbolError
        When :func:`classify` does not accept the response.
    """
    outcome, reason = _classify(status_code, body)
    if outcome is Outcome.ACCEPTED:
        return

    message = f"Yahoo {reason}"
    if outcome is Outcome.UNAVAILABLE:
        raise UnavailableError(message, status_code=status_code)
    raise ERRORS_BY_OUTCOME[outcome](message)
