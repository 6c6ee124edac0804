"""Error types raised by the Yahoo Finance client.

Every error derives from :class:`YahooError`. Errors produced from an HTTP
response carry the :class:`Outcome` the response was classified as, so
callers and the request coordinator can branch on ``error.outcome`` instead
of on class names.
"""

import logging
from enum import Enum
from typing import Optional

# Silent until the application configures handlers
logging.getLogger("open_finance_data").addHandler(logging.NullHandler())


class Outcome(str, Enum):
    ACCEPTED = "accepted"
    AUTH_ERROR = "auth_error"
    RATE_LIMITED = "rate_limited"
    UNAVAILABLE = "unavailable"
    INVALID_SYMBOL = "invalid_symbol"


class YahooError(Exception):
    """Base class for all client errors."""

    outcome: Optional[Outcome] = None


class SessionInitError(YahooError):
    """The cookie bootstrap request could not be completed."""


class CrumbFetchError(YahooError):
    """The crumb endpoint could not be reached."""


class YahooRequestError(YahooError):
    """Transport or JSON decode failure while calling an endpoint."""


class AuthError(YahooError):
    """Crumb or session cookies were rejected. Retried once by the coordinator."""

    outcome = Outcome.AUTH_ERROR


class RateLimitedError(YahooError):
    """Yahoo answered 429. Never retried; the caller should back off."""

    outcome = Outcome.RATE_LIMITED


class UnavailableError(YahooError):
    """Yahoo failed server-side or returned an unusable payload."""

    outcome = Outcome.UNAVAILABLE

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InvalidSymbolError(YahooError):
    """Yahoo does not know the requested symbol."""

    outcome = Outcome.INVALID_SYMBOL


class UnsupportedApiKindError(YahooError, ValueError):
    """No endpoint handler is registered for the requested API kind."""


class MissingParameterError(YahooError, ValueError):
    """A required request input (subject, search query) is missing or blank."""


ERRORS_BY_OUTCOME = {
    Outcome.AUTH_ERROR: AuthError,
    Outcome.RATE_LIMITED: RateLimitedError,
    Outcome.UNAVAILABLE: UnavailableError,
    Outcome.INVALID_SYMBOL: InvalidSymbolError,
}
