from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Any, Tuple

from .constants import (
    API_BASE,
    CRUMB_TTL,
    DEFAULT_CONNECT_TIMEOUT,
    DEFAULT_READ_TIMEOUT,
    HEADERS,
)


@dataclass(frozen=True)
class YahooConfig:
    """Settings shared by every component of a client.

    Parameters
    ----------
    connect_timeout : float, optional
        Seconds to wait for a connection to Yahoo, by default 10.
    read_timeout : float, optional
        Seconds to wait for a response body, by default 30.
    crumb_ttl : timedelta, optional
        How long a fetched crumb is reused, by default 10 minutes.
    headers : tuple of (str, str), optional
        Default headers installed on the HTTP session (User-Agent), as
        name/value pairs so the config stays hashable.
    clear_cookies_on_retry : bool, optional
        Wipe the cookie jar together with the crumb after an auth failure.
        Off by default; only the crumb is invalidated.
    base_url : str, optional
        Root of the query API, by default ``https://query1.finance.yahoo.com``.
    """

    connect_timeout: float = DEFAULT_CONNECT_TIMEOUT
    read_timeout: float = DEFAULT_READ_TIMEOUT
    crumb_ttl: timedelta = CRUMB_TTL
    headers: Tuple[Tuple[str, str], ...] = tuple(HEADERS.items())
    clear_cookies_on_retry: bool = False
    base_url: str = API_BASE

    @property
    def timeout(self) -> Tuple[float, float]:
        """``(connect, read)`` tuple in the form ``requests`` expects."""
        return (self.connect_timeout, self.read_timeout)

    def with_overrides(self, **overrides: Any) -> "YahooConfig":
        """Return a copy with the given fields replaced."""
        if not overrides:
            return self
        return replace(self, **overrides)
