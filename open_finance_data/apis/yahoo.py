"""Yahoo Finance endpoint handlers.

One handler per API surface. Each handler turns ``(subject, parameters,
crumb)`` into a single GET through the shared session, validates the raw
response and returns the parsed JSON document. Handlers never retry and
never touch the crumb store; that is the request coordinator's job.

Notes
-----
Docstrings follow the NumPy documentation style.
"""

import logging
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote

import requests

from ..constants import (
    CHART_PATH,
    DEFAULT_HISTORY_INTERVAL,
    DEFAULT_HISTORY_RANGE,
    DEFAULT_QUOTE_SUMMARY_MODULES,
    DEFAULT_SEARCH_NEWS_COUNT,
    DEFAULT_SEARCH_QUOTES_COUNT,
    FINANCE_ORIGIN,
    QUOTE_PATH,
    QUOTE_SUMMARY_PATH,
    SEARCH_PATH,
)
from ..exceptions import MissingParameterError, YahooRequestError
from ..session.manager import SessionManager
from ..validator import validate

logger = logging.getLogger(__name__)

JSON_HEADERS = {"Accept": "application/json"}


class _YahooEndpoint:
    name = "endpoint"

    def __init__(self, session_manager: SessionManager):
        self.session_manager = session_manager

    @property
    def base_url(self) -> str:
        return self.session_manager.config.base_url

    def request(
        self, subject: Optional[str], parameters: Mapping[str, str], crumb: str
    ) -> Dict[str, Any]:
        raise NotImplementedError

    def _require_subject(self, subject: Optional[str]) -> str:
        if subject is None or not subject.strip():
            raise MissingParameterError(f"A symbol is required for {self.name} requests")
        return subject.strip()

    def _get_json(
        self,
        url: str,
        params: Dict[str, str],
        headers: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Run one GET through the shared session and return parsed JSON.

        Raises
        ------
        YahooRequestError
            On transport failures or an undecodable body.
        AuthError, RateLimitedError, UnavailableError, InvalidSymbolError
            As classified by :func:`~open_finance_data.validator.validate`.
        """
        session = self.session_manager.acquire()
        try:
            resp = session.get(
                url,
                params=params,
                headers=headers,
                timeout=self.session_manager.timeout,
            )
        except requests.RequestException as exc:
            raise YahooRequestError(f"Yahoo {self.name} request failed: {exc}") from exc

        logger.debug("Yahoo %s %s -> %s", self.name, url, resp.status_code)
        validate(resp.status_code, resp.text)

        try:
            return resp.json()
        except ValueError as exc:
            raise YahooRequestError(
                f"Yahoo {self.name} response is not valid JSON"
            ) from exc


class QuoteSummaryEndpoint(_YahooEndpoint):
    name = "quoteSummary"

    def request(self, subject, parameters, crumb):
        """Fetch quoteSummary modules for a symbol.

        Parameters
        ----------
        subject : str
            Ticker symbol (e.g. ``'AAPL'``).
        parameters : mapping
            ``modules``: comma-separated module names. Whitespace is removed;
            the three default modules are used when missing or blank.
        crumb : str
            Valid Yahoo crumb.

        Returns
        -------
        dict
            Document with a top-level ``quoteSummary`` key.
        """
        symbol = self._require_subject(subject)
        params = {
            "modules": resolve_modules(parameters),
            "crumb": crumb,
            "corsDomain": "finance.yahoo.com",
        }
        headers = {
            **JSON_HEADERS,
            "Referer": FINANCE_ORIGIN + "/",
            "Origin": FINANCE_ORIGIN,
        }
        url = self.base_url + QUOTE_SUMMARY_PATH + quote(symbol, safe="")
        return self._get_json(url, params, headers)


class QuoteEndpoint(_YahooEndpoint):
    name = "quote"

    def request(self, subject, parameters, crumb):
        """Fetch the current quote for a symbol.

        ``parameters`` may carry ``fields`` to restrict the returned fields;
        everything else is ignored. The result has a ``quoteResponse`` key.
        """
        symbol = self._require_subject(subject)
        params = {"symbols": symbol, "crumb": crumb}
        if parameters.get("fields"):
            params["fields"] = parameters["fields"]
        return self._get_json(self.base_url + QUOTE_PATH, params, dict(JSON_HEADERS))


class HistoryEndpoint(_YahooEndpoint):
    name = "chart"

    def request(self, subject, parameters, crumb):
        """Fetch historical prices from the chart endpoint.

        Parameters
        ----------
        subject : str
            Ticker symbol.
        parameters : mapping
            ``range`` (default ``1mo``), ``interval`` (default ``1d``) and
            optional ``events`` (``div``, ``splits`` or ``div,splits``).
            When ``period1``/``period2`` epoch bounds are given they replace
            ``range``.
        crumb : str
            Valid Yahoo crumb.

        Returns
        -------
        dict
            Document with a top-level ``chart`` key.
        """
        symbol = self._require_subject(subject)
        params = {"interval": parameters.get("interval") or DEFAULT_HISTORY_INTERVAL}
        if parameters.get("period1"):
            params["period1"] = parameters["period1"]
            if parameters.get("period2"):
                params["period2"] = parameters["period2"]
        else:
            params["range"] = parameters.get("range") or DEFAULT_HISTORY_RANGE
        if parameters.get("events"):
            params["events"] = parameters["events"]
        params["crumb"] = crumb

        url = self.base_url + CHART_PATH + quote(symbol, safe="")
        return self._get_json(url, params)


class SearchEndpoint(_YahooEndpoint):
    name = "search"

    def request(self, subject, parameters, crumb):
        """Search assets by keyword or company name.

        ``subject`` is ignored. ``parameters`` must contain a non-blank
        ``query``; ``quotesCount`` defaults to 10 and ``newsCount`` to 0.
        """
        query = parameters.get("query")
        if query is None or not query.strip():
            raise MissingParameterError("Search query is required")

        params = {
            "q": query.strip(),
            "quotesCount": parameters.get("quotesCount") or DEFAULT_SEARCH_QUOTES_COUNT,
            "newsCount": parameters.get("newsCount") or DEFAULT_SEARCH_NEWS_COUNT,
            "crumb": crumb,
        }
        return self._get_json(self.base_url + SEARCH_PATH, params)


def resolve_modules(parameters: Optional[Mapping[str, str]]) -> str:
    """Return the comma-separated quoteSummary module list to request."""
    modules = (parameters or {}).get("modules")
    if modules is None or not modules.strip():
        return ",".join(DEFAULT_QUOTE_SUMMARY_MODULES)
    return "".join(modules.split())
