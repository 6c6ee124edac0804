from typing import Any, Dict, Iterable, Mapping, Optional, Union

from .config import YahooConfig
from .constants import (
    ANALYST_MODULES,
    CALENDAR_MODULES,
    DEFAULT_HISTORY_INTERVAL,
    DEFAULT_HISTORY_RANGE,
    DEFAULT_QUOTE_SUMMARY_MODULES,
    EARNINGS_MODULES,
    FINANCIAL_STATEMENT_MODULES,
    OWNERSHIP_MODULES,
    PROFILE_MODULES,
)
from .coordinator import ApiKind, RequestCoordinator, RequestDescriptor, as_api_kind
from .session.crumb import CrumbStore


class OpenFinanceData:
    def __init__(
        self,
        config: Optional[YahooConfig] = None,
        crumb_store: Optional[CrumbStore] = None,
        coordinator: Optional[RequestCoordinator] = None,
        **overrides: Any,
    ):
        """Create a Yahoo Finance client.

        Parameters
        ----------
        config : YahooConfig, optional
            Client settings, by default ``YahooConfig()``.
        crumb_store : CrumbStore, optional
            Crumb cache, by default the process-wide store shared by all
            clients.
        coordinator : RequestCoordinator, optional
            Fully wired coordinator; ``config`` and ``crumb_store`` are
            ignored when given.
        **overrides
            Individual ``YahooConfig`` fields, e.g. ``connect_timeout=5``.
        """
        if coordinator is None:
            config = (config or YahooConfig()).with_overrides(**overrides)
            coordinator = RequestCoordinator(config=config, crumb_store=crumb_store)
        self.coordinator = coordinator

    # --- GENERIC ---

    def execute(
        self,
        subject: Optional[str],
        api_kind: Union[ApiKind, str],
        parameters: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """Fetch any supported Yahoo endpoint.

        Parameters
        ----------
        subject : str or None
            Ticker symbol; ``None`` for search.
        api_kind : ApiKind or str
            ``'quoteSummary'``, ``'quote'``, ``'history'`` or ``'search'``.
        parameters : mapping, optional
            Endpoint-specific query parameters.

        Returns
        -------
        dict
            Parsed JSON document.
        """
        descriptor = RequestDescriptor(
            api_kind=as_api_kind(api_kind),
            subject=subject,
            parameters=dict(parameters or {}),
        )
        return self.coordinator.execute(descriptor)

    # --- QUOTE SUMMARY ---

    def get_quote_summary(
        self, symbol: str, modules: Union[str, Iterable[str], None] = None
    ) -> Dict[str, Any]:
        """Fetch arbitrary quoteSummary modules.

        ``modules`` may be a comma-separated string or an iterable of module
        names. When omitted the default fundamentals modules are used.
        """
        parameters = {}
        if modules:
            if not isinstance(modules, str):
                modules = ",".join(modules)
            parameters["modules"] = modules
        return self.execute(symbol, ApiKind.QUOTE_SUMMARY, parameters)

    def get_fundamentals(self, symbol: str) -> Dict[str, Any]:
        return self.get_quote_summary(symbol, DEFAULT_QUOTE_SUMMARY_MODULES)

    def get_profile(self, symbol: str) -> Dict[str, Any]:
        return self.get_quote_summary(symbol, PROFILE_MODULES)

    def get_earnings(self, symbol: str) -> Dict[str, Any]:
        return self.get_quote_summary(symbol, EARNINGS_MODULES)

    def get_financial_statements(self, symbol: str) -> Dict[str, Any]:
        return self.get_quote_summary(symbol, FINANCIAL_STATEMENT_MODULES)

    def get_analyst_recommendations(self, symbol: str) -> Dict[str, Any]:
        return self.get_quote_summary(symbol, ANALYST_MODULES)

    def get_calendar_events(self, symbol: str) -> Dict[str, Any]:
        return self.get_quote_summary(symbol, CALENDAR_MODULES)

    def get_ownership(self, symbol: str) -> Dict[str, Any]:
        return self.get_quote_summary(symbol, OWNERSHIP_MODULES)

    # --- QUOTE / HISTORY / SEARCH ---

    def get_quote(self, symbol: str) -> Dict[str, Any]:
        return self.execute(symbol, ApiKind.QUOTE)

    def get_history(
        self,
        symbol: str,
        range_: str = DEFAULT_HISTORY_RANGE,
        interval: str = DEFAULT_HISTORY_INTERVAL,
    ) -> Dict[str, Any]:
        """Fetch price history, e.g. ``range_='6mo'``, ``interval='1wk'``."""
        return self.execute(
            symbol, ApiKind.HISTORY, {"range": range_, "interval": interval}
        )

    def get_history_with_events(
        self, symbol: str, range_: str, interval: str, events: str
    ) -> Dict[str, Any]:
        """Fetch price history including ``'div'``, ``'splits'`` or ``'div,splits'``."""
        return self.execute(
            symbol,
            ApiKind.HISTORY,
            {"range": range_, "interval": interval, "events": events},
        )

    def search(
        self, query: str, quotes_count: int = 10, news_count: int = 0
    ) -> Dict[str, Any]:
        """Search assets by company name or keyword."""
        return self.execute(
            None,
            ApiKind.SEARCH,
            {
                "query": query,
                "quotesCount": str(quotes_count),
                "newsCount": str(news_count),
            },
        )

    # --- LIFECYCLE ---

    def close(self) -> None:
        self.coordinator.session_manager.close()

    def __enter__(self) -> "OpenFinanceData":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
