"""Crumb acquisition, dispatch and the single auth retry.

A request goes through these states::

    NeedCrumb -> Dispatching -> Succeeded
                             -> RetryingAfterAuthFailure -> Dispatching' -> Succeeded | Failed

Only an auth failure leads to the retry branch. Every other error, and an
auth failure on the retry itself, reaches the caller unchanged.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Union

from .apis.yahoo import (
    HistoryEndpoint,
    QuoteEndpoint,
    QuoteSummaryEndpoint,
    SearchEndpoint,
)
from .config import YahooConfig
from .exceptions import AuthError, Outcome, UnsupportedApiKindError, YahooError
from .session.crumb import CrumbProvider, CrumbStore, get_default_crumb_store, mask
from .session.manager import SessionManager

logger = logging.getLogger(__name__)


class ApiKind(str, Enum):
    QUOTE_SUMMARY = "quoteSummary"
    QUOTE = "quote"
    HISTORY = "history"
    SEARCH = "search"


@dataclass(frozen=True)
class RequestDescriptor:
    api_kind: ApiKind
    subject: Optional[str] = None
    parameters: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of one dispatch attempt: a document or the error it raised."""

    document: Optional[Dict[str, Any]] = None
    error: Optional[YahooError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def outcome(self) -> Optional[Outcome]:
        if self.error is None:
            return Outcome.ACCEPTED
        return self.error.outcome

    def unwrap(self) -> Dict[str, Any]:
        if self.error is not None:
            raise self.error
        return self.document


class RequestCoordinator:
    def __init__(
        self,
        config: Optional[YahooConfig] = None,
        crumb_store: Optional[CrumbStore] = None,
        session_manager: Optional[SessionManager] = None,
        crumb_provider: Optional[CrumbProvider] = None,
        handlers: Optional[Mapping[ApiKind, Any]] = None,
    ):
        """Wire up session, crumb handling and the endpoint handlers.

        Parameters
        ----------
        config : YahooConfig, optional
            Client settings.
        crumb_store : CrumbStore, optional
            Crumb cache; the process-wide store by default.
        session_manager : SessionManager, optional
            Owned session; a new one is created when omitted.
        crumb_provider : CrumbProvider, optional
            Crumb fetcher bound to ``crumb_store``.
        handlers : mapping, optional
            ``ApiKind -> handler`` overrides. Each handler exposes
            ``request(subject, parameters, crumb)``.
        """
        self.config = config or YahooConfig()
        self.crumb_store = crumb_store if crumb_store is not None else get_default_crumb_store()
        self.session_manager = session_manager or SessionManager(self.config)
        self.crumb_provider = crumb_provider or CrumbProvider(self.crumb_store, self.config)

        self.handlers = {
            ApiKind.QUOTE_SUMMARY: QuoteSummaryEndpoint(self.session_manager),
            ApiKind.QUOTE: QuoteEndpoint(self.session_manager),
            ApiKind.HISTORY: HistoryEndpoint(self.session_manager),
            ApiKind.SEARCH: SearchEndpoint(self.session_manager),
        }
        if handlers:
            self.handlers.update(handlers)

    # --- PUBLIC ---

    def execute(self, descriptor: RequestDescriptor) -> Dict[str, Any]:
        """Run a request with at most one retry after an auth failure.

        Parameters
        ----------
        descriptor : RequestDescriptor
            What to fetch.

        Returns
        -------
        dict
            Parsed JSON document from Yahoo.

        Raises
        ------
        UnsupportedApiKindError
            If no handler is registered for ``descriptor.api_kind``.
        AuthError
            If the crumb is blank, or the retry is rejected as well.
        YahooError
            Any other classified or transport error, on first occurrence.
        """
        handler = self._handler_for(descriptor.api_kind)

        # 1. Session + crumb
        self.session_manager.acquire()
        crumb = self._current_crumb()

        # 2. First dispatch
        result = self._dispatch(handler, descriptor, crumb)
        if result.ok:
            return result.document
        if result.outcome is not Outcome.AUTH_ERROR:
            raise result.error

        # 3. Auth failure: reset crumb and session, then one more attempt
        logger.warning(
            "Yahoo rejected %s request for %s (%s); refreshing crumb and retrying once",
            descriptor.api_kind,
            descriptor.subject,
            result.error,
        )
        crumb = self._refresh_crumb()
        return self._dispatch(handler, descriptor, crumb).unwrap()

    # --- INTERNALS ---

    def _handler_for(self, api_kind: ApiKind):
        handler = self.handlers.get(api_kind)
        if handler is None:
            raise UnsupportedApiKindError(f"Unsupported Yahoo API kind: {api_kind!r}")
        return handler

    def _current_crumb(self) -> str:
        crumb = self.crumb_store.get()
        if not crumb:
            crumb = self.crumb_provider.fetch(self.session_manager)
        return self._checked(crumb)

    def _refresh_crumb(self) -> str:
        self.crumb_store.clear()
        self.session_manager.force_rebootstrap(
            clear_cookies=self.config.clear_cookies_on_retry
        )
        self.session_manager.acquire()
        crumb = self._checked(
            self.crumb_provider.fetch(self.session_manager, force=True)
        )
        logger.info("Yahoo session re-bootstrapped, new crumb %s", mask(crumb))
        return crumb

    @staticmethod
    def _checked(crumb: Optional[str]) -> str:
        if crumb is None or not crumb.strip():
            logger.warning("Yahoo returned an empty crumb")
            raise AuthError("Yahoo returned an empty crumb")
        return crumb

    def _dispatch(self, handler, descriptor: RequestDescriptor, crumb: str) -> DispatchResult:
        logger.debug(
            "Dispatching %s request for %s with crumb %s",
            descriptor.api_kind,
            descriptor.subject,
            mask(crumb),
        )
        try:
            document = handler.request(descriptor.subject, descriptor.parameters, crumb)
        except YahooError as exc:
            return DispatchResult(error=exc)
        return DispatchResult(document=document)


def as_api_kind(value: Union[ApiKind, str]) -> ApiKind:
    """Coerce an ``ApiKind`` or its string value (``'quote'``, ...)."""
    if isinstance(value, ApiKind):
        return value
    try:
        return ApiKind(value)
    except ValueError:
        raise UnsupportedApiKindError(f"Unsupported Yahoo API kind: {value!r}") from None
