import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

import requests

from ..config import YahooConfig
from ..constants import CRUMB_PATH
from ..exceptions import CrumbFetchError
from .manager import SessionManager

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def mask(crumb: Optional[str]) -> str:
    """Shorten a crumb for log output."""
    if not crumb:
        return "<empty>"
    return crumb[:2] + "…"


@dataclass(frozen=True)
class CrumbEntry:
    value: str
    expires_at: datetime


class CrumbStore(ABC):
    """Cache holding at most one crumb and its expiry instant.

    Implementations must make each operation atomic when called from
    several threads. Atomicity across a ``get`` followed by a use is not
    required: a crumb cleared in between is caught downstream as an auth
    failure and costs one extra round trip.
    """

    @abstractmethod
    def get(self) -> Optional[str]:
        """Return the cached crumb if non-empty and unexpired, else ``None``."""

    @abstractmethod
    def put(self, value: str, ttl: timedelta) -> None:
        """Overwrite the cached crumb; it expires ``ttl`` from now."""

    @abstractmethod
    def clear(self) -> None:
        """Forget the cached crumb."""

    @abstractmethod
    def is_valid(self) -> bool:
        """Whether :meth:`get` would currently return a value."""


class InMemoryCrumbStore(CrumbStore):
    def __init__(self, clock: Callable[[], datetime] = _utcnow):
        """Create an empty, lock-guarded crumb store.

        Parameters
        ----------
        clock : callable, optional
            Returns the current time as an aware ``datetime``. Tests pass a
            controllable clock to simulate expiry.
        """
        self._clock = clock
        self._lock = threading.Lock()
        self._value: Optional[str] = None
        self._expires_at: Optional[datetime] = None

    def _entry_locked(self) -> Optional[CrumbEntry]:
        if not self._value or self._expires_at is None:
            return None
        if not self._clock() < self._expires_at:
            return None
        return CrumbEntry(self._value, self._expires_at)

    def get_entry(self) -> Optional[CrumbEntry]:
        """Return the crumb together with its expiry, or ``None``.

        Both fields are read under the same lock acquisition.
        """
        with self._lock:
            return self._entry_locked()

    def get(self) -> Optional[str]:
        entry = self.get_entry()
        return entry.value if entry else None

    def put(self, value: str, ttl: timedelta) -> None:
        with self._lock:
            self._value = value
            self._expires_at = self._clock() + ttl

    def clear(self) -> None:
        with self._lock:
            self._value = None
            self._expires_at = None

    def is_valid(self) -> bool:
        with self._lock:
            return self._entry_locked() is not None

    @property
    def expires_at(self) -> Optional[datetime]:
        with self._lock:
            return self._expires_at


_default_store = InMemoryCrumbStore()


def get_default_crumb_store() -> InMemoryCrumbStore:
    """Return the process-wide crumb store shared by all clients."""
    return _default_store


class CrumbProvider:
    def __init__(
        self,
        store: Optional[CrumbStore] = None,
        config: Optional[YahooConfig] = None,
    ):
        """Fetch crumbs from Yahoo, reusing the store's cached value.

        Parameters
        ----------
        store : CrumbStore, optional
            Cache to read from and write to; the process-wide store by default.
        config : YahooConfig, optional
            Supplies the crumb TTL, base URL and timeouts.
        """
        self.store = store if store is not None else get_default_crumb_store()
        self.config = config or YahooConfig()

    @property
    def crumb_url(self) -> str:
        return self.config.base_url + CRUMB_PATH

    def fetch(self, session_manager: SessionManager, force: bool = False) -> str:
        """Return a crumb, hitting the network only on a cache miss.

        Parameters
        ----------
        session_manager : SessionManager
            Supplies the cookie-bearing session the crumb is bound to.
        force : bool, optional
            Skip the cache lookup and always fetch a new crumb.

        Returns
        -------
        str
            The stripped response body. It is cached only when the status
            is 2xx and the body is non-blank, but it is returned either way:
            an empty body, or the text of an error page such as a 429
            ``Too Many Requests``, reaches the caller unvalidated. A bad
            value then surfaces as an auth failure on dispatch.

        Raises
        ------
        CrumbFetchError
            If the request fails at the transport level.
        """
        if not force:
            cached = self.store.get()
            if cached:
                logger.debug("Reusing cached Yahoo crumb %s", mask(cached))
                return cached

        session = session_manager.acquire()
        try:
            response = session.get(self.crumb_url, timeout=session_manager.timeout)
        except requests.RequestException as exc:
            raise CrumbFetchError(f"Failed to fetch Yahoo crumb: {exc}") from exc

        crumb = response.text.strip()
        if response.ok and crumb:
            self.store.put(crumb, self.config.crumb_ttl)
            logger.debug("Fetched new Yahoo crumb %s", mask(crumb))
        else:
            logger.warning(
                "Yahoo crumb endpoint returned status=%s (empty=%s); not caching",
                response.status_code,
                not crumb,
            )
        return crumb
