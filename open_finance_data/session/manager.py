import logging
import threading
from enum import Enum
from typing import Optional

import requests

from ..config import YahooConfig
from ..constants import SESSION_INIT_URL
from ..exceptions import SessionInitError

logger = logging.getLogger(__name__)


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    READY = "ready"


class SessionManager:
    def __init__(
        self,
        config: Optional[YahooConfig] = None,
        session: Optional[requests.Session] = None,
    ):
        """Own one cookie-bearing HTTP session against Yahoo.

        The session is bootstrapped lazily: the first :meth:`acquire` issues a
        GET to ``https://fc.yahoo.com`` so Yahoo can set the cookies that the
        crumb endpoint and the data endpoints later require.

        Parameters
        ----------
        config : YahooConfig, optional
            Client settings; defaults are used when omitted.
        session : requests.Session, optional
            Pre-built session (e.g. with a stub adapter mounted). A new one is
            created when omitted.
        """
        self.config = config or YahooConfig()
        self.session = session if session is not None else requests.Session()
        self.session.headers.update(dict(self.config.headers))
        self.state = SessionState.UNINITIALIZED
        self._lock = threading.Lock()

    @property
    def initialized(self) -> bool:
        return self.state is SessionState.READY

    @property
    def timeout(self):
        return self.config.timeout

    def acquire(self) -> requests.Session:
        """Return the session, bootstrapping it first if needed.

        Returns
        -------
        requests.Session
            The shared session; its cookie jar holds Yahoo's cookies.

        Raises
        ------
        SessionInitError
            If the bootstrap request fails at the transport level. Non-2xx
            answers are tolerated since only the cookies matter.
        """
        if self.state is SessionState.READY:
            return self.session

        with self._lock:
            # Another thread may have finished the bootstrap while we waited
            if self.state is SessionState.UNINITIALIZED:
                self._bootstrap()
        return self.session

    def _bootstrap(self) -> None:
        logger.debug("Bootstrapping Yahoo session via %s", SESSION_INIT_URL)
        try:
            # fc.yahoo.com redirects to a consent page or main page, setting cookies along the way
            response = self.session.get(
                SESSION_INIT_URL, timeout=self.timeout, allow_redirects=True
            )
        except requests.RequestException as exc:
            raise SessionInitError(f"Failed to initialize Yahoo session: {exc}") from exc

        self.state = SessionState.READY
        logger.debug(
            "Yahoo session ready (status=%s, cookies=%d)",
            response.status_code,
            len(self.session.cookies),
        )

    def force_rebootstrap(self, clear_cookies: bool = False) -> None:
        """Make the next :meth:`acquire` perform a fresh bootstrap GET.

        Parameters
        ----------
        clear_cookies : bool, optional
            Also wipe the cookie jar. By default cookies are kept and only
            refreshed by the next bootstrap.
        """
        with self._lock:
            if clear_cookies:
                self.session.cookies.clear()
            self.state = SessionState.UNINITIALIZED
        logger.debug("Yahoo session reset (cookies cleared=%s)", clear_cookies)

    def close(self) -> None:
        self.session.close()
        self.state = SessionState.UNINITIALIZED
