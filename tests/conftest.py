import json
from collections import defaultdict, deque
from datetime import datetime, timedelta, timezone
from typing import Callable, Deque, Dict, List, Union

import pytest
import requests
from requests.adapters import BaseAdapter
from requests.structures import CaseInsensitiveDict

from open_finance_data.config import YahooConfig
from open_finance_data.session.crumb import InMemoryCrumbStore, get_default_crumb_store
from open_finance_data.session.manager import SessionManager


class FakeClock:
    """Manually advanced clock for crumb expiry tests."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, tzinfo=timezone.utc)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


def make_response(
    status: int = 200,
    body: Union[str, dict, None] = "",
    url: str = "",
    headers: Dict[str, str] = None,
) -> requests.Response:
    if isinstance(body, dict):
        body = json.dumps(body)
    resp = requests.Response()
    resp.status_code = status
    resp._content = (body or "").encode("utf-8")
    resp._content_consumed = True
    resp.encoding = "utf-8"
    resp.url = url
    resp.headers = CaseInsensitiveDict(headers or {})
    return resp


Script = Union[requests.Response, Exception, Callable[[requests.PreparedRequest], requests.Response]]


class StubAdapter(BaseAdapter):
    """Plays back scripted responses keyed by URL path prefix.

    The last scripted response of a route is repeated once the queue drains.
    Every prepared request is recorded in ``calls``.
    """

    def __init__(self):
        super().__init__()
        self.routes: Dict[str, Deque[Script]] = defaultdict(deque)
        self.calls: List[requests.PreparedRequest] = []

    def add(self, prefix: str, *scripts: Script) -> "StubAdapter":
        self.routes[prefix].extend(scripts)
        return self

    def hits(self, prefix: str) -> int:
        return sum(1 for req in self.calls if req.url.startswith(prefix))

    def send(self, request, stream=False, timeout=None, verify=True, cert=None, proxies=None):
        self.calls.append(request)
        for prefix, queue in self.routes.items():
            if request.url.startswith(prefix) and queue:
                script = queue.popleft() if len(queue) > 1 else queue[0]
                break
        else:
            raise AssertionError(f"Unexpected request to {request.url}")

        if isinstance(script, Exception):
            raise script
        if callable(script):
            return script(request)
        script.request = request
        script.url = request.url
        return script

    def close(self):
        pass


@pytest.fixture(autouse=True)
def _reset_default_store():
    get_default_crumb_store().clear()
    yield
    get_default_crumb_store().clear()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store(clock):
    return InMemoryCrumbStore(clock=clock)


@pytest.fixture
def adapter():
    return StubAdapter()


@pytest.fixture
def http_session(adapter):
    session = requests.Session()
    session.mount("https://", adapter)
    return session


@pytest.fixture
def config():
    return YahooConfig()


@pytest.fixture
def session_manager(config, http_session):
    return SessionManager(config, session=http_session)
