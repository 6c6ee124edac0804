from datetime import timedelta

import pytest
import requests

from open_finance_data.config import YahooConfig
from open_finance_data.constants import API_BASE, CRUMB_PATH, SESSION_INIT_URL
from open_finance_data.exceptions import CrumbFetchError
from open_finance_data.session.crumb import CrumbProvider, get_default_crumb_store

from conftest import make_response

CRUMB_URL = API_BASE + CRUMB_PATH


@pytest.fixture
def bootstrapped(adapter):
    adapter.add(SESSION_INIT_URL, make_response(200, "ok"))
    return adapter


def test_cache_hit_skips_network(store, session_manager, adapter):
    store.put("cached", timedelta(minutes=10))
    provider = CrumbProvider(store)

    assert provider.fetch(session_manager) == "cached"
    assert adapter.calls == []


def test_cache_miss_fetches_and_stores(store, clock, session_manager, bootstrapped):
    bootstrapped.add(CRUMB_URL, make_response(200, "AbCdEf123"))
    provider = CrumbProvider(store)

    assert provider.fetch(session_manager) == "AbCdEf123"
    assert store.get() == "AbCdEf123"
    assert store.expires_at == clock.now + timedelta(minutes=10)
    assert bootstrapped.hits(CRUMB_URL) == 1


def test_second_fetch_reuses_stored_crumb(store, session_manager, bootstrapped):
    bootstrapped.add(CRUMB_URL, make_response(200, "first"), make_response(200, "second"))
    provider = CrumbProvider(store)

    provider.fetch(session_manager)

    assert provider.fetch(session_manager) == "first"
    assert bootstrapped.hits(CRUMB_URL) == 1


def test_force_bypasses_cache(store, session_manager, bootstrapped):
    store.put("stale", timedelta(minutes=10))
    bootstrapped.add(CRUMB_URL, make_response(200, "fresh"))
    provider = CrumbProvider(store)

    assert provider.fetch(session_manager, force=True) == "fresh"
    assert store.get() == "fresh"


def test_expired_crumb_is_refetched(store, clock, session_manager, bootstrapped):
    bootstrapped.add(CRUMB_URL, make_response(200, "one"), make_response(200, "two"))
    provider = CrumbProvider(store)

    provider.fetch(session_manager)
    clock.advance(minutes=11)

    assert provider.fetch(session_manager) == "two"


def test_body_is_stripped(store, session_manager, bootstrapped):
    bootstrapped.add(CRUMB_URL, make_response(200, "abc\n"))

    assert CrumbProvider(store).fetch(session_manager) == "abc"


def test_empty_body_is_returned_but_not_cached(store, session_manager, bootstrapped):
    bootstrapped.add(CRUMB_URL, make_response(200, ""))

    assert CrumbProvider(store).fetch(session_manager) == ""
    assert store.get() is None


def test_error_status_body_is_returned_but_not_cached(store, session_manager, bootstrapped):
    bootstrapped.add(CRUMB_URL, make_response(429, "Too Many Requests"))

    assert CrumbProvider(store).fetch(session_manager) == "Too Many Requests"
    assert not store.is_valid()


def test_transport_error_raises_crumb_fetch_error(store, session_manager, bootstrapped):
    bootstrapped.add(CRUMB_URL, requests.Timeout("read timed out"))

    with pytest.raises(CrumbFetchError):
        CrumbProvider(store).fetch(session_manager)


def test_custom_ttl_from_config(store, clock, session_manager, bootstrapped):
    bootstrapped.add(CRUMB_URL, make_response(200, "abc"))
    provider = CrumbProvider(store, YahooConfig(crumb_ttl=timedelta(seconds=30)))

    provider.fetch(session_manager)

    assert store.expires_at == clock.now + timedelta(seconds=30)


def test_defaults_to_process_wide_store():
    assert CrumbProvider().store is get_default_crumb_store()
