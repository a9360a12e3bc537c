"""Tests for the OAuth exchange gate: caching, deduplication and failures."""

import asyncio

import httpx
import pytest

from editor_api.core.errors import (
    AuthenticationInputError,
    ExchangeTimeoutError,
    ProviderAuthenticationError,
)
from editor_api.security.auth import AuthenticationGate, PendingExchangeRegistry, exchange_key
from editor_api.services.oauth_service import GitHubAccessToken

from utils_fakes import PROVIDER_ERROR, FakeExchanger, RecordingTokenStore


def _gate(exchanger=None, store=None, timeout=None):
    return AuthenticationGate(
        store=store if store is not None else RecordingTokenStore(),
        exchanger=exchanger or FakeExchanger(),
        timeout=timeout,
    )


def test_exchange_key():
    assert exchange_key("c1", "s1") == "c1-s1"


@pytest.mark.asyncio
@pytest.mark.parametrize("code,state", [("", "s1"), ("c1", ""), (None, "s1"), ("c1", None)])
async def test_missing_fields_fail_without_io(code, state):
    store = RecordingTokenStore()
    exchanger = FakeExchanger()
    gate = _gate(exchanger, store)

    with pytest.raises(AuthenticationInputError):
        await gate.authenticate(code, state)

    assert store.gets == []
    assert store.puts == []
    assert exchanger.calls == []


@pytest.mark.asyncio
async def test_new_exchange_persists_token_once():
    store = RecordingTokenStore()
    exchanger = FakeExchanger(GitHubAccessToken(access_token="gho_first"))
    gate = _gate(exchanger, store)

    credential = await gate.authenticate("c1", "s1")

    assert credential.access_token == "gho_first"
    assert exchanger.calls == [("c1", "s1")]
    assert store.puts == ["c1-s1"]
    assert len(gate.pending) == 0


@pytest.mark.asyncio
async def test_cache_hit_skips_exchange():
    store = RecordingTokenStore({"c1-s1": GitHubAccessToken(access_token="gho_cached")})
    exchanger = FakeExchanger()
    gate = _gate(exchanger, store)

    credential = await gate.authenticate("c1", "s1")

    assert credential.access_token == "gho_cached"
    assert exchanger.calls == []
    assert store.puts == []


@pytest.mark.asyncio
async def test_replayed_code_returns_same_credential():
    store = RecordingTokenStore()
    exchanger = FakeExchanger(
        GitHubAccessToken(access_token="gho_first"),
        GitHubAccessToken(access_token="gho_second"),
    )
    gate = _gate(exchanger, store)

    first = await gate.authenticate("c1", "s1")
    second = await gate.authenticate("c1", "s1")

    assert first == second
    assert len(exchanger.calls) == 1
    assert store.puts == ["c1-s1"]


@pytest.mark.asyncio
async def test_concurrent_requests_share_one_exchange():
    store = RecordingTokenStore()
    exchanger = FakeExchanger(GitHubAccessToken(access_token="gho_shared"))
    exchanger.release = asyncio.Event()
    gate = _gate(exchanger, store)

    waiters = [asyncio.create_task(gate.authenticate("c1", "s1")) for _ in range(10)]
    while not exchanger.calls:
        await asyncio.sleep(0)
    for _ in range(5):
        await asyncio.sleep(0)
    assert "c1-s1" in gate.pending

    exchanger.release.set()
    results = await asyncio.gather(*waiters)

    assert {credential.access_token for credential in results} == {"gho_shared"}
    assert len(exchanger.calls) == 1
    assert store.puts == ["c1-s1"]
    assert "c1-s1" not in gate.pending


@pytest.mark.asyncio
async def test_different_pairs_exchange_independently():
    exchanger = FakeExchanger(delay=0.01)
    gate = _gate(exchanger)

    await asyncio.gather(gate.authenticate("c1", "s1"), gate.authenticate("c2", "s2"))

    assert sorted(exchanger.calls) == [("c1", "s1"), ("c2", "s2")]


@pytest.mark.asyncio
async def test_provider_error_is_surfaced_and_not_persisted():
    store = RecordingTokenStore()
    gate = _gate(FakeExchanger(PROVIDER_ERROR), store)

    with pytest.raises(ProviderAuthenticationError) as excinfo:
        await gate.authenticate("c1", "s1")

    assert excinfo.value.description == PROVIDER_ERROR.error_description
    assert excinfo.value.details == {"uri": PROVIDER_ERROR.error_uri}
    assert store.puts == []
    assert len(gate.pending) == 0


@pytest.mark.asyncio
async def test_failed_exchange_is_not_retried_but_slot_is_freed():
    transport_error = httpx.ConnectError("connection refused")
    exchanger = FakeExchanger(transport_error, GitHubAccessToken(access_token="gho_later"))
    store = RecordingTokenStore()
    gate = _gate(exchanger, store)

    with pytest.raises(httpx.ConnectError):
        await gate.authenticate("c1", "s1")
    assert len(exchanger.calls) == 1
    assert "c1-s1" not in gate.pending
    assert store.puts == []

    # A new request for the same pair starts a fresh exchange.
    credential = await gate.authenticate("c1", "s1")
    assert credential.access_token == "gho_later"


@pytest.mark.asyncio
async def test_timeout_fails_all_waiters_and_clears_slot():
    exchanger = FakeExchanger()
    exchanger.release = asyncio.Event()
    store = RecordingTokenStore()
    gate = _gate(exchanger, store, timeout=0.05)

    results = await asyncio.gather(
        gate.authenticate("c1", "s1"),
        gate.authenticate("c1", "s1"),
        return_exceptions=True,
    )

    assert all(isinstance(result, ExchangeTimeoutError) for result in results)
    assert len(exchanger.calls) == 1
    assert len(gate.pending) == 0
    assert store.puts == []


@pytest.mark.asyncio
async def test_cancelled_waiter_does_not_cancel_shared_exchange():
    exchanger = FakeExchanger()
    exchanger.release = asyncio.Event()
    gate = _gate(exchanger)

    first = asyncio.create_task(gate.authenticate("c1", "s1"))
    second = asyncio.create_task(gate.authenticate("c1", "s1"))
    while not exchanger.calls:
        await asyncio.sleep(0)

    first.cancel()
    exchanger.release.set()

    credential = await second
    assert credential.access_token == "gho_token"
    with pytest.raises(asyncio.CancelledError):
        await first


@pytest.mark.asyncio
async def test_exchange_rechecks_store_before_calling_github():
    class LateStore(RecordingTokenStore):
        # The first read misses; by the time the exchange starts another
        # instance has stored the token.
        async def get(self, key):
            self.gets.append(key)
            if len(self.gets) == 1:
                return None
            return GitHubAccessToken(access_token="gho_elsewhere")

    exchanger = FakeExchanger()
    gate = _gate(exchanger, LateStore())

    credential = await gate.authenticate("c1", "s1")

    assert credential.access_token == "gho_elsewhere"
    assert exchanger.calls == []


@pytest.mark.asyncio
async def test_registry_returns_running_task_for_key():
    registry = PendingExchangeRegistry()
    release = asyncio.Event()
    started = []

    async def exchange():
        started.append(1)
        await release.wait()
        return GitHubAccessToken(access_token="gho_token")

    first = registry.start("k", exchange)
    second = registry.start("k", exchange)
    assert first is second
    assert registry.get("k") is first

    release.set()
    await first
    await asyncio.sleep(0)
    assert started == [1]
    assert registry.get("k") is None
