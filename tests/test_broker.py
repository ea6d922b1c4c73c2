"""
Unit tests for the auth broker login flow.
"""

import asyncio
import json
from datetime import datetime, timezone
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from oauth_broker.handshake.broker import AuthBroker
from oauth_broker.handshake.exceptions import (
    ExchangeFailed,
    ExpiredToken,
    InvalidToken,
    PersistenceFailed,
    ProviderUnavailable,
)
from oauth_broker.handshake.schemas import CredentialRecord
from oauth_broker.integrations.google.oauth import GoogleOAuth, GoogleOAuthError

from tests.conftest import FailingSink, StubProvider


pytestmark = pytest.mark.unit


def test_begin_login_embeds_state_in_url(broker, registry):
    login = broker.begin_login("alice")

    assert login.url.endswith(f"state={login.token}")
    assert registry.pending_count == 1


def test_begin_login_provider_failure(registry, sink):
    provider = StubProvider(url_error=GoogleOAuthError("not configured"))
    broker = AuthBroker(registry=registry, provider=provider, sink=sink)

    with pytest.raises(ProviderUnavailable) as exc_info:
        broker.begin_login("alice")

    assert isinstance(exc_info.value.cause, GoogleOAuthError)
    assert registry.pending_count == 0


@pytest.mark.asyncio
async def test_complete_login_persists_record(broker, provider, sink, clock):
    login = broker.begin_login("alice")

    record = await broker.complete_login(login.token, "validcode123")

    assert provider.exchanged_codes == ["validcode123"]
    assert sink.records == [record]
    assert record.identity == "alice"
    assert record.access_token == "A"
    assert record.refresh_token == "R"
    assert record.timestamp == clock()


@pytest.mark.asyncio
async def test_end_to_end_with_google_provider(registry, sink, clock, test_settings):
    """Google URL carries the state and offline/consent params; exchange feeds the sink."""
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["form"] = parse_qs(request.content.decode())
        return httpx.Response(200, json={"access_token": "A", "refresh_token": "R", "expires_in": 3599})

    provider = GoogleOAuth(test_settings, transport=httpx.MockTransport(handler))
    broker = AuthBroker(registry=registry, provider=provider, sink=sink)

    login = broker.begin_login("alice")
    query = parse_qs(urlparse(login.url).query)

    assert query["state"] == [login.token]
    assert query["access_type"] == ["offline"]
    assert query["prompt"] == ["consent"]
    assert query["scope"][0].split() == [
        "https://www.googleapis.com/auth/adwords",
        "https://www.googleapis.com/auth/spreadsheets",
    ]

    clock.advance(seconds=30)
    record = await broker.complete_login(login.token, "validcode123")

    assert seen["form"]["code"] == ["validcode123"]
    assert len(sink.records) == 1
    assert sink.records[0].model_dump() == {
        "identity": "alice",
        "access_token": "A",
        "refresh_token": "R",
        "timestamp": clock(),
    }
    assert record == sink.records[0]


@pytest.mark.asyncio
async def test_garbage_token_never_reaches_exchange(broker, provider, sink):
    with pytest.raises(InvalidToken):
        await broker.complete_login("garbage-token", "anycode")

    assert provider.exchanged_codes == []
    assert sink.records == []


@pytest.mark.asyncio
async def test_expired_token_never_reaches_exchange(broker, provider, clock):
    login = broker.begin_login("alice")
    clock.advance(minutes=5, milliseconds=1)

    with pytest.raises(ExpiredToken):
        await broker.complete_login(login.token, "code")

    assert provider.exchanged_codes == []


@pytest.mark.asyncio
async def test_persistence_failure_after_single_exchange(registry, provider):
    sink = FailingSink()
    broker = AuthBroker(registry=registry, provider=provider, sink=sink)
    login = broker.begin_login("alice")

    with pytest.raises(PersistenceFailed) as exc_info:
        await broker.complete_login(login.token, "validcode123")

    error = exc_info.value
    assert provider.exchanged_codes == ["validcode123"]
    assert error.identity == "alice"
    assert error.record.refresh_token == "R"
    assert isinstance(error.cause, RuntimeError)

    # Token is already spent; a retry cannot trigger a second exchange
    with pytest.raises(InvalidToken):
        await broker.complete_login(login.token, "validcode123")
    assert provider.exchanged_codes == ["validcode123"]
    assert sink.attempts == 1


@pytest.mark.asyncio
async def test_persistence_failure_logs_fingerprints_not_secrets(registry, caplog):
    provider = StubProvider(access_token="access-secret-value", refresh_token="refresh-secret-value")
    broker = AuthBroker(registry=registry, provider=provider, sink=FailingSink())
    login = broker.begin_login("alice")

    with caplog.at_level("ERROR"):
        with pytest.raises(PersistenceFailed):
            await broker.complete_login(login.token, "code")

    assert "were NOT persisted" in caplog.text
    assert "alice" in caplog.text
    assert "refresh-secret-value" not in caplog.text
    assert "access-secret-value" not in caplog.text


@pytest.mark.asyncio
async def test_exchange_failure_consumes_token(registry, sink):
    provider = StubProvider(exchange_error=GoogleOAuthError("Bad Request", error_code="invalid_grant"))
    broker = AuthBroker(registry=registry, provider=provider, sink=sink)
    login = broker.begin_login("alice")

    with pytest.raises(ExchangeFailed) as exc_info:
        await broker.complete_login(login.token, "badcode")

    assert exc_info.value.cause.error_code == "invalid_grant"
    assert sink.records == []
    with pytest.raises(InvalidToken):
        await broker.complete_login(login.token, "badcode")


@pytest.mark.asyncio
async def test_missing_refresh_token_is_exchange_failure(registry, sink):
    provider = StubProvider(refresh_token=None)
    broker = AuthBroker(registry=registry, provider=provider, sink=sink)
    login = broker.begin_login("alice")

    with pytest.raises(ExchangeFailed):
        await broker.complete_login(login.token, "code")

    assert sink.records == []


@pytest.mark.asyncio
async def test_racing_callbacks_exchange_once(broker, provider, sink):
    login = broker.begin_login("alice")

    results = await asyncio.gather(
        broker.complete_login(login.token, "code-1"),
        broker.complete_login(login.token, "code-2"),
        return_exceptions=True,
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], InvalidToken)
    assert len(provider.exchanged_codes) == 1
    assert len(sink.records) == 1


def test_cancel_login_retires_token(broker, registry):
    login = broker.begin_login("alice")

    assert broker.cancel_login(login.token, reason="access_denied") == "alice"
    assert registry.pending_count == 0
    with pytest.raises(InvalidToken):
        broker.cancel_login(login.token)


@pytest.mark.asyncio
async def test_identities_are_isolated(broker, sink):
    alice = broker.begin_login("alice")
    bob = broker.begin_login("bob")

    await broker.complete_login(bob.token, "code-b")
    await broker.complete_login(alice.token, "code-a")

    assert [r.identity for r in sink.records] == ["bob", "alice"]


def test_record_row_layout():
    """Sheet rows are timestamp, identity, refresh, access."""
    record = CredentialRecord(
        timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
        identity="alice",
        refresh_token="R",
        access_token="A",
    )

    assert record.to_row() == ["2026-01-01T00:00:00+00:00", "alice", "R", "A"]
    assert json.loads(record.model_dump_json())["identity"] == "alice"
