"""
Shared pytest fixtures for handshake broker tests.

This module provides common fixtures including:
- FakeClock: controllable time source for TTL tests
- StubProvider / RecordingSink / FailingSink: in-memory collaborators
- Registry and broker instances wired to the fakes
"""

import asyncio
import os
import sys
from datetime import datetime, timedelta, timezone
from typing import List, Optional

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from oauth_broker.config import Settings
from oauth_broker.handshake.broker import AuthBroker
from oauth_broker.handshake.registry import HandshakeRegistry
from oauth_broker.handshake.schemas import CredentialPair, CredentialRecord


# =============================================================================
# Time
# =============================================================================

class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


# =============================================================================
# Collaborators
# =============================================================================

class StubProvider:
    """Credential provider that records calls and returns canned credentials."""

    def __init__(
        self,
        access_token: str = "A",
        refresh_token: Optional[str] = "R",
        exchange_error: Optional[Exception] = None,
        url_error: Optional[Exception] = None,
    ):
        self.access_token = access_token
        self.refresh_token = refresh_token
        self.exchange_error = exchange_error
        self.url_error = url_error
        self.exchanged_codes: List[str] = []

    def build_authorization_url(self, state: str) -> str:
        if self.url_error is not None:
            raise self.url_error
        return f"https://auth.example.com/authorize?state={state}"

    async def exchange_code(self, code: str) -> CredentialPair:
        self.exchanged_codes.append(code)
        # Yield to the loop so racing callers interleave here
        await asyncio.sleep(0)
        if self.exchange_error is not None:
            raise self.exchange_error
        return CredentialPair(access_token=self.access_token, refresh_token=self.refresh_token)


class RecordingSink:
    """Credential sink that keeps every appended record."""

    def __init__(self):
        self.records: List[CredentialRecord] = []

    async def append(self, record: CredentialRecord) -> None:
        self.records.append(record)


class FailingSink:
    """Credential sink that always fails."""

    def __init__(self, error: Optional[Exception] = None):
        self.error = error or RuntimeError("sheet unavailable")
        self.attempts = 0

    async def append(self, record: CredentialRecord) -> None:
        self.attempts += 1
        raise self.error


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> HandshakeRegistry:
    """Registry on the fake clock with access-triggered sweeps disabled."""
    return HandshakeRegistry(clock=clock, sweep_interval=None)


@pytest.fixture
def provider() -> StubProvider:
    return StubProvider()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def broker(registry: HandshakeRegistry, provider: StubProvider, sink: RecordingSink) -> AuthBroker:
    return AuthBroker(registry=registry, provider=provider, sink=sink)


@pytest.fixture
def test_settings() -> Settings:
    """Settings isolated from any local .env file."""
    return Settings(
        _env_file=None,
        google_client_id="client-123.apps.googleusercontent.com",
        google_client_secret="client-secret",
        redirect_uri="http://localhost:3000/callback",
        sheet_id="sheet-abc",
    )
