"""
Handshake Registry
In-memory store for OAuth state token → identity mapping.

Tokens are single-use: a successful lookup removes the entry. State does not
survive a restart, which simply invalidates every in-flight handshake.
"""

import logging
import secrets
import threading
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from oauth_broker.handshake.audit import log_handshake_event, token_hint
from oauth_broker.handshake.exceptions import ExpiredToken, InvalidToken

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def generate_state() -> str:
    """Generate a cryptographically secure state token (256 bits)."""
    return secrets.token_urlsafe(32)


@dataclass(frozen=True)
class HandshakeEntry:
    """One in-flight login attempt."""

    token: str
    identity: str
    created_at: datetime


class HandshakeRegistry:
    """
    Mints, validates and expires state tokens.

    Each token moves MINTED → CONSUMED or MINTED → EXPIRED, and only
    ``consume`` (or a sweep) ever removes an entry. All map access happens
    under one lock, so two concurrent ``consume`` calls on the same token
    cannot both succeed.
    """

    DEFAULT_TTL = timedelta(minutes=5)
    DEFAULT_SWEEP_INTERVAL = timedelta(minutes=1)

    def __init__(
        self,
        ttl: timedelta = DEFAULT_TTL,
        sweep_interval: Optional[timedelta] = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], datetime] = utc_now,
        token_factory: Callable[[], str] = generate_state,
    ):
        """
        Initialize the registry.

        Args:
            ttl: How long a minted token stays consumable
            sweep_interval: Minimum time between sweeps triggered by ``issue``
                (None disables access-triggered sweeps)
            clock: Source of timezone-aware "now"
            token_factory: Source of fresh tokens (must be cryptographically secure)
        """
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._token_factory = token_factory
        self._entries: dict[str, HandshakeEntry] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def now(self) -> datetime:
        """Current time according to the registry clock."""
        return self._clock()

    @property
    def pending_count(self) -> int:
        """Number of minted tokens not yet consumed or swept."""
        return len(self)

    def issue(self, identity: str) -> str:
        """
        Mint a new state token bound to an identity.

        Args:
            identity: Requesting identity (non-empty)

        Returns:
            The new state token

        Raises:
            ValueError: If identity is empty
        """
        if not identity:
            raise ValueError("identity must be a non-empty string")

        now = self._clock()
        with self._lock:
            token = self._token_factory()
            while token in self._entries:
                logger.warning("State token collision, minting a fresh token")
                token = self._token_factory()
            self._entries[token] = HandshakeEntry(token=token, identity=identity, created_at=now)

            if self.sweep_interval is not None and now - self._last_sweep >= self.sweep_interval:
                self._sweep_locked(now)

        log_handshake_event("issued", identity=identity, token=token)
        return token

    def consume(self, token: Optional[str]) -> str:
        """
        Validate a state token and remove it (one-time use).

        Args:
            token: Untrusted state token from the callback

        Returns:
            Identity the token was issued for

        Raises:
            InvalidToken: Token unknown or already consumed
            ExpiredToken: Token known but older than the TTL (entry is removed)
        """
        if not token:
            log_handshake_event("rejected", token=token, success=False, details="missing token")
            raise InvalidToken()

        now = self._clock()
        with self._lock:
            entry = self._entries.pop(token, None)

        if entry is None:
            log_handshake_event("rejected", token=token, success=False, details="unknown token")
            raise InvalidToken()

        if self._is_expired(entry, now):
            log_handshake_event("expired", identity=entry.identity, token=token, success=False)
            raise ExpiredToken()

        log_handshake_event("consumed", identity=entry.identity, token=token)
        return entry.identity

    def sweep(self) -> int:
        """
        Remove every entry older than the TTL.

        Returns:
            Number of entries removed
        """
        now = self._clock()
        with self._lock:
            return self._sweep_locked(now)

    def clear(self) -> None:
        """Drop every in-flight handshake."""
        with self._lock:
            self._entries.clear()

    def _is_expired(self, entry: HandshakeEntry, now: datetime) -> bool:
        return now - entry.created_at > self.ttl

    def _sweep_locked(self, now: datetime) -> int:
        """Remove expired entries. Caller must hold the lock."""
        expired = [
            token for token, entry in self._entries.items()
            if self._is_expired(entry, now)
        ]
        for token in expired:
            del self._entries[token]
        self._last_sweep = now

        if expired:
            logger.debug(
                "Swept %d expired state token(s): %s",
                len(expired),
                ", ".join(token_hint(token) for token in expired),
            )
        return len(expired)
