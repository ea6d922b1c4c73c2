"""
Auth Broker
Drives the two-leg OAuth authorization code flow for many end users.

Leg one mints a state token and returns the provider URL. Leg two consumes
the token, exchanges the code and hands the credentials to a sink.
"""

import logging
from typing import Optional, Protocol

from oauth_broker.handshake.audit import fingerprint, log_handshake_event
from oauth_broker.handshake.exceptions import (
    ExchangeFailed,
    PersistenceFailed,
    ProviderUnavailable,
)
from oauth_broker.handshake.registry import HandshakeRegistry
from oauth_broker.handshake.schemas import CredentialPair, CredentialRecord, LoginStart

logger = logging.getLogger(__name__)


class CredentialProvider(Protocol):
    """Builds authorization URLs and exchanges codes for credentials."""

    def build_authorization_url(self, state: str) -> str: ...

    async def exchange_code(self, code: str) -> CredentialPair: ...


class CredentialSink(Protocol):
    """Durably records a credential pair against an identity."""

    async def append(self, record: CredentialRecord) -> None: ...


class AuthBroker:
    """
    Orchestrates login handshakes.

    The registry is injected so each broker (and each test) owns its own
    state; nothing here is process-global.
    """

    def __init__(
        self,
        registry: HandshakeRegistry,
        provider: CredentialProvider,
        sink: CredentialSink,
    ):
        self.registry = registry
        self.provider = provider
        self.sink = sink

    def begin_login(self, identity: str) -> LoginStart:
        """
        Start a login for an identity.

        Args:
            identity: Requesting identity

        Returns:
            LoginStart with the authorization URL and its state token

        Raises:
            ProviderUnavailable: If the provider cannot build the URL
        """
        token = self.registry.issue(identity)

        try:
            url = self.provider.build_authorization_url(token)
        except Exception as e:
            logger.error("Provider could not build authorization URL: %s", e)
            # Nobody will ever receive this token; retire it now
            self.registry.consume(token)
            raise ProviderUnavailable("Could not build authorization URL", cause=e) from e

        return LoginStart(url=url, token=token)

    async def complete_login(self, token: Optional[str], code: str) -> CredentialRecord:
        """
        Finish a login from the provider callback.

        The state token is consumed before the code exchange starts, so an
        unverified callback never reaches the provider and a token can only
        ever drive one exchange.

        Args:
            token: State token from the callback (untrusted)
            code: Authorization code from the callback

        Returns:
            The persisted credential record

        Raises:
            InvalidToken: Token unknown or already used
            ExpiredToken: Token older than the TTL
            ExchangeFailed: Provider rejected the code
            PersistenceFailed: Credentials obtained but not recorded
        """
        identity = self.registry.consume(token)

        try:
            credentials = await self.provider.exchange_code(code)
        except Exception as e:
            log_handshake_event("exchanged", identity=identity, success=False, details=str(e))
            raise ExchangeFailed("Authorization code exchange failed", cause=e) from e

        if not credentials.refresh_token:
            log_handshake_event(
                "exchanged", identity=identity, success=False, details="no refresh token returned"
            )
            raise ExchangeFailed("Provider did not return a refresh credential")

        log_handshake_event("exchanged", identity=identity)

        record = CredentialRecord(
            timestamp=self.registry.now(),
            identity=identity,
            refresh_token=credentials.refresh_token,
            access_token=credentials.access_token,
        )

        try:
            await self.sink.append(record)
        except Exception as e:
            # The pair is live at the provider but unrecorded; log enough to recover it.
            logger.error(
                "Credentials for identity '%s' obtained at %s were NOT persisted "
                "(refresh=%s access=%s): %s",
                identity,
                record.timestamp.isoformat(),
                fingerprint(record.refresh_token),
                fingerprint(record.access_token),
                e,
            )
            log_handshake_event("persistence_failed", identity=identity, success=False, details=str(e))
            raise PersistenceFailed(
                "Credentials were obtained but could not be recorded",
                identity=identity,
                record=record,
                cause=e,
            ) from e

        log_handshake_event("persisted", identity=identity)
        return record

    def cancel_login(self, token: Optional[str], reason: Optional[str] = None) -> str:
        """
        Retire a handshake the provider reported as failed (e.g. consent denied).

        Args:
            token: State token from the callback
            reason: Provider error string, if any

        Returns:
            Identity the handshake belonged to

        Raises:
            InvalidToken: Token unknown or already used
            ExpiredToken: Token older than the TTL
        """
        identity = self.registry.consume(token)
        log_handshake_event("cancelled", identity=identity, success=False, details=reason)
        return identity
