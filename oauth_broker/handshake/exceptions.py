"""
Handshake Exceptions
Failure taxonomy for the two-leg OAuth handshake.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from oauth_broker.handshake.schemas import CredentialRecord


class HandshakeError(Exception):
    """Base class for every handshake failure."""
    
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class InvalidToken(HandshakeError):
    """State token was never issued, or has already been consumed."""
    
    def __init__(self, message: str = "Unknown or already used state token"):
        super().__init__(message)


class ExpiredToken(HandshakeError):
    """State token was issued but is older than the TTL."""
    
    def __init__(self, message: str = "State token has expired"):
        super().__init__(message)


class ProviderUnavailable(HandshakeError):
    """Credential provider could not build an authorization URL."""
    
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class ExchangeFailed(HandshakeError):
    """Provider rejected the authorization code exchange."""
    
    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)


class PersistenceFailed(HandshakeError):
    """
    Credentials were obtained but could not be recorded.
    
    The only partial-failure state: the provider has already issued the
    credential pair, so the record is kept on the exception for recovery.
    """
    
    def __init__(
        self,
        message: str,
        identity: str,
        record: "CredentialRecord",
        cause: Optional[BaseException] = None,
    ):
        self.identity = identity
        self.record = record
        self.cause = cause
        super().__init__(message)
