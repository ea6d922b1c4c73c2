"""
Handshake Package
State-token correlation and the two-leg OAuth login flow.
"""

from oauth_broker.handshake.broker import AuthBroker, CredentialProvider, CredentialSink
from oauth_broker.handshake.exceptions import (
    ExchangeFailed,
    ExpiredToken,
    HandshakeError,
    InvalidToken,
    PersistenceFailed,
    ProviderUnavailable,
)
from oauth_broker.handshake.registry import HandshakeEntry, HandshakeRegistry

__all__ = [
    "AuthBroker",
    "CredentialProvider",
    "CredentialSink",
    "HandshakeEntry",
    "HandshakeRegistry",
    "HandshakeError",
    "InvalidToken",
    "ExpiredToken",
    "ProviderUnavailable",
    "ExchangeFailed",
    "PersistenceFailed",
]
