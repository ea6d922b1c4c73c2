"""
Stored Credential Model
Stores OAuth 2.0 credential pairs obtained through the login handshake.
"""

from datetime import datetime

from sqlalchemy import DateTime, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from oauth_broker.database.base import Base, TimestampMixin, UUIDMixin


class StoredCredential(Base, UUIDMixin, TimestampMixin):
    """
    Credential pair recorded for an identity.
    
    Every completed handshake appends a new row; older rows for the same
    identity are kept, mirroring the append-only sheet layout.
    
    Attributes:
        id: Unique identifier (UUID)
        identity: Identity the handshake was started for
        refresh_token: Long-lived refresh credential
        access_token: Short-lived access credential
        recorded_at: When the credentials were obtained
    
    Security Note:
        Tokens should be encrypted at rest in production.
    """
    
    __secret_columns__ = frozenset({"refresh_token", "access_token"})
    
    identity: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    
    refresh_token: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    
    access_token: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )
    
    recorded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        comment="When the credential exchange completed",
    )
    
    __table_args__ = (
        Index("ix_stored_credentials_identity", "identity"),
    )
    
    def __repr__(self) -> str:
        return f"<StoredCredential(id={self.id}, identity={self.identity!r})>"
