"""
Handshake Schemas
Request/response and credential models for the OAuth handshake.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# Credential Models
# =============================================================================

class CredentialPair(BaseModel):
    """Access/refresh credential pair returned by the provider code exchange."""
    
    access_token: str = Field(..., description="Short-lived access credential")
    refresh_token: Optional[str] = Field(
        None,
        description="Long-lived refresh credential (only issued for offline access)"
    )
    expires_in: Optional[int] = Field(None, description="Access credential lifetime in seconds")
    scope: Optional[str] = Field(None, description="Space-separated granted scopes")
    token_type: str = Field("Bearer", description="Token type")


class CredentialRecord(BaseModel):
    """Credential pair bound to the identity that completed the handshake."""
    
    timestamp: datetime = Field(..., description="When the credentials were obtained")
    identity: str = Field(..., description="Identity bound to the state token")
    refresh_token: str = Field(..., description="Long-lived refresh credential")
    access_token: str = Field(..., description="Short-lived access credential")
    
    def to_row(self) -> list[str]:
        """Spreadsheet row layout: timestamp, identity, refresh, access."""
        return [
            self.timestamp.isoformat(),
            self.identity,
            self.refresh_token,
            self.access_token,
        ]


# =============================================================================
# Response Models
# =============================================================================

class AuthURLResponse(BaseModel):
    """Response containing the provider authorization URL."""
    
    auth_url: str = Field(
        ...,
        description="URL to redirect the user to for Google consent"
    )
    state: str = Field(
        ...,
        description="State token bound to the requesting identity"
    )


class LoginStart(BaseModel):
    """Result of starting a login: authorization URL plus its state token."""
    
    url: str
    token: str
