"""
Google OAuth 2.0 Utilities
Handles authorization URL generation and authorization code exchange.
"""

from typing import Optional
from urllib.parse import urlencode

import httpx

from oauth_broker.config import Settings, settings as default_settings
from oauth_broker.handshake.schemas import CredentialPair


class GoogleOAuthError(Exception):
    """Custom exception for Google OAuth and Google API errors."""

    def __init__(self, message: str, error_code: Optional[str] = None):
        self.message = message
        self.error_code = error_code
        super().__init__(self.message)


class GoogleOAuth:
    """
    Google OAuth 2.0 client.

    Handles:
    - Authorization URL generation (offline access, forced consent)
    - Authorization code exchange for tokens
    """

    # Google OAuth 2.0 endpoints
    AUTHORIZATION_URL = "https://accounts.google.com/o/oauth2/v2/auth"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        config: Optional[Settings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        config = config or default_settings
        self.client_id = config.google_client_id
        self.client_secret = config.google_client_secret
        self.redirect_uri = config.redirect_uri
        self.scopes = config.google_scopes_list
        self._transport = transport
        self._timeout = timeout

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=self._timeout)

    def build_authorization_url(self, state: str) -> str:
        """
        Generate the Google authorization URL.

        Requests offline access and forces the consent screen so a refresh
        token is returned even when the user has authorized before.

        Args:
            state: CSRF protection token bound to the requesting identity

        Returns:
            Full authorization URL to redirect user to

        Raises:
            GoogleOAuthError: If the client is not configured
        """
        if not self.client_id:
            raise GoogleOAuthError(
                message="Google OAuth client id is not configured",
                error_code="client_not_configured",
            )

        params = {
            "response_type": "code",
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(self.scopes),
            "access_type": "offline",
            "prompt": "consent",
            "state": state,
        }
        return f"{self.AUTHORIZATION_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> CredentialPair:
        """
        Exchange authorization code for access and refresh tokens.

        Args:
            code: Authorization code from Google callback

        Returns:
            CredentialPair with access_token, refresh_token, expires_in, scope

        Raises:
            GoogleOAuthError: If token exchange fails
        """
        async with self._client() as client:
            response = await client.post(
                self.TOKEN_URL,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                data={
                    "grant_type": "authorization_code",
                    "code": code,
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                    "redirect_uri": self.redirect_uri,
                },
            )

            if response.status_code != 200:
                error_data = parse_error_body(response)
                raise GoogleOAuthError(
                    message=error_data.get("error_description", "Token exchange failed"),
                    error_code=error_data.get("error", "unknown_error"),
                )

            payload = response.json()
            return CredentialPair(
                access_token=payload["access_token"],
                refresh_token=payload.get("refresh_token"),
                expires_in=payload.get("expires_in"),
                scope=payload.get("scope"),
                token_type=payload.get("token_type", "Bearer"),
            )


def parse_error_body(response: httpx.Response) -> dict:
    """Decode an error body, tolerating empty or non-JSON responses."""
    if not response.content:
        return {}
    try:
        data = response.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}
