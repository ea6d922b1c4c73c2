"""
Handshake Router
API endpoints for the Google OAuth 2.0 login flow.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import PlainTextResponse

from oauth_broker.core.errors import ErrorCode, create_error_response
from oauth_broker.handshake.broker import AuthBroker
from oauth_broker.handshake.exceptions import InvalidToken
from oauth_broker.handshake.schemas import AuthURLResponse

UNKNOWN_IDENTITY = "unknown_user"

router = APIRouter(tags=["OAuth Handshake"])


# =============================================================================
# Dependencies
# =============================================================================

def get_broker(request: Request) -> AuthBroker:
    """Dependency to get the application's AuthBroker instance."""
    return request.app.state.broker


# =============================================================================
# Endpoints
# =============================================================================

@router.get(
    "/auth",
    response_model=AuthURLResponse,
    summary="Start Google OAuth flow",
    description="Generate authorization URL to redirect the user to Google for consent.",
)
async def start_auth(
    user: Optional[str] = Query(None, description="Identity to bind the credentials to"),
    broker: AuthBroker = Depends(get_broker),
) -> AuthURLResponse:
    """
    Initiate Google OAuth 2.0 authorization flow.

    Returns authorization URL and state token. Requests without a user are
    recorded against the ``unknown_user`` identity.
    """
    login = broker.begin_login(user or UNKNOWN_IDENTITY)
    return AuthURLResponse(auth_url=login.url, state=login.token)


@router.get(
    "/callback",
    response_class=PlainTextResponse,
    summary="Handle Google OAuth callback",
    description="Validate state, exchange code for tokens and record them.",
)
async def auth_callback(
    code: Optional[str] = Query(None, description="Authorization code from Google"),
    state: Optional[str] = Query(None, description="State token for CSRF validation"),
    error: Optional[str] = Query(None, description="Error reported by Google"),
    broker: AuthBroker = Depends(get_broker),
) -> PlainTextResponse:
    """
    Handle OAuth 2.0 callback from Google.

    This endpoint is called by Google's redirect (no auth required).
    The state parameter identifies the user.
    """
    if not state:
        raise InvalidToken("Callback did not include a state token")

    if error or not code:
        # Retire the token so the denied handshake cannot be replayed
        broker.cancel_login(state, reason=error or "missing code")
        raise create_error_response(ErrorCode.AUTHORIZATION_DENIED)

    record = await broker.complete_login(state, code)

    return PlainTextResponse(
        f"Authorized for user: {record.identity}. You can close this window."
    )
