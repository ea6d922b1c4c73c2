"""
Google Integration Package
OAuth 2.0 provider and Sheets credential sink for Google accounts.
"""

from oauth_broker.integrations.google.oauth import GoogleOAuth, GoogleOAuthError
from oauth_broker.integrations.google.sheets import SheetsCredentialSink

__all__ = [
    "GoogleOAuth",
    "GoogleOAuthError",
    "SheetsCredentialSink",
]
