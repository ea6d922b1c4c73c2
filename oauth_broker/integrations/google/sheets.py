"""
Google Sheets Credential Sink
Appends credential records as rows to a Google Sheet.
"""

import logging
from typing import Optional
from urllib.parse import quote

import httpx

from oauth_broker.handshake.schemas import CredentialRecord
from oauth_broker.integrations.google.oauth import GoogleOAuthError, parse_error_body

logger = logging.getLogger(__name__)


class SheetsCredentialSink:
    """
    Records credentials in a spreadsheet via the Sheets v4 values:append API.

    The append call is authorized with the user's freshly obtained access
    token, so the sheet must be writable by the account that just consented
    (the spreadsheets scope is requested for this).
    """

    SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"

    def __init__(
        self,
        sheet_id: str,
        sheet_range: str = "Tokens!A1",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self.sheet_id = sheet_id
        self.sheet_range = sheet_range
        self._transport = transport
        self._timeout = timeout

    def append_url(self) -> str:
        """Build the values:append endpoint for the configured sheet and range."""
        return (
            f"{self.SHEETS_API_URL}/{quote(self.sheet_id, safe='')}"
            f"/values/{quote(self.sheet_range, safe='!')}:append"
        )

    async def append(self, record: CredentialRecord) -> None:
        """
        Append one credential record as a sheet row.

        Args:
            record: Credential record to persist

        Raises:
            GoogleOAuthError: If the sheet is not configured or the API rejects the append
        """
        if not self.sheet_id:
            raise GoogleOAuthError(
                message="Spreadsheet id is not configured",
                error_code="sheet_not_configured",
            )

        async with httpx.AsyncClient(transport=self._transport, timeout=self._timeout) as client:
            response = await client.post(
                self.append_url(),
                params={"valueInputOption": "USER_ENTERED"},
                headers={
                    "Authorization": f"Bearer {record.access_token}",
                    "Content-Type": "application/json",
                },
                json={"values": [record.to_row()]},
            )

        if not response.is_success:
            error = parse_error_body(response).get("error")
            if not isinstance(error, dict):
                error = {}
            raise GoogleOAuthError(
                message=error.get("message", "Failed to append credentials to sheet"),
                error_code=error.get("status", "sheets_append_failed"),
            )

        logger.info("Saved credentials to sheet for identity '%s'", record.identity)
