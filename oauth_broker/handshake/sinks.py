"""
Credential Sinks
Persistence targets for credential records, selected from settings.
"""

import logging
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from oauth_broker.config import Settings
from oauth_broker.database.connection import get_session_factory
from oauth_broker.handshake.broker import CredentialSink
from oauth_broker.handshake.schemas import CredentialRecord
from oauth_broker.integrations.google.sheets import SheetsCredentialSink
from oauth_broker.models.credential_record import StoredCredential

logger = logging.getLogger(__name__)


class DatabaseCredentialSink:
    """Records credentials as ``StoredCredential`` rows."""

    def __init__(self, session_factory: Optional[Callable[[], AsyncSession]] = None):
        """
        Args:
            session_factory: Callable returning an AsyncSession context manager
                (defaults to the process-wide factory)
        """
        self._session_factory = session_factory

    def _sessions(self) -> Callable[[], AsyncSession]:
        if self._session_factory is None:
            self._session_factory = get_session_factory()
        return self._session_factory

    async def append(self, record: CredentialRecord) -> None:
        """
        Insert one credential row and commit.

        Raises:
            SQLAlchemyError: If the insert or commit fails (the session is rolled back)
        """
        async with self._sessions()() as session:
            session.add(
                StoredCredential(
                    identity=record.identity,
                    refresh_token=record.refresh_token,
                    access_token=record.access_token,
                    recorded_at=record.timestamp,
                )
            )
            try:
                await session.commit()
            except Exception:
                await session.rollback()
                raise

        logger.info("Saved credentials to database for identity '%s'", record.identity)


def build_credential_sink(config: Settings) -> CredentialSink:
    """
    Create the credential sink named by ``config.credential_sink``.

    Args:
        config: Application settings

    Returns:
        Sheets sink or database sink
    """
    if config.credential_sink == "database":
        return DatabaseCredentialSink()
    return SheetsCredentialSink(sheet_id=config.sheet_id, sheet_range=config.sheet_range)
