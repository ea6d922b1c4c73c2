"""
Database Package
Handles database connection, session management, and base models.
"""

from oauth_broker.database.connection import (
    get_engine,
    get_session_factory,
    init_db,
    close_db,
)
from oauth_broker.database.base import Base, TimestampMixin, UUIDMixin

__all__ = [
    # Connection
    "get_engine",
    "get_session_factory",
    "init_db",
    "close_db",
    # Base classes
    "Base",
    "TimestampMixin",
    "UUIDMixin",
]
