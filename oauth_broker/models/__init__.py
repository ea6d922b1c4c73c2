"""
Models Package
SQLAlchemy ORM models for the application.
"""

from oauth_broker.models.credential_record import StoredCredential

__all__ = [
    "StoredCredential",
]
