"""
Base Model Module
Defines the declarative base and common mixins for all models.
"""

import re
import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Uuid, func
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    declared_attr,
    mapped_column,
)


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.
    
    Features:
        - Automatic table name generation from class name
        - Serialization helper that hides credential columns
    """
    
    # Columns never included in to_dict() output
    __secret_columns__ = frozenset()
    
    @declared_attr.directive
    def __tablename__(cls) -> str:
        """
        Generate table name from class name.
        Converts CamelCase to snake_case and pluralizes.
        
        Examples:
            StoredCredential -> stored_credentials
        """
        name = re.sub(r"(?<!^)(?=[A-Z])", "_", cls.__name__).lower()
        if name.endswith("s"):
            return name + "es"
        return name + "s"
    
    def to_dict(self) -> dict[str, Any]:
        """
        Convert model instance to dictionary.
        Secret columns are omitted so the result is safe to log.
        """
        result = {}
        for column in self.__table__.columns:
            if column.name in self.__secret_columns__:
                continue
            value = getattr(self, column.name)
            if isinstance(value, datetime):
                value = value.isoformat()
            elif isinstance(value, uuid.UUID):
                value = str(value)
            result[column.name] = value
        return result


class TimestampMixin:
    """
    Mixin that adds created_at and updated_at timestamps.
    """
    
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


class UUIDMixin:
    """
    Mixin that adds a UUID primary key.
    """
    
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
    )
