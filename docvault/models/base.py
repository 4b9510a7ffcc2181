"""
Base model class for all database models.

This module provides the declarative base and common model configuration.
All SQLAlchemy models should inherit from Base.
"""

import uuid

from sqlalchemy import MetaData, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# Naming convention for constraints
# This ensures consistent naming across all database objects
NAMING_CONVENTION = {
    "ix": "ix_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}


def new_id() -> str:
    """Default primary key: a uuid4 rendered as a 36-character string."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """
    Base class for all database models.

    Provides:
    - String primary key (id column, uuid4 by default)
    - Naming convention for constraints

    Identifiers are strings rather than native UUIDs so that reference rows
    can carry readable fixed ids ("admin", "guest").
    """

    metadata = MetaData(naming_convention=NAMING_CONVENTION)

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        default=new_id,
    )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(id={self.id})"
