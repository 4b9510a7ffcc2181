"""
Document and File models.

Only the ownership side of documents is modelled here: who owns what and how
much storage each file accounts for. Content, versions and indexing live
elsewhere.
"""

from typing import Optional

from sqlalchemy import BigInteger, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from docvault.models.base import Base
from docvault.models.mixins import SoftDeleteMixin, TimestampMixin


class Document(Base, TimestampMixin, SoftDeleteMixin):
    """Document owned by a user."""

    __tablename__ = "documents"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(String(100), nullable=False)


class File(Base, TimestampMixin, SoftDeleteMixin):
    """
    Stored file owned by a user.

    Attributes:
        user_id: Owner; the file's size counts against the owner's quota
        document_id: Document the file is attached to, if any
        name: Original file name
        mime_type: Content type
        size: Size in bytes
    """

    __tablename__ = "files"

    user_id: Mapped[str] = mapped_column(
        String(36),
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    document_id: Mapped[Optional[str]] = mapped_column(
        String(36),
        ForeignKey("documents.id"),
        nullable=True,
        index=True,
    )

    name: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    mime_type: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        default="application/octet-stream",
    )

    size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
