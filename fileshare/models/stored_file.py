"""
Stored file database model.

This module defines the StoredFile model holding the metadata of files kept
by the default storage backend. The content itself lives on disk under
``file_path``; the row is the backend's index of what it holds.
"""
from datetime import datetime

from sqlalchemy import BigInteger, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from fileshare.database import Base


class StoredFile(Base):
    """
    Metadata row for a file held by the default backend.

    Attributes:
        id: File identifier (also the storage key)
        filename: Original, user-supplied filename
        size: File size in bytes as counted while streaming to disk
        file_path: Location of the content on disk
        created_at: Upload timestamp (UTC)
    """

    __tablename__ = "stored_files"
    __table_args__ = (Index("idx_stored_files_created_at", "created_at"),)

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    filename: Mapped[str] = mapped_column(String(1024))
    size: Mapped[int] = mapped_column(BigInteger)
    file_path: Mapped[str] = mapped_column(String(500))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"<StoredFile(id={self.id}, filename={self.filename}, size={self.size})>"
