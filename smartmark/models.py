"""
SQLAlchemy models for the SmartMark relational store.

Defines users, their bookmarks, and the row-level change log that the
polling change feed reads from.
"""
from datetime import datetime, timezone
from typing import Optional, List, Dict, Any
from sqlalchemy import (
    Integer, String, Text, DateTime, ForeignKey, Index, JSON
)
from sqlalchemy.orm import (
    DeclarativeBase, relationship, Mapped, mapped_column
)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


class User(Base):
    """
    A signed-in identity.

    Attributes:
        id: Primary key
        email: Unique email address used to sign in
        full_name: Optional display name
        avatar_url: Optional avatar image URL
        created_at: When the user first signed in
    """
    __tablename__ = 'users'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    full_name: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(2048), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    bookmarks: Mapped[List["Bookmark"]] = relationship(
        "Bookmark",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True
    )

    def metadata_dict(self) -> Dict[str, Any]:
        """User metadata in the shape UserRecord expects."""
        data = {}
        if self.full_name:
            data["full_name"] = self.full_name
        if self.avatar_url:
            data["avatar_url"] = self.avatar_url
        return data

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"


class Bookmark(Base):
    """
    A saved URL owned by one user.

    Attributes:
        id: Primary key, assigned on insert
        user_id: Owner
        title: Bookmark title
        url: Absolute URL
        created_at: Insert timestamp
    """
    __tablename__ = 'bookmarks'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey('users.id', ondelete='CASCADE'),
        nullable=False,
        index=True
    )
    title: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    user: Mapped["User"] = relationship("User", back_populates="bookmarks")

    __table_args__ = (
        Index('ix_bookmarks_user_created', 'user_id', 'created_at'),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "user_id": self.user_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Bookmark(id={self.id}, title='{self.title[:50]}', url='{self.url[:50]}')>"


class Change(Base):
    """
    Row-level change log.

    One row per insert or delete on a tracked table, written in the same
    transaction as the change itself. ``record`` holds the full new row for
    inserts and only the primary key for deletes.
    """
    __tablename__ = 'changes'

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    table_name: Mapped[str] = mapped_column(String(64), nullable=False)
    event_type: Mapped[str] = mapped_column(String(16), nullable=False)  # INSERT, DELETE
    record_id: Mapped[int] = mapped_column(Integer, nullable=False)
    # Owner of the affected row, kept after deletion for visibility checks
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    record: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )

    __table_args__ = (
        Index('ix_changes_user_id_id', 'user_id', 'id'),
    )

    def __repr__(self):
        return f"<Change(id={self.id}, type='{self.event_type}', {self.table_name}:{self.record_id})>"
