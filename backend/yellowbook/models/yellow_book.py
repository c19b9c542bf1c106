"""
Yellow Book API: YellowBook SQLAlchemy Model
=============================================

What:  ORM model for the `yellow_books` table, the single durable entity.
Who:   Read and written only by YellowBookGateway; read by Alembic.

Table Design:
    - Integer auto-increment primary key: ids are assigned by the backend in
      the same statement as the insert, so concurrent creates never collide.
    - Text columns without length limits: the schema validator is the only
      source of field rules, so storage never rejects a value the API accepted.
    - description / website nullable: NULL means "absent", '' means
      "present but empty". The two are never collapsed.
    - created_at / updated_at stored timezone-aware, returned as UTC.

    Index on created_at:
        Serves the list query (ORDER BY created_at DESC, id ASC).
"""

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from yellowbook.database import Base


class UTCDateTime(TypeDecorator):
    """
    Timezone-aware timestamp that always round-trips as UTC.

    SQLite has no native timestamp type and hands back naive values; those are
    tagged as UTC on the way out. Aware values are converted to UTC on the way in.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    def process_result_value(self, value: Optional[datetime], dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class YellowBook(Base):
    """
    One business directory entry.

    Lifecycle:
        1. Inserted by YellowBookGateway.create() with id and both timestamps
           assigned server-side (created_at == updated_at)
        2. Read by list_all() / get_by_id()
        3. No update or delete through the API; seed/reset tools clear the table
    """

    __tablename__ = "yellow_books"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="System-assigned identifier, immutable",
    )

    business_name: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    phone_number: Mapped[str] = mapped_column(Text, nullable=False)
    address: Mapped[str] = mapped_column(Text, nullable=False)

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
        comment="NULL = absent, '' = present but empty",
    )
    website: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        default=None,
        comment="Absolute URL, '' or NULL",
    )

    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        comment="When this entry was created (UTC)",
    )
    updated_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        comment="Last mutation time (UTC), >= created_at",
    )

    __table_args__ = (
        Index("idx_yellow_books_created_at", "created_at"),
    )

    def __repr__(self) -> str:
        return (
            f"<YellowBook(id={self.id}, business_name='{self.business_name}', "
            f"created_at='{self.created_at}')>"
        )
