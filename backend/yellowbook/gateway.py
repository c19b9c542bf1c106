"""
Yellow Book API: Persistence Gateway
=====================================

What:  The only component that reads or writes the `yellow_books` table.
How:   Each operation opens its own transactional session from the owning
       Database, runs one statement, and maps rows to plain records keyed by
       wire names (`row_to_record`). Callers never see ORM objects.
Who:   Constructed once by create_app() (stored on app.state) or by the CLI;
       injected into routes through get_gateway().

Failure semantics:
    SQLAlchemy errors and connection-level OSErrors are logged and raised as
    StorageError with an operation-level message. Nothing is retried here;
    the HTTP surface fails fast and the client decides whether to retry.

Query plans:
    list_all:   SELECT ... ORDER BY created_at DESC, id ASC
                (id ASC keeps insertion order among equal timestamps)
    get_by_id:  SELECT ... WHERE id = :id   (primary key, exact match)
    create:     INSERT ... RETURNING id     (id assigned by the backend)
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from fastapi import Request
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError

from yellowbook.database import Database
from yellowbook.exceptions import StorageError
from yellowbook.models.yellow_book import YellowBook
from yellowbook.schemas.yellow_book import MAX_ENTRY_ID, YellowBookCreate

logger = logging.getLogger(__name__)

# Errors raised by the storage stack that become StorageError
_STORAGE_ERRORS = (SQLAlchemyError, OSError)

StoredRecord = Dict[str, Any]


def row_to_record(row: YellowBook) -> StoredRecord:
    """Map an ORM row to a record keyed by wire field names."""
    return {
        "id": row.id,
        "businessName": row.business_name,
        "category": row.category,
        "phoneNumber": row.phone_number,
        "address": row.address,
        "description": row.description,
        "website": row.website,
        "createdAt": row.created_at,
        "updatedAt": row.updated_at,
    }


class YellowBookGateway:
    """
    Row storage for directory entries.

    Operations:
        list_all():       every row, newest first
        get_by_id(id):    one row or None
        create(fields):   insert with server-assigned id and timestamps
        clear():          delete every row (administrative tools only)
    """

    def __init__(self, database: Database):
        self._database = database

    async def list_all(self) -> List[StoredRecord]:
        try:
            async with self._database.session() as session:
                result = await session.execute(
                    select(YellowBook).order_by(
                        YellowBook.created_at.desc(),
                        YellowBook.id.asc(),
                    )
                )
                rows = result.scalars().all()
                return [row_to_record(row) for row in rows]
        except _STORAGE_ERRORS as e:
            logger.error("Storage error listing yellow books: %s", str(e), exc_info=True)
            raise StorageError(
                message="Failed to fetch yellow books",
                context={"operation": "list", "error_type": type(e).__name__},
            ) from e

    async def get_by_id(self, entry_id: int) -> Optional[StoredRecord]:
        if entry_id <= 0 or entry_id > MAX_ENTRY_ID:
            return None
        try:
            async with self._database.session() as session:
                result = await session.execute(
                    select(YellowBook).where(YellowBook.id == entry_id)
                )
                row = result.scalar_one_or_none()
                return row_to_record(row) if row is not None else None
        except _STORAGE_ERRORS as e:
            logger.error("Storage error fetching yellow book %d: %s", entry_id, str(e))
            raise StorageError(
                message="Failed to fetch yellow book",
                context={
                    "operation": "get",
                    "entry_id": entry_id,
                    "error_type": type(e).__name__,
                },
            ) from e

    async def create(self, fields: YellowBookCreate) -> StoredRecord:
        now = datetime.now(timezone.utc)
        row = YellowBook(
            business_name=fields.business_name,
            category=fields.category,
            phone_number=fields.phone_number,
            address=fields.address,
            description=fields.description,
            website=fields.website,
            created_at=now,
            updated_at=now,
        )
        try:
            async with self._database.session() as session:
                session.add(row)
                await session.flush()  # assigns the id
                record = row_to_record(row)
            logger.info("Created yellow book %d (%s)", record["id"], record["businessName"])
            return record
        except _STORAGE_ERRORS as e:
            logger.error("Storage error creating yellow book: %s", str(e), exc_info=True)
            raise StorageError(
                message="Failed to create yellow book entry",
                context={"operation": "create", "error_type": type(e).__name__},
            ) from e

    async def clear(self) -> int:
        """Delete every entry; returns the number of rows removed."""
        try:
            async with self._database.session() as session:
                result = await session.execute(delete(YellowBook))
                return result.rowcount or 0
        except _STORAGE_ERRORS as e:
            logger.error("Storage error clearing yellow books: %s", str(e))
            raise StorageError(
                message="Failed to clear yellow books",
                context={"operation": "clear", "error_type": type(e).__name__},
            ) from e


def get_gateway(request: Request) -> YellowBookGateway:
    """FastAPI dependency: the gateway owned by the running application."""
    return request.app.state.gateway
