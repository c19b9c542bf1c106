"""
Yellow Book API: Entry Service
===============================

What:  Binds the schema validator to the gateway for the three API operations.
How:   Every inbound body goes through creation-mode validation before the
       gateway sees it; every stored record goes through full-entry validation
       before a client sees it.
Who:   Called by the route handlers in routes/yellow_books.py.

Orchestration (POST /yellow-books):
    ┌──────────┐    ┌──────────────┐    ┌──────────┐    ┌──────────────┐
    │  Body    │───▶│ Create-mode  │───▶│ Gateway  │───▶│ Full-entry   │
    │ (Route)  │    │ validation   │    │ .create  │    │ validation   │
    └──────────┘    └──────────────┘    └──────────┘    └──────────────┘
         400 SchemaViolationError ◀─┘        └─▶ 500 StorageError   └─▶ 500 DataIntegrityError

Error Handling Strategy:
    Validation failures on the way IN stay SchemaViolationError (client's
    fault). Validation failures on the way OUT become DataIntegrityError
    (storage drifted from the contract). For lists, one bad row fails the
    whole call.
"""

import logging
from typing import Any, List, Optional

from yellowbook.exceptions import (
    DataIntegrityError,
    NotFoundError,
    SchemaViolationError,
)
from yellowbook.gateway import StoredRecord, YellowBookGateway
from yellowbook.schemas.yellow_book import (
    EntryListResponse,
    EntryResponse,
    YellowBookEntry,
    parse_entry_id,
    validate_entry,
    validate_new_entry,
)

logger = logging.getLogger(__name__)


def matches_query(entry: YellowBookEntry, query: str) -> bool:
    """
    Substring search used by GET /yellow-books?q=...

    Business name, category and address match case-insensitively; the phone
    number matches as typed.
    """
    needle = query.strip().casefold()
    if not needle:
        return True
    return (
        needle in entry.business_name.casefold()
        or needle in entry.category.casefold()
        or needle in entry.address.casefold()
        or query.strip() in entry.phone_number
    )


class EntryService:
    """
    Stateless orchestration over a YellowBookGateway.

    Responsibilities:
        - list_entries(): full table (optionally filtered), fully validated
        - get_entry():    id parsing, not-found handling, validation
        - create_entry(): creation-mode validation, insert, echo validation
    """

    def _to_entry(self, record: StoredRecord, message: str) -> YellowBookEntry:
        try:
            return validate_entry(record)
        except SchemaViolationError as e:
            logger.error(
                "Stored yellow book %s failed validation: %s",
                record.get("id"),
                e.violations,
            )
            raise DataIntegrityError(
                message=message,
                violations=e.violations,
                context={"entry_id": record.get("id")},
            ) from e

    async def list_entries(
        self,
        gateway: YellowBookGateway,
        query: Optional[str] = None,
    ) -> EntryListResponse:
        """
        Return every entry, newest first.

        Raises:
            StorageError: the gateway could not read the table (→ 500)
            DataIntegrityError: any row failed full-entry validation (→ 500)
        """
        records = await gateway.list_all()
        entries: List[YellowBookEntry] = [
            self._to_entry(record, "Failed to fetch yellow books") for record in records
        ]

        # Filter only after every row has validated
        if query:
            entries = [entry for entry in entries if matches_query(entry, query)]

        return EntryListResponse(data=entries, count=len(entries))

    async def get_entry(self, gateway: YellowBookGateway, raw_id: str) -> EntryResponse:
        """
        Return one entry by its `:id` path segment.

        Raises:
            InvalidIdentifierError: raw_id is not a positive integer (→ 400)
            NotFoundError: no entry with that id (→ 404)
            StorageError / DataIntegrityError: (→ 500)
        """
        entry_id = parse_entry_id(raw_id)
        record = await gateway.get_by_id(entry_id)
        if record is None:
            raise NotFoundError(resource_id=entry_id)
        return EntryResponse(data=self._to_entry(record, "Failed to fetch yellow book"))

    async def create_entry(self, gateway: YellowBookGateway, payload: Any) -> EntryResponse:
        """
        Validate and store a new entry.

        Client-supplied id / createdAt / updatedAt are ignored.

        Raises:
            SchemaViolationError: the body failed creation-mode validation (→ 400)
            StorageError / DataIntegrityError: (→ 500)
        """
        fields = validate_new_entry(payload)
        record = await gateway.create(fields)
        return EntryResponse(
            data=self._to_entry(record, "Failed to create yellow book entry")
        )


# Stateless; shared by all requests
entry_service = EntryService()
