"""
Yellow Book API: Entry Schema & Validator
==========================================

What:  The single definition of a valid directory entry, plus the response
       envelopes built on top of it.
How:   Each field rule is declared once as an `Annotated` type in the rule
       table below. The rules are composed into two modes:

           EntryFields          businessName, category, phoneNumber, address,
             │                  description?, website?
             ├── YellowBookCreate   creation mode: id / timestamps ignored
             └── YellowBookEntry    full-entry mode: + id, createdAt, updatedAt

       `validate_new_entry()` and `validate_entry()` are the only entry points
       used by the service layer. They are pure (no I/O) and total: they return
       a model or raise SchemaViolationError with a violation list; pydantic's
       own ValidationError never escapes this module.

Wire format:
    Field names are camelCase on the wire (alias generator) and snake_case in
    Python. Optional text is tri-state: None (absent), "" (present-empty) or a
    value. dump_entry() omits absent keys so `description` missing from a
    request is missing from the response, never turned into "".
"""

import re
from datetime import datetime, timezone
from typing import Annotated, Any, Dict, List, Optional, Union

from pydantic import (
    AfterValidator,
    AnyUrl,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from yellowbook.exceptions import (
    InvalidIdentifierError,
    SchemaViolationError,
    Violation,
)

PHONE_NUMBER_PATTERN = r"^[0-9+\-() ]+$"

# Largest key representable by a 32-bit INTEGER primary key (PostgreSQL)
MAX_ENTRY_ID = 2_147_483_647

# Digit count of MAX_ENTRY_ID; longer ids cannot name a stored entry
_MAX_ID_DIGITS = len(str(MAX_ENTRY_ID))

# ISO-8601 text starts with a calendar date; bare numbers are not timestamps
_ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")

_URL_ADAPTER = TypeAdapter(AnyUrl)


def _check_website(value: Optional[str]) -> Optional[str]:
    # "" is the seed data's placeholder for "no website"
    if value is None or value == "":
        return value
    try:
        _URL_ADAPTER.validate_python(value)
    except PydanticValidationError:
        raise ValueError("must be an absolute URL or an empty string")
    return value


def _check_timestamp_type(value: Any) -> Any:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str) or not _ISO_DATE_PREFIX.match(value):
        raise ValueError("must be a timestamp or an ISO-8601 string")
    return value


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ══════════════════════════════════════════════════════════════════════════
# Field Rule Table: one definition per field, shared by both modes
# ══════════════════════════════════════════════════════════════════════════

EntryId = Annotated[int, Field(gt=0, description="System-assigned identifier")]

BusinessName = Annotated[
    str,
    StringConstraints(min_length=1),
    Field(description="Business name (required)"),
]
Category = Annotated[
    str,
    StringConstraints(min_length=1),
    Field(description="Free-form category, e.g. 'Restaurant'"),
]
PhoneNumber = Annotated[
    str,
    StringConstraints(pattern=PHONE_NUMBER_PATTERN),
    Field(description="Digits, '+', '-', '(', ')' and spaces only"),
]
Address = Annotated[
    str,
    StringConstraints(min_length=1),
    Field(description="Street address; also the map widget's query string"),
]
Description = Annotated[
    Optional[str],
    Field(description="Optional free text; absent and '' are distinct"),
]
Website = Annotated[
    Optional[str],
    AfterValidator(_check_website),
    Field(description="Absolute URL or '' (no website)"),
]
Timestamp = Annotated[
    datetime,
    BeforeValidator(_check_timestamp_type),
    AfterValidator(_as_utc),
    Field(description="UTC timestamp; accepts datetime or ISO-8601 text"),
]


# ══════════════════════════════════════════════════════════════════════════
# Validation Modes
# ══════════════════════════════════════════════════════════════════════════


class EntryFields(BaseModel):
    """Content fields shared by creation mode and full-entry mode."""

    model_config = ConfigDict(alias_generator=to_camel, extra="ignore")

    business_name: BusinessName
    category: Category
    phone_number: PhoneNumber
    address: Address
    description: Description = None
    website: Website = None


class YellowBookCreate(EntryFields):
    """
    Creation mode: an inbound create request.

    `id`, `createdAt` and `updatedAt` are not fields of this model, so any
    client-supplied values are dropped (extra="ignore") and the gateway
    assigns its own.
    """


class YellowBookEntry(EntryFields):
    """
    Full-entry mode: a persisted entry about to be returned to a client.

    Adds the server-assigned fields and the timestamp ordering invariant.
    """

    id: EntryId
    created_at: Timestamp
    updated_at: Timestamp

    @model_validator(mode="after")
    def check_timestamps(self) -> "YellowBookEntry":
        if self.updated_at < self.created_at:
            raise ValueError("updatedAt must not be earlier than createdAt")
        return self


def _violations(exc: PydanticValidationError) -> List[Violation]:
    """Flatten pydantic errors into [{"field": <wire path>, "message": ...}]."""
    violations: List[Violation] = []
    for error in exc.errors():
        field = ".".join(str(part) for part in error["loc"]) or "entry"
        violations.append({"field": field, "message": error["msg"]})
    return violations


def validate_new_entry(payload: Any) -> YellowBookCreate:
    """
    Validate an inbound create request (creation mode).

    Raises:
        SchemaViolationError: any field rule failed, or payload is not an object
    """
    try:
        return YellowBookCreate.model_validate(payload)
    except PydanticValidationError as exc:
        raise SchemaViolationError(violations=_violations(exc)) from exc


def validate_entry(record: Any) -> YellowBookEntry:
    """
    Validate a stored record before it leaves the API (full-entry mode).

    Raises:
        SchemaViolationError: the record does not satisfy the contract. The
            service layer reports this as a DataIntegrityError.
    """
    try:
        return YellowBookEntry.model_validate(record)
    except PydanticValidationError as exc:
        raise SchemaViolationError(
            violations=_violations(exc),
            message="Stored yellow book entry failed validation",
        ) from exc


def parse_entry_id(raw: str) -> int:
    """
    Parse the `:id` path segment as a positive integer.

    Only ASCII digits are accepted ("12abc", "1.5", "-3", "0" all fail).
    Ids with more significant digits than MAX_ENTRY_ID parse to
    MAX_ENTRY_ID + 1, which the gateway answers as "no such entry".

    Raises:
        InvalidIdentifierError: raw is not a positive integer
    """
    if not raw.isascii() or not raw.isdigit():
        raise InvalidIdentifierError(raw_id=raw)
    significant = raw.lstrip("0")
    if not significant:
        raise InvalidIdentifierError(raw_id=raw)
    if len(significant) > _MAX_ID_DIGITS:
        return MAX_ENTRY_ID + 1
    return int(significant)


def dump_entry(entry: YellowBookEntry) -> Dict[str, Any]:
    """Wire representation: camelCase keys, ISO timestamps, absent keys omitted."""
    return entry.model_dump(mode="json", by_alias=True, exclude_none=True)


# ══════════════════════════════════════════════════════════════════════════
# Response Envelopes
# ══════════════════════════════════════════════════════════════════════════


class EntryResponse(BaseModel):
    """Returned by GET /yellow-books/{id} and POST /yellow-books."""

    success: bool = Field(default=True)
    data: YellowBookEntry


class EntryListResponse(BaseModel):
    """Returned by GET /yellow-books. `count` equals len(data)."""

    success: bool = Field(default=True)
    data: List[YellowBookEntry]
    count: int = Field(ge=0)


class ErrorResponse(BaseModel):
    """
    Error body used by every exception handler.

    Example:
        {
            "success": false,
            "error": "Yellow book entry not found",
            "request_id": "a1b2c3d4"
        }
    """

    success: bool = Field(default=False)
    error: str = Field(description="Human-readable error description")
    details: Optional[Union[List[Dict[str, Any]], Dict[str, Any]]] = Field(
        default=None, description="Field-level violations or extra context"
    )
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class RootResponse(BaseModel):
    message: str
    version: str


class HealthResponse(BaseModel):
    """Liveness: the process is up."""

    status: str = Field(description="Always 'ok' when the process answers")
    timestamp: datetime = Field(description="Server time (UTC)")


class ReadinessResponse(BaseModel):
    """Readiness: the process can reach its storage backend."""

    status: str = Field(description="ready or not_ready")
    database: str = Field(description="connected or disconnected")
