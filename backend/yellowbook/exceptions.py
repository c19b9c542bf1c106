"""
Yellow Book API: Custom Exception Hierarchy
============================================

What:  Application-specific exceptions for every failure the API reports.
How:   Each exception carries a message (safe to return to the client) and a
       context dict (logged server-side). Global handlers registered in
       main.py turn them into `{success: false, error, details?}` responses.
Who:   Raised by the schema validator, the gateway and EntryService.

Exception Hierarchy:
    YellowBookError (base)
    ├── SchemaViolationError     → 400 Bad Request (field-level, client can fix)
    ├── InvalidIdentifierError   → 400 Bad Request (malformed :id path segment)
    ├── NotFoundError            → 404 Not Found
    ├── StorageError             → 500 Internal Server Error (backend unavailable)
    └── DataIntegrityError       → 500 Internal Server Error (stored row fails schema)
"""

from typing import Any, Dict, List, Optional

# One entry per failed field rule: {"field": "phoneNumber", "message": "..."}
Violation = Dict[str, str]


class YellowBookError(Exception):
    """
    Base exception for all Yellow Book application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged, not returned unless a handler
                  explicitly exposes part of it)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class SchemaViolationError(YellowBookError):
    """
    Raised when a value fails the entry schema.

    What:    One or more field rules rejected the value. All violations are
             collected before raising so the client sees every problem at once.
    HTTP:    400 Bad Request, `details` = the violation list.

    Example response:
        {
            "success": false,
            "error": "Invalid yellow book entry",
            "details": [{"field": "phoneNumber", "message": "String should match pattern ..."}]
        }
    """

    def __init__(
        self,
        violations: List[Violation],
        message: str = "Invalid yellow book entry",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["violations"] = violations
        super().__init__(message=message, context=ctx)
        self.violations = violations


class InvalidIdentifierError(YellowBookError):
    """
    Raised when an entry id path segment is not a positive integer.

    HTTP:    400 Bad Request. No storage lookup happens.
    """

    def __init__(
        self,
        raw_id: str,
        message: str = "Invalid yellow book id",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["raw_id"] = raw_id
        super().__init__(message=message, context=ctx)
        self.raw_id = raw_id
        self.violations: List[Violation] = [
            {"field": "id", "message": "must be a positive integer"}
        ]


class NotFoundError(YellowBookError):
    """
    Raised when no entry exists for a requested id.

    The gateway returns None for missing rows; EntryService converts that to
    this exception so the handler can answer 404.
    """

    def __init__(
        self,
        message: str = "Yellow book entry not found",
        resource_id: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if resource_id is not None:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class StorageError(YellowBookError):
    """
    Raised when the storage backend fails.

    What:    Connection loss, constraint violation, driver error.
    HTTP:    500 Internal Server Error.

    The message is operation-level ("Failed to fetch yellow books"); the
    driver error type and operation name go into context for the logs only.
    The gateway never retries.
    """

    def __init__(
        self,
        message: str = "A storage error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DataIntegrityError(YellowBookError):
    """
    Raised when a stored row fails full-entry validation on the way out.

    What:    Storage and contract have drifted (e.g. a phone number with a
             letter written by some other tool). The whole response fails;
             partially validated data is never returned.
    HTTP:    500 Internal Server Error. Violations are logged, not returned.
    """

    def __init__(
        self,
        message: str = "Stored yellow book data failed validation",
        violations: Optional[List[Violation]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["violations"] = violations or []
        super().__init__(message=message, context=ctx)
        self.violations = violations or []
