"""
CircuitMap Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for every recoverable error scenario.
Why:   Position validation and conflict detection report structured outcomes;
       each one maps to a distinct HTTP status and machine-readable error code.
How:   Each exception carries a message, an `error_code` and an optional
       context dict. Global exception handlers (registered in main.py) turn
       them into JSON error responses.
Who:   Raised by the position core and the services; caught by global handlers.

Exception Hierarchy:
    CircuitMapError (base)                  → 500
    ├── ValidationError                     → 400 Bad Request
    │   ├── InvalidPositionFormatError      → 400
    │   └── NotCombinedTandemError          → 400
    ├── PositionConflictError               → 409 Conflict
    │   ├── ExactDuplicatePositionError     → 409
    │   ├── MultiPoleRangeOverlapError      → 409
    │   └── PositionOccupiedError           → 409
    ├── NotFoundError                       → 404 Not Found
    └── DatabaseError                       → 500 Internal Server Error

None of these are retried: they are validation outcomes, not transient faults.
"""

from typing import Any, Dict, Iterable, Optional


class CircuitMapError(Exception):
    """
    Base exception for all CircuitMap application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info, returned as `details` for client errors
    """

    error_code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(CircuitMapError):
    """
    Raised when client input fails a business rule.

    HTTP: 400 Bad Request. Schema-level problems (wrong types, missing fields)
    are left to FastAPI's automatic 422.
    """

    error_code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class InvalidPositionFormatError(ValidationError):
    """
    The position token did not classify as a usable grammar.

    Covers unknown tokens ("14C", "A14", "") and multi-pole ranges whose pole
    count is not 2 or 3 ("1-7").
    """

    error_code = "invalid_position_format"

    def __init__(
        self,
        position: str,
        description: str = "",
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"Invalid breaker position '{position}'"
        if description:
            message = f"{message}: {description}"
        ctx = context or {}
        ctx["position"] = position
        super().__init__(message=message, field="position", context=ctx)
        self.position = position


class NotCombinedTandemError(ValidationError):
    """Split requested on a breaker whose position is not "14A/14B"-shaped."""

    error_code = "not_combined_tandem"

    def __init__(self, position: str, context: Optional[Dict[str, Any]] = None):
        ctx = context or {}
        ctx["position"] = position
        super().__init__(
            message=(
                f"Breaker position '{position}' is not in combined tandem format "
                f"(e.g., \"14A/14B\")"
            ),
            field="position",
            context=ctx,
        )
        self.position = position


class PositionConflictError(CircuitMapError):
    """
    Base for positions that collide with breakers already on the panel.

    HTTP: 409 Conflict. The write is refused; nothing is auto-resolved.
    """

    error_code = "position_conflict"

    def __init__(
        self,
        position: str,
        message: str = "Position conflicts with an existing breaker",
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["position"] = position
        super().__init__(message=message, context=ctx)
        self.position = position


class ExactDuplicatePositionError(PositionConflictError):
    """Another breaker on the panel already uses the identical token."""

    error_code = "exact_duplicate_position"

    def __init__(self, position: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            position=position,
            message=f"Position {position} is already in use on this panel",
            context=context,
        )


class MultiPoleRangeOverlapError(PositionConflictError):
    """The proposed slot is one of the slots bonded by an existing 240V breaker."""

    error_code = "multi_pole_range_overlap"

    def __init__(
        self,
        position: str,
        conflicting_position: str,
        conflicting_slot: int,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["conflicting_position"] = conflicting_position
        ctx["conflicting_slot"] = conflicting_slot
        super().__init__(
            position=position,
            message=(
                f"Position {position} overlaps the multi-pole breaker at "
                f"{conflicting_position} (slot {conflicting_slot})"
            ),
            context=ctx,
        )
        self.conflicting_position = conflicting_position
        self.conflicting_slot = conflicting_slot


class PositionOccupiedError(PositionConflictError):
    """
    The target halves of a tandem split are already taken.

    Should be unreachable when create-time validation ran, except for the
    combined-token-versus-existing-half case the conflict scan does not cover.
    """

    error_code = "position_occupied"

    def __init__(
        self,
        position: str,
        occupied: Iterable[str],
        context: Optional[Dict[str, Any]] = None,
    ):
        occupied = list(occupied)
        ctx = context or {}
        ctx["occupied"] = occupied
        super().__init__(
            position=position,
            message=f"Position(s) {', '.join(occupied)} already occupied. Delete them first.",
            context=ctx,
        )
        self.occupied = occupied


class NotFoundError(CircuitMapError):
    """
    Raised when a requested resource does not exist.

    SQLAlchemy returns None for missing records; services convert that into
    this exception so routes stay free of lookups.
    """

    error_code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class DatabaseError(CircuitMapError):
    """
    Raised when database operations fail unexpectedly.

    The message returned to the client is always generic; the original error
    type is kept in `context` and logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
