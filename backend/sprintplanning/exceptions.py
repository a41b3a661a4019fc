"""
Sprint Planning Backend — Custom Exception Hierarchy
======================================================

What:  Application-specific exceptions for the upsert workflow, the document
       store adapter and the broadcast hub.
How:   Each exception carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return structured JSON responses with the right HTTP status.
Who:   Raised by services and adapters; caught by global handlers.

Exception Hierarchy:
    SprintPlanningError (base)               → 500
    ├── ValidationError                      → 400
    │   └── IncompleteRecordError            → 200 empty (400 in strict mode)
    ├── NotFoundError                        → 404
    ├── MalformedPayloadError                → 500
    ├── DatabaseError                        → 500
    │   ├── ItemNotFoundError                → 500 (drives create-vs-replace)
    │   └── ConflictError                    → 500
    ├── BroadcastError                       → 500
    └── HubAuthenticationError               → 401 (hub client endpoints)

Every 500 response has the same body: callers cannot tell a parse failure
from a store or broadcast failure. Details are logged server-side only.
"""

from typing import Any, Dict, List, Optional


class SprintPlanningError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  Human-readable error description
        context:  Additional debug info (logged but NOT returned to client)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(SprintPlanningError):
    """
    Raised when client input fails a business rule.

    HTTP: 400 Bad Request
    """

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


class IncompleteRecordError(ValidationError):
    """
    Raised when a write omits employer, team, sprintId or teamMember.

    The workflow stops before touching the store or the hub. By default the
    handler acknowledges with an empty 200; with REJECT_INCOMPLETE_WRITES it
    becomes a regular 400 validation error.
    """

    def __init__(self, missing_fields: List[str]):
        super().__init__(
            message=(
                "Sprint planning record is incomplete. Missing: "
                + ", ".join(missing_fields)
            ),
            context={"missing_fields": missing_fields},
        )
        self.missing_fields = missing_fields


class NotFoundError(SprintPlanningError):
    """
    Raised when a requested resource does not exist.

    When:  GET /getSprintPlanningData/... matched no documents.
    HTTP:  404 Not Found
    """

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


class MalformedPayloadError(SprintPlanningError):
    """Raised when a request body is not a JSON sprint planning record."""

    def __init__(
        self,
        message: str = "Request body could not be parsed",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class DatabaseError(SprintPlanningError):
    """
    Raised when a document store operation fails.

    HTTP: 500 Internal Server Error (generic body; driver details are logged)
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ItemNotFoundError(DatabaseError):
    """
    Raised by the store when no document exists under an id/partition key.

    A read miss is how the upsert workflow learns it must create; a replace
    miss is a genuine failure and propagates as a 500.
    """

    def __init__(self, item_id: str, partition_key: Optional[str] = None):
        super().__init__(
            message=f"Document '{item_id}' does not exist",
            context={"id": item_id, "partition_key": partition_key or item_id},
        )
        self.item_id = item_id


class ConflictError(DatabaseError):
    """Raised by the store when creating a document whose id already exists."""

    def __init__(self, item_id: str):
        super().__init__(
            message=f"Document '{item_id}' already exists",
            context={"id": item_id},
        )
        self.item_id = item_id


class BroadcastError(SprintPlanningError):
    """Raised when a message cannot be handed to the broadcast hub."""

    def __init__(
        self,
        message: str = "Could not publish the update to connected clients",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class HubAuthenticationError(SprintPlanningError):
    """
    Raised when a hub client presents a missing, expired or foreign token.

    HTTP: 401 Unauthorized (WebSocket close code 1008)
    """

    def __init__(
        self,
        message: str = "Invalid or expired hub access token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
