"""Domain errors for the inventory and purchase lifecycle.

Every error carries a user-safe ``detail``, an HTTP status hint and a stable
``code`` so route handlers can map them without inspecting messages.
"""

from __future__ import annotations

from enum import Enum


class ErrorCode(Enum):
    """Domain error codes."""

    INVALID_INPUT = "INVALID_INPUT"
    OUT_OF_RANGE = "OUT_OF_RANGE"
    CONFLICT = "CONFLICT"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    CAPACITY_TOO_LOW = "CAPACITY_TOO_LOW"
    NOT_FOUND = "NOT_FOUND"
    STORAGE_FAILURE = "STORAGE_FAILURE"


class InventoryError(Exception):
    """Inventory service error with HTTP status hint."""

    code: ErrorCode = ErrorCode.INVALID_INPUT

    def __init__(self, detail: str, status_code: int = 400) -> None:
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)

    def __str__(self) -> str:
        return f"{self.code.value}: {self.detail}"


class InvalidInputError(InventoryError):
    """Raised when required fields are missing or malformed."""

    code = ErrorCode.INVALID_INPUT


class OutOfRangeError(InventoryError):
    """Raised when a ticket id falls outside the current capacity."""

    code = ErrorCode.OUT_OF_RANGE

    def __init__(self, ticket_ids: list[int], capacity: int) -> None:
        self.ticket_ids = ticket_ids
        self.capacity = capacity
        super().__init__(
            f"Ticket ids out of range [0, {capacity}): {ticket_ids}",
            status_code=400,
        )


class TicketConflictError(InventoryError):
    """Raised when some requested tickets are not free."""

    code = ErrorCode.CONFLICT

    def __init__(self, ticket_ids: list[int]) -> None:
        self.ticket_ids = ticket_ids
        super().__init__("Some tickets are not available", status_code=409)


class InvalidTransitionError(InventoryError):
    """Raised when a purchase cannot move to the requested status."""

    code = ErrorCode.INVALID_TRANSITION

    def __init__(self, purchase_id: int, current: str, target: str) -> None:
        self.purchase_id = purchase_id
        super().__init__(
            f"Cannot move purchase {purchase_id} from '{current}' to '{target}'",
            status_code=409,
        )


class CapacityTooLowError(InventoryError):
    """Raised when a shrink would drop an active ticket."""

    code = ErrorCode.CAPACITY_TOO_LOW

    def __init__(self, requested: int, max_active_id: int) -> None:
        self.requested = requested
        self.max_active_id = max_active_id
        super().__init__(
            f"Cannot reduce capacity to {requested}: "
            f"tickets are active up to #{max_active_id}",
            status_code=400,
        )


class PurchaseNotFoundError(InventoryError):
    """Raised when a purchase id does not exist."""

    code = ErrorCode.NOT_FOUND

    def __init__(self, purchase_id: int) -> None:
        self.purchase_id = purchase_id
        super().__init__("Purchase not found", status_code=404)


class StorageError(InventoryError):
    """Raised when the backing document cannot be written."""

    code = ErrorCode.STORAGE_FAILURE

    def __init__(self, detail: str = "Storage is unavailable, try again") -> None:
        super().__init__(detail, status_code=503)
