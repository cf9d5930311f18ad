"""The persisted inventory document and its load-time migration.

The document is stored as one JSON file and is also the unit of admin
export/import, so its on-disk shape stays compatible with older stores::

    {
      "settings": {"totalTickets": 1000},
      "tickets": [{"id": 0, "status": "free"}, ...],
      "purchases": [{"id": 1718000000000, "name": ..., "createdAt": ...}, ...]
    }

``tickets`` is indexed by ticket id: ``tickets[i].id == i`` always holds.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from raffledesk.core.constants import (
    ACTIVE_PURCHASE_STATUSES,
    MAX_CAPACITY,
    TICKET_FREE,
    TICKET_STATUS_FOR_PURCHASE,
)

logger = logging.getLogger(__name__)

TicketStatus = Literal["free", "reserved", "approved"]
PurchaseStatus = Literal["pending", "approved", "rejected"]


class Ticket(BaseModel):
    """One sellable slot; ``id`` doubles as its index in the inventory."""

    id: int = Field(ge=0)
    status: TicketStatus = "free"


class Purchase(BaseModel):
    """A buyer's claim on a set of tickets."""

    model_config = ConfigDict(populate_by_name=True)

    id: int
    name: str
    email: str
    phone: str = ""
    reference: str = ""
    tickets: list[int]
    proof: str | None = None
    status: PurchaseStatus = "pending"
    created_at: datetime = Field(alias="createdAt")

    @field_validator("created_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @property
    def is_active(self) -> bool:
        return self.status in ACTIVE_PURCHASE_STATUSES


class InventorySettings(BaseModel):
    """Inventory-wide settings. ``total_tickets`` is the capacity."""

    model_config = ConfigDict(populate_by_name=True)

    total_tickets: int = Field(gt=0, alias="totalTickets")


class InventoryDocument(BaseModel):
    """Full state: settings, every ticket, and every purchase record."""

    settings: InventorySettings
    tickets: list[Ticket]
    purchases: list[Purchase] = Field(default_factory=list)

    @property
    def capacity(self) -> int:
        return self.settings.total_tickets

    def find_purchase(self, purchase_id: int) -> Purchase | None:
        for purchase in self.purchases:
            if purchase.id == purchase_id:
                return purchase
        return None

    def max_active_id(self) -> int:
        """Highest ticket id that is not free, or -1."""
        for ticket in reversed(self.tickets):
            if ticket.status != TICKET_FREE:
                return ticket.id
        return -1

    def set_ticket_status(self, ticket_ids: list[int], status: str) -> None:
        for ticket_id in ticket_ids:
            if 0 <= ticket_id < len(self.tickets):
                self.tickets[ticket_id].status = status  # type: ignore[assignment]

    def next_purchase_id(self, now: datetime | None = None) -> int:
        """Millisecond timestamp, bumped past the newest existing id."""
        if now is None:
            now = datetime.now(tz=UTC)
        candidate = int(now.timestamp() * 1000)
        if self.purchases:
            candidate = max(candidate, max(p.id for p in self.purchases) + 1)
        return candidate

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize to the on-disk (camelCase) shape."""
        return self.model_dump(mode="json", by_alias=True)


def default_document(capacity: int) -> InventoryDocument:
    """All tickets free, no purchases."""
    return InventoryDocument(
        settings=InventorySettings(total_tickets=capacity),
        tickets=[Ticket(id=i) for i in range(capacity)],
        purchases=[],
    )


def migrate_document(raw: Any, default_capacity: int) -> InventoryDocument:
    """Build a document from stored JSON, upgrading older shapes.

    Handles missing sections, ``capacity`` in place of ``totalTickets``,
    and ticket arrays that are unordered or whose length disagrees with the
    configured capacity. Raises ``ValueError`` (or pydantic's
    ``ValidationError``, a subclass) when the input cannot be interpreted.
    """
    if not isinstance(raw, dict):
        raise ValueError("Inventory document must be a JSON object")

    raw_settings = raw.get("settings") or {}
    if not isinstance(raw_settings, dict):
        raise ValueError("'settings' must be an object")
    raw_tickets = raw.get("tickets")
    if raw_tickets is not None and not isinstance(raw_tickets, list):
        raise ValueError("'tickets' must be an array")
    raw_purchases = raw.get("purchases") or []
    if not isinstance(raw_purchases, list):
        raise ValueError("'purchases' must be an array")

    capacity = raw_settings.get("totalTickets", raw_settings.get("capacity"))
    if capacity is None:
        capacity = len(raw_tickets) if raw_tickets else default_capacity
    try:
        capacity = int(capacity)
    except OverflowError as exc:
        raise ValueError("Capacity must be a finite number") from exc
    if capacity <= 0:
        raise ValueError("Capacity must be positive")
    if capacity > MAX_CAPACITY:
        raise ValueError(f"Capacity cannot exceed {MAX_CAPACITY}")

    statuses: dict[int, str] = {}
    for index, entry in enumerate(raw_tickets or []):
        if entry is None:
            continue
        if not isinstance(entry, dict):
            raise ValueError(f"Ticket entry {index} must be an object")
        ticket = Ticket.model_validate({"id": index, **entry})
        statuses[ticket.id] = ticket.status

    dropped = sorted(i for i, s in statuses.items() if i >= capacity and s != TICKET_FREE)
    if dropped:
        logger.warning("Dropping active tickets beyond capacity %d: %s", capacity, dropped)

    return InventoryDocument(
        settings=InventorySettings(total_tickets=capacity),
        tickets=[Ticket(id=i, status=statuses.get(i, TICKET_FREE)) for i in range(capacity)],
        purchases=[Purchase.model_validate(p) for p in raw_purchases],
    )


def find_inconsistencies(doc: InventoryDocument) -> list[str]:
    """Return every violation of the ticket/purchase invariants (empty = ok)."""
    problems: list[str] = []

    if len(doc.tickets) != doc.capacity:
        problems.append(f"{len(doc.tickets)} tickets stored for capacity {doc.capacity}")
    for index, ticket in enumerate(doc.tickets):
        if ticket.id != index:
            problems.append(f"ticket at position {index} has id {ticket.id}")

    seen_ids: set[int] = set()
    owners: dict[int, int] = {}
    for purchase in doc.purchases:
        if purchase.id in seen_ids:
            problems.append(f"duplicate purchase id {purchase.id}")
        seen_ids.add(purchase.id)

        if len(set(purchase.tickets)) != len(purchase.tickets):
            problems.append(f"purchase {purchase.id} repeats a ticket id")
        if not purchase.is_active:
            continue

        expected = TICKET_STATUS_FOR_PURCHASE[purchase.status]
        for ticket_id in purchase.tickets:
            if not 0 <= ticket_id < doc.capacity:
                problems.append(f"purchase {purchase.id} holds out-of-range ticket {ticket_id}")
                continue
            if ticket_id in owners and owners[ticket_id] != purchase.id:
                problems.append(
                    f"ticket {ticket_id} held by purchases {owners[ticket_id]} and {purchase.id}"
                )
            owners[ticket_id] = purchase.id
            actual = doc.tickets[ticket_id].status
            if actual != expected:
                problems.append(
                    f"ticket {ticket_id} is '{actual}' but purchase {purchase.id} "
                    f"is '{purchase.status}'"
                )

    for ticket in doc.tickets:
        if ticket.status != TICKET_FREE and ticket.id not in owners:
            problems.append(f"ticket {ticket.id} is '{ticket.status}' with no active purchase")

    return problems
