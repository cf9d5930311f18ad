"""Ticket allocator — all-or-nothing reservation of ticket ids.

The availability check and the reservation happen inside a single store
transaction, so two overlapping buy requests can never both succeed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from raffledesk.core.constants import (
    PURCHASE_PENDING,
    REQUIRED_BUYER_FIELDS,
    TICKET_FREE,
    TICKET_RESERVED,
)
from raffledesk.core.errors import InvalidInputError, OutOfRangeError, TicketConflictError
from raffledesk.repositories.document import InventoryDocument, Purchase
from raffledesk.repositories.inventory_store import InventoryStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PurchaseDraft:
    """Buyer details submitted with a buy request."""

    name: str
    email: str
    phone: str
    reference: str
    proof: str | None = None


def normalize_ticket_ids(raw_ids: Any) -> list[int]:
    """Coerce requested ids to ints, dropping repeats but keeping order."""
    if not isinstance(raw_ids, list | tuple | set | frozenset):
        raise InvalidInputError("Tickets must be a list of ticket numbers")
    ticket_ids: list[int] = []
    for value in raw_ids:
        if isinstance(value, bool):
            raise InvalidInputError(f"Invalid ticket number: {value!r}")
        try:
            ticket_id = int(value)
        except (TypeError, ValueError, OverflowError) as exc:
            raise InvalidInputError(f"Invalid ticket number: {value!r}") from exc
        if isinstance(value, float) and value != ticket_id:
            raise InvalidInputError(f"Invalid ticket number: {value!r}")
        if ticket_id not in ticket_ids:
            ticket_ids.append(ticket_id)
    if isinstance(raw_ids, set | frozenset):
        ticket_ids.sort()
    return ticket_ids


class TicketAllocator:
    """Reserves tickets for new purchases."""

    def __init__(self, store: InventoryStore) -> None:
        self.store = store

    def reserve(
        self,
        ticket_ids: Any,
        draft: PurchaseDraft,
        *,
        now: datetime | None = None,
    ) -> Purchase:
        """Reserve *ticket_ids* for a new pending purchase.

        Validates, in order:
          - Buyer fields are present and at least one ticket is requested
          - Every id lies within the current capacity
          - Every ticket is currently free

        Raises ``InvalidInputError``, ``OutOfRangeError`` or
        ``TicketConflictError``; on any error the inventory is untouched.
        """
        if now is None:
            now = datetime.now(tz=UTC)

        missing = [f for f in REQUIRED_BUYER_FIELDS if not str(getattr(draft, f) or "").strip()]
        if missing:
            raise InvalidInputError(f"Missing required fields: {', '.join(missing)}")
        requested = normalize_ticket_ids(ticket_ids)
        if not requested:
            raise InvalidInputError("Select at least one ticket")

        def _reserve(doc: InventoryDocument) -> Purchase:
            out_of_range = [i for i in requested if not 0 <= i < doc.capacity]
            if out_of_range:
                raise OutOfRangeError(out_of_range, doc.capacity)

            taken = [i for i in requested if doc.tickets[i].status != TICKET_FREE]
            if taken:
                raise TicketConflictError(taken)

            purchase = Purchase(
                id=doc.next_purchase_id(now),
                name=draft.name.strip(),
                email=draft.email.strip(),
                phone=draft.phone.strip(),
                reference=draft.reference.strip(),
                tickets=requested,
                proof=draft.proof,
                status=PURCHASE_PENDING,
                created_at=now,
            )
            doc.purchases.append(purchase)
            doc.set_ticket_status(requested, TICKET_RESERVED)
            return purchase

        try:
            purchase = self.store.mutate(_reserve)
        except TicketConflictError as exc:
            logger.info("Reservation conflict on tickets %s", exc.ticket_ids)
            raise

        logger.info("Purchase %s reserved %d ticket(s)", purchase.id, len(purchase.tickets))
        return purchase
