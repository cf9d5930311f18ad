"""Purchase ledger — approval workflow for ticket purchases.

Manages the purchase lifecycle: pending → approved → rejected, or
pending → rejected. Ticket statuses always follow the status of the purchase
that owns them.
"""

from __future__ import annotations

import logging
from typing import Any

from raffledesk.core.constants import (
    EDITABLE_PURCHASE_FIELDS,
    PURCHASE_APPROVED,
    PURCHASE_FILTER_ALL,
    PURCHASE_REJECTED,
    PURCHASE_STATUSES,
    TICKET_APPROVED,
    TICKET_FREE,
)
from raffledesk.core.errors import (
    InvalidInputError,
    InvalidTransitionError,
    PurchaseNotFoundError,
)
from raffledesk.repositories.document import InventoryDocument, Purchase
from raffledesk.repositories.inventory_store import InventoryStore

logger = logging.getLogger(__name__)


# ── Valid state transitions ─────────────────────────────────────────
# Moving to the current status again is a no-op and always allowed.

VALID_TRANSITIONS: dict[str, list[str]] = {
    "pending": ["approved", "rejected"],
    "approved": ["rejected"],
    "rejected": [],  # Terminal; its tickets may already be resold
}


def _get_or_raise(doc: InventoryDocument, purchase_id: int) -> Purchase:
    purchase = doc.find_purchase(purchase_id)
    if purchase is None:
        raise PurchaseNotFoundError(purchase_id)
    return purchase


def _check_transition(purchase: Purchase, target: str) -> bool:
    """Return True if a change is needed, False for an idempotent repeat."""
    if purchase.status == target:
        return False
    if target not in VALID_TRANSITIONS.get(purchase.status, []):
        raise InvalidTransitionError(purchase.id, purchase.status, target)
    return True


class PurchaseLedger:
    """Queries and state changes for purchase records."""

    def __init__(self, store: InventoryStore) -> None:
        self.store = store

    # ── Queries ─────────────────────────────────────────────────────

    def list_purchases(self, status: str | None = PURCHASE_FILTER_ALL) -> list[Purchase]:
        """Return purchases newest first, optionally filtered by status."""
        status = status or PURCHASE_FILTER_ALL
        if status != PURCHASE_FILTER_ALL and status not in PURCHASE_STATUSES:
            raise InvalidInputError(
                f"Invalid status: {status}. Valid: {[*PURCHASE_STATUSES, PURCHASE_FILTER_ALL]}"
            )
        purchases = self.store.read().purchases
        if status != PURCHASE_FILTER_ALL:
            purchases = [p for p in purchases if p.status == status]
        return sorted(purchases, key=lambda p: (p.created_at, p.id), reverse=True)

    def get_purchase(self, purchase_id: int) -> Purchase:
        return _get_or_raise(self.store.read(), purchase_id)

    # ── Lifecycle ───────────────────────────────────────────────────

    def approve(self, purchase_id: int) -> Purchase:
        """Approve a pending purchase; its tickets become approved."""

        def _approve(doc: InventoryDocument) -> Purchase:
            purchase = _get_or_raise(doc, purchase_id)
            if _check_transition(purchase, PURCHASE_APPROVED):
                purchase.status = PURCHASE_APPROVED
                doc.set_ticket_status(purchase.tickets, TICKET_APPROVED)
                logger.info("Purchase %s approved (tickets %s)", purchase_id, purchase.tickets)
            return purchase

        return self.store.mutate(_approve)

    def reject(self, purchase_id: int) -> Purchase:
        """Reject a purchase and free its tickets, reserved or approved."""

        def _reject(doc: InventoryDocument) -> Purchase:
            purchase = _get_or_raise(doc, purchase_id)
            if _check_transition(purchase, PURCHASE_REJECTED):
                purchase.status = PURCHASE_REJECTED
                doc.set_ticket_status(purchase.tickets, TICKET_FREE)
                logger.info("Purchase %s rejected (tickets %s freed)", purchase_id, purchase.tickets)
            return purchase

        return self.store.mutate(_reject)

    def update(self, purchase_id: int, fields: dict[str, Any]) -> Purchase:
        """Edit buyer identity fields. Tickets and status are never touched."""
        changes = {
            k: str(v).strip()
            for k, v in fields.items()
            if k in EDITABLE_PURCHASE_FIELDS and v is not None and str(v).strip()
        }
        if not changes:
            raise InvalidInputError(
                f"No fields to update. Editable: {EDITABLE_PURCHASE_FIELDS}"
            )

        def _update(doc: InventoryDocument) -> Purchase:
            purchase = _get_or_raise(doc, purchase_id)
            for key, value in changes.items():
                setattr(purchase, key, value)
            return purchase

        purchase = self.store.mutate(_update)
        logger.info("Purchase %s updated: %s", purchase_id, sorted(changes))
        return purchase

    def delete(self, purchase_id: int) -> Purchase:
        """Remove a purchase record, freeing its tickets if it still held them."""

        def _delete(doc: InventoryDocument) -> Purchase:
            purchase = _get_or_raise(doc, purchase_id)
            if purchase.is_active:
                doc.set_ticket_status(purchase.tickets, TICKET_FREE)
            doc.purchases.remove(purchase)
            return purchase

        purchase = self.store.mutate(_delete)
        logger.info("Purchase %s deleted (status was %s)", purchase_id, purchase.status)
        return purchase
