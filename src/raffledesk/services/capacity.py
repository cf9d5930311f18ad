"""Capacity resizer — grows or shrinks the ticket inventory."""

from __future__ import annotations

import logging
from typing import Any

from raffledesk.core.constants import MAX_CAPACITY
from raffledesk.core.errors import CapacityTooLowError, InvalidInputError
from raffledesk.repositories.document import InventoryDocument, InventorySettings, Ticket
from raffledesk.repositories.inventory_store import InventoryStore

logger = logging.getLogger(__name__)


def parse_capacity(value: Any) -> int:
    """Accept a positive integer (or its string form) up to ``MAX_CAPACITY``."""
    if isinstance(value, bool):
        raise InvalidInputError("Invalid ticket count")
    try:
        capacity = int(str(value).strip())
    except (TypeError, ValueError) as exc:
        raise InvalidInputError("Invalid ticket count") from exc
    if capacity <= 0:
        raise InvalidInputError("Invalid ticket count")
    if capacity > MAX_CAPACITY:
        raise InvalidInputError(f"Ticket count cannot exceed {MAX_CAPACITY}")
    return capacity


class CapacityResizer:
    """Changes the total number of tickets without orphaning active ones."""

    def __init__(self, store: InventoryStore) -> None:
        self.store = store

    def current(self) -> InventorySettings:
        return self.store.read().settings

    def resize(self, new_capacity: Any) -> InventorySettings:
        """Set the inventory size to *new_capacity* tickets.

        Raises ``CapacityTooLowError`` if any ticket at or above the new
        size is reserved or approved.
        """
        capacity = parse_capacity(new_capacity)

        def _resize(doc: InventoryDocument) -> tuple[int, InventorySettings]:
            max_active = doc.max_active_id()
            if capacity <= max_active:
                raise CapacityTooLowError(capacity, max_active)

            old = doc.capacity
            if capacity > old:
                doc.tickets.extend(Ticket(id=i) for i in range(old, capacity))
            elif capacity < old:
                del doc.tickets[capacity:]
            doc.settings.total_tickets = capacity
            return old, doc.settings

        old, settings = self.store.mutate(_resize)
        logger.info("Capacity changed from %d to %d", old, capacity)
        return settings
