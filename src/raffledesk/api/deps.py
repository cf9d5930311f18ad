"""Dependency injection for FastAPI routes."""

from __future__ import annotations

import secrets

from fastapi import Depends, Header, HTTPException, Request

from raffledesk.core.config import Settings
from raffledesk.repositories.inventory_store import InventoryStore
from raffledesk.services.allocator import TicketAllocator
from raffledesk.services.capacity import CapacityResizer
from raffledesk.services.proofs import ProofStorage
from raffledesk.services.purchases import PurchaseLedger


def get_app_settings(request: Request) -> Settings:
    """Settings the application was created with."""
    return request.app.state.settings  # type: ignore[no-any-return]


def get_store(request: Request) -> InventoryStore:
    """The single inventory store shared by every request."""
    return request.app.state.store  # type: ignore[no-any-return]


def get_proof_storage(request: Request) -> ProofStorage:
    return request.app.state.proofs  # type: ignore[no-any-return]


def get_allocator(store: InventoryStore = Depends(get_store)) -> TicketAllocator:
    return TicketAllocator(store)


def get_ledger(store: InventoryStore = Depends(get_store)) -> PurchaseLedger:
    return PurchaseLedger(store)


def get_resizer(store: InventoryStore = Depends(get_store)) -> CapacityResizer:
    return CapacityResizer(store)


# ── Auth Dependencies ───────────────────────────────────────────────


def is_admin_secret(candidate: str | None, settings: Settings | None) -> bool:
    """Constant-time comparison against the configured admin secret."""
    if not candidate or settings is None or not settings.admin_secret:
        return False
    return secrets.compare_digest(candidate.encode(), settings.admin_secret.encode())


def require_admin(
    x_admin_secret: str | None = Header(default=None),
    settings: Settings = Depends(get_app_settings),
) -> None:
    """Reject the request unless it carries the shared admin secret."""
    if not is_admin_secret(x_admin_secret, settings):
        raise HTTPException(status_code=403, detail="Not authorized")
