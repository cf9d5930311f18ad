"""Admin routes — /api/admin.

Inventory size, purchase approval workflow, and full-state export/import.
All endpoints require the ``X-Admin-Secret`` header.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from raffledesk.api.deps import get_ledger, get_resizer, get_store, require_admin
from raffledesk.api.schemas.common import SuccessResponse
from raffledesk.api.schemas.purchases import (
    CapacityResponse,
    CapacityUpdate,
    PurchaseResponse,
    PurchaseUpdate,
)
from raffledesk.core.errors import InventoryError
from raffledesk.repositories.document import Purchase
from raffledesk.repositories.inventory_store import InventoryStore
from raffledesk.services.capacity import CapacityResizer
from raffledesk.services.purchases import PurchaseLedger

router = APIRouter(
    prefix="/api/admin",
    tags=["admin"],
    dependencies=[Depends(require_admin)],
)


def _purchase_out(purchase: Purchase) -> dict[str, Any]:
    return purchase.model_dump(mode="json", by_alias=True)


# ── Settings ────────────────────────────────────────────────────────


@router.get("/settings", response_model=CapacityResponse)
def get_settings(resizer: CapacityResizer = Depends(get_resizer)) -> dict[str, Any]:
    """Current inventory size."""
    return {"totalTickets": resizer.current().total_tickets}


@router.post("/settings/tickets")
def set_ticket_count(
    body: CapacityUpdate,
    resizer: CapacityResizer = Depends(get_resizer),
) -> dict[str, Any]:
    """Grow or shrink the inventory."""
    try:
        settings = resizer.resize(body.total_tickets)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail) from e
    return {"success": True, "totalTickets": settings.total_tickets}


# ── Purchases ───────────────────────────────────────────────────────


@router.get("/purchases", response_model=list[PurchaseResponse])
def list_purchases(
    status: str = Query(default="all", description="pending, approved, rejected or all"),
    ledger: PurchaseLedger = Depends(get_ledger),
) -> list[dict[str, Any]]:
    """List purchases, newest first."""
    try:
        purchases = ledger.list_purchases(status)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail) from e
    return [_purchase_out(p) for p in purchases]


@router.get("/purchases/{purchase_id}", response_model=PurchaseResponse)
def get_purchase(
    purchase_id: int,
    ledger: PurchaseLedger = Depends(get_ledger),
) -> dict[str, Any]:
    """Get one purchase."""
    try:
        return _purchase_out(ledger.get_purchase(purchase_id))
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail) from e


@router.post("/purchases/{purchase_id}/approve")
def approve_purchase(
    purchase_id: int,
    ledger: PurchaseLedger = Depends(get_ledger),
) -> dict[str, Any]:
    """Approve a pending purchase."""
    try:
        purchase = ledger.approve(purchase_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail) from e
    return {"success": True, "status": purchase.status}


@router.post("/purchases/{purchase_id}/reject")
def reject_purchase(
    purchase_id: int,
    ledger: PurchaseLedger = Depends(get_ledger),
) -> dict[str, Any]:
    """Reject a purchase and release its tickets."""
    try:
        purchase = ledger.reject(purchase_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail) from e
    return {"success": True, "status": purchase.status}


@router.put("/purchases/{purchase_id}")
def update_purchase(
    purchase_id: int,
    body: PurchaseUpdate,
    ledger: PurchaseLedger = Depends(get_ledger),
) -> dict[str, Any]:
    """Edit the buyer's name or email."""
    try:
        purchase = ledger.update(purchase_id, body.model_dump(exclude_none=True))
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail) from e
    return {"success": True, "purchase": _purchase_out(purchase)}


@router.delete("/purchases/{purchase_id}", response_model=SuccessResponse)
def delete_purchase(
    purchase_id: int,
    ledger: PurchaseLedger = Depends(get_ledger),
) -> dict[str, Any]:
    """Delete a purchase record, releasing its tickets."""
    try:
        ledger.delete(purchase_id)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail) from e
    return {"success": True}


# ── Export / Import ─────────────────────────────────────────────────


@router.get("/db/download")
def download_document(store: InventoryStore = Depends(get_store)) -> JSONResponse:
    """Download the full inventory document as ``db.json``."""
    return JSONResponse(
        content=store.read().to_json_dict(),
        headers={"Content-Disposition": 'attachment; filename="db.json"'},
    )


@router.post("/db/upload")
def upload_document(
    payload: dict[str, Any] = Body(...),
    store: InventoryStore = Depends(get_store),
) -> dict[str, Any]:
    """Replace the whole inventory with an uploaded document."""
    try:
        doc = store.replace(payload)
    except InventoryError as e:
        raise HTTPException(status_code=e.status_code, detail=e.detail) from e
    return {
        "success": True,
        "totalTickets": doc.capacity,
        "purchases": len(doc.purchases),
    }
