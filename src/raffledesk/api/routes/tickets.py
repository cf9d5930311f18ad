"""Public ticket routes — /api/tickets."""

from __future__ import annotations

import json
from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile

from raffledesk.api.deps import get_allocator, get_proof_storage, get_store
from raffledesk.api.schemas.tickets import BuyResponse, TicketConflictDetail, TicketResponse
from raffledesk.core.errors import InvalidInputError, InventoryError, TicketConflictError
from raffledesk.repositories.inventory_store import InventoryStore
from raffledesk.services.allocator import PurchaseDraft, TicketAllocator
from raffledesk.services.proofs import ProofStorage

router = APIRouter(prefix="/api/tickets", tags=["tickets"])


def parse_ticket_field(values: list[str]) -> list[Any]:
    """Accept repeated ``tickets`` fields or one JSON array string."""
    if len(values) == 1 and values[0].strip().startswith("["):
        try:
            parsed = json.loads(values[0])
        except ValueError as exc:
            raise InvalidInputError("Tickets must be a JSON array of numbers") from exc
        if not isinstance(parsed, list):
            raise InvalidInputError("Tickets must be a JSON array of numbers")
        return parsed
    return [v for v in values if v.strip()]


@router.get("", response_model=list[TicketResponse])
def list_tickets(store: InventoryStore = Depends(get_store)) -> list[dict[str, Any]]:
    """Every ticket with its current status, ordered by id."""
    return [t.model_dump() for t in store.read().tickets]


@router.post(
    "/buy",
    response_model=BuyResponse,
    responses={409: {"model": TicketConflictDetail}},
)
def buy_tickets(
    name: str = Form(default=""),
    email: str = Form(default=""),
    phone: str = Form(default=""),
    reference: str = Form(default=""),
    tickets: list[str] = Form(default=[]),
    proof: UploadFile | None = File(default=None),
    allocator: TicketAllocator = Depends(get_allocator),
    proofs: ProofStorage = Depends(get_proof_storage),
) -> dict[str, Any]:
    """Reserve tickets for a new pending purchase, with optional proof file."""
    location: str | None = None
    try:
        ticket_ids = parse_ticket_field(tickets)
        if proof is not None and proof.filename:
            location = proofs.save(proof.file, proof.filename)
        purchase = allocator.reserve(
            ticket_ids,
            PurchaseDraft(
                name=name,
                email=email,
                phone=phone,
                reference=reference,
                proof=location,
            ),
        )
    except TicketConflictError as e:
        proofs.discard(location)
        detail = TicketConflictDetail(message=e.detail, tickets=e.ticket_ids)
        raise HTTPException(status_code=e.status_code, detail=detail.model_dump()) from e
    except InventoryError as e:
        proofs.discard(location)
        raise HTTPException(status_code=e.status_code, detail=e.detail) from e

    return {
        "success": True,
        "purchaseId": purchase.id,
        "tickets": purchase.tickets,
        "status": purchase.status,
    }
