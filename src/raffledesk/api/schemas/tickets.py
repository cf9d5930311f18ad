"""Ticket and buy-request schemas."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from raffledesk.api.schemas.common import SuccessResponse


class TicketResponse(BaseModel):
    """One ticket slot in the public inventory listing."""

    id: int
    status: str = Field(pattern=r"^(free|reserved|approved)$")


class BuyResponse(SuccessResponse):
    """Result of a successful buy request."""

    model_config = ConfigDict(populate_by_name=True)

    purchase_id: int = Field(alias="purchaseId")
    tickets: list[int]
    status: str = "pending"


class TicketConflictDetail(BaseModel):
    """409 body listing the tickets that are no longer free."""

    message: str
    tickets: list[int]
