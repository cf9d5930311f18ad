"""Purchase and inventory settings schemas for the admin API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class PurchaseResponse(BaseModel):
    """Schema for a purchase in API responses."""

    model_config = ConfigDict(populate_by_name=True, from_attributes=True)

    id: int
    name: str
    email: str
    phone: str = ""
    reference: str = ""
    tickets: list[int]
    proof: str | None = None
    status: str = Field(pattern=r"^(pending|approved|rejected)$")
    created_at: datetime = Field(alias="createdAt")


class PurchaseUpdate(BaseModel):
    """Editable buyer identity fields."""

    name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)


class CapacityUpdate(BaseModel):
    """New inventory size. Parsed leniently; the resizer validates it."""

    model_config = ConfigDict(populate_by_name=True)

    total_tickets: Any = Field(default=None, alias="totalTickets")


class CapacityResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_tickets: int = Field(alias="totalTickets")
