"""Shared schemas used across routes."""

from __future__ import annotations

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """RFC 7807 Problem Details error response."""

    type: str = "about:blank"
    title: str
    status: int
    detail: str
    code: str | None = None
    instance: str | None = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    environment: str
    storage: str | None = None


class SuccessResponse(BaseModel):
    """Plain acknowledgement returned by admin actions."""

    success: bool = True
