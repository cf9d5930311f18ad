"""Storefront and admin pages, served from the configured public directory."""

from __future__ import annotations

from pathlib import Path

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import FileResponse

router = APIRouter(include_in_schema=False)


def _page(request: Request, filename: str) -> FileResponse:
    page = Path(request.app.state.settings.public_dir) / filename
    if not page.is_file():
        raise HTTPException(status_code=404, detail="Not found")
    return FileResponse(page)


@router.get("/")
def storefront(request: Request) -> FileResponse:
    return _page(request, "index.html")


@router.get("/admin")
def admin_page(request: Request) -> FileResponse:
    return _page(request, "admin.html")
