"""Shared pytest fixtures and test configuration."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure src is on the path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from raffledesk.core.config import Settings  # noqa: E402
from raffledesk.repositories.inventory_store import InventoryStore  # noqa: E402

TEST_ADMIN_SECRET = "test-admin-secret"
TEST_CAPACITY = 5


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Testing settings pointing at a throwaway data directory."""
    return Settings(
        _env_file=None,
        app_env="testing",
        data_file=str(tmp_path / "data" / "db.json"),
        upload_dir=str(tmp_path / "data" / "uploads"),
        public_dir=str(tmp_path / "public"),
        default_capacity=TEST_CAPACITY,
        admin_secret=TEST_ADMIN_SECRET,
    )


@pytest.fixture
def store(settings: Settings) -> InventoryStore:
    """A store over the same file the test app uses."""
    return InventoryStore(settings.data_path, default_capacity=settings.default_capacity)


@pytest.fixture
def app(settings: Settings):  # type: ignore[no-untyped-def]
    """Create a FastAPI test app on a temp data directory."""
    from raffledesk.main import create_app

    return create_app(settings=settings)


@pytest.fixture
def client(app):  # type: ignore[no-untyped-def]
    """Create a test client."""
    return TestClient(app)


@pytest.fixture
def admin_headers() -> dict[str, str]:
    """Headers carrying the shared admin secret."""
    return {"X-Admin-Secret": TEST_ADMIN_SECRET}
