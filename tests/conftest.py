"""Shared pytest fixtures and configuration."""

import os
import pytest
from unittest.mock import MagicMock, patch
from datetime import datetime
from freezegun import freeze_time

# Set test environment variables
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-key")
os.environ.setdefault("PHOTO_BUCKET", "listing-photos")
os.environ.setdefault("LOG_FORMAT", "text")

from tests.utils.helpers import make_query_chain


@pytest.fixture
def mock_supabase_client():
    """Mock Supabase client whose tables share one chainable query builder."""
    client = MagicMock()
    query = make_query_chain(data=[])
    client.table.return_value = query
    client.storage.from_.return_value = MagicMock()
    return client


@pytest.fixture
def now():
    return datetime(2026, 3, 15, 10, 30, 0)


@pytest.fixture
def freeze_time_fixture():
    """Fixture for freezing time in tests."""
    with freeze_time("2026-03-15 10:30:00") as frozen_time:
        yield frozen_time


@pytest.fixture
def sample_listing_row():
    """Listing row as returned by the `listings` table."""
    return {
        "id": "lst_001",
        "user_id": "0f8fad5b-d9cb-469f-a165-70867728950e",
        "type": "rent",
        "status": "Available",
        "condo_name": "Residensi Vista",
        "area": "Mont Kiara",
        "price": 1800,
        "sqft": 850,
        "bedrooms": 2,
        "bathrooms": 2,
        "carparks": 1,
        "furnish": "Fully",
        "inbox": False,
        "priority": 2,
        "next_follow_up": None,
        "last_update": "2026-03-10T09:00:00",
        "available_from": "2026-04-15",
        "updated_at": "2026-03-10T09:00:00",
    }


@pytest.fixture
def sample_deal_row():
    """Deal row as returned by the `deals` table."""
    return {
        "listing_id": "lst_001",
        "gross": 1800,
        "commission_rate": 50,
        "commission_amount": 900,
        "deductions": 100,
        "net": 800,
        "notes": "Tenant paid deposit",
        "updated_at": "2026-03-12T14:00:00",
    }


@pytest.fixture
def patch_supabase():
    """Route `create_supabase_client` to a mock; call with the client to return."""
    patchers = []

    def _patch(client):
        patcher = patch("src.services.supabase_client.create_supabase_client", return_value=client)
        patchers.append(patcher)
        return patcher.start()

    yield _patch
    for patcher in patchers:
        patcher.stop()
