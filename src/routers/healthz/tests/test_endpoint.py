import pytest

from src.dependencies import get_local_store
from src.rsvp.local_store import InMemoryLocalStore, pending_key


@pytest.mark.asyncio
async def test_health_check(client):
    """Test the health check endpoint returns healthy status."""
    response = await client.get("/healthz/")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["version"] == "0.1.0"
    assert data["pending_submissions"] == 0


@pytest.mark.asyncio
async def test_health_check_reports_queued_rsvps(client_factory):
    """RSVPs waiting for the backend show up as pending submissions."""
    local_store = InMemoryLocalStore()
    await local_store.set(pending_key("john-doe-ab12cd34"), {"token": "john-doe-ab12cd34"})

    async with client_factory({get_local_store: lambda: local_store}) as client:
        response = await client.get("/healthz/")

    assert response.status_code == 200
    assert response.json()["pending_submissions"] == 1


@pytest.mark.asyncio
async def test_root_endpoint(client):
    """Test the root endpoint returns welcome message."""
    response = await client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Welcome to the Wedding RSVP API"
