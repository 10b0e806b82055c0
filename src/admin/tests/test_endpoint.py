from uuid import uuid4

import pytest

from src.admin.urls import (
    ADMIN_GUESTS_URL,
    ADMIN_RSVP_URL,
    ADMIN_RSVPS_URL,
    ADMIN_STATISTICS_URL,
    ADMIN_SYNC_PENDING_URL,
)
from src.config.settings import settings
from src.dependencies import (
    get_guest_registry,
    get_rsvp_read_model,
    get_rsvp_write_model,
    get_submission_pipeline,
)
from src.guests.registry import GuestRegistry
from src.rsvp.dtos import RSVPFormData
from src.rsvp.local_store import InMemoryLocalStore
from src.rsvp.pipeline import build_submission
from src.rsvp.tests.inmemory_models import (
    JANE_TOKEN,
    JOHN_TOKEN,
    InMemoryRSVPStore,
    build_pipeline,
    make_guest,
)

ADMIN_HEADERS = {"X-Admin-Password": settings.admin_password}


@pytest.fixture
async def store():
    store = InMemoryRSVPStore()
    await store.save(
        build_submission(
            JOHN_TOKEN,
            RSVPFormData(
                is_attending=True,
                guest_name="John Doe",
                meal_choice="beef",
                plus_one_name="Mary Doe",
                plus_one_meal_choice="fish",
            ),
        )
    )
    return store


@pytest.fixture
def registry():
    return GuestRegistry.from_guests(
        [
            make_guest(phone="0721234567", invitation_group="family"),
            make_guest("Jane", "Smith", JANE_TOKEN, invitation_group="friends"),
        ]
    )


@pytest.fixture
def overrides(store, registry):
    return {
        get_rsvp_read_model: lambda: store,
        get_rsvp_write_model: lambda: store,
        get_guest_registry: lambda: registry,
    }


@pytest.mark.asyncio
async def test_admin_requires_password(client_factory, overrides):
    async with client_factory(overrides) as client:
        missing = await client.get(ADMIN_RSVPS_URL)
        wrong = await client.get(ADMIN_RSVPS_URL, headers={"X-Admin-Password": "guess"})

    assert missing.status_code == 401
    assert wrong.status_code == 401
    assert wrong.json()["detail"] == "Invalid admin password"


@pytest.mark.asyncio
async def test_list_rsvps(client_factory, overrides):
    async with client_factory(overrides) as client:
        response = await client.get(ADMIN_RSVPS_URL, headers=ADMIN_HEADERS)

    assert response.status_code == 200
    data = response.json()
    assert len(data) == 1
    assert data[0]["token"] == JOHN_TOKEN
    assert data[0]["plus_one_name"] == "Mary Doe"


@pytest.mark.asyncio
async def test_list_rsvps_backend_down(client_factory, overrides, store):
    store.available = False

    async with client_factory(overrides) as client:
        response = await client.get(ADMIN_RSVPS_URL, headers=ADMIN_HEADERS)

    assert response.status_code == 503


@pytest.mark.asyncio
async def test_statistics(client_factory, overrides):
    """Headline numbers combine RSVPs with the guest list."""
    async with client_factory(overrides) as client:
        response = await client.get(ADMIN_STATISTICS_URL, headers=ADMIN_HEADERS)

    assert response.status_code == 200
    data = response.json()
    assert data["rsvps"]["total_submissions"] == 1
    assert data["rsvps"]["attending_guests"] == 1
    assert data["rsvps"]["guests_with_plus_one"] == 1
    assert data["rsvps"]["meal_choice_breakdown"] == {"beef": 1, "fish": 1}
    assert data["guests"]["total_guests"] == 2
    assert data["guests"]["by_invitation_group"] == {"family": 1, "friends": 1}
    assert data["response_rate"] == 50.0


@pytest.mark.asyncio
async def test_list_guests_with_links(client_factory, overrides):
    async with client_factory(overrides) as client:
        response = await client.get(ADMIN_GUESTS_URL, headers=ADMIN_HEADERS)

    assert response.status_code == 200
    guests = {guest["token"]: guest for guest in response.json()}
    john = guests[JOHN_TOKEN]
    assert john["rsvp_link"].endswith(f"/guest/{JOHN_TOKEN}")
    assert john["whatsapp_link"].startswith("https://wa.me/27721234567?text=")
    assert guests[JANE_TOKEN]["whatsapp_link"] is None


@pytest.mark.asyncio
async def test_delete_rsvp(client_factory, overrides, store):
    rsvp_id = (await store.get_by_token(JOHN_TOKEN)).id

    async with client_factory(overrides) as client:
        deleted = await client.delete(ADMIN_RSVP_URL.format(rsvp_id=rsvp_id), headers=ADMIN_HEADERS)
        missing = await client.delete(
            ADMIN_RSVP_URL.format(rsvp_id=uuid4()), headers=ADMIN_HEADERS
        )

    assert deleted.status_code == 204
    assert missing.status_code == 404
    assert await store.get_by_token(JOHN_TOKEN) is None


@pytest.mark.asyncio
async def test_sync_pending(client_factory):
    store = InMemoryRSVPStore()
    store.available = False
    local_store = InMemoryLocalStore()
    pipeline = build_pipeline(store, local_store=local_store)
    await pipeline.submit(
        JOHN_TOKEN, RSVPFormData(is_attending=False, guest_name="John Doe")
    )
    store.available = True

    async with client_factory({get_submission_pipeline: lambda: pipeline}) as client:
        response = await client.post(ADMIN_SYNC_PENDING_URL, headers=ADMIN_HEADERS)

    assert response.status_code == 200
    assert response.json() == {"synced": 1, "discarded": 0, "remaining": 0, "failed": 0}
    assert await store.get_by_token(JOHN_TOKEN) is not None
