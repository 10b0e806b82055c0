import pytest

from src.guests.dtos import GuestDTO
from src.guests.registry import GuestRegistry, display_name_from_token
from src.guests.repository.read_models import GuestReadModel
from src.guests.repository.write_models import GuestWriteModel
from src.rsvp.tests.inmemory_models import JANE_TOKEN, JOHN_TOKEN, make_guest


class CountingReadModel(GuestReadModel):
    def __init__(self, guests: list[GuestDTO]):
        self.guests = {guest.token: guest for guest in guests}
        self.list_calls = 0
        self.lookup_calls = 0

    async def get_by_token(self, token: str) -> GuestDTO | None:
        self.lookup_calls += 1
        return self.guests.get(token)

    async def list_guests(self) -> list[GuestDTO]:
        self.list_calls += 1
        return list(self.guests.values())


class RecordingWriteModel(GuestWriteModel):
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.touched: list[str] = []

    async def create_guest(self, guest, token):
        raise NotImplementedError

    async def touch(self, token: str) -> None:
        if self.fail:
            raise RuntimeError("database is down")
        self.touched.append(token)


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.mark.parametrize(
    "token, name",
    [
        (JOHN_TOKEN, "John Doe"),
        ("cher-x7k2m9qa", "Cher"),
        ("johndoe", None),
        ("123-abc", None),
    ],
)
def test_display_name_from_token(token, name):
    assert display_name_from_token(token) == name


@pytest.mark.asyncio
async def test_lookups_are_served_from_cache_until_ttl():
    """The guest list is loaded once per TTL."""
    clock = FakeClock()
    read_model = CountingReadModel([make_guest()])
    registry = GuestRegistry(read_model, ttl_seconds=60, clock=clock)

    assert (await registry.get(JOHN_TOKEN)).first_name == "John"
    assert await registry.get(JOHN_TOKEN) is not None
    assert read_model.list_calls == 1

    clock.now = 61
    await registry.get(JOHN_TOKEN)
    assert read_model.list_calls == 2


@pytest.mark.asyncio
async def test_new_guest_found_before_refresh():
    read_model = CountingReadModel([make_guest()])
    registry = GuestRegistry(read_model, ttl_seconds=3600, clock=FakeClock())
    await registry.refresh()

    read_model.guests[JANE_TOKEN] = make_guest("Jane", "Smith", JANE_TOKEN)

    guest = await registry.get(JANE_TOKEN)
    assert guest is not None
    assert guest.full_name == "Jane Smith"
    assert read_model.list_calls == 1


@pytest.mark.asyncio
async def test_statistics():
    registry = GuestRegistry.from_guests(
        [
            make_guest(plus_one_eligible=True, plus_one_name="Mary", invitation_group="family"),
            make_guest("Jane", "Smith", JANE_TOKEN, has_used_token=True, invitation_group="friends"),
        ]
    )

    stats = await registry.statistics()

    assert stats.total_guests == 2
    assert stats.plus_one_eligible == 1
    assert stats.named_plus_ones == 1
    assert stats.tokens_used == 1
    assert stats.by_invitation_group == {"family": 1, "friends": 1}
    assert await registry.tokens() == {JOHN_TOKEN, JANE_TOKEN}


@pytest.mark.asyncio
async def test_touch_records_access():
    write_model = RecordingWriteModel()
    registry = GuestRegistry(CountingReadModel([make_guest()]), write_model=write_model)

    await registry.touch(JOHN_TOKEN)

    assert write_model.touched == [JOHN_TOKEN]


@pytest.mark.asyncio
async def test_touch_failure_is_not_raised():
    registry = GuestRegistry(
        CountingReadModel([make_guest()]), write_model=RecordingWriteModel(fail=True)
    )

    await registry.touch(JOHN_TOKEN)

    assert await registry.token_exists(JOHN_TOKEN)
