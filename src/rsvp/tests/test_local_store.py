import pytest

from src.rsvp.local_store import (
    PENDING_KEY_PREFIX,
    FileLocalStore,
    InMemoryLocalStore,
    form_key,
    pending_key,
)


def test_keys():
    assert form_key("john-doe-ab12cd34") == "rsvp_form_john-doe-ab12cd34"
    assert pending_key("john-doe-ab12cd34") == "rsvp_pending_john-doe-ab12cd34"


@pytest.fixture(params=["memory", "file"])
def store(request, tmp_path):
    if request.param == "memory":
        return InMemoryLocalStore()
    return FileLocalStore(tmp_path / "store")


@pytest.mark.asyncio
async def test_set_get_delete(store):
    await store.set(form_key("abc-def"), {"form": {"guest_name": "John"}, "submitted": False})

    assert await store.get(form_key("abc-def")) == {
        "form": {"guest_name": "John"},
        "submitted": False,
    }

    await store.delete(form_key("abc-def"))
    assert await store.get(form_key("abc-def")) is None
    await store.delete(form_key("abc-def"))


@pytest.mark.asyncio
async def test_keys_filtered_by_prefix(store):
    await store.set(pending_key("b-token"), {"n": 2})
    await store.set(pending_key("a-token"), {"n": 1})
    await store.set(form_key("a-token"), {"n": 3})

    assert await store.keys(PENDING_KEY_PREFIX) == [pending_key("a-token"), pending_key("b-token")]
    assert len(await store.keys()) == 3


@pytest.mark.asyncio
async def test_stored_values_are_copies():
    store = InMemoryLocalStore()
    value = {"items": [1]}
    await store.set("key", value)

    value["items"].append(2)

    assert await store.get("key") == {"items": [1]}


@pytest.mark.asyncio
async def test_file_store_survives_new_instance(tmp_path):
    await FileLocalStore(tmp_path).set(pending_key("john-doe-ab12cd34"), {"token": "x"})

    reopened = FileLocalStore(tmp_path)

    assert await reopened.get(pending_key("john-doe-ab12cd34")) == {"token": "x"}
    assert await reopened.keys(PENDING_KEY_PREFIX) == [pending_key("john-doe-ab12cd34")]


@pytest.mark.asyncio
async def test_file_store_ignores_corrupt_entries(tmp_path):
    (tmp_path / "rsvp_form_broken.json").write_text("{not json", encoding="utf-8")

    assert await FileLocalStore(tmp_path).get("rsvp_form_broken") is None


@pytest.mark.asyncio
async def test_file_store_missing_directory(tmp_path):
    store = FileLocalStore(tmp_path / "missing")

    assert await store.keys() == []
    assert await store.get("anything") is None
