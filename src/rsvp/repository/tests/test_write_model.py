"""Tests for the SQL RSVP read and write models."""

from datetime import UTC, datetime, timedelta
from uuid import uuid4

import pytest

from src.guests.dtos import NewGuestDTO
from src.guests.repository.write_models import SqlGuestWriteModel
from src.rsvp.dtos import RSVPAlreadySubmittedError, RSVPFormData
from src.rsvp.pipeline import build_submission
from src.rsvp.repository.read_models import SqlRSVPReadModel
from src.rsvp.repository.write_models import SqlRSVPWriteModel

TOKEN = "john-doe-ab12cd34"


def submission(token: str = TOKEN, submitted_at: datetime | None = None, **overrides):
    data = {"is_attending": True, "guest_name": "John Doe", "meal_choice": "beef"}
    data.update(overrides)
    return build_submission(token, RSVPFormData(**data), submitted_at=submitted_at)


@pytest.fixture
async def guest(async_session):
    return await SqlGuestWriteModel(session_overwrite=async_session).create_guest(
        NewGuestDTO(first_name="John", last_name="Doe"), TOKEN
    )


@pytest.mark.asyncio
async def test_save_links_rsvp_to_guest(async_session, guest):
    """A submission for a registered token is linked to the guest row."""
    write_model = SqlRSVPWriteModel(session_overwrite=async_session)

    saved = await write_model.save(submission(plus_one_name="Mary", plus_one_meal_choice="fish"))

    assert saved.created is True
    assert saved.linked_to_guest is True
    assert saved.submission.id is not None

    stored = await SqlRSVPReadModel(session_overwrite=async_session).get_by_token(TOKEN)
    assert stored.guest_name == "John Doe"
    assert stored.meal_choice == "beef"
    assert stored.plus_one_meal_choice == "fish"
    assert stored.submission_id == saved.submission.submission_id


@pytest.mark.asyncio
async def test_save_without_guest_row(async_session):
    saved = await SqlRSVPWriteModel(session_overwrite=async_session).save(
        submission("mary-jones-q8w3e5r1")
    )

    assert saved.created is True
    assert saved.linked_to_guest is False


@pytest.mark.asyncio
async def test_second_save_is_rejected(async_session, guest):
    write_model = SqlRSVPWriteModel(session_overwrite=async_session)
    await write_model.save(submission())

    with pytest.raises(RSVPAlreadySubmittedError):
        await write_model.save(submission(meal_choice="fish"))

    stored = await SqlRSVPReadModel(session_overwrite=async_session).get_by_token(TOKEN)
    assert stored.meal_choice == "beef"


@pytest.mark.asyncio
async def test_second_save_updates_when_allowed(async_session, guest):
    write_model = SqlRSVPWriteModel(session_overwrite=async_session)
    first = await write_model.save(submission())

    second = await write_model.save(
        submission(is_attending=False, meal_choice=""), allow_update=True
    )

    assert second.created is False
    assert second.submission.id == first.submission.id
    assert second.submission.is_attending is False
    assert second.submission.meal_choice is None
    assert len(await SqlRSVPReadModel(session_overwrite=async_session).list_rsvps()) == 1


@pytest.mark.asyncio
async def test_mark_email_sent(async_session):
    write_model = SqlRSVPWriteModel(session_overwrite=async_session)
    await write_model.save(submission())

    await write_model.mark_email_sent(TOKEN)
    await write_model.mark_email_sent("nobody-ab12cd34")

    stored = await SqlRSVPReadModel(session_overwrite=async_session).get_by_token(TOKEN)
    assert stored.email_confirmation_sent is True


@pytest.mark.asyncio
async def test_delete_rsvp(async_session):
    write_model = SqlRSVPWriteModel(session_overwrite=async_session)
    saved = await write_model.save(submission())

    assert await write_model.delete_rsvp(saved.submission.id) is True
    assert await write_model.delete_rsvp(uuid4()) is False
    assert await SqlRSVPReadModel(session_overwrite=async_session).get_by_token(TOKEN) is None


@pytest.mark.asyncio
async def test_list_and_statistics(async_session):
    write_model = SqlRSVPWriteModel(session_overwrite=async_session)
    earlier = datetime(2025, 9, 1, 10, 0, tzinfo=UTC)
    await write_model.save(
        submission(submitted_at=earlier, plus_one_name="Mary", plus_one_meal_choice="fish")
    )
    await write_model.save(
        submission(
            "jane-smith-x7k2m9qa",
            submitted_at=earlier + timedelta(days=1),
            guest_name="Jane Smith",
            is_attending=False,
        )
    )
    read_model = SqlRSVPReadModel(session_overwrite=async_session)

    rsvps = await read_model.list_rsvps()
    stats = await read_model.statistics()

    assert [rsvp.guest_name for rsvp in rsvps] == ["Jane Smith", "John Doe"]
    assert stats.total_submissions == 2
    assert stats.attending_guests == 1
    assert stats.not_attending_guests == 1
    assert stats.guests_with_plus_one == 1
    assert stats.meal_choice_breakdown == {"beef": 1, "fish": 1}
    assert stats.submissions_by_date == {"2025-09-01": 1, "2025-09-02": 1}
