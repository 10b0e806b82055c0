"""RSVP write models - return DTOs, never ORM models."""

import logging
from abc import ABC, abstractmethod
from functools import partial
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.config.database import async_session_manager
from src.guests.repository.orm_models import Guest
from src.rsvp.dtos import RSVPAlreadySubmittedError, RSVPSubmissionDTO, SavedRSVPDTO
from src.rsvp.repository.orm_models import RSVP
from src.rsvp.repository.read_models import backend_errors

logger = logging.getLogger(__name__)


class RSVPWriteModel(ABC):
    @abstractmethod
    async def save(self, submission: RSVPSubmissionDTO, allow_update: bool = False) -> SavedRSVPDTO:
        """
        Store a submission.

        Raises RSVPAlreadySubmittedError when the token already has a submission
        and updates are not allowed.
        """
        raise NotImplementedError

    @abstractmethod
    async def delete_rsvp(self, rsvp_id: UUID) -> bool:
        """Delete a submission by id. Returns False when nothing matched."""
        raise NotImplementedError

    @abstractmethod
    async def mark_email_sent(self, token: str) -> None:
        raise NotImplementedError


def _apply_submission(rsvp: RSVP, submission: RSVPSubmissionDTO) -> None:
    rsvp.guest_name = submission.guest_name
    rsvp.email_address = submission.email
    rsvp.whatsapp_number = submission.whatsapp_number
    rsvp.attending = submission.is_attending
    rsvp.meal_choice = submission.meal_choice
    rsvp.dietary_restrictions = submission.dietary_restrictions
    rsvp.plus_one_name = submission.plus_one_name
    rsvp.plus_one_meal_choice = submission.plus_one_meal_choice
    rsvp.plus_one_dietary_restrictions = submission.plus_one_dietary_restrictions
    rsvp.wants_email_confirmation = submission.wants_email_confirmation
    rsvp.wants_whatsapp_confirmation = submission.wants_whatsapp_confirmation
    rsvp.special_requests = submission.special_requests
    rsvp.submission_id = submission.submission_id
    rsvp.submitted_at = submission.submitted_at
    rsvp.email_confirmation_sent = submission.email_confirmation_sent
    rsvp.whatsapp_confirmation_sent = submission.whatsapp_confirmation_sent


class SqlRSVPWriteModel(RSVPWriteModel):
    """SQL implementation of RSVP write operations."""

    async_session_manager = staticmethod(partial(async_session_manager))

    def __init__(self, session_overwrite: AsyncSession | None = None) -> None:
        self.session_overwrite = session_overwrite

    async def save(self, submission: RSVPSubmissionDTO, allow_update: bool = False) -> SavedRSVPDTO:
        with backend_errors():
            async with self.async_session_manager(
                session_overwrite=self.session_overwrite
            ) as session:
                result = await session.execute(
                    select(RSVP).where(RSVP.guest_token == submission.token)
                )
                rsvp = result.scalar_one_or_none()
                created = rsvp is None

                if rsvp is not None and not allow_update:
                    raise RSVPAlreadySubmittedError(submission.token)

                guest_result = await session.execute(
                    select(Guest.uuid).where(Guest.token == submission.token)
                )
                guest_id = guest_result.scalar_one_or_none()
                if guest_id is None:
                    logger.info(
                        f"No guest row for token {submission.token}, storing standalone RSVP"
                    )

                if rsvp is None:
                    rsvp = RSVP(guest_token=submission.token)
                    session.add(rsvp)
                rsvp.guest_id = guest_id
                _apply_submission(rsvp, submission)

                try:
                    await session.flush()
                except IntegrityError as e:
                    # a concurrent submission won the unique token constraint
                    raise RSVPAlreadySubmittedError(submission.token) from e

                return SavedRSVPDTO(
                    submission=RSVPSubmissionDTO.from_rsvp(rsvp),
                    created=created,
                    linked_to_guest=guest_id is not None,
                )

    async def delete_rsvp(self, rsvp_id: UUID) -> bool:
        with backend_errors():
            async with self.async_session_manager(
                session_overwrite=self.session_overwrite
            ) as session:
                rsvp = await session.get(RSVP, rsvp_id)
                if rsvp is None:
                    return False
                await session.delete(rsvp)
                await session.flush()
                return True

    async def mark_email_sent(self, token: str) -> None:
        with backend_errors():
            async with self.async_session_manager(
                session_overwrite=self.session_overwrite
            ) as session:
                result = await session.execute(select(RSVP).where(RSVP.guest_token == token))
                rsvp = result.scalar_one_or_none()
                if rsvp is None:
                    return
                rsvp.email_confirmation_sent = True
                await session.flush()
