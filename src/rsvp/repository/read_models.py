import abc
import contextlib
from collections import Counter
from collections.abc import Iterator
from functools import partial

from sqlalchemy import select
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from src.config.database import async_session_manager
from src.rsvp.dtos import BackendUnavailableError, RSVPStatisticsDTO, RSVPSubmissionDTO
from src.rsvp.repository.orm_models import RSVP


@contextlib.contextmanager
def backend_errors() -> Iterator[None]:
    """Translate connection level failures into BackendUnavailableError."""
    try:
        yield
    except (OperationalError, InterfaceError, OSError, TimeoutError) as e:
        raise BackendUnavailableError(str(e)) from e


def compute_statistics(submissions: list[RSVPSubmissionDTO]) -> RSVPStatisticsDTO:
    attending = [s for s in submissions if s.is_attending]
    meals: Counter[str] = Counter()
    for submission in attending:
        if submission.meal_choice:
            meals[submission.meal_choice] += 1
        if submission.plus_one_name and submission.plus_one_meal_choice:
            meals[submission.plus_one_meal_choice] += 1

    return RSVPStatisticsDTO(
        total_submissions=len(submissions),
        attending_guests=len(attending),
        not_attending_guests=len(submissions) - len(attending),
        guests_with_plus_one=sum(1 for s in attending if s.plus_one_name),
        email_confirmations_sent=sum(1 for s in submissions if s.email_confirmation_sent),
        meal_choice_breakdown=dict(meals),
        submissions_by_date=dict(
            sorted(Counter(s.submitted_at.date().isoformat() for s in submissions).items())
        ),
    )


class RSVPReadModel(abc.ABC):
    @abc.abstractmethod
    async def get_by_token(self, token: str) -> RSVPSubmissionDTO | None:
        """Get the submission stored for a guest token."""
        raise NotImplementedError

    @abc.abstractmethod
    async def list_rsvps(self) -> list[RSVPSubmissionDTO]:
        """Get all submissions, newest first."""
        raise NotImplementedError

    async def statistics(self) -> RSVPStatisticsDTO:
        return compute_statistics(await self.list_rsvps())


class SqlRSVPReadModel(RSVPReadModel):
    """SQL implementation of RSVP read model."""

    async_session_manager = staticmethod(partial(async_session_manager))

    def __init__(self, session_overwrite: AsyncSession | None = None) -> None:
        self.session_overwrite = session_overwrite

    async def get_by_token(self, token: str) -> RSVPSubmissionDTO | None:
        with backend_errors():
            async with self.async_session_manager(
                session_overwrite=self.session_overwrite
            ) as session:
                result = await session.execute(select(RSVP).where(RSVP.guest_token == token))
                rsvp = result.scalar_one_or_none()
                if rsvp is None:
                    return None
                return RSVPSubmissionDTO.from_rsvp(rsvp)

    async def list_rsvps(self) -> list[RSVPSubmissionDTO]:
        with backend_errors():
            async with self.async_session_manager(
                session_overwrite=self.session_overwrite
            ) as session:
                result = await session.execute(select(RSVP).order_by(RSVP.submitted_at.desc()))
                return [RSVPSubmissionDTO.from_rsvp(rsvp) for rsvp in result.scalars().all()]
