"""Guest write models - return DTOs, never ORM models."""

from abc import ABC, abstractmethod
from datetime import UTC, datetime
from functools import partial

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config.database import async_session_manager
from src.guests.dtos import GuestAlreadyExistsError, GuestDTO, NewGuestDTO
from src.guests.repository.orm_models import Guest
from src.rsvp.repository.read_models import backend_errors


class GuestWriteModel(ABC):
    @abstractmethod
    async def create_guest(self, guest: NewGuestDTO, token: str) -> GuestDTO:
        """Register a guest under an already generated token."""
        raise NotImplementedError

    @abstractmethod
    async def touch(self, token: str) -> None:
        """Mark the token as used and record the access time."""
        raise NotImplementedError


class SqlGuestWriteModel(GuestWriteModel):
    """SQL implementation of guest write operations."""

    async_session_manager = staticmethod(partial(async_session_manager))

    def __init__(self, session_overwrite: AsyncSession | None = None) -> None:
        self.session_overwrite = session_overwrite

    async def create_guest(self, guest: NewGuestDTO, token: str) -> GuestDTO:
        with backend_errors():
            async with self.async_session_manager(
                session_overwrite=self.session_overwrite
            ) as session:
                existing = await self._get_guest_by_token(session, token)
                if existing is not None:
                    raise GuestAlreadyExistsError(token)

                orm_guest = Guest(
                    first_name=guest.first_name,
                    last_name=guest.last_name or "",
                    email=guest.email,
                    phone=guest.phone,
                    token=token,
                    has_used_token=False,
                    plus_one_eligible=guest.plus_one_eligible,
                    plus_one_name=guest.plus_one_name,
                    plus_one_email=guest.plus_one_email,
                    invitation_group=guest.invitation_group or "other",
                    dietary_restrictions=list(guest.dietary_restrictions),
                    special_notes=guest.special_notes,
                    created_at=datetime.now(UTC),
                )
                session.add(orm_guest)
                await session.flush()

                return GuestDTO.from_guest(orm_guest)

    async def touch(self, token: str) -> None:
        with backend_errors():
            async with self.async_session_manager(
                session_overwrite=self.session_overwrite
            ) as session:
                guest = await self._get_guest_by_token(session, token)
                if guest is None:
                    return
                guest.has_used_token = True
                guest.last_accessed = datetime.now(UTC)
                await session.flush()

    async def _get_guest_by_token(self, session, token: str) -> Guest | None:
        result = await session.execute(select(Guest).where(Guest.token == token))
        return result.scalar_one_or_none()
