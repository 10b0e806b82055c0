import abc
from functools import partial

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from src.config.database import async_session_manager
from src.guests.dtos import GuestDTO
from src.guests.repository.orm_models import Guest
from src.rsvp.repository.read_models import backend_errors


class GuestReadModel(abc.ABC):
    @abc.abstractmethod
    async def get_by_token(self, token: str) -> GuestDTO | None:
        """Get a guest by the token from their invitation link."""
        raise NotImplementedError

    @abc.abstractmethod
    async def list_guests(self) -> list[GuestDTO]:
        """Get every invited guest ordered by name."""
        raise NotImplementedError


class SqlGuestReadModel(GuestReadModel):
    """SQL implementation of guest read model."""

    async_session_manager = staticmethod(partial(async_session_manager))

    def __init__(self, session_overwrite: AsyncSession | None = None) -> None:
        self.session_overwrite = session_overwrite

    async def get_by_token(self, token: str) -> GuestDTO | None:
        with backend_errors():
            async with self.async_session_manager(
                session_overwrite=self.session_overwrite
            ) as session:
                result = await session.execute(select(Guest).where(Guest.token == token))
                guest = result.scalar_one_or_none()
                if guest is None:
                    return None
                return GuestDTO.from_guest(guest)

    async def list_guests(self) -> list[GuestDTO]:
        with backend_errors():
            async with self.async_session_manager(
                session_overwrite=self.session_overwrite
            ) as session:
                result = await session.execute(
                    select(Guest).order_by(Guest.first_name, Guest.last_name)
                )
                return [GuestDTO.from_guest(guest) for guest in result.scalars().all()]


class StaticGuestReadModel(GuestReadModel):
    """Read model over a fixed guest list, e.g. a generated seed module."""

    def __init__(self, guests: list[GuestDTO] | None = None) -> None:
        self._guests = {guest.token: guest for guest in guests or []}

    async def get_by_token(self, token: str) -> GuestDTO | None:
        return self._guests.get(token)

    async def list_guests(self) -> list[GuestDTO]:
        return sorted(self._guests.values(), key=lambda g: (g.first_name, g.last_name))
