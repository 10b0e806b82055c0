"""Guest registry: token lookups served from a cache over the guest store.

The database is authoritative. The registry refreshes its snapshot once it is
older than ``ttl_seconds`` and always asks the store about tokens it has not
seen, so newly generated guests are found without waiting for a refresh.
"""

import logging
import time
from collections import Counter
from collections.abc import Callable

from src.config.settings import settings
from src.guests.dtos import GuestDTO, GuestStatisticsDTO
from src.guests.repository.read_models import GuestReadModel, StaticGuestReadModel
from src.guests.repository.write_models import GuestWriteModel

logger = logging.getLogger(__name__)


def display_name_from_token(token: str) -> str | None:
    """``john-doe-ab12cd34`` -> ``John Doe``."""
    parts = token.lower().split("-")
    if len(parts) < 2:
        return None
    name_parts = [part for part in parts[:-1] if part.isalpha()]
    if not name_parts:
        return None
    return " ".join(part.capitalize() for part in name_parts)


class GuestRegistry:
    def __init__(
        self,
        read_model: GuestReadModel,
        write_model: GuestWriteModel | None = None,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._read_model = read_model
        self._write_model = write_model
        self._ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.guest_registry_ttl_seconds
        self._clock = clock
        self._by_token: dict[str, GuestDTO] = {}
        self._loaded_at: float | None = None

    @classmethod
    def from_guests(cls, guests: list[GuestDTO]) -> "GuestRegistry":
        """Registry over static seed data; never goes stale."""
        return cls(read_model=StaticGuestReadModel(guests), ttl_seconds=float("inf"))

    @property
    def is_stale(self) -> bool:
        if self._loaded_at is None:
            return True
        return self._clock() - self._loaded_at > self._ttl_seconds

    async def refresh(self) -> None:
        guests = await self._read_model.list_guests()
        self._by_token = {guest.token: guest for guest in guests}
        self._loaded_at = self._clock()
        logger.debug(f"Guest registry loaded {len(self._by_token)} guests")

    def invalidate(self) -> None:
        self._loaded_at = None

    async def _ensure_fresh(self) -> None:
        if self.is_stale:
            await self.refresh()

    async def get(self, token: str) -> GuestDTO | None:
        await self._ensure_fresh()
        guest = self._by_token.get(token)
        if guest is None:
            guest = await self._read_model.get_by_token(token)
            if guest is not None:
                self._by_token[token] = guest
        return guest

    async def all(self) -> list[GuestDTO]:
        await self._ensure_fresh()
        return list(self._by_token.values())

    async def tokens(self) -> set[str]:
        await self._ensure_fresh()
        return set(self._by_token)

    async def token_exists(self, token: str) -> bool:
        return await self.get(token) is not None

    async def statistics(self) -> GuestStatisticsDTO:
        guests = await self.all()
        return GuestStatisticsDTO(
            total_guests=len(guests),
            plus_one_eligible=sum(1 for guest in guests if guest.plus_one_eligible),
            named_plus_ones=sum(1 for guest in guests if guest.plus_one_name),
            tokens_used=sum(1 for guest in guests if guest.has_used_token),
            by_invitation_group=dict(Counter(guest.invitation_group for guest in guests)),
        )

    async def touch(self, token: str) -> None:
        """Record guest access in the store. Best-effort: failures are logged."""
        if self._write_model is None:
            return
        try:
            await self._write_model.touch(token)
        except Exception as e:
            logger.warning(f"Failed to record access for token {token}: {e}")
            return
        # next lookup picks up has_used_token / last_accessed
        self._by_token.pop(token, None)
