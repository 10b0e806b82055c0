"""In-memory models for testing - no database required."""

from dataclasses import replace
from uuid import UUID, uuid4

from src.email_service.base import EmailServiceBase
from src.guests.dtos import GuestDTO
from src.guests.registry import GuestRegistry
from src.guests.repository.read_models import GuestReadModel
from src.guests.tokens.rate_limiter import RateLimiter
from src.guests.tokens.validator import TokenValidator
from src.rsvp.dtos import (
    BackendUnavailableError,
    RSVPAlreadySubmittedError,
    RSVPSubmissionDTO,
    SavedRSVPDTO,
)
from src.rsvp.local_store import InMemoryLocalStore, LocalStore
from src.rsvp.pipeline import SubmissionPipeline
from src.rsvp.repository.read_models import RSVPReadModel
from src.rsvp.repository.write_models import RSVPWriteModel

JOHN_TOKEN = "john-doe-ab12cd34"
JANE_TOKEN = "jane-smith-x7k2m9qa"


def make_guest(first_name: str = "John", last_name: str = "Doe", token: str = JOHN_TOKEN, **kwargs) -> GuestDTO:
    return GuestDTO(id=uuid4(), first_name=first_name, last_name=last_name, token=token, **kwargs)


class InMemoryRSVPStore(RSVPReadModel, RSVPWriteModel):
    """In-memory read and write model for testing."""

    def __init__(self, guest_tokens: set[str] | None = None):
        self._submissions: dict[str, RSVPSubmissionDTO] = {}
        self.guest_tokens = guest_tokens or set()
        self.available = True
        self.marked_email_sent: list[str] = []

    def _check_available(self):
        if not self.available:
            raise BackendUnavailableError("connection refused")

    async def get_by_token(self, token: str) -> RSVPSubmissionDTO | None:
        self._check_available()
        return self._submissions.get(token)

    async def list_rsvps(self) -> list[RSVPSubmissionDTO]:
        self._check_available()
        return sorted(self._submissions.values(), key=lambda s: s.submitted_at, reverse=True)

    async def save(self, submission: RSVPSubmissionDTO, allow_update: bool = False) -> SavedRSVPDTO:
        self._check_available()
        existing = self._submissions.get(submission.token)
        if existing is not None and not allow_update:
            raise RSVPAlreadySubmittedError(submission.token)

        stored = replace(submission, id=existing.id if existing else uuid4())
        self._submissions[submission.token] = stored
        return SavedRSVPDTO(
            submission=stored,
            created=existing is None,
            linked_to_guest=submission.token in self.guest_tokens,
        )

    async def delete_rsvp(self, rsvp_id: UUID) -> bool:
        self._check_available()
        for token, submission in self._submissions.items():
            if submission.id == rsvp_id:
                del self._submissions[token]
                return True
        return False

    async def mark_email_sent(self, token: str) -> None:
        self._check_available()
        self.marked_email_sent.append(token)
        if token in self._submissions:
            self._submissions[token] = self._submissions[token].with_email_sent()


class InMemoryEmailService(EmailServiceBase):
    """In-memory email service for testing."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.confirmations: list[dict] = []
        self.organizer_notifications: list[dict] = []

    async def send_confirmation(self, to_address: str, submission: RSVPSubmissionDTO) -> None:
        if self.fail:
            raise RuntimeError("email provider down")
        self.confirmations.append({"to_address": to_address, "submission": submission})

    async def send_organizer_notification(
        self, to_addresses: list[str], submission: RSVPSubmissionDTO, reason: str
    ) -> None:
        if self.fail:
            raise RuntimeError("email provider down")
        self.organizer_notifications.append(
            {"to_addresses": to_addresses, "submission": submission, "reason": reason}
        )

    @property
    def sent_count(self) -> int:
        return len(self.confirmations) + len(self.organizer_notifications)


class DownGuestReadModel(GuestReadModel):
    """Guest store that cannot be reached."""

    async def get_by_token(self, token: str) -> GuestDTO | None:
        raise BackendUnavailableError("connection refused")

    async def list_guests(self) -> list[GuestDTO]:
        raise BackendUnavailableError("connection refused")


class FailingLocalStore(InMemoryLocalStore):
    async def set(self, key, value):
        raise OSError("disk full")


def build_pipeline(
    store: InMemoryRSVPStore | None = None,
    email_service: InMemoryEmailService | None = None,
    local_store: LocalStore | None = None,
    guests: list[GuestDTO] | None = None,
    registry: GuestRegistry | None = None,
    rate_limiter: RateLimiter | None = None,
    allow_updates: bool = False,
    organizer_emails: list[str] | None = None,
    require_known_guest: bool = False,
) -> SubmissionPipeline:
    store = store or InMemoryRSVPStore()
    if registry is None:
        registry = GuestRegistry.from_guests(guests if guests is not None else [make_guest()])
    validator = TokenValidator(
        rate_limiter=rate_limiter or RateLimiter(max_attempts=3, window_seconds=900, lockout_seconds=1800),
        registry=registry,
        require_known_guest=require_known_guest,
        ip_blocklist=[],
        ip_allowlist=[],
    )
    return SubmissionPipeline(
        read_model=store,
        write_model=store,
        validator=validator,
        email_service=email_service or InMemoryEmailService(),
        local_store=local_store if local_store is not None else InMemoryLocalStore(),
        allow_updates=allow_updates,
        organizer_emails=organizer_emails if organizer_emails is not None else ["organizers@example.com"],
    )
