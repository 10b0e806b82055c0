from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from src.guests.repository.orm_models import Guest


class GuestAlreadyExistsError(Exception):
    """Raised when a guest with the same token is already registered."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"A guest with token '{token}' already exists")


class TokenGenerationError(Exception):
    """Raised when no unique token could be generated within the retry bound."""

    def __init__(self, first_name: str, last_name: str, attempts: int) -> None:
        self.first_name = first_name
        self.last_name = last_name
        self.attempts = attempts
        full_name = f"{first_name} {last_name}".strip()
        super().__init__(
            f"Failed to generate unique token for {full_name} after {attempts} attempts"
        )


class TokenStatus(str, Enum):
    VALID = "valid"
    INVALID = "invalid"
    RATE_LIMITED = "rate_limited"
    IP_BLOCKED = "ip_blocked"


@dataclass(frozen=True)
class GuestDTO:
    """DTO for an invited guest."""

    id: UUID
    first_name: str
    last_name: str
    token: str
    email: str | None = None
    phone: str | None = None
    has_used_token: bool = False
    plus_one_eligible: bool = False
    plus_one_name: str | None = None
    plus_one_email: str | None = None
    invitation_group: str = "other"
    dietary_restrictions: list[str] = field(default_factory=list)
    special_notes: str | None = None
    created_at: datetime | None = None
    last_accessed: datetime | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_guest(cls, guest: "Guest") -> "GuestDTO":
        """Create GuestDTO from Guest ORM model."""
        return cls(
            id=guest.uuid,
            first_name=guest.first_name,
            last_name=guest.last_name,
            token=guest.token,
            email=guest.email,
            phone=guest.phone,
            has_used_token=guest.has_used_token,
            plus_one_eligible=guest.plus_one_eligible,
            plus_one_name=guest.plus_one_name,
            plus_one_email=guest.plus_one_email,
            invitation_group=guest.invitation_group,
            dietary_restrictions=list(guest.dietary_restrictions or []),
            special_notes=guest.special_notes,
            created_at=guest.created_at,
            last_accessed=guest.last_accessed,
        )


@dataclass(frozen=True)
class NewGuestDTO:
    """Guest list entry before a token has been issued."""

    first_name: str
    last_name: str = ""
    email: str | None = None
    phone: str | None = None
    plus_one_eligible: bool = False
    plus_one_name: str | None = None
    plus_one_email: str | None = None
    invitation_group: str = "other"
    dietary_restrictions: list[str] = field(default_factory=list)
    special_notes: str | None = None


@dataclass(frozen=True)
class GuestStatisticsDTO:
    total_guests: int
    plus_one_eligible: int
    named_plus_ones: int
    tokens_used: int
    by_invitation_group: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class TokenValidationResult:
    """Outcome of a token check.

    ``guest`` is only set for registered guests; public tokens validate with
    ``is_public`` and no guest.
    """

    status: TokenStatus
    guest: GuestDTO | None = None
    is_public: bool = False
    error: str | None = None
    retry_after: float | None = None

    @property
    def is_valid(self) -> bool:
        return self.status == TokenStatus.VALID


@dataclass(frozen=True)
class TokenAuditReport:
    warnings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.warnings
