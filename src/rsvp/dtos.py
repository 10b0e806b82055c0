from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import TYPE_CHECKING, Any
from uuid import UUID

from pydantic import BaseModel

if TYPE_CHECKING:
    from src.rsvp.repository.orm_models import RSVP


class ErrorCode(str, Enum):
    MISSING_REQUIRED_FIELD = "MISSING_REQUIRED_FIELD"
    INVALID_TOKEN = "INVALID_TOKEN"
    RATE_LIMITED = "RATE_LIMITED"
    BACKEND_UNAVAILABLE = "BACKEND_UNAVAILABLE"
    DUPLICATE_SUBMISSION = "DUPLICATE_SUBMISSION"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class RSVPSubmissionError(Exception):
    """Raised when a submission is rejected before anything is persisted."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        field_errors: dict[str, str] | None = None,
        retry_after: float | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.field_errors = field_errors or {}
        self.retry_after = retry_after
        super().__init__(message)


class BackendUnavailableError(Exception):
    """Raised by read/write models when the RSVP store cannot be reached."""


class RSVPAlreadySubmittedError(Exception):
    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"An RSVP has already been submitted for token '{token}'")


class FormLockedError(Exception):
    """Raised when editing a form whose RSVP was already submitted."""

    def __init__(self, token: str) -> None:
        self.token = token
        super().__init__(f"RSVP for token '{token}' has already been submitted")


class PersistOutcome(str, Enum):
    PERSISTED_REMOTELY = "persisted_remotely"
    PERSISTED_LOCALLY_ONLY = "persisted_locally_only"
    FAILED = "failed"


class EmailStatus(str, Enum):
    NOT_REQUESTED = "not_requested"
    SENT_TO_GUEST = "sent_to_guest"
    SENT_TO_ORGANIZERS = "sent_to_organizers"
    SKIPPED = "skipped"
    FAILED = "failed"


class RSVPFormData(BaseModel):
    """Editable RSVP fields; also the request body of a submission."""

    is_attending: bool | None = None
    guest_name: str = ""
    email: str = ""
    whatsapp_number: str = ""
    meal_choice: str = ""
    dietary_restrictions: str = ""
    plus_one_name: str = ""
    plus_one_meal_choice: str = ""
    plus_one_dietary_restrictions: str = ""
    wants_email_confirmation: bool = True
    wants_whatsapp_confirmation: bool = False
    special_requests: str = ""


FORM_FIELDS = tuple(RSVPFormData.model_fields)


@dataclass(frozen=True)
class RSVPSubmissionDTO:
    """Canonical RSVP record; conditional fields are None rather than empty."""

    token: str
    guest_name: str
    is_attending: bool
    submission_id: str
    submitted_at: datetime
    email: str | None = None
    whatsapp_number: str | None = None
    meal_choice: str | None = None
    dietary_restrictions: str | None = None
    plus_one_name: str | None = None
    plus_one_meal_choice: str | None = None
    plus_one_dietary_restrictions: str | None = None
    wants_email_confirmation: bool = False
    wants_whatsapp_confirmation: bool = False
    special_requests: str | None = None
    email_confirmation_sent: bool = False
    whatsapp_confirmation_sent: bool = False
    id: UUID | None = None

    @classmethod
    def from_rsvp(cls, rsvp: "RSVP") -> "RSVPSubmissionDTO":
        """Create RSVPSubmissionDTO from RSVP ORM model."""
        return cls(
            id=rsvp.uuid,
            token=rsvp.guest_token,
            guest_name=rsvp.guest_name,
            is_attending=rsvp.attending,
            submission_id=rsvp.submission_id,
            submitted_at=rsvp.submitted_at,
            email=rsvp.email_address,
            whatsapp_number=rsvp.whatsapp_number,
            meal_choice=rsvp.meal_choice,
            dietary_restrictions=rsvp.dietary_restrictions,
            plus_one_name=rsvp.plus_one_name,
            plus_one_meal_choice=rsvp.plus_one_meal_choice,
            plus_one_dietary_restrictions=rsvp.plus_one_dietary_restrictions,
            wants_email_confirmation=rsvp.wants_email_confirmation,
            wants_whatsapp_confirmation=rsvp.wants_whatsapp_confirmation,
            special_requests=rsvp.special_requests,
            email_confirmation_sent=rsvp.email_confirmation_sent,
            whatsapp_confirmation_sent=rsvp.whatsapp_confirmation_sent,
        )

    def to_form_data(self) -> RSVPFormData:
        return RSVPFormData(
            is_attending=self.is_attending,
            guest_name=self.guest_name,
            email=self.email or "",
            whatsapp_number=self.whatsapp_number or "",
            meal_choice=self.meal_choice or "",
            dietary_restrictions=self.dietary_restrictions or "",
            plus_one_name=self.plus_one_name or "",
            plus_one_meal_choice=self.plus_one_meal_choice or "",
            plus_one_dietary_restrictions=self.plus_one_dietary_restrictions or "",
            wants_email_confirmation=self.wants_email_confirmation,
            wants_whatsapp_confirmation=self.wants_whatsapp_confirmation,
            special_requests=self.special_requests or "",
        )

    def to_json_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["submitted_at"] = self.submitted_at.isoformat()
        data["id"] = str(self.id) if self.id else None
        return data

    @classmethod
    def from_json_dict(cls, data: dict[str, Any]) -> "RSVPSubmissionDTO":
        data = dict(data)
        data["submitted_at"] = datetime.fromisoformat(data["submitted_at"])
        data["id"] = UUID(data["id"]) if data.get("id") else None
        return cls(**data)

    def with_email_sent(self) -> "RSVPSubmissionDTO":
        return replace(self, email_confirmation_sent=True)


@dataclass(frozen=True)
class SavedRSVPDTO:
    submission: RSVPSubmissionDTO
    created: bool
    linked_to_guest: bool


@dataclass(frozen=True)
class SubmissionResultDTO:
    outcome: PersistOutcome
    submission: RSVPSubmissionDTO
    email_status: EmailStatus = EmailStatus.NOT_REQUESTED
    email_error: str | None = None
    whatsapp_link: str | None = None
    error_code: ErrorCode | None = None

    @property
    def is_success(self) -> bool:
        return self.outcome != PersistOutcome.FAILED

    @property
    def message(self) -> str:
        if self.outcome == PersistOutcome.FAILED:
            return "We couldn't save your RSVP. Please try again in a moment."
        if self.outcome == PersistOutcome.PERSISTED_LOCALLY_ONLY:
            return "Your RSVP was received and will be saved as soon as our service is reachable."
        if self.email_status == EmailStatus.FAILED:
            return "RSVP saved, but the confirmation email could not be sent."
        if self.submission.is_attending:
            return "Thank you for confirming your attendance!"
        return "We're sorry you can't make it. Your response has been recorded."


@dataclass(frozen=True)
class RSVPStatisticsDTO:
    total_submissions: int
    attending_guests: int
    not_attending_guests: int
    guests_with_plus_one: int
    email_confirmations_sent: int
    meal_choice_breakdown: dict[str, int] = field(default_factory=dict)
    submissions_by_date: dict[str, int] = field(default_factory=dict)


@dataclass(frozen=True)
class SyncReportDTO:
    synced: int
    discarded: int
    remaining: int
    failed: int = 0
