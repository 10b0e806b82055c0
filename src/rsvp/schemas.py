from datetime import datetime
from uuid import UUID

from fastapi import HTTPException
from pydantic import BaseModel, ConfigDict

from src.guests.dtos import GuestDTO
from src.rsvp.dtos import EmailStatus, ErrorCode, PersistOutcome, RSVPFormData
from src.rsvp.form import FormState

ERROR_STATUS_CODES = {
    ErrorCode.MISSING_REQUIRED_FIELD: 422,
    ErrorCode.INVALID_TOKEN: 403,
    ErrorCode.RATE_LIMITED: 429,
    ErrorCode.DUPLICATE_SUBMISSION: 409,
    ErrorCode.BACKEND_UNAVAILABLE: 503,
    ErrorCode.UNKNOWN_ERROR: 500,
}


def error_response(
    code: ErrorCode,
    message: str,
    field_errors: dict[str, str] | None = None,
    retry_after: float | None = None,
) -> HTTPException:
    headers = None
    if retry_after is not None:
        headers = {"Retry-After": str(max(1, int(retry_after + 0.999)))}
    return HTTPException(
        status_code=ERROR_STATUS_CODES[code],
        detail={"code": code.value, "message": message, "field_errors": field_errors or {}},
        headers=headers,
    )


class GuestSummaryResponse(BaseModel):
    first_name: str
    last_name: str
    full_name: str
    plus_one_eligible: bool
    plus_one_name: str | None = None
    invitation_group: str

    @classmethod
    def from_guest(cls, guest: GuestDTO) -> "GuestSummaryResponse":
        return cls(
            first_name=guest.first_name,
            last_name=guest.last_name,
            full_name=guest.full_name,
            plus_one_eligible=guest.plus_one_eligible,
            plus_one_name=guest.plus_one_name,
            invitation_group=guest.invitation_group,
        )


class RSVPFormResponse(BaseModel):
    token: str
    state: FormState
    is_public: bool
    has_existing_submission: bool
    is_locked: bool
    can_submit: bool
    progress: int
    form: RSVPFormData
    realtime_errors: dict[str, str]
    guest: GuestSummaryResponse | None = None


class RSVPResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID | None = None
    token: str
    guest_name: str
    is_attending: bool
    email: str | None = None
    whatsapp_number: str | None = None
    meal_choice: str | None = None
    dietary_restrictions: str | None = None
    plus_one_name: str | None = None
    plus_one_meal_choice: str | None = None
    plus_one_dietary_restrictions: str | None = None
    wants_email_confirmation: bool
    wants_whatsapp_confirmation: bool
    special_requests: str | None = None
    email_confirmation_sent: bool
    whatsapp_confirmation_sent: bool
    submission_id: str
    submitted_at: datetime


class SubmitRSVPResponse(BaseModel):
    message: str
    outcome: PersistOutcome
    email_status: EmailStatus
    email_error: str | None = None
    whatsapp_link: str | None = None
    rsvp: RSVPResponse
