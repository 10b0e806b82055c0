from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from src.dependencies import get_guest_registry
from src.guests.registry import GuestRegistry
from src.guests.tokens.validator import sanitize_token
from src.guests.urls import GET_GUEST_INFO_URL
from src.rsvp.dtos import BackendUnavailableError

router = APIRouter()


class GuestInfoResponse(BaseModel):
    """Response for guest info - token removed as it's in the URL."""

    first_name: str
    last_name: str
    full_name: str
    plus_one_eligible: bool
    plus_one_name: str | None = None
    invitation_group: str
    dietary_restrictions: list[str]
    has_used_token: bool
    last_accessed: datetime | None = None


@router.get(GET_GUEST_INFO_URL, response_model=GuestInfoResponse)
async def get_guest_info(
    token: str,
    registry: GuestRegistry = Depends(get_guest_registry),
) -> GuestInfoResponse:
    """
    Get guest details by token.
    Used to show plus-one options before the RSVP form is filled in.
    """
    try:
        guest = await registry.get(sanitize_token(token))
    except BackendUnavailableError:
        raise HTTPException(status_code=503, detail="Guest list is temporarily unavailable")

    if not guest:
        raise HTTPException(status_code=404, detail="Invalid or expired RSVP link")

    return GuestInfoResponse(
        first_name=guest.first_name,
        last_name=guest.last_name,
        full_name=guest.full_name,
        plus_one_eligible=guest.plus_one_eligible,
        plus_one_name=guest.plus_one_name,
        invitation_group=guest.invitation_group,
        dietary_restrictions=list(guest.dietary_restrictions),
        has_used_token=guest.has_used_token,
        last_accessed=guest.last_accessed,
    )
