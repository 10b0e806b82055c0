"""Organizer endpoints, guarded by the shared admin password header."""

import logging
import secrets
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Response
from pydantic import BaseModel

from src.admin.urls import (
    ADMIN_GUESTS_URL,
    ADMIN_RSVP_URL,
    ADMIN_RSVPS_URL,
    ADMIN_STATISTICS_URL,
    ADMIN_SYNC_PENDING_URL,
)
from src.config.settings import settings
from src.dependencies import (
    get_guest_registry,
    get_rsvp_read_model,
    get_rsvp_write_model,
    get_submission_pipeline,
)
from src.guests.registry import GuestRegistry
from src.rsvp.dtos import BackendUnavailableError
from src.rsvp.pipeline import SubmissionPipeline
from src.rsvp.repository.read_models import RSVPReadModel
from src.rsvp.repository.write_models import RSVPWriteModel
from src.rsvp.schemas import RSVPResponse
from src.whatsapp.links import build_invitation_message, build_whatsapp_link, rsvp_link

logger = logging.getLogger(__name__)


async def verify_admin_password(x_admin_password: str = Header(default="")) -> None:
    if not x_admin_password or not secrets.compare_digest(
        x_admin_password.encode(), settings.admin_password.encode()
    ):
        raise HTTPException(status_code=401, detail="Invalid admin password")


router = APIRouter(dependencies=[Depends(verify_admin_password)])


class RSVPStatisticsResponse(BaseModel):
    total_submissions: int
    attending_guests: int
    not_attending_guests: int
    guests_with_plus_one: int
    email_confirmations_sent: int
    meal_choice_breakdown: dict[str, int]
    submissions_by_date: dict[str, int]


class GuestStatisticsResponse(BaseModel):
    total_guests: int
    plus_one_eligible: int
    named_plus_ones: int
    tokens_used: int
    by_invitation_group: dict[str, int]


class StatisticsResponse(BaseModel):
    rsvps: RSVPStatisticsResponse
    guests: GuestStatisticsResponse
    response_rate: float


class AdminGuestResponse(BaseModel):
    token: str
    full_name: str
    phone: str | None = None
    invitation_group: str
    plus_one_eligible: bool
    has_used_token: bool
    rsvp_link: str
    whatsapp_link: str | None = None


class SyncReportResponse(BaseModel):
    synced: int
    discarded: int
    remaining: int
    failed: int


@router.get(ADMIN_RSVPS_URL, response_model=list[RSVPResponse])
async def list_rsvps(
    read_model: RSVPReadModel = Depends(get_rsvp_read_model),
) -> list[RSVPResponse]:
    try:
        submissions = await read_model.list_rsvps()
    except BackendUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return [RSVPResponse.model_validate(submission) for submission in submissions]


@router.get(ADMIN_STATISTICS_URL, response_model=StatisticsResponse)
async def get_statistics(
    read_model: RSVPReadModel = Depends(get_rsvp_read_model),
    registry: GuestRegistry = Depends(get_guest_registry),
) -> StatisticsResponse:
    try:
        rsvp_stats = await read_model.statistics()
        guest_stats = await registry.statistics()
    except BackendUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))

    response_rate = 0.0
    if guest_stats.total_guests:
        response_rate = round(rsvp_stats.total_submissions / guest_stats.total_guests * 100, 1)

    return StatisticsResponse(
        rsvps=RSVPStatisticsResponse.model_validate(rsvp_stats, from_attributes=True),
        guests=GuestStatisticsResponse.model_validate(guest_stats, from_attributes=True),
        response_rate=response_rate,
    )


@router.get(ADMIN_GUESTS_URL, response_model=list[AdminGuestResponse])
async def list_guests(
    registry: GuestRegistry = Depends(get_guest_registry),
) -> list[AdminGuestResponse]:
    try:
        registered = await registry.all()
    except BackendUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))

    guests = []
    for guest in registered:
        link = rsvp_link(guest.token)
        whatsapp = None
        if guest.phone:
            whatsapp = build_whatsapp_link(guest.phone, build_invitation_message(guest.first_name, link))
        guests.append(
            AdminGuestResponse(
                token=guest.token,
                full_name=guest.full_name,
                phone=guest.phone,
                invitation_group=guest.invitation_group,
                plus_one_eligible=guest.plus_one_eligible,
                has_used_token=guest.has_used_token,
                rsvp_link=link,
                whatsapp_link=whatsapp,
            )
        )
    return guests


@router.delete(ADMIN_RSVP_URL, status_code=204)
async def delete_rsvp(
    rsvp_id: UUID,
    write_model: RSVPWriteModel = Depends(get_rsvp_write_model),
) -> Response:
    try:
        deleted = await write_model.delete_rsvp(rsvp_id)
    except BackendUnavailableError as e:
        raise HTTPException(status_code=503, detail=str(e))
    if not deleted:
        raise HTTPException(status_code=404, detail="RSVP not found")
    logger.info(f"Deleted RSVP {rsvp_id}")
    return Response(status_code=204)


@router.post(ADMIN_SYNC_PENDING_URL, response_model=SyncReportResponse)
async def sync_pending(
    pipeline: SubmissionPipeline = Depends(get_submission_pipeline),
) -> SyncReportResponse:
    report = await pipeline.sync_pending()
    return SyncReportResponse(
        synced=report.synced,
        discarded=report.discarded,
        remaining=report.remaining,
        failed=report.failed,
    )
