from fastapi import APIRouter, Depends, HTTPException, Request

from src.dependencies import client_id_from_request, get_submission_pipeline
from src.rsvp.dtos import FormLockedError, RSVPFormData
from src.rsvp.form import FormState, RSVPForm
from src.rsvp.pipeline import SubmissionPipeline
from src.rsvp.schemas import GuestSummaryResponse, RSVPFormResponse, error_response
from src.rsvp.urls import RSVP_DRAFT_URL, RSVP_URL

router = APIRouter()


def form_response(form: RSVPForm) -> RSVPFormResponse:
    return RSVPFormResponse(
        token=form.token,
        state=form.state,
        is_public=form.is_public,
        has_existing_submission=form.has_existing_submission,
        is_locked=form.is_locked,
        can_submit=form.can_submit,
        progress=form.progress,
        form=form.data,
        realtime_errors=form.realtime_errors,
        guest=GuestSummaryResponse.from_guest(form.guest) if form.guest else None,
    )


async def load_form(token: str, request: Request, pipeline: SubmissionPipeline) -> RSVPForm:
    form = RSVPForm(pipeline)
    await form.load(token, client_id=client_id_from_request(request))
    if form.state == FormState.ERROR:
        raise error_response(form.error_code, form.errors["token"], retry_after=form.retry_after)
    return form


@router.get(RSVP_URL, response_model=RSVPFormResponse)
async def get_rsvp(
    token: str,
    request: Request,
    pipeline: SubmissionPipeline = Depends(get_submission_pipeline),
) -> RSVPFormResponse:
    """
    Load the RSVP form for a personal link.

    Returns the stored submission when the guest already responded, otherwise
    a form prefilled from the guest list and any saved draft.
    """
    form = await load_form(token, request, pipeline)
    return form_response(form)


@router.put(RSVP_DRAFT_URL, response_model=RSVPFormResponse)
async def save_rsvp_draft(
    token: str,
    draft: RSVPFormData,
    request: Request,
    pipeline: SubmissionPipeline = Depends(get_submission_pipeline),
) -> RSVPFormResponse:
    """Store the fields sent so far as a draft; only fields present in the body change."""
    form = await load_form(token, request, pipeline)
    try:
        for name, value in draft.model_dump(exclude_unset=True).items():
            form.update_field(name, value)
    except FormLockedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    await form.flush_draft()
    return form_response(form)
