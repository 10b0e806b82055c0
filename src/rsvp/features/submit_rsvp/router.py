import logging

from fastapi import APIRouter, Depends, Request

from src.dependencies import client_id_from_request, get_submission_pipeline
from src.rsvp.dtos import ErrorCode, PersistOutcome, RSVPFormData, RSVPSubmissionError
from src.rsvp.pipeline import SubmissionPipeline
from src.rsvp.schemas import RSVPResponse, SubmitRSVPResponse, error_response
from src.rsvp.urls import RSVP_URL

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(RSVP_URL, response_model=SubmitRSVPResponse)
async def submit_rsvp(
    token: str,
    rsvp_data: RSVPFormData,
    request: Request,
    pipeline: SubmissionPipeline = Depends(get_submission_pipeline),
) -> SubmitRSVPResponse:
    """
    Submit an RSVP for the guest identified by the token.

    A response that could only be queued locally still succeeds; the body says
    so through ``outcome``. Confirmation email failures never fail the request.
    """
    try:
        result = await pipeline.submit(token, rsvp_data, client_id=client_id_from_request(request))
    except RSVPSubmissionError as e:
        logger.info(f"RSVP rejected for token {token}: {e.code.value}")
        raise error_response(e.code, e.message, e.field_errors, e.retry_after)

    if result.outcome == PersistOutcome.FAILED:
        raise error_response(result.error_code or ErrorCode.BACKEND_UNAVAILABLE, result.message)

    return SubmitRSVPResponse(
        message=result.message,
        outcome=result.outcome,
        email_status=result.email_status,
        email_error=result.email_error,
        whatsapp_link=result.whatsapp_link,
        rsvp=RSVPResponse.model_validate(result.submission),
    )
