from fastapi import APIRouter, Depends
from pydantic import BaseModel

from src.config.settings import settings
from src.dependencies import get_local_store
from src.rsvp.local_store import PENDING_KEY_PREFIX, LocalStore

router = APIRouter()


class HealthCheckResponse(BaseModel):
    status: str
    version: str = "0.1.0"
    rsvp_backend: str
    pending_submissions: int


@router.get("/", response_model=HealthCheckResponse)
async def health_check(
    local_store: LocalStore = Depends(get_local_store),
) -> HealthCheckResponse:
    """
    Health check endpoint to verify the API is running.
    Reports RSVPs still waiting in the local queue as ``pending_submissions``.
    """
    pending = await local_store.keys(PENDING_KEY_PREFIX)
    return HealthCheckResponse(
        status="healthy",
        rsvp_backend=settings.rsvp_backend,
        pending_submissions=len(pending),
    )
