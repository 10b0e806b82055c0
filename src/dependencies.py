"""Process-wide components shared by the routers.

Each provider is a FastAPI dependency, so tests swap any of them through
``app.dependency_overrides``.
"""

from functools import lru_cache

from fastapi import Request

from src.config.settings import settings
from src.email_service import EmailServiceBase, get_email_service
from src.guests.registry import GuestRegistry
from src.guests.repository.read_models import SqlGuestReadModel
from src.guests.repository.write_models import SqlGuestWriteModel
from src.guests.tokens.rate_limiter import RateLimiter
from src.guests.tokens.validator import TokenValidator
from src.rsvp.local_store import FileLocalStore, LocalStore
from src.rsvp.pipeline import SubmissionPipeline
from src.rsvp.repository.read_models import RSVPReadModel, SqlRSVPReadModel
from src.rsvp.repository.write_models import RSVPWriteModel, SqlRSVPWriteModel
from src.rsvp.sheets.backend import SheetsRSVPStore

SHEETS_BACKEND = "sheets"


def client_id_from_request(request: Request) -> str | None:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else None


@lru_cache
def get_rate_limiter() -> RateLimiter:
    return RateLimiter()


@lru_cache
def get_guest_registry() -> GuestRegistry:
    return GuestRegistry(read_model=SqlGuestReadModel(), write_model=SqlGuestWriteModel())


@lru_cache
def get_token_validator() -> TokenValidator:
    return TokenValidator(rate_limiter=get_rate_limiter(), registry=get_guest_registry())


@lru_cache
def _sheets_store() -> SheetsRSVPStore:
    return SheetsRSVPStore()


def get_rsvp_read_model() -> RSVPReadModel:
    """Dependency to get RSVP read model instance."""
    if settings.rsvp_backend == SHEETS_BACKEND:
        return _sheets_store()
    return SqlRSVPReadModel()


def get_rsvp_write_model() -> RSVPWriteModel:
    """Dependency to get RSVP write model instance."""
    if settings.rsvp_backend == SHEETS_BACKEND:
        return _sheets_store()
    return SqlRSVPWriteModel()


@lru_cache
def get_local_store() -> LocalStore:
    return FileLocalStore()


def get_email() -> EmailServiceBase:
    return get_email_service()


@lru_cache
def get_submission_pipeline() -> SubmissionPipeline:
    return SubmissionPipeline(
        read_model=get_rsvp_read_model(),
        write_model=get_rsvp_write_model(),
        validator=get_token_validator(),
        email_service=get_email(),
        local_store=get_local_store(),
    )
