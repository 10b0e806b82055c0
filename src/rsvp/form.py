"""Lifecycle of one in-progress RSVP.

    IDLE -> LOADING_EXISTING -> PREFILLED | EMPTY -> EDITING
         -> VALIDATING -> SUBMITTING -> SUCCESS | ERROR

ERROR goes back to EDITING on the next edit. Edits are saved to the local store
as a draft once no further edit arrived for ``autosave_delay`` seconds.
"""

import asyncio
import logging
from enum import Enum
from typing import Any

from src.config.settings import settings
from src.guests.dtos import GuestDTO, TokenStatus
from src.guests.registry import display_name_from_token
from src.guests.tokens.validator import sanitize_token
from src.rsvp.dtos import (
    FORM_FIELDS,
    EmailStatus,
    ErrorCode,
    FormLockedError,
    PersistOutcome,
    RSVPFormData,
    RSVPSubmissionDTO,
    RSVPSubmissionError,
    SubmissionResultDTO,
)
from src.rsvp.local_store import form_key
from src.rsvp.pipeline import SubmissionPipeline, utc_now
from src.rsvp.validation import can_submit, form_progress, validate_for_submission, validate_realtime

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MESSAGE = "Something went wrong while submitting your RSVP. Please try again."


class FormState(str, Enum):
    IDLE = "idle"
    LOADING_EXISTING = "loading_existing"
    PREFILLED = "prefilled"
    EMPTY = "empty"
    EDITING = "editing"
    VALIDATING = "validating"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    ERROR = "error"


# errors keyed differently from the field they belong to
FIELD_ERROR_KEYS = {"is_attending": "attendance"}


class RSVPForm:
    def __init__(
        self,
        pipeline: SubmissionPipeline,
        autosave_delay: float | None = None,
    ) -> None:
        self.pipeline = pipeline
        self.autosave_delay = (
            settings.draft_autosave_delay_seconds if autosave_delay is None else autosave_delay
        )
        self.state = FormState.IDLE
        self.token: str | None = None
        self.guest: GuestDTO | None = None
        self.is_public = False
        self.data = RSVPFormData()
        self.errors: dict[str, str] = {}
        self.error_code: ErrorCode | None = None
        self.retry_after: float | None = None
        self.existing_submission: RSVPSubmissionDTO | None = None
        self.result: SubmissionResultDTO | None = None
        self._autosave_handle: asyncio.TimerHandle | None = None
        self._autosave_task: asyncio.Task | None = None

    @property
    def has_existing_submission(self) -> bool:
        return self.existing_submission is not None

    @property
    def is_locked(self) -> bool:
        return self.has_existing_submission and not self.pipeline.allow_updates

    @property
    def realtime_errors(self) -> dict[str, str]:
        return validate_realtime(self.data)

    @property
    def can_submit(self) -> bool:
        return not self.is_locked and can_submit(self.data)

    @property
    def progress(self) -> int:
        return form_progress(self.data)

    @property
    def email_status(self) -> EmailStatus | None:
        return self.result.email_status if self.result else None

    async def load(self, token: str, client_id: str | None = None) -> FormState:
        self._cancel_autosave()
        self.state = FormState.LOADING_EXISTING
        self.errors = {}
        self.error_code = None
        self.retry_after = None
        self.existing_submission = None
        self.result = None

        validation = await self.pipeline.validator.validate(token, client_id)
        if not validation.is_valid:
            self.error_code = (
                ErrorCode.RATE_LIMITED
                if validation.status == TokenStatus.RATE_LIMITED
                else ErrorCode.INVALID_TOKEN
            )
            self.errors = {"token": validation.error or "Invalid token"}
            self.retry_after = validation.retry_after
            self.state = FormState.ERROR
            return self.state

        self.is_public = validation.is_public
        self.token = token if validation.is_public else sanitize_token(token)
        self.guest = validation.guest

        existing = await self.pipeline.find_submission(self.token)
        if existing is not None:
            self.existing_submission = existing
            self.data = existing.to_form_data()
            self.state = FormState.PREFILLED
            return self.state

        data = RSVPFormData()
        draft = await self._load_draft()
        if draft is not None:
            data = draft

        if self.guest is not None:
            data.guest_name = self.guest.full_name
            if not data.email and self.guest.email:
                data.email = self.guest.email
        elif not data.guest_name and not self.is_public:
            data.guest_name = display_name_from_token(self.token) or ""

        self.data = data
        has_prefill = draft is not None or bool(data.guest_name)
        self.state = FormState.PREFILLED if has_prefill else FormState.EMPTY
        return self.state

    async def _load_draft(self) -> RSVPFormData | None:
        try:
            stored = await self.pipeline.local_store.get(form_key(self.token))
        except Exception as e:
            logger.warning(f"Failed to read RSVP draft for {self.token}: {e}")
            return None
        if not stored or stored.get("submitted"):
            return None
        return RSVPFormData.model_validate(stored.get("form", {}))

    def update_field(self, name: str, value: Any) -> None:
        if name not in FORM_FIELDS:
            raise ValueError(f"Unknown form field: {name}")
        if self.is_locked:
            raise FormLockedError(self.token)

        self.data = RSVPFormData.model_validate({**self.data.model_dump(), name: value})
        self.errors.pop(FIELD_ERROR_KEYS.get(name, name), None)
        self.errors.pop("general", None)
        self.error_code = None
        self.state = FormState.EDITING
        self._schedule_autosave()

    def _schedule_autosave(self) -> None:
        if self.token is None:
            return
        self._cancel_autosave()
        loop = asyncio.get_running_loop()
        self._autosave_handle = loop.call_later(self.autosave_delay, self._start_autosave)

    def _start_autosave(self) -> None:
        self._autosave_handle = None
        self._autosave_task = asyncio.ensure_future(self._save_draft())

    def _cancel_autosave(self) -> None:
        if self._autosave_handle is not None:
            self._autosave_handle.cancel()
            self._autosave_handle = None

    @property
    def has_pending_autosave(self) -> bool:
        return self._autosave_handle is not None

    async def _save_draft(self) -> None:
        if self.token is None:
            return
        try:
            await self.pipeline.local_store.set(
                form_key(self.token),
                {
                    "form": self.data.model_dump(),
                    "submitted": False,
                    "saved_at": utc_now().isoformat(),
                },
            )
        except Exception as e:
            logger.warning(f"Failed to auto-save RSVP draft for {self.token}: {e}")

    async def _settle_autosave(self) -> None:
        self._cancel_autosave()
        if self._autosave_task is not None and not self._autosave_task.done():
            await self._autosave_task
        self._autosave_task = None

    async def flush_draft(self) -> None:
        """Save the draft now instead of waiting for the debounce."""
        await self._settle_autosave()
        await self._save_draft()

    async def submit(self, client_id: str | None = None) -> SubmissionResultDTO | None:
        if self.token is None:
            raise RuntimeError("Form has not been loaded")
        if self.is_locked:
            raise FormLockedError(self.token)

        self.state = FormState.VALIDATING
        errors = validate_for_submission(self.data)
        if errors:
            self.errors = errors
            self.error_code = ErrorCode.MISSING_REQUIRED_FIELD
            self.state = FormState.ERROR
            return None

        self.state = FormState.SUBMITTING
        await self._settle_autosave()
        try:
            result = await self.pipeline.submit(self.token, self.data, client_id)
        except RSVPSubmissionError as e:
            self.errors = e.field_errors or {"general": e.message}
            self.error_code = e.code
            self.state = FormState.ERROR
            return None
        except Exception:
            logger.exception(f"Unexpected error submitting RSVP for {self.token}")
            self.errors = {"general": UNKNOWN_ERROR_MESSAGE}
            self.error_code = ErrorCode.UNKNOWN_ERROR
            self.state = FormState.ERROR
            return None

        self.result = result
        if result.outcome == PersistOutcome.FAILED:
            self.errors = {"general": result.message}
            self.error_code = result.error_code
            self.state = FormState.ERROR
            return result

        self.existing_submission = result.submission
        self.errors = {}
        self.error_code = None
        self.state = FormState.SUCCESS
        return result

    async def reset(self) -> None:
        """Back to a blank form. Safe to call repeatedly."""
        await self._settle_autosave()
        self.data = RSVPFormData()
        self.errors = {}
        self.error_code = None
        self.existing_submission = None
        self.result = None
        if self.token is None:
            self.state = FormState.IDLE
            return
        self.state = FormState.EMPTY
        try:
            await self.pipeline.local_store.delete(form_key(self.token))
        except Exception as e:
            logger.warning(f"Failed to remove stored RSVP draft for {self.token}: {e}")
