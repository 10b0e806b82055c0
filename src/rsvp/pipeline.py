"""Submission pipeline: validate, persist, notify, snapshot.

Persistence is the only step that decides success. Confirmation emails and the
local snapshot are best-effort and never undo a stored RSVP. When the backend
cannot be reached the submission is queued locally and ``sync_pending`` replays
it later.
"""

import asyncio
import logging
import secrets
import string
from collections.abc import Callable
from datetime import UTC, datetime

from src.config.settings import settings
from src.email_service.base import EmailServiceBase
from src.guests.dtos import TokenStatus
from src.guests.tokens.validator import TokenValidator, sanitize_token
from src.rsvp.dtos import (
    BackendUnavailableError,
    EmailStatus,
    ErrorCode,
    PersistOutcome,
    RSVPAlreadySubmittedError,
    RSVPFormData,
    RSVPSubmissionDTO,
    RSVPSubmissionError,
    SubmissionResultDTO,
    SyncReportDTO,
)
from src.rsvp.local_store import (
    PENDING_KEY_PREFIX,
    LocalStore,
    failed_key,
    form_key,
    pending_key,
)
from src.rsvp.repository.read_models import RSVPReadModel
from src.rsvp.repository.write_models import RSVPWriteModel
from src.rsvp.validation import validate_for_submission
from src.whatsapp.links import build_confirmation_message, build_whatsapp_link, normalize_phone_number

logger = logging.getLogger(__name__)

SUBMISSION_ID_ALPHABET = string.ascii_lowercase + string.digits
NO_GUEST_EMAIL_REASON = "The guest asked for a confirmation but has no email address on file."


def utc_now() -> datetime:
    return datetime.now(UTC)


def generate_submission_id(token: str, now: datetime | None = None) -> str:
    """``<token[:8]>-<epoch ms>-<random>``"""
    epoch_ms = int((now or utc_now()).timestamp() * 1000)
    suffix = "".join(secrets.choice(SUBMISSION_ID_ALPHABET) for _ in range(9))
    return f"{token[:8]}-{epoch_ms}-{suffix}"


def _clean(value: str) -> str | None:
    value = value.strip()
    return value or None


def build_submission(
    token: str,
    form: RSVPFormData,
    submitted_at: datetime | None = None,
    submission_id: str | None = None,
) -> RSVPSubmissionDTO:
    """
    Canonical record for a form.

    Meal, dietary and plus-one details are only kept for attending guests, and
    the plus-one meal and dietary details only when a plus-one is named.
    """
    submitted_at = submitted_at or utc_now()
    attending = bool(form.is_attending)
    plus_one_name = _clean(form.plus_one_name) if attending else None

    return RSVPSubmissionDTO(
        token=token,
        guest_name=form.guest_name.strip(),
        is_attending=attending,
        submission_id=submission_id or generate_submission_id(token, submitted_at),
        submitted_at=submitted_at,
        email=_clean(form.email),
        whatsapp_number=normalize_phone_number(form.whatsapp_number) or None,
        meal_choice=_clean(form.meal_choice) if attending else None,
        dietary_restrictions=_clean(form.dietary_restrictions) if attending else None,
        plus_one_name=plus_one_name,
        plus_one_meal_choice=_clean(form.plus_one_meal_choice) if plus_one_name else None,
        plus_one_dietary_restrictions=(
            _clean(form.plus_one_dietary_restrictions) if plus_one_name else None
        ),
        wants_email_confirmation=form.wants_email_confirmation,
        wants_whatsapp_confirmation=form.wants_whatsapp_confirmation,
        special_requests=_clean(form.special_requests),
    )


class SubmissionPipeline:
    def __init__(
        self,
        read_model: RSVPReadModel,
        write_model: RSVPWriteModel,
        validator: TokenValidator,
        email_service: EmailServiceBase,
        local_store: LocalStore,
        allow_updates: bool | None = None,
        organizer_emails: list[str] | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.read_model = read_model
        self.write_model = write_model
        self.validator = validator
        self.email_service = email_service
        self.local_store = local_store
        self.allow_updates = settings.allow_rsvp_updates if allow_updates is None else allow_updates
        self.organizer_emails = (
            settings.get_organizer_emails() if organizer_emails is None else organizer_emails
        )
        self._clock = clock

    async def find_submission(self, token: str) -> RSVPSubmissionDTO | None:
        """Stored submission for a token, including one still queued locally."""
        try:
            submission = await self.read_model.get_by_token(token)
            if submission is not None:
                return submission
        except BackendUnavailableError as e:
            logger.warning(f"Backend unavailable while looking up RSVP for {token}: {e}")

        pending = await self.local_store.get(pending_key(token))
        if pending is None:
            return None
        try:
            return RSVPSubmissionDTO.from_json_dict(pending)
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Unreadable queued RSVP for {token}: {e}")
            return None

    async def _check_token(self, token: str, client_id: str | None) -> str:
        result = await self.validator.validate(token, client_id)
        if result.status == TokenStatus.RATE_LIMITED:
            raise RSVPSubmissionError(
                ErrorCode.RATE_LIMITED, result.error, retry_after=result.retry_after
            )
        if not result.is_valid:
            raise RSVPSubmissionError(ErrorCode.INVALID_TOKEN, result.error or "Invalid token")
        return token if result.is_public else sanitize_token(token)

    async def submit(
        self, token: str, form: RSVPFormData, client_id: str | None = None
    ) -> SubmissionResultDTO:
        field_errors = validate_for_submission(form)
        if field_errors:
            message = next(iter(field_errors.values()))
            raise RSVPSubmissionError(ErrorCode.MISSING_REQUIRED_FIELD, message, field_errors)

        token = await self._check_token(token, client_id)

        if not self.allow_updates and await self.local_store.get(pending_key(token)) is not None:
            raise RSVPSubmissionError(
                ErrorCode.DUPLICATE_SUBMISSION, "An RSVP for this invitation is already pending"
            )

        submission = build_submission(token, form, submitted_at=self._clock())
        outcome, submission = await self._persist(submission)
        if outcome == PersistOutcome.FAILED:
            return SubmissionResultDTO(
                outcome=outcome,
                submission=submission,
                error_code=ErrorCode.BACKEND_UNAVAILABLE,
            )

        email_status, email_error = EmailStatus.NOT_REQUESTED, None
        if submission.wants_email_confirmation:
            email_status, email_error = await self._send_confirmation(submission)
            if email_status == EmailStatus.SENT_TO_GUEST:
                submission = submission.with_email_sent()
                if outcome == PersistOutcome.PERSISTED_REMOTELY:
                    await self._mark_email_sent(submission.token)
                else:
                    await self._requeue(submission)

        whatsapp_link = None
        if submission.wants_whatsapp_confirmation and submission.whatsapp_number:
            whatsapp_link = build_whatsapp_link(
                submission.whatsapp_number, build_confirmation_message(submission)
            )

        await self._snapshot(submission, form)

        logger.info(
            f"RSVP {submission.submission_id} for {submission.token}: "
            f"outcome={outcome.value} email={email_status.value}"
        )
        return SubmissionResultDTO(
            outcome=outcome,
            submission=submission,
            email_status=email_status,
            email_error=email_error,
            whatsapp_link=whatsapp_link,
        )

    async def _persist(
        self, submission: RSVPSubmissionDTO
    ) -> tuple[PersistOutcome, RSVPSubmissionDTO]:
        """Outcome plus the record as stored, which carries the backend id."""
        try:
            saved = await self.write_model.save(submission, allow_update=self.allow_updates)
        except RSVPAlreadySubmittedError as e:
            raise RSVPSubmissionError(ErrorCode.DUPLICATE_SUBMISSION, str(e)) from e
        except BackendUnavailableError as e:
            logger.warning(f"Backend unavailable, queueing RSVP for {submission.token}: {e}")
        else:
            if not saved.linked_to_guest:
                logger.info(f"RSVP for {submission.token} stored without a guest record")
            return PersistOutcome.PERSISTED_REMOTELY, saved.submission

        try:
            await self.local_store.set(pending_key(submission.token), submission.to_json_dict())
        except Exception as e:
            logger.error(f"Failed to queue RSVP for {submission.token} locally: {e}")
            return PersistOutcome.FAILED, submission
        return PersistOutcome.PERSISTED_LOCALLY_ONLY, submission

    async def _send_confirmation(
        self, submission: RSVPSubmissionDTO
    ) -> tuple[EmailStatus, str | None]:
        try:
            if submission.email:
                await self.email_service.send_confirmation(submission.email, submission)
                return EmailStatus.SENT_TO_GUEST, None

            if not self.organizer_emails:
                logger.warning(
                    f"No email for {submission.token} and no organizers configured, "
                    "skipping confirmation"
                )
                return EmailStatus.SKIPPED, None

            await self.email_service.send_organizer_notification(
                self.organizer_emails, submission, NO_GUEST_EMAIL_REASON
            )
            return EmailStatus.SENT_TO_ORGANIZERS, None
        except Exception as e:
            logger.error(f"Failed to send confirmation for {submission.token}: {e}")
            return EmailStatus.FAILED, str(e)

    async def _mark_email_sent(self, token: str) -> None:
        try:
            await self.write_model.mark_email_sent(token)
        except Exception as e:
            logger.warning(f"Failed to mark confirmation email as sent for {token}: {e}")

    async def _requeue(self, submission: RSVPSubmissionDTO) -> None:
        try:
            await self.local_store.set(pending_key(submission.token), submission.to_json_dict())
        except Exception as e:
            logger.warning(f"Failed to update queued RSVP for {submission.token}: {e}")

    async def _snapshot(self, submission: RSVPSubmissionDTO, form: RSVPFormData) -> None:
        try:
            await self.local_store.set(
                form_key(submission.token),
                {
                    "form": form.model_dump(),
                    "submitted": True,
                    "submission_id": submission.submission_id,
                    "saved_at": submission.submitted_at.isoformat(),
                },
            )
        except Exception as e:
            logger.warning(f"Failed to snapshot RSVP form for {submission.token}: {e}")

    async def sync_pending(self) -> SyncReportDTO:
        """
        Replay locally queued submissions. Stops at the first backend failure.

        Entries that cannot be read back are moved under ``rsvp_failed_`` so the
        rest of the queue still drains.
        """
        keys = await self.local_store.keys(PENDING_KEY_PREFIX)
        synced = discarded = failed = 0

        for index, key in enumerate(keys):
            data = await self.local_store.get(key)
            if data is None:
                continue
            try:
                submission = RSVPSubmissionDTO.from_json_dict(data)
            except (KeyError, TypeError, ValueError) as e:
                logger.error(f"Unreadable queued RSVP {key}, setting it aside: {e}")
                await self.local_store.set(failed_key(key.removeprefix(PENDING_KEY_PREFIX)), data)
                await self.local_store.delete(key)
                failed += 1
                continue
            try:
                await self.write_model.save(submission, allow_update=self.allow_updates)
            except RSVPAlreadySubmittedError:
                logger.warning(
                    f"Discarding queued RSVP {submission.submission_id}, "
                    f"token {submission.token} already has a submission"
                )
                discarded += 1
            except BackendUnavailableError as e:
                remaining = len(keys) - index
                logger.warning(f"Backend still unavailable, {remaining} RSVPs pending: {e}")
                return SyncReportDTO(
                    synced=synced, discarded=discarded, remaining=remaining, failed=failed
                )
            else:
                synced += 1
            await self.local_store.delete(key)

        if synced or discarded or failed:
            logger.info(f"Synced {synced} queued RSVPs, discarded {discarded}, set aside {failed}")
        return SyncReportDTO(synced=synced, discarded=discarded, remaining=0, failed=failed)


async def run_pending_sync(pipeline: SubmissionPipeline, interval_seconds: float) -> None:
    """Background task replaying the local queue every ``interval_seconds``."""
    while True:
        await asyncio.sleep(interval_seconds)
        try:
            await pipeline.sync_pending()
        except Exception as e:
            logger.error(f"Pending RSVP sync failed: {e}")
