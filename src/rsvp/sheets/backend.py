"""RSVP store backed by a Google Sheets spreadsheet.

One row per submission, columns A to N:

    timestamp | token | name | attending | meal | dietary | plus-one name |
    plus-one meal | plus-one dietary | email | whatsapp | email sent |
    whatsapp sent | submission id
"""

import asyncio
import logging
from dataclasses import replace
from datetime import datetime
from typing import Any, Protocol
from uuid import NAMESPACE_URL, UUID, uuid5

import httpx

from src.config.settings import settings
from src.rsvp.dtos import (
    BackendUnavailableError,
    RSVPAlreadySubmittedError,
    RSVPSubmissionDTO,
    SavedRSVPDTO,
)
from src.rsvp.repository.read_models import RSVPReadModel
from src.rsvp.repository.write_models import RSVPWriteModel

logger = logging.getLogger(__name__)

SHEETS_API_URL = "https://sheets.googleapis.com/v4/spreadsheets"

COLUMN_COUNT = 14
TOKEN_COLUMN = 1
EMAIL_SENT_COLUMN = "L"
YES = "YES"
NO = "NO"


class SheetsConfig(Protocol):
    google_sheets_spreadsheet_id: str
    google_sheets_api_key: str
    google_sheets_range: str
    google_sheets_retry_attempts: int
    google_sheets_retry_delay_seconds: float


def row_id(submission_id: str) -> UUID:
    """Stable id for a spreadsheet row, which has no primary key of its own."""
    return uuid5(NAMESPACE_URL, f"rsvp-submission:{submission_id}")


def _flag(value: bool) -> str:
    return YES if value else NO


def submission_to_row(submission: RSVPSubmissionDTO) -> list[str]:
    return [
        submission.submitted_at.isoformat(),
        submission.token,
        submission.guest_name,
        _flag(submission.is_attending),
        submission.meal_choice or "",
        submission.dietary_restrictions or "",
        submission.plus_one_name or "",
        submission.plus_one_meal_choice or "",
        submission.plus_one_dietary_restrictions or "",
        submission.email or "",
        submission.whatsapp_number or "",
        _flag(submission.email_confirmation_sent),
        _flag(submission.whatsapp_confirmation_sent),
        submission.submission_id,
    ]


def row_to_submission(row: list[str]) -> RSVPSubmissionDTO | None:
    """Parse a sheet row. Returns None for the header and blank rows."""
    row = list(row) + [""] * (COLUMN_COUNT - len(row))
    try:
        submitted_at = datetime.fromisoformat(row[0])
    except ValueError:
        return None
    if not row[TOKEN_COLUMN]:
        return None

    return RSVPSubmissionDTO(
        id=row_id(row[13]),
        submitted_at=submitted_at,
        token=row[1],
        guest_name=row[2],
        is_attending=row[3].upper() == YES,
        meal_choice=row[4] or None,
        dietary_restrictions=row[5] or None,
        plus_one_name=row[6] or None,
        plus_one_meal_choice=row[7] or None,
        plus_one_dietary_restrictions=row[8] or None,
        email=row[9] or None,
        whatsapp_number=row[10] or None,
        wants_email_confirmation=bool(row[9]),
        wants_whatsapp_confirmation=bool(row[10]),
        email_confirmation_sent=row[11].upper() == YES,
        whatsapp_confirmation_sent=row[12].upper() == YES,
        submission_id=row[13],
    )


class SheetsRSVPStore(RSVPReadModel, RSVPWriteModel):
    def __init__(
        self,
        http_client_class: type[httpx.AsyncClient] = httpx.AsyncClient,
        config: SheetsConfig = settings,
        sleep=asyncio.sleep,
    ) -> None:
        self._http_client_class = http_client_class
        self._config = config
        self._sleep = sleep

    @property
    def _sheet_name(self) -> str:
        return self._config.google_sheets_range.split("!")[0]

    def _values_url(self, cell_range: str) -> str:
        return f"{SHEETS_API_URL}/{self._config.google_sheets_spreadsheet_id}/values/{cell_range}"

    def _row_range(self, row_number: int, start: str = "A", end: str = "N") -> str:
        return f"{self._sheet_name}!{start}{row_number}:{end}{row_number}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> dict:
        params = {"key": self._config.google_sheets_api_key, **kwargs.pop("params", {})}
        attempts = max(1, self._config.google_sheets_retry_attempts)

        for attempt in range(1, attempts + 1):
            try:
                async with self._http_client_class() as client:
                    response = await client.request(method, url, params=params, **kwargs)
                    response.raise_for_status()
                    return response.json() or {}
            except httpx.HTTPStatusError as e:
                status_code = e.response.status_code
                if status_code < 500 and status_code != 429:
                    raise BackendUnavailableError(
                        f"Google Sheets rejected {method} request: HTTP {status_code}"
                    ) from e
                logger.warning(f"Google Sheets {method} attempt {attempt} failed: {e}")
            except httpx.HTTPError as e:
                logger.warning(f"Google Sheets {method} attempt {attempt} failed: {e}")

            if attempt < attempts:
                await self._sleep(self._config.google_sheets_retry_delay_seconds)

        raise BackendUnavailableError(f"Google Sheets unreachable after {attempts} attempts")

    async def _rows(self) -> list[list[str]]:
        data = await self._request("GET", self._values_url(self._config.google_sheets_range))
        return data.get("values", [])

    async def _find_row(self, token: str) -> tuple[int, RSVPSubmissionDTO] | None:
        for index, row in enumerate(await self._rows()):
            if len(row) > TOKEN_COLUMN and row[TOKEN_COLUMN] == token:
                submission = row_to_submission(row)
                if submission is not None:
                    return index + 1, submission
        return None

    async def get_by_token(self, token: str) -> RSVPSubmissionDTO | None:
        found = await self._find_row(token)
        return found[1] if found else None

    async def list_rsvps(self) -> list[RSVPSubmissionDTO]:
        submissions = [
            submission
            for submission in (row_to_submission(row) for row in await self._rows())
            if submission is not None
        ]
        return sorted(submissions, key=lambda s: s.submitted_at, reverse=True)

    async def save(self, submission: RSVPSubmissionDTO, allow_update: bool = False) -> SavedRSVPDTO:
        found = await self._find_row(submission.token)
        row = submission_to_row(submission)

        if found is None:
            await self._request(
                "POST",
                f"{self._values_url(self._config.google_sheets_range)}:append",
                params={"valueInputOption": "RAW", "insertDataOption": "INSERT_ROWS"},
                json={"values": [row]},
            )
            created = True
        else:
            if not allow_update:
                raise RSVPAlreadySubmittedError(submission.token)
            row_number, _ = found
            await self._request(
                "PUT",
                self._values_url(self._row_range(row_number)),
                params={"valueInputOption": "RAW"},
                json={"values": [row]},
            )
            created = False

        # the sheet has no special_requests column
        stored = replace(submission, id=row_id(submission.submission_id))
        return SavedRSVPDTO(submission=stored, created=created, linked_to_guest=False)

    async def delete_rsvp(self, rsvp_id: UUID) -> bool:
        for index, row in enumerate(await self._rows()):
            submission = row_to_submission(row)
            if submission is not None and submission.id == rsvp_id:
                await self._request(
                    "POST", f"{self._values_url(self._row_range(index + 1))}:clear"
                )
                return True
        return False

    async def mark_email_sent(self, token: str) -> None:
        found = await self._find_row(token)
        if found is None:
            return
        row_number, _ = found
        await self._request(
            "PUT",
            self._values_url(self._row_range(row_number, EMAIL_SENT_COLUMN, EMAIL_SENT_COLUMN)),
            params={"valueInputOption": "RAW"},
            json={"values": [[YES]]},
        )
