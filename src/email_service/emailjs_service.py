import logging
from typing import Protocol

import httpx

from src.config.settings import settings
from src.email_service.base import EmailServiceBase
from src.email_service.templates import template_params
from src.rsvp.dtos import RSVPSubmissionDTO

logger = logging.getLogger(__name__)

EMAILJS_SEND_URL = "https://api.emailjs.com/api/v1.0/email/send"


class EmailJSConfig(Protocol):
    emailjs_service_id: str
    emailjs_template_id: str
    emailjs_organizer_template_id: str
    emailjs_public_key: str
    emailjs_private_key: str


class EmailJSEmailService(EmailServiceBase):
    """Sends through EmailJS; the message bodies live in the EmailJS templates."""

    def __init__(
        self,
        config: EmailJSConfig = settings,
        http_client_class: type[httpx.AsyncClient] = httpx.AsyncClient,
    ):
        self._config = config
        self._http_client_class = http_client_class

    async def _send(self, template_id: str, params: dict[str, str]) -> None:
        payload = {
            "service_id": self._config.emailjs_service_id,
            "template_id": template_id,
            "user_id": self._config.emailjs_public_key,
            "template_params": params,
        }
        if self._config.emailjs_private_key:
            payload["accessToken"] = self._config.emailjs_private_key

        async with self._http_client_class() as client:
            response = await client.post(
                EMAILJS_SEND_URL,
                headers={"Content-Type": "application/json"},
                json=payload,
            )
            response.raise_for_status()

    async def send_confirmation(self, to_address: str, submission: RSVPSubmissionDTO) -> None:
        params = template_params(submission)
        params["to_email"] = to_address
        params["to_name"] = submission.guest_name
        await self._send(self._config.emailjs_template_id, params)
        logger.info(f"Confirmation email sent to {to_address} for token {submission.token}")

    async def send_organizer_notification(
        self,
        to_addresses: list[str],
        submission: RSVPSubmissionDTO,
        reason: str,
    ) -> None:
        template_id = self._config.emailjs_organizer_template_id or self._config.emailjs_template_id
        for to_address in to_addresses:
            params = template_params(submission, reason=reason)
            params["to_email"] = to_address
            params["to_name"] = "Organizer"
            await self._send(template_id, params)
        logger.info(f"Organizer notification sent for token {submission.token}")
