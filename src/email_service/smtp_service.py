import asyncio
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from src.config.settings import settings
from src.email_service.base import EmailServiceBase
from src.email_service.templates import EmailTemplates, template_params
from src.rsvp.dtos import RSVPSubmissionDTO


class SMTPEmailService(EmailServiceBase):
    def __init__(self):
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_user
        self.password = settings.smtp_password
        self.from_address = settings.emails_from

    def _create_message(
        self,
        to_addresses: list[str],
        subject: str,
        html_body: str,
        text_body: str,
    ) -> MIMEMultipart:
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = ", ".join(to_addresses)

        part1 = MIMEText(text_body, "plain")
        part2 = MIMEText(html_body, "html")
        msg.attach(part1)
        msg.attach(part2)

        return msg

    def _send(self, msg: MIMEMultipart) -> None:
        if self.username and self.password:
            with smtplib.SMTP(self.host, self.port) as server:
                server.starttls()
                server.login(self.username, self.password)
                server.send_message(msg)
        else:
            with smtplib.SMTP(self.host, self.port) as server:
                server.send_message(msg)

    async def _render_and_send(
        self, to_addresses: list[str], templates: tuple[str, str, str], params: dict[str, str]
    ) -> None:
        subject, html_template, text_template = templates
        msg = self._create_message(
            to_addresses=to_addresses,
            subject=subject.format(**params),
            html_body=html_template.format(**params),
            text_body=text_template.format(**params),
        )
        # smtplib blocks
        await asyncio.to_thread(self._send, msg)

    async def send_confirmation(self, to_address: str, submission: RSVPSubmissionDTO) -> None:
        await self._render_and_send(
            [to_address],
            EmailTemplates.get_confirmation_templates(),
            template_params(submission),
        )

    async def send_organizer_notification(
        self,
        to_addresses: list[str],
        submission: RSVPSubmissionDTO,
        reason: str,
    ) -> None:
        await self._render_and_send(
            to_addresses,
            EmailTemplates.get_organizer_templates(),
            template_params(submission, reason=reason),
        )
