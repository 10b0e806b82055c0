from src.config.settings import settings
from src.email_service.base import EmailServiceBase
from src.email_service.emailjs_service import EmailJSEmailService
from src.email_service.smtp_service import SMTPEmailService
from src.email_service.templates import EmailTemplates


def get_email_service() -> EmailServiceBase:
    if settings.emailjs_service_id and settings.emailjs_public_key:
        return EmailJSEmailService(config=settings)
    return SMTPEmailService()


__all__ = [
    "EmailServiceBase",
    "EmailTemplates",
    "get_email_service",
]
