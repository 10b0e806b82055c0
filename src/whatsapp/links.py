"""WhatsApp click-to-chat links. Messages are only ever prepared, never sent."""

import re
from urllib.parse import quote

from src.config.settings import settings
from src.rsvp.dtos import RSVPSubmissionDTO

WHATSAPP_URL = "https://wa.me"


def normalize_phone_number(phone_number: str | None, country_code: str | None = None) -> str:
    """``072 123 4567`` -> ``+27721234567``; empty input stays empty."""
    if not phone_number:
        return ""
    country_code = country_code or settings.whatsapp_country_code

    cleaned = re.sub(r"[^\d+]", "", phone_number)
    if not cleaned:
        return ""
    if cleaned.startswith("0"):
        cleaned = f"+{country_code}{cleaned[1:]}"
    if not cleaned.startswith("+"):
        cleaned = f"+{country_code}{cleaned}"
    return cleaned


def build_whatsapp_link(phone_number: str, message: str) -> str:
    digits = re.sub(r"\D", "", normalize_phone_number(phone_number))
    return f"{WHATSAPP_URL}/{digits}?text={quote(message, safe='')}"


def rsvp_link(token: str, base_url: str | None = None) -> str:
    base_url = (base_url or settings.frontend_url).rstrip("/")
    return f"{base_url}/guest/{token}"


def build_invitation_message(guest_name: str, link: str) -> str:
    return (
        f"Hi {guest_name}! 💕\n\n"
        f"{settings.couple_names} are getting married!\n\n"
        f"You're invited to celebrate with us on {settings.wedding_date} "
        f"at {settings.wedding_venue}.\n\n"
        f"Please RSVP and choose your meal using this personalized link:\n{link}\n\n"
        "We can't wait to celebrate with you! 🥂✨"
    )


def build_confirmation_message(submission: RSVPSubmissionDTO) -> str:
    lines = [f"Hi {submission.guest_name}, thank you for your RSVP!"]
    if submission.is_attending:
        lines.append("We're so happy you'll be joining us! 🎉")
        if submission.meal_choice:
            lines.append(f"Meal: {submission.meal_choice}")
        if submission.plus_one_name:
            plus_one = submission.plus_one_name
            if submission.plus_one_meal_choice:
                plus_one = f"{plus_one} ({submission.plus_one_meal_choice})"
            lines.append(f"Plus one: {plus_one}")
    else:
        lines.append("We're sorry you can't make it, you'll be missed.")
    lines.append(f"With love, {settings.couple_names}")
    return "\n".join(lines)
