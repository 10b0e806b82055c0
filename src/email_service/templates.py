from dataclasses import dataclass

from src.config.settings import settings
from src.rsvp.dtos import RSVPSubmissionDTO

NOT_PROVIDED = "None"


def template_params(submission: RSVPSubmissionDTO, reason: str = "") -> dict[str, str]:
    """Flat string variables shared by every template and the EmailJS payload."""
    if submission.plus_one_name:
        plus_one = submission.plus_one_name
        if submission.plus_one_meal_choice:
            plus_one = f"{plus_one} ({submission.plus_one_meal_choice})"
    else:
        plus_one = NOT_PROVIDED

    return {
        "guest_name": submission.guest_name,
        "attending": "Yes, I'll be there!" if submission.is_attending else "Sorry, can't make it",
        "meal_choice": submission.meal_choice or NOT_PROVIDED,
        "dietary": submission.dietary_restrictions or NOT_PROVIDED,
        "plus_one": plus_one,
        "plus_one_dietary": submission.plus_one_dietary_restrictions or NOT_PROVIDED,
        "special_requests": submission.special_requests or NOT_PROVIDED,
        "guest_email": submission.email or "No email on file",
        "guest_whatsapp": submission.whatsapp_number or NOT_PROVIDED,
        "token": submission.token,
        "submission_id": submission.submission_id,
        "submitted_at": submission.submitted_at.strftime("%Y-%m-%d %H:%M"),
        "reason": reason,
        "couple_names": settings.couple_names,
    }


@dataclass
class EmailTemplates:
    CONFIRMATION_SUBJECT = "Thank you for your RSVP!"
    CONFIRMATION_HTML = """
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
    </head>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
        <div style="text-align: center; margin-bottom: 30px;">
            <h1 style="color: #d4a373;">Thank You!</h1>
        </div>

        <p>Dear {guest_name},</p>

        <p>Thank you for responding to our wedding invitation!</p>

        <div style="background-color: #fefae0; padding: 20px; border-radius: 8px; margin: 20px 0;">
            <h2 style="color: #bc6c25; margin-top: 0;">Your Response</h2>
            <p><strong>Attending:</strong> {attending}</p>
            <p><strong>Meal:</strong> {meal_choice}</p>
            <p><strong>Dietary Requirements:</strong> {dietary}</p>
            <p><strong>Plus One:</strong> {plus_one}</p>
            <p><strong>Special Requests:</strong> {special_requests}</p>
        </div>

        <p>If anything changes, just reply to this email.</p>

        <p>With love,<br>{couple_names}</p>
    </body>
    </html>
    """

    CONFIRMATION_TEXT = """
    Dear {guest_name},

    Thank you for responding to our wedding invitation!

    Your Response:
    - Attending: {attending}
    - Meal: {meal_choice}
    - Dietary Requirements: {dietary}
    - Plus One: {plus_one}
    - Special Requests: {special_requests}

    If anything changes, just reply to this email.

    With love,
    {couple_names}
    """

    ORGANIZER_SUBJECT = "New RSVP from {guest_name}"
    ORGANIZER_HTML = """
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
    </head>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
        <h2 style="color: #bc6c25;">New RSVP received</h2>
        <p style="color: #9c6644;">{reason}</p>

        <div style="background-color: #fefae0; padding: 20px; border-radius: 8px; margin: 20px 0;">
            <p><strong>Guest:</strong> {guest_name}</p>
            <p><strong>Attending:</strong> {attending}</p>
            <p><strong>Meal:</strong> {meal_choice}</p>
            <p><strong>Dietary Requirements:</strong> {dietary}</p>
            <p><strong>Plus One:</strong> {plus_one}</p>
            <p><strong>Special Requests:</strong> {special_requests}</p>
            <p><strong>Email:</strong> {guest_email}</p>
            <p><strong>WhatsApp:</strong> {guest_whatsapp}</p>
        </div>

        <p style="font-size: 12px; color: #888;">Token {token} - submission {submission_id} at {submitted_at}</p>
    </body>
    </html>
    """

    ORGANIZER_TEXT = """
    New RSVP received
    {reason}

    - Guest: {guest_name}
    - Attending: {attending}
    - Meal: {meal_choice}
    - Dietary Requirements: {dietary}
    - Plus One: {plus_one}
    - Special Requests: {special_requests}
    - Email: {guest_email}
    - WhatsApp: {guest_whatsapp}

    Token {token} - submission {submission_id} at {submitted_at}
    """

    @classmethod
    def get_confirmation_templates(cls) -> tuple[str, str, str]:
        return cls.CONFIRMATION_SUBJECT, cls.CONFIRMATION_HTML, cls.CONFIRMATION_TEXT

    @classmethod
    def get_organizer_templates(cls) -> tuple[str, str, str]:
        return cls.ORGANIZER_SUBJECT, cls.ORGANIZER_HTML, cls.ORGANIZER_TEXT
