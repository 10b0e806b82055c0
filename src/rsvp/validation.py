"""Form validation in two tiers.

``validate_realtime`` drives inline feedback while the guest types and never
asks for the attending-only fields, so the submit button stays reachable while
a meal is still being chosen. ``validate_for_submission`` is the hard gate.
"""

import re

from src.rsvp.dtos import RSVPFormData

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
EMAIL_MAX_LENGTH = 254
NAME_MIN_LENGTH = 2
NAME_MAX_LENGTH = 100

PROGRESS_STEP = 20


def is_valid_email(email: str) -> bool:
    return bool(EMAIL_PATTERN.match(email)) and len(email) <= EMAIL_MAX_LENGTH


def validate_realtime(data: RSVPFormData) -> dict[str, str]:
    errors: dict[str, str] = {}

    if data.is_attending is None:
        errors["attendance"] = "Please select whether you will be attending"

    name = data.guest_name.strip()
    if not name:
        errors["guest_name"] = "Guest name is required"
    elif len(name) < NAME_MIN_LENGTH:
        errors["guest_name"] = "Guest name must be at least 2 characters"
    elif len(name) > NAME_MAX_LENGTH:
        errors["guest_name"] = "Guest name is too long"

    # optional, but must be well formed when given
    email = data.email.strip()
    if email and not is_valid_email(email):
        errors["email"] = "Please enter a valid email address"

    return errors


def validate_for_submission(data: RSVPFormData) -> dict[str, str]:
    errors = validate_realtime(data)

    if data.is_attending:
        if not data.meal_choice.strip():
            errors["meal_choice"] = "Meal selection is required for attending guests"
        if data.plus_one_name.strip() and not data.plus_one_meal_choice.strip():
            errors["plus_one_meal_choice"] = "Plus-one meal selection is required"

    return errors


def can_submit(data: RSVPFormData) -> bool:
    return data.is_attending is not None and data.guest_name.strip() != ""


def form_progress(data: RSVPFormData) -> int:
    """Share of meaningfully filled fields, in steps of 20."""
    checks = [
        data.is_attending is not None,
        data.guest_name.strip() != "",
        not data.wants_email_confirmation or data.email.strip() != "",
        not data.is_attending or data.meal_choice.strip() != "",
        not data.is_attending
        or not data.plus_one_name.strip()
        or data.plus_one_meal_choice.strip() != "",
    ]
    return sum(checks) * PROGRESS_STEP
