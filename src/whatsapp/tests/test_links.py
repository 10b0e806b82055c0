from urllib.parse import parse_qs, urlparse

import pytest

from src.rsvp.dtos import RSVPFormData
from src.rsvp.pipeline import build_submission
from src.whatsapp.links import (
    build_confirmation_message,
    build_invitation_message,
    build_whatsapp_link,
    normalize_phone_number,
    rsvp_link,
)


@pytest.mark.parametrize(
    "phone, expected",
    [
        ("072 123 4567", "+27721234567"),
        ("+44 (20) 7946-0958", "+442079460958"),
        ("721234567", "+27721234567"),
        ("", ""),
        (None, ""),
        ("n/a", ""),
    ],
)
def test_normalize_phone_number(phone, expected):
    assert normalize_phone_number(phone, country_code="27") == expected


def test_build_whatsapp_link_encodes_message():
    link = build_whatsapp_link("+27 72 123 4567", "Hi John! See you at 5 & bring snacks?")

    parsed = urlparse(link)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "https://wa.me/27721234567"
    assert parse_qs(parsed.query)["text"] == ["Hi John! See you at 5 & bring snacks?"]


def test_rsvp_link():
    assert rsvp_link("john-doe-ab12cd34", "https://wedding.example.com/") == (
        "https://wedding.example.com/guest/john-doe-ab12cd34"
    )


def test_invitation_message_contains_link():
    message = build_invitation_message("John", "https://wedding.example.com/guest/x")

    assert message.startswith("Hi John!")
    assert "https://wedding.example.com/guest/x" in message


def test_confirmation_message():
    attending = build_submission(
        "john-doe-ab12cd34",
        RSVPFormData(
            is_attending=True,
            guest_name="John Doe",
            meal_choice="beef",
            plus_one_name="Mary",
            plus_one_meal_choice="fish",
        ),
    )
    declining = build_submission(
        "john-doe-ab12cd34", RSVPFormData(is_attending=False, guest_name="John Doe")
    )

    message = build_confirmation_message(attending)
    assert "Meal: beef" in message
    assert "Plus one: Mary (fish)" in message
    assert "you can't make it" in build_confirmation_message(declining)
