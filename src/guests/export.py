"""Guest list import and export for token generation."""

import csv
import io
import pprint
import random
from collections.abc import Iterable
from uuid import uuid4

from src.guests.dtos import GuestDTO, NewGuestDTO, TokenGenerationError
from src.guests.tokens.generator import generate_unique_token
from src.whatsapp.links import build_invitation_message, build_whatsapp_link, rsvp_link

EXPORT_HEADERS = [
    "ID",
    "First Name",
    "Last Name",
    "Email",
    "Phone",
    "Token",
    "Personal URL",
    "WhatsApp Link",
    "Plus One Eligible",
    "Plus One Name",
    "Plus One Email",
    "Invitation Group",
    "Dietary Restrictions",
    "Special Notes",
]

TRUE_VALUES = {"1", "true", "yes", "y"}


def _optional(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


def read_guest_csv(content: str) -> list[NewGuestDTO]:
    """
    Parse a guest list with a header row.

    Expected columns: first_name, last_name, email, phone, plus_one_eligible,
    plus_one_name, plus_one_email, invitation_group, dietary_restrictions
    (separated by ``;``) and special_notes. Only first_name is required.
    """
    guests = []
    for row in csv.DictReader(io.StringIO(content)):
        first_name = (row.get("first_name") or "").strip()
        if not first_name:
            continue
        dietary = [item.strip() for item in (row.get("dietary_restrictions") or "").split(";")]
        guests.append(
            NewGuestDTO(
                first_name=first_name,
                last_name=(row.get("last_name") or "").strip(),
                email=_optional(row.get("email")),
                phone=_optional(row.get("phone")),
                plus_one_eligible=(row.get("plus_one_eligible") or "").strip().lower() in TRUE_VALUES,
                plus_one_name=_optional(row.get("plus_one_name")),
                plus_one_email=_optional(row.get("plus_one_email")),
                invitation_group=_optional(row.get("invitation_group")) or "other",
                dietary_restrictions=[item for item in dietary if item],
                special_notes=_optional(row.get("special_notes")),
            )
        )
    return guests


def issue_tokens(
    guests: Iterable[NewGuestDTO],
    taken: set[str] | None = None,
    rng: random.Random | None = None,
) -> tuple[list[GuestDTO], list[TokenGenerationError]]:
    """Give every guest a token unique among ``taken`` and each other."""
    taken = set(taken or ())
    issued: list[GuestDTO] = []
    failures: list[TokenGenerationError] = []

    for guest in guests:
        try:
            token = generate_unique_token(
                guest.first_name, guest.last_name, is_taken=taken.__contains__, rng=rng
            )
        except TokenGenerationError as e:
            failures.append(e)
            continue
        taken.add(token)
        issued.append(
            GuestDTO(
                id=uuid4(),
                first_name=guest.first_name,
                last_name=guest.last_name,
                token=token,
                email=guest.email,
                phone=guest.phone,
                plus_one_eligible=guest.plus_one_eligible,
                plus_one_name=guest.plus_one_name,
                plus_one_email=guest.plus_one_email,
                invitation_group=guest.invitation_group,
                dietary_restrictions=list(guest.dietary_restrictions),
                special_notes=guest.special_notes,
            )
        )
    return issued, failures


def guests_to_csv(guests: Iterable[GuestDTO], base_url: str | None = None) -> str:
    output = io.StringIO()
    writer = csv.writer(output, quoting=csv.QUOTE_ALL)
    writer.writerow(EXPORT_HEADERS)
    for guest in guests:
        link = rsvp_link(guest.token, base_url)
        whatsapp = ""
        if guest.phone:
            whatsapp = build_whatsapp_link(guest.phone, build_invitation_message(guest.first_name, link))
        writer.writerow(
            [
                str(guest.id),
                guest.first_name,
                guest.last_name,
                guest.email or "",
                guest.phone or "",
                guest.token,
                link,
                whatsapp,
                "Yes" if guest.plus_one_eligible else "No",
                guest.plus_one_name or "",
                guest.plus_one_email or "",
                guest.invitation_group,
                "; ".join(guest.dietary_restrictions),
                guest.special_notes or "",
            ]
        )
    return output.getvalue()


def tokens_from_export(content: str) -> list[str]:
    return [row["Token"] for row in csv.DictReader(io.StringIO(content)) if row.get("Token")]


def render_seed_module(guests: Iterable[GuestDTO]) -> str:
    """Python source for a static guest list usable with ``GuestRegistry.from_guests``."""
    records = [
        {
            "id": str(guest.id),
            "first_name": guest.first_name,
            "last_name": guest.last_name,
            "token": guest.token,
            "email": guest.email,
            "phone": guest.phone,
            "plus_one_eligible": guest.plus_one_eligible,
            "plus_one_name": guest.plus_one_name,
            "plus_one_email": guest.plus_one_email,
            "invitation_group": guest.invitation_group,
            "dietary_restrictions": list(guest.dietary_restrictions),
            "special_notes": guest.special_notes,
        }
        for guest in guests
    ]
    return (
        '"""Generated guest list. Regenerate with `python cli.py generate-tokens`."""\n\n'
        "from uuid import UUID\n\n"
        "from src.guests.dtos import GuestDTO\n\n"
        f"GUEST_RECORDS = {pprint.pformat(records, indent=4, sort_dicts=False)}\n\n"
        "GUESTS = [\n"
        "    GuestDTO(**{**record, \"id\": UUID(record[\"id\"])}) for record in GUEST_RECORDS\n"
        "]\n"
    )
