import csv
import io
import random

from src.guests.dtos import NewGuestDTO
from src.guests.export import (
    EXPORT_HEADERS,
    guests_to_csv,
    issue_tokens,
    read_guest_csv,
    render_seed_module,
    tokens_from_export,
)

GUEST_CSV = """first_name,last_name,email,phone,plus_one_eligible,plus_one_name,plus_one_email,invitation_group,dietary_restrictions,special_notes
John,Doe,john@example.com,072 123 4567,yes,Mary Doe,,family,vegetarian; no nuts,
Cher,,,,no,,,,,Table near the band
,Nobody,,,,,,,,
"""


def test_read_guest_csv():
    guests = read_guest_csv(GUEST_CSV)

    assert len(guests) == 2
    john, cher = guests
    assert john.first_name == "John"
    assert john.email == "john@example.com"
    assert john.plus_one_eligible is True
    assert john.plus_one_name == "Mary Doe"
    assert john.plus_one_email is None
    assert john.dietary_restrictions == ["vegetarian", "no nuts"]
    assert cher.last_name == ""
    assert cher.invitation_group == "other"
    assert cher.special_notes == "Table near the band"


def test_issue_tokens_avoids_taken_tokens():
    guests = [NewGuestDTO(first_name="John", last_name="Doe")] * 3

    issued, failures = issue_tokens(guests, taken={"john-doe-taken123"}, rng=random.Random(5))

    tokens = [guest.token for guest in issued]
    assert failures == []
    assert len(set(tokens)) == 3
    assert all(token.startswith("john-doe-") for token in tokens)


def test_guests_to_csv_includes_links():
    issued, _ = issue_tokens(read_guest_csv(GUEST_CSV), rng=random.Random(1))

    content = guests_to_csv(issued, base_url="https://wedding.example.com/")

    rows = list(csv.DictReader(io.StringIO(content)))
    assert list(rows[0].keys()) == EXPORT_HEADERS
    john, cher = rows
    assert john["Personal URL"] == f"https://wedding.example.com/guest/{john['Token']}"
    assert john["WhatsApp Link"].startswith("https://wa.me/27721234567?text=")
    assert john["Plus One Eligible"] == "Yes"
    assert john["Dietary Restrictions"] == "vegetarian; no nuts"
    assert cher["WhatsApp Link"] == ""
    assert tokens_from_export(content) == [guest.token for guest in issued]


def test_render_seed_module_is_loadable():
    issued, _ = issue_tokens(read_guest_csv(GUEST_CSV), rng=random.Random(1))

    namespace: dict = {}
    exec(render_seed_module(issued), namespace)

    assert [guest.token for guest in namespace["GUESTS"]] == [guest.token for guest in issued]
    assert namespace["GUESTS"][0].dietary_restrictions == ["vegetarian", "no nuts"]
