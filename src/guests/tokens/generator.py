"""Guest token generation.

Tokens look like ``firstname-lastname-x7k2m9qa``: readable enough to recognise
in a link, with a random suffix that makes them hard to guess.
"""

import logging
import random
import re
import secrets
import string
from collections import Counter
from collections.abc import Callable, Iterable

from src.config.settings import settings
from src.guests.dtos import TokenAuditReport, TokenGenerationError

logger = logging.getLogger(__name__)

TOKEN_ALPHABET = string.ascii_lowercase + string.digits
TOKEN_PATTERN = re.compile(r"^[a-z]+(-[a-z0-9]+)+$", re.IGNORECASE)
GENERATED_TOKEN_PATTERN = re.compile(r"^[a-z]+(-[a-z]+)?-[a-z0-9]{8}$")
FALLBACK_NAME_SEGMENT = "guest"

_SEQUENTIAL_PREFIXES = ("012", "123", "234", "345", "456", "567", "678", "789", "890", "abc", "bcd", "cde")

_system_random = secrets.SystemRandom()


def normalize_name_part(part: str | None) -> str:
    return re.sub(r"[^a-z]", "", (part or "").lower())


def random_suffix(length: int, rng: random.Random | None = None) -> str:
    rng = rng or _system_random
    return "".join(rng.choice(TOKEN_ALPHABET) for _ in range(length))


def generate_guest_token(
    first_name: str,
    last_name: str | None = None,
    rng: random.Random | None = None,
    suffix_length: int | None = None,
) -> str:
    """Build ``first-last-<suffix>``, or ``first-<suffix>`` without a last name."""
    suffix_length = suffix_length or settings.token_suffix_length
    segments = [normalize_name_part(first_name), normalize_name_part(last_name)]
    segments = [segment for segment in segments if segment] or [FALLBACK_NAME_SEGMENT]
    segments.append(random_suffix(suffix_length, rng))
    return "-".join(segments)


def generate_unique_token(
    first_name: str,
    last_name: str | None,
    is_taken: Callable[[str], bool],
    max_attempts: int | None = None,
    rng: random.Random | None = None,
) -> str:
    """Generate a token that ``is_taken`` rejects for none of the attempts.

    Raises:
        TokenGenerationError: every attempt collided with an issued token.
    """
    max_attempts = max_attempts or settings.token_max_attempts
    for attempt in range(1, max_attempts + 1):
        token = generate_guest_token(first_name, last_name, rng=rng)
        if not is_taken(token):
            return token
        logger.debug(f"Token collision for {first_name} {last_name} (attempt {attempt})")

    raise TokenGenerationError(first_name, last_name or "", max_attempts)


def is_valid_token_format(token: str) -> bool:
    return bool(TOKEN_PATTERN.match(token)) and len(token) >= 3


def is_weak_token(token: str) -> bool:
    """A generated token whose random part is predictable."""
    random_part = token.rsplit("-", 1)[-1]
    if len(random_part) < 2:
        return True
    if len(set(random_part)) == 1:
        return True
    return random_part.startswith(_SEQUENTIAL_PREFIXES)


def audit_tokens(tokens: Iterable[str]) -> TokenAuditReport:
    tokens = list(tokens)
    warnings: list[str] = []
    recommendations: list[str] = []

    duplicates = [token for token, count in Counter(tokens).items() if count > 1]
    if duplicates:
        warnings.append(f"Found {len(duplicates)} duplicate tokens")
        recommendations.append("Regenerate tokens to ensure uniqueness")

    invalid = [token for token in tokens if not GENERATED_TOKEN_PATTERN.match(token)]
    if invalid:
        warnings.append(f"{len(invalid)} tokens have invalid format")
        recommendations.append("Ensure all tokens follow the firstname-lastname-8chars format")

    weak = [token for token in tokens if is_weak_token(token)]
    if weak:
        warnings.append(f"{len(weak)} tokens may be weak (predictable patterns)")
        recommendations.append("Review and regenerate weak tokens for better security")

    return TokenAuditReport(warnings=warnings, recommendations=recommendations)
