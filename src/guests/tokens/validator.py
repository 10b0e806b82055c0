import logging
import re

from src.config.settings import settings
from src.guests.dtos import TokenStatus, TokenValidationResult
from src.guests.registry import GuestRegistry
from src.guests.tokens.generator import is_valid_token_format
from src.guests.tokens.rate_limiter import RateLimiter
from src.rsvp.dtos import BackendUnavailableError

logger = logging.getLogger(__name__)

PUBLIC_TOKEN_MAX_LENGTH = 20
EPOCH_MILLIS_PATTERN = re.compile(r"\d{13}")

RATE_LIMITED_MESSAGE = "Too many attempts. Please try again later."
INVALID_FORMAT_MESSAGE = "Invalid token format"
UNKNOWN_GUEST_MESSAGE = "Invalid guest token"
IP_BLOCKED_MESSAGE = "Access denied from this location"
GUEST_LIST_UNAVAILABLE_MESSAGE = "The guest list is unavailable right now. Please try again later."


def sanitize_token(token: str | None) -> str:
    if not token or not isinstance(token, str):
        return ""
    return re.sub(r"[^a-z0-9\-]", "", token.lower()).strip()


def is_public_token(token: str, public_prefix: str | None = None) -> bool:
    """Public tokens stand in for anonymous RSVPs without a personal link."""
    public_prefix = public_prefix or settings.public_token_prefix
    return (
        len(token) > PUBLIC_TOKEN_MAX_LENGTH
        or EPOCH_MILLIS_PATTERN.search(token) is not None
        or token.startswith(public_prefix)
    )


class TokenValidator:
    def __init__(
        self,
        rate_limiter: RateLimiter,
        registry: GuestRegistry | None = None,
        require_known_guest: bool | None = None,
        ip_blocklist: list[str] | None = None,
        ip_allowlist: list[str] | None = None,
    ) -> None:
        self.rate_limiter = rate_limiter
        self.registry = registry
        self.require_known_guest = (
            settings.require_known_guest if require_known_guest is None else require_known_guest
        )
        self.ip_blocklist = set(settings.ip_blocklist if ip_blocklist is None else ip_blocklist)
        self.ip_allowlist = set(settings.ip_allowlist if ip_allowlist is None else ip_allowlist)

    def is_client_allowed(self, client_id: str) -> bool:
        if client_id in self.ip_blocklist:
            return False
        if self.ip_allowlist:
            return client_id in self.ip_allowlist
        return True

    async def validate(self, token: str, client_id: str | None = None) -> TokenValidationResult:
        if token and is_public_token(token):
            logger.info(f"Public token accepted without guest lookup: {token}")
            return TokenValidationResult(status=TokenStatus.VALID, is_public=True)

        sanitized = sanitize_token(token)
        if not sanitized:
            return TokenValidationResult(status=TokenStatus.INVALID, error=INVALID_FORMAT_MESSAGE)

        if client_id:
            limit = self.rate_limiter.check(client_id)
            if not limit.allowed:
                return TokenValidationResult(
                    status=TokenStatus.RATE_LIMITED,
                    error=RATE_LIMITED_MESSAGE,
                    retry_after=limit.retry_after,
                )
            if not self.is_client_allowed(client_id):
                return TokenValidationResult(
                    status=TokenStatus.IP_BLOCKED, error=IP_BLOCKED_MESSAGE
                )

        if not is_valid_token_format(sanitized):
            self._record_failure(client_id)
            return TokenValidationResult(status=TokenStatus.INVALID, error=INVALID_FORMAT_MESSAGE)

        guest = None
        if self.registry is not None:
            try:
                guest = await self.registry.get(sanitized)
            except BackendUnavailableError as e:
                logger.warning(f"Guest lookup unavailable for {sanitized}: {e}")
                if self.require_known_guest:
                    return TokenValidationResult(
                        status=TokenStatus.INVALID, error=GUEST_LIST_UNAVAILABLE_MESSAGE
                    )
            else:
                if guest is None and self.require_known_guest:
                    self._record_failure(client_id)
                    return TokenValidationResult(
                        status=TokenStatus.INVALID, error=UNKNOWN_GUEST_MESSAGE
                    )

        # only a registered guest clears earlier failures
        if guest is not None:
            if client_id:
                self.rate_limiter.reset(client_id)
            await self.registry.touch(guest.token)

        return TokenValidationResult(status=TokenStatus.VALID, guest=guest)

    def _record_failure(self, client_id: str | None) -> None:
        if client_id:
            status = self.rate_limiter.record_failure(client_id)
            if not status.allowed:
                logger.warning(f"Client {client_id} locked out after repeated invalid tokens")
