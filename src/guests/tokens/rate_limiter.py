"""Per-client failed attempt tracking.

State lives in process memory only. One ``RateLimiter`` is constructed per
process and injected wherever attempts are counted, so tests build their own.
"""

import time
from collections.abc import Callable
from dataclasses import dataclass

from src.config.settings import settings


@dataclass
class AttemptRecord:
    attempts: int
    last_attempt: float
    locked_until: float | None = None


@dataclass(frozen=True)
class RateLimitStatus:
    allowed: bool
    attempts_left: int
    retry_after: float | None = None


class RateLimiter:
    def __init__(
        self,
        max_attempts: int | None = None,
        window_seconds: float | None = None,
        lockout_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.max_attempts = max_attempts or settings.rate_limit_max_attempts
        self.window_seconds = window_seconds or settings.rate_limit_window_seconds
        self.lockout_seconds = lockout_seconds or settings.rate_limit_lockout_seconds
        self._clock = clock
        self._records: dict[str, AttemptRecord] = {}

    def check(self, key: str) -> RateLimitStatus:
        now = self._clock()
        record = self._records.get(key)
        if record is None:
            return RateLimitStatus(allowed=True, attempts_left=self.max_attempts)

        if record.locked_until is not None:
            if now < record.locked_until:
                return RateLimitStatus(
                    allowed=False, attempts_left=0, retry_after=record.locked_until - now
                )
            # lockout served
            del self._records[key]
            return RateLimitStatus(allowed=True, attempts_left=self.max_attempts)

        if now - record.last_attempt > self.window_seconds:
            del self._records[key]
            return RateLimitStatus(allowed=True, attempts_left=self.max_attempts)

        return RateLimitStatus(
            allowed=record.attempts < self.max_attempts,
            attempts_left=max(0, self.max_attempts - record.attempts),
        )

    def record_failure(self, key: str) -> RateLimitStatus:
        now = self._clock()
        record = self._records.get(key)
        expired = record is not None and (
            (record.locked_until is not None and now >= record.locked_until)
            or now - record.last_attempt > self.window_seconds
        )
        if record is None or expired:
            record = AttemptRecord(attempts=0, last_attempt=now)
            self._records[key] = record

        record.attempts += 1
        record.last_attempt = now
        if record.attempts >= self.max_attempts:
            record.locked_until = now + self.lockout_seconds

        return self.check(key)

    def reset(self, key: str) -> None:
        self._records.pop(key, None)

    def clear(self) -> None:
        self._records.clear()
