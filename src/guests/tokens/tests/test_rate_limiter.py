from src.guests.tokens.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


def make_limiter(clock):
    return RateLimiter(max_attempts=3, window_seconds=900, lockout_seconds=1800, clock=clock)


def test_unknown_client_is_allowed():
    limiter = make_limiter(FakeClock())

    status = limiter.check("1.2.3.4")

    assert status.allowed
    assert status.attempts_left == 3


def test_lockout_after_max_failures():
    clock = FakeClock()
    limiter = make_limiter(clock)

    limiter.record_failure("1.2.3.4")
    second = limiter.record_failure("1.2.3.4")
    third = limiter.record_failure("1.2.3.4")

    assert second.allowed and second.attempts_left == 1
    assert not third.allowed
    assert third.retry_after == 1800
    assert limiter.check("5.6.7.8").allowed


def test_lockout_expires():
    clock = FakeClock()
    limiter = make_limiter(clock)
    for _ in range(3):
        limiter.record_failure("1.2.3.4")

    clock.advance(1799)
    assert not limiter.check("1.2.3.4").allowed

    clock.advance(2)
    status = limiter.check("1.2.3.4")
    assert status.allowed
    assert status.attempts_left == 3


def test_failures_outside_window_start_over():
    clock = FakeClock()
    limiter = make_limiter(clock)
    limiter.record_failure("1.2.3.4")
    limiter.record_failure("1.2.3.4")

    clock.advance(901)
    status = limiter.record_failure("1.2.3.4")

    assert status.allowed
    assert status.attempts_left == 2


def test_reset_and_clear():
    limiter = make_limiter(FakeClock())
    for _ in range(3):
        limiter.record_failure("a")
        limiter.record_failure("b")

    limiter.reset("a")
    assert limiter.check("a").allowed
    assert not limiter.check("b").allowed

    limiter.clear()
    assert limiter.check("b").allowed
