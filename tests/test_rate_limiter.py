from lumenta.scheduling.rate_limiter import RateLimiter


def test_first_acquire_always_allowed():
    limiter = RateLimiter(interval=5.0)
    assert limiter.try_acquire(0.0) is True
    assert limiter.in_flight is True


def test_in_flight_blocks_second_acquire():
    limiter = RateLimiter(interval=0.0)
    assert limiter.try_acquire(0.0)
    assert limiter.try_acquire(100.0) is False


def test_cooldown_runs_from_release():
    limiter = RateLimiter(interval=2.0)
    limiter.try_acquire(0.0)
    limiter.release(1.0)

    assert limiter.try_acquire(2.9) is False
    assert limiter.try_acquire(3.0) is True


def test_interval_override():
    limiter = RateLimiter(interval=10.0, last_run_at=0.0)
    assert limiter.ready(3.0) is False
    assert limiter.ready(3.0, interval=2.0) is True


def test_abort_does_not_start_cooldown():
    limiter = RateLimiter(interval=5.0)
    limiter.try_acquire(0.0)
    limiter.abort()
    assert limiter.last_run_at is None
    assert limiter.try_acquire(0.1) is True
