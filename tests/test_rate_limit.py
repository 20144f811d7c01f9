from chaussettes.utils.rate_limit import RateLimiter, RateLimitConfig


class FakeClock:
    def __init__(self):
        self.value = 1000.0

    def __call__(self):
        return self.value


def test_limit_and_window_reset():
    clock = FakeClock()
    limiter = RateLimiter(clock=clock)
    config = RateLimitConfig(max_requests=2, window_seconds=60)

    first = limiter.check_limit("ip:1", config)
    second = limiter.check_limit("ip:1", config)
    third = limiter.check_limit("ip:1", config)

    assert (first.allowed, first.remaining) == (True, 1)
    assert (second.allowed, second.remaining) == (True, 0)
    assert third.allowed is False
    assert third.reset_at == 1060.0

    clock.value += 61
    assert limiter.check_limit("ip:1", config).allowed is True


def test_keys_are_independent():
    limiter = RateLimiter(clock=FakeClock())
    config = RateLimitConfig(max_requests=1, window_seconds=60)

    assert limiter.check_limit("ip:1", config).allowed is True
    assert limiter.check_limit("ip:2", config).allowed is True
    assert limiter.check_limit("ip:1", config).allowed is False

    limiter.reset("ip:1")
    assert limiter.check_limit("ip:1", config).allowed is True


def test_sweep_drops_expired_entries():
    clock = FakeClock()
    limiter = RateLimiter(clock=clock, sweep_every=300)
    config = RateLimitConfig(max_requests=5, window_seconds=10)

    limiter.check_limit("ip:old", config)
    clock.value += 400
    limiter.check_limit("ip:new", config)

    assert "ip:old" not in limiter._entries
    assert "ip:new" in limiter._entries
