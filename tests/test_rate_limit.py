"""Tests for the fixed-window rate limiter."""

import pytest

from src.middleware.rate_limit import (
    RateLimitResult,
    RateLimiter,
    client_identifier,
    rate_limit_headers,
    tier_for_path,
)


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def limiter(clock):
    return RateLimiter(clock=clock)


class TestCheck:
    def test_remaining_decreases(self, limiter):
        remaining = [limiter.check("k", limit=3, window_seconds=60).remaining for _ in range(3)]
        assert remaining == [2, 1, 0]

    def test_rejects_over_limit(self, limiter):
        for _ in range(3):
            assert limiter.check("k", 3, 60).success is True
        result = limiter.check("k", 3, 60)
        assert result.success is False
        assert result.remaining == 0

    def test_reset_time_is_window_end(self, limiter, clock):
        result = limiter.check("k", 3, 60)
        assert result.reset_time == clock.now + 60

    def test_window_boundary_is_inclusive(self, limiter, clock):
        limiter.check("k", 1, 60)
        clock.advance(60)
        assert limiter.check("k", 1, 60).success is False

    def test_new_window_after_reset(self, limiter, clock):
        for _ in range(4):
            limiter.check("k", 3, 60)
        clock.advance(61)
        result = limiter.check("k", 3, 60)
        assert result.success is True
        assert result.remaining == 2

    def test_keys_are_independent(self, limiter):
        limiter.check("a", 1, 60)
        assert limiter.check("a", 1, 60).success is False
        assert limiter.check("b", 1, 60).success is True

    def test_window_larger_than_maximum(self, clock):
        limiter = RateLimiter(clock=clock, max_window_seconds=120)
        with pytest.raises(ValueError):
            limiter.check("k", 1, 121)


class TestSweep:
    def test_sweep_drops_expired_windows(self, limiter, clock):
        limiter.check("a", 5, 60)
        limiter.check("b", 5, 60)
        clock.advance(30)
        limiter.check("c", 5, 60)
        clock.advance(31)
        assert limiter.sweep() == 2
        assert len(limiter) == 1

    def test_reset_clears_everything(self, limiter):
        limiter.check("a", 5, 60)
        limiter.reset()
        assert len(limiter) == 0

    @pytest.mark.asyncio
    async def test_start_and_stop(self, clock):
        limiter = RateLimiter(clock=clock, sweep_interval=0.01)
        limiter.start()
        assert limiter._task is not None
        await limiter.stop()
        assert limiter._task is None


class TestClientIdentifier:
    def test_user_id_preferred(self):
        headers = {"x-forwarded-for": "1.2.3.4"}
        assert client_identifier(headers, "user_1") == "user:user_1"

    def test_first_forwarded_address(self):
        headers = {"x-forwarded-for": "1.2.3.4, 10.0.0.1", "x-real-ip": "5.6.7.8"}
        assert client_identifier(headers) == "ip:1.2.3.4"

    def test_real_ip(self):
        assert client_identifier({"x-real-ip": "5.6.7.8"}) == "ip:5.6.7.8"

    def test_user_agent_hash(self):
        first = client_identifier({"user-agent": "curl/8.0"})
        assert first.startswith("ua:")
        assert len(first) == len("ua:") + 16
        assert first == client_identifier({"user-agent": "curl/8.0"})
        assert first != client_identifier({"user-agent": "curl/7.0"})

    def test_no_headers(self):
        assert client_identifier({}).startswith("ua:")


def test_headers_round_reset_up():
    headers = rate_limit_headers(RateLimitResult(True, 10, 7, 1_000.2))
    assert headers == {
        "X-RateLimit-Limit": "10",
        "X-RateLimit-Remaining": "7",
        "X-RateLimit-Reset": "1001",
    }


class TestTierForPath:
    def test_tiers(self):
        assert tier_for_path("/api/v1/webhook", "/api/v1") == "webhook"
        assert tier_for_path("/api/v1/webhook/abc", "/api/v1") == "webhook"
        assert tier_for_path("/api/v1/health/sweep", "/api/v1") == "heavy"
        assert tier_for_path("/api/v1/repos", "/api/v1") == "github"
        assert tier_for_path("/api/v1/suggestions", "/api/v1") == "default"
