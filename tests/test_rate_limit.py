from __future__ import annotations

import pytest

from estate_api.core.config import Settings
from estate_api.core.rate_limit import FixedWindowRateLimiter

from conftest import FakeClock


def test_limiter_counts_within_window(clock: FakeClock) -> None:
    limiter = FixedWindowRateLimiter(2, 60, clock=clock)

    first, second, third = (limiter.hit("1.2.3.4") for _ in range(3))

    assert (first.allowed, second.allowed, third.allowed) == (True, True, False)
    assert (first.remaining, second.remaining, third.remaining) == (1, 0, 0)
    assert third.retry_after == 60
    assert third.headers()["X-RateLimit-Reset"] == str(int(clock.now + 60))


def test_limiter_window_resets(clock: FakeClock) -> None:
    limiter = FixedWindowRateLimiter(1, 60, clock=clock)
    limiter.hit("ip")
    assert not limiter.hit("ip").allowed

    clock.advance(61)

    assert limiter.hit("ip").allowed


def test_limiter_keys_are_independent(clock: FakeClock) -> None:
    limiter = FixedWindowRateLimiter(1, 60, clock=clock)

    assert limiter.hit("a").allowed
    assert limiter.hit("b").allowed


def test_limiter_purges_expired_entries(clock: FakeClock) -> None:
    limiter = FixedWindowRateLimiter(5, 60, clock=clock)
    limiter.hit("a")
    limiter.hit("b")
    clock.advance(120)

    limiter.hit("c")

    assert len(limiter) == 1


def test_limiter_rejects_bad_config() -> None:
    with pytest.raises(ValueError):
        FixedWindowRateLimiter(0, 60)


def test_api_requests_over_limit_get_429(client_factory) -> None:
    settings = Settings(
        environment="test", rate_limit_max_requests=2, rate_limit_window_seconds=60
    )
    client = client_factory(settings_override=settings)

    ok = client.get("/api/exchange-rates")
    client.get("/api/exchange-rates")
    limited = client.get("/api/exchange-rates")

    assert ok.status_code == 200
    assert ok.headers["x-ratelimit-limit"] == "2"
    assert ok.headers["x-ratelimit-remaining"] == "1"
    assert limited.status_code == 429
    assert limited.headers["x-ratelimit-remaining"] == "0"
    assert int(limited.headers["retry-after"]) > 0
    assert limited.json()["retryAfter"] == int(limited.headers["retry-after"])


def test_forwarded_for_identifies_client(client_factory) -> None:
    settings = Settings(
        environment="test", rate_limit_max_requests=1, rate_limit_window_seconds=60
    )
    client = client_factory(settings_override=settings)

    a = client.get("/api/csrf-token", headers={"X-Forwarded-For": "10.0.0.1, 172.16.0.1"})
    b = client.get("/api/csrf-token", headers={"X-Forwarded-For": "10.0.0.2"})
    a_again = client.get("/api/csrf-token", headers={"X-Forwarded-For": "10.0.0.1"})

    assert (a.status_code, b.status_code, a_again.status_code) == (200, 200, 429)


def test_non_api_paths_are_not_limited(client_factory) -> None:
    settings = Settings(
        environment="test", rate_limit_max_requests=1, rate_limit_window_seconds=60
    )
    client = client_factory(settings_override=settings)

    statuses = {client.get("/health").status_code for _ in range(3)}

    assert statuses == {200}
