from __future__ import annotations

from typing import Callable, List, Optional

import httpx
import pytest
from fastapi.testclient import TestClient

from estate_api.core.config import Settings
from estate_api.main import create_app
from estate_api.models.rates import RateSnapshot
from estate_api.services.rates.base import RateProvider
from estate_api.services.rates.cache_service import ExchangeRateService
from estate_api.services.rates.providers import RateAmProvider

# Next.js-style page: rate data inside an escaped script string, EUR numbers quoted
RATE_AM_HTML = (
    "<html><head><title>Rate.am</title></head><body>"
    '<div id="__next">Average USD 380 EUR 412</div>'
    '<script>self.__next_f.push([1,"{\\"rates\\":{'
    '\\"USD\\":{\\"CASH\\":{\\"buy\\":378,\\"sell\\":385},'
    '\\"CLEARING\\":{\\"buy\\":379.05,\\"sell\\":383.67}},'
    '\\"EUR\\":{\\"CASH\\":{\\"buy\\":405,\\"sell\\":420},'
    '\\"CLEARING\\":{\\"buy\\":\\"409.1\\",\\"sell\\":\\"417.3\\"}}}}"])</script>'
    "</body></html>"
)

UPSTREAM_URL = "https://rate.am/"


class FakeClock:
    def __init__(self, now: float = 1_700_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class ScriptedProvider(RateProvider):
    """Returns (or raises) the queued results in order; the last one repeats."""

    name = "scripted"

    def __init__(self, *results):
        self._results: List = list(results)
        self.calls = 0

    async def fetch_snapshot(self) -> RateSnapshot:
        self.calls += 1
        result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(result, BaseException):
            raise result
        return result


def make_snapshot(
    usd_to_amd: float = 381.36,
    timestamp: int = 1_700_000_000_000,
    source: str = "rate.am",
) -> RateSnapshot:
    return RateSnapshot(
        usd_to_amd=usd_to_amd,
        amd_to_usd=round(1 / usd_to_amd, 5),
        usd_to_eur=0.92294,
        eur_to_usd=1.08,
        eur_to_amd=413.2,
        amd_to_eur=0.00242,
        timestamp=timestamp,
        source=source,
    )


def html_transport(
    body: str = RATE_AM_HTML,
    status_code: int = 200,
    seen: Optional[List[httpx.Request]] = None,
) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status_code, text=body)

    return httpx.MockTransport(handler)


@pytest.fixture
def settings() -> Settings:
    return Settings(environment="test", rate_limit_enabled=False)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def client_factory(settings: Settings) -> Callable[..., TestClient]:
    def factory(
        transport: Optional[httpx.AsyncBaseTransport] = None,
        rate_service: Optional[ExchangeRateService] = None,
        settings_override: Optional[Settings] = None,
    ) -> TestClient:
        if rate_service is None:
            rate_service = ExchangeRateService(
                RateAmProvider(UPSTREAM_URL, transport=transport or html_transport())
            )
        app = create_app(
            settings_override=settings_override or settings, rate_service=rate_service
        )
        return TestClient(app)

    return factory
