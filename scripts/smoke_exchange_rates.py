"""Smoke script for the cached exchange-rate service.

Demonstrates against the live upstream page:
 1. First access fetches from rate.am (or degrades to fallback constants).
 2. Second access within TTL is served from cache (same timestamp).
 3. Forcing the entry stale by moving the service clock triggers a refetch.
 4. The HTTP endpoint returns the same payload shape (camelCase keys).

NOTE: This is a lightweight diagnostic and not a formal test.
"""

import asyncio
import time
from pprint import pprint

from fastapi.testclient import TestClient

from estate_api.core.config import get_settings
from estate_api.main import create_app
from estate_api.services.rates.cache_service import ExchangeRateService
from estate_api.services.rates.providers import FallbackRateProvider, RateAmProvider


def run():
    settings = get_settings()
    offset = {"seconds": 0.0}
    svc = ExchangeRateService(
        RateAmProvider.from_settings(settings),
        FallbackRateProvider.from_settings(settings),
        ttl_seconds=settings.rates_cache_ttl_seconds,
        clock=lambda: time.time() + offset["seconds"],
    )
    out = {}

    async def service_steps():
        out["initial"] = (await svc.get_exchange_rates()).model_dump(by_alias=True)
        out["second"] = (await svc.get_exchange_rates()).model_dump(by_alias=True)
        offset["seconds"] = svc.ttl_seconds + 5
        out["after_ttl"] = (await svc.get_exchange_rates()).model_dump(by_alias=True)
        out["cache_info"] = svc.cache_info()

    asyncio.run(service_steps())

    client = TestClient(create_app(settings_override=settings))
    out["endpoint"] = client.get("/api/exchange-rates").json()

    pprint(out)


if __name__ == "__main__":
    run()
