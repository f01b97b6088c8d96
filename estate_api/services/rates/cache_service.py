from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, Optional

import httpx

from estate_api.core.config import Settings
from estate_api.models.constants import SOURCE_CACHED_FALLBACK
from estate_api.models.rates import RateSnapshot
from .base import RateProvider
from .errors import UpstreamError
from .providers import FallbackRateProvider, RateAmProvider

"""Cached exchange-rate service.

Purpose:
    Serve USD/AMD/EUR cross-rates to the API without ever failing, while
    hitting the upstream page at most once per TTL (24h by default).

Design:
    - Holds one RateSnapshot plus the time it was fetched; nothing persists
      across restarts.
    - Freshness is evaluated lazily on each read (EMPTY / FRESH / STALE).
    - Only upstream successes are written to the cache. On upstream failure a
      stale snapshot is served relabeled 'cached-fallback' (cache untouched);
      with no snapshot at all the fallback constants are served.
    - Concurrent callers that find the cache stale share one in-flight refresh
      task instead of each hitting upstream.
"""

logger = logging.getLogger("estate_api.rates.cache")

DEFAULT_TTL_SECONDS = 24 * 60 * 60


class CacheState(str, Enum):
    EMPTY = "empty"
    FRESH = "fresh"
    STALE = "stale"


@dataclass(frozen=True)
class _CacheEntry:
    snapshot: RateSnapshot
    fetched_at: float


class ExchangeRateService:
    """Rate orchestrator: cache first, then upstream, then degraded answers."""

    def __init__(
        self,
        provider: RateProvider,
        fallback: Optional[FallbackRateProvider] = None,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._provider = provider
        self._fallback = fallback or FallbackRateProvider()
        self._ttl = ttl_seconds
        self._clock = clock
        self._entry: Optional[_CacheEntry] = None
        self._inflight: Optional[asyncio.Task[RateSnapshot]] = None

    # Internal --------------------------------------------------
    def _is_entry_valid(self, entry: _CacheEntry) -> bool:
        return self._clock() - entry.fetched_at < self._ttl

    def _fresh_snapshot(self) -> Optional[RateSnapshot]:
        entry = self._entry
        if entry and self._is_entry_valid(entry):
            return entry.snapshot
        return None

    def _store(self, snapshot: RateSnapshot) -> RateSnapshot:
        current = self._entry
        if current and snapshot.timestamp < current.snapshot.timestamp:
            # never step the cache back in time
            logger.warning(
                "discarding rates older than cached entry (%s < %s)",
                snapshot.timestamp,
                current.snapshot.timestamp,
            )
            return current.snapshot
        self._entry = _CacheEntry(snapshot=snapshot, fetched_at=self._clock())
        return snapshot

    async def _refresh(self) -> RateSnapshot:
        logger.info("fetching fresh exchange rates from %s", self._provider.name)
        try:
            snapshot = await self._provider.fetch_snapshot()
        except UpstreamError as e:
            entry = self._entry
            if entry is not None:
                logger.warning(
                    "failed to fetch exchange rates (%s); serving cached rates", e
                )
                return entry.snapshot.with_source(SOURCE_CACHED_FALLBACK)
            logger.warning(
                "failed to fetch exchange rates (%s); serving fallback rates", e
            )
            return self._fallback.snapshot()
        return self._store(snapshot)

    def _clear_inflight(self, task: "asyncio.Task[RateSnapshot]") -> None:
        if self._inflight is task:
            self._inflight = None
        # every waiter may have been cancelled; the outcome still gets read here
        if not task.cancelled() and task.exception() is not None:
            logger.error("shared rate refresh failed: %r", task.exception())

    # Public API -----------------------------------------------
    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    @property
    def cached_snapshot(self) -> Optional[RateSnapshot]:
        return self._entry.snapshot if self._entry else None

    def state(self) -> CacheState:
        entry = self._entry
        if entry is None:
            return CacheState.EMPTY
        return CacheState.FRESH if self._is_entry_valid(entry) else CacheState.STALE

    def cache_info(self) -> Dict[str, Any]:
        entry = self._entry
        return {
            "state": self.state().value,
            "ttl_seconds": self._ttl,
            "source": entry.snapshot.source if entry else None,
            "timestamp": entry.snapshot.timestamp if entry else None,
            "age_seconds": round(self._clock() - entry.fetched_at, 3) if entry else None,
        }

    def fallback_snapshot(self) -> RateSnapshot:
        return self._fallback.snapshot()

    async def get_exchange_rates(self) -> RateSnapshot:
        cached = self._fresh_snapshot()
        if cached is not None:
            logger.debug("returning cached exchange rates")
            return cached

        task = self._inflight
        if task is None or task.get_loop() is not asyncio.get_running_loop():
            task = asyncio.ensure_future(self._refresh())
            task.add_done_callback(self._clear_inflight)
            self._inflight = task
        # shield: one caller giving up must not cancel the shared refresh
        return await asyncio.shield(task)


def build_rate_service(
    settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
) -> ExchangeRateService:
    """Factory wiring the upstream and fallback providers from settings."""
    return ExchangeRateService(
        RateAmProvider.from_settings(settings, transport=transport),
        FallbackRateProvider.from_settings(settings),
        ttl_seconds=settings.rates_cache_ttl_seconds,
    )
