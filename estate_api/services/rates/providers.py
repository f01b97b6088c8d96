from __future__ import annotations

"""Concrete rate sources.

'RateAmProvider' scrapes the public rate.am page (one attempt per call).
'FallbackRateProvider' synthesizes a snapshot from two configured constants
and never fails; it is the last resort when no real data exists at all.
"""
import logging
from typing import Optional

import httpx

from estate_api.core.config import Settings
from estate_api.models.constants import SOURCE_FALLBACK, SOURCE_UPSTREAM
from estate_api.models.rates import RateSnapshot
from estate_api.services.http_client import get_text
from .base import RateProvider
from .conversion import build_snapshot
from .errors import UpstreamParseError
from .parser import parse_clearing_pair

logger = logging.getLogger("estate_api.rates.providers")

DEFAULT_UPSTREAM_URL = "https://rate.am/"
DEFAULT_USD_TO_AMD = 380.0
DEFAULT_USD_TO_EUR = 0.92


class RateAmProvider(RateProvider):
    name = SOURCE_UPSTREAM

    def __init__(
        self,
        url: str = DEFAULT_UPSTREAM_URL,
        *,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._url = url
        self._timeout = timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls, settings: Settings, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "RateAmProvider":
        return cls(
            str(settings.rates_upstream_url),
            timeout=settings.http_timeout_seconds,
            transport=transport,
        )

    async def fetch_snapshot(self) -> RateSnapshot:  # type: ignore[override]
        html = await get_text(
            self._url, timeout=self._timeout, transport=self._transport
        )
        usd = parse_clearing_pair(html, "USD")
        eur = parse_clearing_pair(html, "EUR")
        try:
            snapshot = build_snapshot(usd.mid, eur.mid, source=SOURCE_UPSTREAM)
        except (ValueError, ArithmeticError) as e:
            # e.g. a cross-rate that rounds to 0 or overflows
            raise UpstreamParseError(
                f"implausible rates usd={usd.mid} eur={eur.mid}: {e}"
            ) from e
        logger.info(
            "fetched rates from %s: usd_to_amd=%s eur_to_amd=%s",
            self._url,
            snapshot.usd_to_amd,
            snapshot.eur_to_amd,
        )
        return snapshot


class FallbackRateProvider(RateProvider):
    name = SOURCE_FALLBACK

    def __init__(
        self,
        usd_to_amd: float = DEFAULT_USD_TO_AMD,
        usd_to_eur: float = DEFAULT_USD_TO_EUR,
    ):
        if usd_to_amd <= 0 or usd_to_eur <= 0:
            raise ValueError("fallback rates must be positive")
        self._usd_to_amd = usd_to_amd
        self._usd_to_eur = usd_to_eur

    @classmethod
    def from_settings(cls, settings: Settings) -> "FallbackRateProvider":
        return cls(settings.fallback_usd_to_amd, settings.fallback_usd_to_eur)

    def snapshot(self) -> RateSnapshot:
        # AMD per EUR = AMD per USD / EUR per USD
        eur_to_amd = self._usd_to_amd / self._usd_to_eur
        return build_snapshot(self._usd_to_amd, eur_to_amd, source=SOURCE_FALLBACK)

    async def fetch_snapshot(self) -> RateSnapshot:  # type: ignore[override]
        return self.snapshot()
