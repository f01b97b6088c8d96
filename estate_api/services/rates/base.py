from __future__ import annotations

"""Rate provider abstraction.

A provider yields one complete RateSnapshot per call. The cached rate
service owns freshness and fallback decisions; providers only fetch.
"""
from abc import ABC, abstractmethod

from estate_api.models.rates import RateSnapshot


class RateProvider(ABC):
    name: str = "abstract"

    @abstractmethod
    async def fetch_snapshot(self) -> RateSnapshot:
        """Return a fresh snapshot or raise UpstreamError."""
        raise NotImplementedError
