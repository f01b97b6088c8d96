from __future__ import annotations

import math
import time
from typing import Optional

from estate_api.models.constants import CURRENCIES
from estate_api.models.rates import RateSnapshot, RateSource
from estate_api.services.money import round_rate, round_whole

"""Cross-rate derivation and amount conversion.

Both the upstream fetcher and the fallback provider reduce their inputs to
two base rates (AMD per USD, AMD per EUR) and build the snapshot here, so the
arithmetic and the rounding rule live in a single place. Every field is
derived from the unrounded base values and rounded independently.
"""


def now_ms() -> int:
    return int(time.time() * 1000)


def build_snapshot(
    usd_to_amd: float,
    eur_to_amd: float,
    *,
    source: RateSource,
    timestamp: Optional[int] = None,
) -> RateSnapshot:
    if usd_to_amd <= 0 or eur_to_amd <= 0:
        raise ValueError("base rates must be positive")
    amd_to_usd = 1 / usd_to_amd
    amd_to_eur = 1 / eur_to_amd
    eur_to_usd = eur_to_amd * amd_to_usd
    usd_to_eur = 1 / eur_to_usd
    return RateSnapshot(
        usd_to_amd=round_rate(usd_to_amd),
        amd_to_usd=round_rate(amd_to_usd),
        usd_to_eur=round_rate(usd_to_eur),
        eur_to_usd=round_rate(eur_to_usd),
        eur_to_amd=round_rate(eur_to_amd),
        amd_to_eur=round_rate(amd_to_eur),
        timestamp=now_ms() if timestamp is None else timestamp,
        source=source,
    )


def convert_amount(
    amount: float, from_currency: str, to_currency: str, rates: RateSnapshot
) -> int:
    """Convert ``amount`` for display, rounded to whole units (half-up)."""
    from_currency = from_currency.upper()
    to_currency = to_currency.upper()
    for c in (from_currency, to_currency):
        if c not in CURRENCIES:
            raise ValueError(f"unsupported currency '{c}'")
    converted = amount * rates.rate(from_currency, to_currency)
    if not math.isfinite(converted):
        raise ValueError(f"amount {amount} is out of range")
    return round_whole(converted)
