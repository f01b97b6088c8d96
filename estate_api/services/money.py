"""Money / rounding helpers.

Centralized so the upstream fetcher, the fallback provider and the conversion
endpoint use identical rounding semantics (half-up, like the web client).
"""

from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP


def _quantize(value: float, exp: str) -> float:
    return float(Decimal(str(value)).quantize(Decimal(exp), rounding=ROUND_HALF_UP))


def round2(value: float) -> float:
    return _quantize(value, "0.01")


def round5(value: float) -> float:
    return _quantize(value, "0.00001")


def round_rate(value: float) -> float:
    """Round an exchange rate: 2 decimals at or above 1, 5 decimals below.

    Sub-unit rates (e.g. AMD->USD ~0.0026) would lose all significant digits
    at 2 decimals.
    """
    return round2(value) if value >= 1 else round5(value)


def round_whole(value: float) -> int:
    # to_integral_value is not bound by the context precision, unlike quantize
    return int(Decimal(str(value)).to_integral_value(rounding=ROUND_HALF_UP))
