from __future__ import annotations

"""Extract CLEARING buy/sell pairs from the upstream rate page.

The page embeds its rate table as JSON-like data, roughly::

    "USD":{"CASH":{"buy":378,"sell":384},"CLEARING":{"buy":379.05,"sell":383.67}}

When the data sits inside a script string the quotes are backslash-escaped,
and some numbers arrive quoted. The pattern tolerates both, plus one level of
sibling objects (e.g. CASH) ahead of CLEARING. Anything else is a parse error;
callers decide how to degrade.
"""
import math
import re
from dataclasses import dataclass
from typing import Pattern

from .errors import UpstreamParseError

_Q = r'\\*"'  # quote, possibly JSON-escaped
_NUMBER = r"\d+(?:\.\d+)?(?:[eE][-+]?\d+)?"


@dataclass(frozen=True)
class ClearingPair:
    currency: str
    buy: float
    sell: float

    @property
    def mid(self) -> float:
        return (self.buy + self.sell) / 2


def _block_pattern(currency: str) -> Pattern[str]:
    return re.compile(
        rf"{_Q}{re.escape(currency)}{_Q}\s*:\s*\{{"
        rf"(?:[^{{}}]|\{{[^{{}}]*\}})*?"
        rf"{_Q}CLEARING{_Q}\s*:\s*\{{(?P<body>[^{{}}]*)\}}"
    )


def _field_pattern(name: str) -> Pattern[str]:
    return re.compile(
        rf"{_Q}{name}{_Q}\s*:\s*(?:{_Q})?(?P<value>{_NUMBER})", re.IGNORECASE
    )


_BUY = _field_pattern("buy")
_SELL = _field_pattern("sell")


def _read_field(body: str, pattern: Pattern[str], currency: str, name: str) -> float:
    m = pattern.search(body)
    if not m:
        raise UpstreamParseError(f"{currency} CLEARING {name} rate not found")
    value = float(m.group("value"))
    if not math.isfinite(value) or value <= 0:
        raise UpstreamParseError(f"{currency} CLEARING {name} rate is not positive: {value}")
    return value


def parse_clearing_pair(html: str, currency: str) -> ClearingPair:
    m = _block_pattern(currency).search(html)
    if not m:
        raise UpstreamParseError(f"{currency} CLEARING rates not found in upstream page")
    body = m.group("body")
    return ClearingPair(
        currency=currency,
        buy=_read_field(body, _BUY, currency, "buy"),
        sell=_read_field(body, _SELL, currency, "sell"),
    )
