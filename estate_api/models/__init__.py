"""Pydantic models for the Estate Directory API."""

from .constants import CURRENCIES, CURRENCY_SYMBOLS  # re-export
from .rates import ConversionOut, RateSnapshot, RateSource, RatesErrorOut

__all__ = [
    "CURRENCIES",
    "CURRENCY_SYMBOLS",
    "ConversionOut",
    "RateSnapshot",
    "RateSource",
    "RatesErrorOut",
]
