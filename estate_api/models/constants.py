"""Currency constants shared by the rate service and the API layer."""

from typing import Dict, Set

CURRENCIES: Set[str] = {"USD", "AMD", "EUR"}

CURRENCY_SYMBOLS: Dict[str, str] = {
    "USD": "$",
    "AMD": "֏",
    "EUR": "€",
}

# Values of RateSnapshot.source
SOURCE_UPSTREAM = "rate.am"
SOURCE_FALLBACK = "fallback"
SOURCE_CACHED_FALLBACK = "cached-fallback"
