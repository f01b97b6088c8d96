from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .constants import CURRENCIES

RateSource = Literal["rate.am", "fallback", "cached-fallback"]

# Strictly positive and finite
PositiveRate = Annotated[float, Field(gt=0, allow_inf_nan=False)]


class RateSnapshot(BaseModel):
    """One complete, immutable set of USD/AMD/EUR cross-rates.

    Serialized with camelCase keys (``usdToAmd``...). Reciprocal pairs agree
    only within rounding tolerance since each field is rounded on its own.
    """

    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    usd_to_amd: PositiveRate
    amd_to_usd: PositiveRate
    usd_to_eur: PositiveRate
    eur_to_usd: PositiveRate
    eur_to_amd: PositiveRate
    amd_to_eur: PositiveRate
    timestamp: int = Field(..., ge=0, description="Acquisition time, ms since epoch")
    source: RateSource

    def with_source(self, source: RateSource) -> "RateSnapshot":
        return self.model_copy(update={"source": source})

    def rate(self, from_currency: str, to_currency: str) -> float:
        """Units of ``to_currency`` per one unit of ``from_currency``."""
        if from_currency == to_currency:
            return 1.0
        if from_currency not in CURRENCIES or to_currency not in CURRENCIES:
            raise ValueError(f"no rate for {from_currency}->{to_currency}")
        return getattr(self, f"{from_currency.lower()}_to_{to_currency.lower()}")


class RatesErrorOut(BaseModel):
    error: str
    rates: RateSnapshot


class ConversionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    amount: float
    from_currency: str = Field(..., alias="from")
    to_currency: str = Field(..., alias="to")
    symbol: str
    result: int
    rate: float
    source: RateSource

    @field_validator("from_currency", "to_currency")
    @classmethod
    def valid_currency(cls, v: str) -> str:
        if v not in CURRENCIES:
            raise ValueError("unsupported currency")
        return v
