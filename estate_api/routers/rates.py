from __future__ import annotations

import logging
from typing import Literal

from fastapi import APIRouter, Depends, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

from estate_api.models.constants import CURRENCY_SYMBOLS
from estate_api.models.rates import ConversionOut, RateSnapshot, RatesErrorOut
from estate_api.services.rates.cache_service import ExchangeRateService
from estate_api.services.rates.conversion import convert_amount

"""Exchange rate endpoints.

Endpoints:
    - GET /api/exchange-rates          -> current RateSnapshot (never fails upstream-wise)
    - GET /api/exchange-rates/convert  -> convert an amount between USD/AMD/EUR

The service absorbs upstream failures itself; the catch-all here only covers
unexpected errors and still attaches fallback rates so clients can render prices.
"""

logger = logging.getLogger("estate_api.routers.rates")

router = APIRouter(prefix="/api/exchange-rates", tags=["rates"])

CurrencyCode = Literal["USD", "AMD", "EUR"]


def get_rate_service(request: Request) -> ExchangeRateService:
    return request.app.state.rate_service


@router.get(
    "",
    response_model=RateSnapshot,
    responses={500: {"model": RatesErrorOut}},
    summary="Current USD/AMD/EUR exchange rates",
)
async def get_exchange_rates(svc: ExchangeRateService = Depends(get_rate_service)):
    try:
        return await svc.get_exchange_rates()
    except Exception:
        logger.exception("error in exchange rates endpoint")
        body = RatesErrorOut(
            error="Failed to fetch exchange rates", rates=svc.fallback_snapshot()
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=body.model_dump(mode="json", by_alias=True),
        )


@router.get(
    "/convert",
    response_model=ConversionOut,
    summary="Convert an amount between supported currencies",
)
async def convert(
    amount: float = Query(
        ..., ge=0, allow_inf_nan=False, description="Amount in the source currency"
    ),
    from_currency: CurrencyCode = Query(..., alias="from"),
    to_currency: CurrencyCode = Query(..., alias="to"),
    svc: ExchangeRateService = Depends(get_rate_service),
):
    rates = await svc.get_exchange_rates()
    try:
        result = convert_amount(amount, from_currency, to_currency, rates)
    except ValueError as e:
        raise RequestValidationError(
            [
                {
                    "type": "value_error",
                    "loc": ("query", "amount"),
                    "msg": str(e),
                    "input": amount,
                }
            ]
        ) from e
    return ConversionOut(
        amount=amount,
        from_currency=from_currency,
        to_currency=to_currency,
        symbol=CURRENCY_SYMBOLS[to_currency],
        result=result,
        rate=rates.rate(from_currency, to_currency),
        source=rates.source,
    )
