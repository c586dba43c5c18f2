"""
Volatility API Endpoints
Expose sigma bands and range probabilities for a price/IV/DTE triple.
"""

from decimal import Decimal, ROUND_HALF_UP

from fastapi import APIRouter, HTTPException, Query

from app.api.v1.schemas.volatility import RangeProbabilityResponse, VolatilityRangeResponse
from app.core.exceptions import InvalidInput
from app.core.volatility import compute_band, probability_in_range

router = APIRouter(prefix="/vol", tags=["volatility"])


@router.get("/band", response_model=VolatilityRangeResponse)
async def get_volatility_band(
    price: Decimal = Query(..., description="Underlying price"),
    iv: Decimal = Query(..., description="Implied volatility in decimal form (0.35 = 35%)"),
    dte: int = Query(..., description="Days to expiration"),
) -> VolatilityRangeResponse:
    """
    Return the expected ±1σ and ±2σ price bands through expiration.
    """
    try:
        volatility_range = compute_band(price, iv, dte)
    except InvalidInput as exc:
        raise HTTPException(status_code=422, detail=exc.message) from exc
    return VolatilityRangeResponse.from_range(volatility_range)


@router.get("/probability", response_model=RangeProbabilityResponse)
async def get_range_probability(
    price: Decimal = Query(..., description="Underlying price"),
    iv: Decimal = Query(..., description="Implied volatility in decimal form"),
    dte: int = Query(..., description="Days to expiration"),
    lower: Decimal | None = Query(default=None, description="Lower bound, omit for unbounded"),
    upper: Decimal | None = Query(default=None, description="Upper bound, omit for unbounded"),
) -> RangeProbabilityResponse:
    """
    Return the probability that the underlying finishes between two bounds.
    """
    try:
        probability = probability_in_range(price, lower, upper, iv, dte)
    except InvalidInput as exc:
        raise HTTPException(status_code=422, detail=exc.message) from exc

    return RangeProbabilityResponse(
        price=price,
        lower=lower,
        upper=upper,
        probability_pct=(probability * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP),
    )
