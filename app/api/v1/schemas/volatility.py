"""
Pydantic schemas for volatility band API responses.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, Field

from app.core.volatility import VolatilityBand, VolatilityRange


class VolatilityBandResponse(BaseModel):
    """Price band for one sigma level."""

    upper: Decimal = Field(..., description="Upper bound")
    lower: Decimal = Field(..., description="Lower bound")
    move: Decimal = Field(..., description="Move in price units")
    move_pct: Decimal = Field(..., description="Move as % of price")
    probability: Decimal = Field(..., description="Theoretical coverage %")

    @classmethod
    def from_band(cls, band: VolatilityBand) -> VolatilityBandResponse:
        return cls(
            upper=band.upper,
            lower=band.lower,
            move=band.move,
            move_pct=band.move_pct,
            probability=band.probability,
        )


class VolatilityRangeResponse(BaseModel):
    """Expected ±1σ / ±2σ range through expiration."""

    price: Decimal = Field(..., description="Underlying price")
    implied_vol: Decimal = Field(..., description="Implied volatility (decimal)")
    dte: int = Field(..., description="Days to expiration")
    one_sigma: VolatilityBandResponse
    two_sigma: VolatilityBandResponse
    interpretation: str = Field(..., description="IV level and expected % move")
    adjustment: Decimal = Field(default=Decimal(1), description="Gamma scaling of the 1σ move")
    adjustment_note: str | None = Field(default=None, description="Gamma adjustment reason")

    @classmethod
    def from_range(cls, volatility_range: VolatilityRange) -> VolatilityRangeResponse:
        return cls(
            price=volatility_range.price,
            implied_vol=volatility_range.iv,
            dte=volatility_range.dte,
            one_sigma=VolatilityBandResponse.from_band(volatility_range.one_sigma),
            two_sigma=VolatilityBandResponse.from_band(volatility_range.two_sigma),
            interpretation=volatility_range.interpretation,
            adjustment=volatility_range.adjustment,
            adjustment_note=volatility_range.adjustment_note,
        )


class RangeProbabilityResponse(BaseModel):
    """Probability of finishing between two bounds."""

    price: Decimal
    lower: Decimal | None = Field(default=None, description="Lower bound (None = unbounded)")
    upper: Decimal | None = Field(default=None, description="Upper bound (None = unbounded)")
    probability_pct: Decimal = Field(..., description="Probability %, 0-100")
