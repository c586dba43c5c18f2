"""
Pydantic schemas for strategy analysis API.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field, field_validator

from app.api.v1.schemas.volatility import VolatilityRangeResponse
from app.core.strategy_catalog import StrategyCandidate


class GammaExposureRequest(BaseModel):
    """Gamma exposure summary."""

    zero_gamma: Decimal | None = Field(default=None, description="Zero-gamma price level", gt=0)
    environment: str = Field(
        default="neutral", description="Gamma environment: 'positive', 'negative', or 'neutral'"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate gamma environment."""
        allowed = {"positive", "negative", "neutral"}
        if v.lower() not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v.lower()


class OptionContractRequest(BaseModel):
    """Raw option contract as returned by the quote provider."""

    strike: Decimal = Field(..., description="Strike price", gt=0)
    type: str = Field(..., description="'call' or 'put'")
    bid: Decimal | None = Field(default=None, ge=0)
    ask: Decimal | None = Field(default=None, ge=0)
    last: Decimal | None = Field(default=None, ge=0)
    implied_volatility: Decimal | None = Field(default=None, ge=0)
    delta: Decimal | None = None
    gamma: Decimal | None = None
    theta: Decimal | None = None
    vega: Decimal | None = None
    volume: int | None = Field(default=None, ge=0)
    open_interest: int | None = Field(default=None, ge=0)
    expiration: date | None = Field(default=None, description="Expiration date")
    days_to_expiration: int | None = Field(default=None, ge=0)

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        """Validate option type."""
        if v.lower() not in {"call", "put"}:
            raise ValueError("type must be 'call' or 'put'")
        return v.lower()


class StrategyAnalysisRequest(BaseModel):
    """Request model for strategy analysis."""

    symbol: str = Field(..., description="Ticker symbol", min_length=1, max_length=10)
    price: Decimal = Field(..., description="Current underlying price", gt=0)
    dte: int = Field(..., description="Days to expiration", ge=1, le=365)
    implied_vol: Decimal | None = Field(
        default=None, description="IV in decimal form; taken from the ATM call if omitted", gt=0
    )

    # IV rank: explicit value, or computed from trailing history
    iv_rank: Decimal | None = Field(default=None, description="IV rank (0-100)", ge=0, le=100)
    historical_ivs: list[Decimal] | None = Field(
        default=None, description="Trailing 12-month IV readings for IV rank"
    )

    # Technicals: explicit trend/score, or scored from raw indicators
    trend: str | None = Field(default=None, description="'bullish', 'bearish', or 'neutral'")
    trend_score: Decimal | None = Field(
        default=None, description="Technical score (0-100)", ge=0, le=100
    )
    technical_indicators: dict[str, Any] | None = Field(
        default=None, description="Per-period MACD/RSI/stochastic readings (daily, hourly1, hourly2)"
    )

    gamma: GammaExposureRequest | None = Field(default=None, description="Gamma exposure summary")
    has_earnings_near: bool = Field(default=False, description="Earnings inside the window")
    days_until_earnings: int | None = Field(default=None, description="Days until next earnings", ge=0)

    contracts: list[OptionContractRequest] | None = Field(
        default=None, description="Option chain to price legs from (estimated pricing if omitted)"
    )
    as_of: date | None = Field(default=None, description="Valuation date for contract DTE")
    nocache: bool = Field(default=False, description="Bypass cached analysis results")

    @field_validator("symbol")
    @classmethod
    def validate_symbol(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("trend")
    @classmethod
    def validate_trend(cls, v: str | None) -> str | None:
        """Validate trend."""
        if v is None:
            return None
        allowed = {"bullish", "bearish", "neutral"}
        if v.lower() not in allowed:
            raise ValueError(f"trend must be one of {allowed}")
        return v.lower()


class OptionLegResponse(BaseModel):
    """One leg of a recommended position."""

    role: str
    option_type: str
    side: str
    strike: Decimal
    quantity: int
    far_dated: bool = False


class StrategyCandidateResponse(BaseModel):
    """Individual ranked strategy."""

    rank: int = Field(..., description="Ranking (1=best)")
    tier: str = Field(..., description="Tier marker: gold, silver, bronze")
    score: int = Field(..., description="Composite score (0-100)")
    name: str = Field(..., description="Display name")
    strategy_type: str = Field(..., description="Strategy type tag")
    direction: str = Field(..., description="'bullish', 'bearish', or 'neutral'")

    strikes: dict[str, Decimal] = Field(..., description="Strike by leg role")
    legs: list[OptionLegResponse]
    contracts: int = Field(..., description="Contract count")

    # Pricing
    net_credit: Decimal | None = Field(default=None, description="Credit received")
    net_debit: Decimal | None = Field(default=None, description="Debit paid")
    leg_prices: dict[str, Decimal] = Field(default_factory=dict, description="Quoted mid by role")
    using_real_prices: bool = Field(..., description="False when premiums are estimated from IV")

    # Risk metrics
    max_risk: Decimal = Field(..., description="Maximum loss")
    max_profit: Decimal = Field(..., description="Maximum profit")
    breakevens: list[Decimal] = Field(default_factory=list)
    win_rate: int = Field(..., description="Estimated win probability %")
    win_rate_source: str = Field(..., description="'probability' or 'base_rate'")
    roc: int = Field(..., description="Return on capital %")

    dte: int | None = None
    long_dte: int | None = Field(default=None, description="Long leg DTE for time spreads")
    avg_open_interest: int | None = Field(default=None, description="Average open interest")

    # Reasoning
    rationale: list[str] = Field(default_factory=list, description="Reasoning bullets")

    @classmethod
    def from_candidate(cls, candidate: StrategyCandidate) -> StrategyCandidateResponse:
        return cls(
            rank=candidate.rank,
            tier=candidate.tier,
            score=candidate.score,
            name=candidate.name,
            strategy_type=candidate.strategy_type.value,
            direction=candidate.direction.value,
            strikes=candidate.strikes,
            legs=[
                OptionLegResponse(
                    role=leg.role,
                    option_type=leg.option_type,
                    side=leg.side,
                    strike=leg.strike,
                    quantity=leg.quantity,
                    far_dated=leg.far_dated,
                )
                for leg in candidate.legs
            ],
            contracts=candidate.contracts,
            net_credit=candidate.net_credit,
            net_debit=candidate.net_debit,
            leg_prices=candidate.leg_prices,
            using_real_prices=candidate.using_real_prices,
            max_risk=candidate.max_risk,
            max_profit=candidate.max_profit,
            breakevens=candidate.breakevens,
            win_rate=candidate.win_rate,
            win_rate_source=candidate.win_rate_source,
            roc=candidate.roc,
            dte=candidate.dte,
            long_dte=candidate.long_dte,
            avg_open_interest=candidate.avg_open_interest,
            rationale=candidate.rationale,
        )


class StrategyAnalysisResponse(BaseModel):
    """Complete analysis result."""

    symbol: str = Field(..., description="Ticker symbol")
    price: Decimal = Field(..., description="Underlying price")
    dte: int = Field(..., description="Days to expiration")
    iv_rank: Decimal = Field(..., description="IV rank used for gates and scoring")
    iv_rank_tier: str = Field(..., description="IV rank tier")
    trend: str = Field(..., description="Technical trend")
    trend_score: Decimal = Field(..., description="Technical score")

    volatility: VolatilityRangeResponse = Field(..., description="Expected ±1σ/±2σ range")
    strike_band: VolatilityRangeResponse = Field(..., description="Band strikes were chosen from")

    # Recommendations
    recommendations: list[StrategyCandidateResponse] = Field(
        ..., description="Ranked recommendations (top 3)"
    )
    candidates_considered: int = Field(..., description="Eligible candidates before truncation")
    options_available: bool = Field(..., description="True when legs could be priced from quotes")

    # Configuration
    config_used: dict[str, Any] = Field(..., description="Configuration used")

    # Warnings
    warnings: list[str] = Field(default_factory=list, description="System warnings")

    data_timestamp: datetime = Field(..., description="Analysis timestamp (UTC)")
    cached: bool = Field(default=False, description="Served from cache")
