"""
Market Snapshot
Already-fetched market inputs consumed by the recommendation core.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum


class Trend(str, Enum):
    """Technical trend category."""

    BULLISH = "bullish"
    BEARISH = "bearish"
    NEUTRAL = "neutral"


class IVRankTier(str, Enum):
    """IV rank tier (12-month position of current IV)."""

    VERY_HIGH = "very_high"  # IVR >= 75
    HIGH = "high"  # IVR 50-75
    MEDIUM = "medium"  # IVR 25-50
    LOW = "low"  # IVR < 25
    UNKNOWN = "unknown"


class GammaEnvironment(str, Enum):
    """Dealer gamma positioning."""

    POSITIVE = "positive"
    NEGATIVE = "negative"
    NEUTRAL = "neutral"


@dataclass(frozen=True)
class GammaExposure:
    """Gamma exposure summary for the underlying."""

    zero_gamma: Decimal | None = None
    environment: GammaEnvironment = GammaEnvironment.NEUTRAL
    available: bool = False


@dataclass(frozen=True)
class MarketSnapshot:
    """Immutable per-analysis market inputs."""

    symbol: str
    price: Decimal | None
    implied_vol: Decimal | None  # Decimal form (0.35 = 35%)
    dte: int | None
    iv_rank: Decimal = Decimal("50")
    iv_rank_tier: IVRankTier = IVRankTier.MEDIUM
    trend_score: Decimal = Decimal("50")
    trend: Trend = Trend.NEUTRAL
    gamma: GammaExposure = field(default_factory=GammaExposure)
    has_earnings_near: bool = False
    days_until_earnings: int | None = None

    def scoring_context(self) -> ScoringContext:
        """Project the fields the scoring engine reads."""
        return ScoringContext(
            iv_rank=self.iv_rank,
            iv_rank_tier=self.iv_rank_tier,
            trend_score=self.trend_score,
            trend=self.trend,
            gamma=self.gamma,
            has_earnings_near=self.has_earnings_near,
            days_until_earnings=self.days_until_earnings,
        )


@dataclass(frozen=True)
class ScoringContext:
    """Market context references used when scoring candidates."""

    iv_rank: Decimal
    iv_rank_tier: IVRankTier
    trend_score: Decimal
    trend: Trend
    gamma: GammaExposure
    has_earnings_near: bool = False
    days_until_earnings: int | None = None
