"""
IV Rank Helpers
12-month position of current implied volatility and the matching tier.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Sequence

from app.core.market_snapshot import IVRankTier

_INTERPRETATIONS = {
    IVRankTier.VERY_HIGH: "IV near its 12-month high, favors selling premium",
    IVRankTier.HIGH: "IV in the upper half of its range, sellers have the edge",
    IVRankTier.MEDIUM: "IV mid-range, buying and selling both workable",
    IVRankTier.LOW: "IV near its 12-month low, favors buying options",
    IVRankTier.UNKNOWN: "Not enough IV history to rank",
}


@dataclass(frozen=True)
class IVRankResult:
    """IV rank reading for one underlying."""

    iv_rank: Decimal | None
    tier: IVRankTier
    recommendation: str  # sell_premium, neutral, buy_options, insufficient_data
    current_iv: Decimal | None = None
    min_iv: Decimal | None = None
    max_iv: Decimal | None = None

    @property
    def interpretation(self) -> str:
        return _INTERPRETATIONS[self.tier]


def classify_iv_rank(iv_rank: Decimal | None) -> IVRankTier:
    """
    Map an IV rank (0-100) to its tier.

    >= 75 very high, >= 50 high, >= 25 medium, else low.
    """
    if iv_rank is None:
        return IVRankTier.UNKNOWN
    if iv_rank >= 75:
        return IVRankTier.VERY_HIGH
    if iv_rank >= 50:
        return IVRankTier.HIGH
    if iv_rank >= 25:
        return IVRankTier.MEDIUM
    return IVRankTier.LOW


def calculate_iv_rank(current_iv, historical_ivs: Sequence | None) -> IVRankResult:
    """
    IV Rank = (current IV - 12m low) / (12m high - 12m low) × 100.

    Args:
        current_iv: Current implied volatility (decimal form)
        historical_ivs: Trailing 12 months of IV readings

    Returns:
        IVRankResult; rank is None without usable inputs and 50 when the
        history is flat
    """
    if not current_iv or not historical_ivs:
        return IVRankResult(iv_rank=None, tier=IVRankTier.UNKNOWN, recommendation="insufficient_data")

    current = Decimal(str(current_iv))
    history = [Decimal(str(iv)) for iv in historical_ivs]
    low, high = min(history), max(history)

    if high == low:
        return IVRankResult(
            iv_rank=Decimal(50),
            tier=IVRankTier.MEDIUM,
            recommendation="neutral",
            current_iv=current,
            min_iv=low,
            max_iv=high,
        )

    rank = ((current - low) / (high - low) * 100).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)
    tier = classify_iv_rank(rank)

    if tier in (IVRankTier.VERY_HIGH, IVRankTier.HIGH):
        recommendation = "sell_premium"
    elif tier == IVRankTier.MEDIUM:
        recommendation = "neutral"
    else:
        recommendation = "buy_options"

    return IVRankResult(
        iv_rank=rank,
        tier=tier,
        recommendation=recommendation,
        current_iv=current,
        min_iv=low,
        max_iv=high,
    )


def calculate_iv_percentile(current_iv, historical_ivs: Sequence | None) -> int | None:
    """Share of historical readings strictly below the current IV, as a whole percent."""
    if not current_iv or not historical_ivs:
        return None

    current = Decimal(str(current_iv))
    below = sum(1 for iv in historical_ivs if Decimal(str(iv)) < current)
    percentile = Decimal(below) / Decimal(len(historical_ivs)) * 100
    return int(percentile.quantize(Decimal(1), rounding=ROUND_HALF_UP))
