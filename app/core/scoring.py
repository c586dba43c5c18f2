"""
Strategy Scoring Engine
Composite 0-100 score combining win rate, ROC, technicals and market-fit terms.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from app.core.market_snapshot import GammaEnvironment, ScoringContext, Trend
from app.core.strategy_catalog import StrategyCandidate
from app.core.strategy_config import ScoringWeights

# Open interest earning full liquidity points
FULL_LIQUIDITY_OPEN_INTEREST = Decimal(500)

# Reference weights the fit tables are expressed in
_IV_FIT_SCALE = Decimal(15)
_DIRECTION_SCALE = Decimal(10)
_GAMMA_SCALE = Decimal(10)


def score_candidate(
    candidate: StrategyCandidate,
    context: ScoringContext,
    weights: ScoringWeights | None = None,
) -> int:
    """
    Calculate composite score for ranking candidates.

    Scoring formula (0-100 scale):
    - Win rate (25): estimated probability of profit
    - ROC (20): capped at 50% return on capital
    - Technical (15): trend score of the underlying
    - IV rank fit (15): sellers like high IV rank, buyers like low
    - Direction fit (10): neutral structures always fit
    - Gamma fit (10): sellers like positive gamma, buyers negative
    - Liquidity (10): open interest of quoted legs, flat default otherwise
    - Earnings penalty (-10): event within the earnings window

    Args:
        candidate: Generated strategy candidate
        context: Market context from the snapshot
        weights: Point weights (defaults if None)

    Returns:
        Integer score clamped to [0, 100]
    """
    weights = weights or ScoringWeights()
    score = Decimal(0)

    # Win rate (0-25 points)
    score += Decimal(candidate.win_rate) / 100 * weights.win_rate

    # ROC (0-20 points), full marks at the cap
    if weights.roc_cap > 0:
        roc_points = Decimal(candidate.roc) / weights.roc_cap * weights.roc
        score += max(Decimal(0), min(roc_points, weights.roc))

    # Technical (0-15 points)
    score += Decimal(str(context.trend_score)) / 100 * weights.technical

    score += iv_fit_points(candidate, context, weights)
    score += direction_fit_points(candidate, context, weights)
    score += gamma_fit_points(candidate, context, weights)
    score += liquidity_points(candidate, weights)

    if _earnings_near(context, weights):
        score -= weights.earnings_penalty

    score = max(Decimal(0), min(Decimal(100), score))
    return int(score.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def iv_fit_points(candidate: StrategyCandidate, context: ScoringContext, weights: ScoringWeights) -> Decimal:
    """IV rank fit: net sellers reward rising IV rank, net buyers falling IV rank."""
    iv_rank = Decimal(str(context.iv_rank))

    if candidate.is_seller:
        if iv_rank >= 70:
            points = 15
        elif iv_rank >= 50:
            points = 12
        elif iv_rank >= 30:
            points = 8
        else:
            points = 4
    else:
        if iv_rank < 30:
            points = 15
        elif iv_rank < 50:
            points = 10
        else:
            points = 5

    return Decimal(points) * weights.iv_fit / _IV_FIT_SCALE


def direction_fit_points(
    candidate: StrategyCandidate, context: ScoringContext, weights: ScoringWeights
) -> Decimal:
    if candidate.direction == Trend.NEUTRAL or candidate.direction == context.trend:
        points = 10
    elif context.trend == Trend.NEUTRAL:
        points = 7
    else:
        points = 3
    return Decimal(points) * weights.direction / _DIRECTION_SCALE


def gamma_fit_points(candidate: StrategyCandidate, context: ScoringContext, weights: ScoringWeights) -> Decimal:
    """Range-bound sellers favor positive gamma; buyers and directional trades favor negative."""
    gamma = context.gamma
    if not gamma.available:
        return weights.gamma / 2

    favored = GammaEnvironment.POSITIVE if candidate.is_seller else GammaEnvironment.NEGATIVE
    points = 10 if gamma.environment == favored else 6
    return Decimal(points) * weights.gamma / _GAMMA_SCALE


def liquidity_points(candidate: StrategyCandidate, weights: ScoringWeights) -> Decimal:
    """Open-interest based when quoted, flat placeholder for estimates."""
    if not candidate.using_real_prices or candidate.avg_open_interest is None:
        return weights.liquidity_default

    # Normalize: 250 OI = 0.5, 500+ OI = 1.0
    oi_normalized = min(Decimal(candidate.avg_open_interest) / FULL_LIQUIDITY_OPEN_INTEREST, Decimal(1))
    return oi_normalized * weights.liquidity


def score_candidates(
    candidates: list[StrategyCandidate],
    context: ScoringContext,
    weights: ScoringWeights | None = None,
) -> list[StrategyCandidate]:
    """Attach a score to every candidate in place and return the same list."""
    for candidate in candidates:
        candidate.score = score_candidate(candidate, context, weights)
    return candidates


def _earnings_near(context: ScoringContext, weights: ScoringWeights) -> bool:
    if context.has_earnings_near:
        return True
    days = context.days_until_earnings
    return days is not None and 0 <= days <= weights.earnings_window_days
