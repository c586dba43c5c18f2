"""
Unit tests for composite strategy scoring.
"""

from decimal import Decimal

import pytest

from app.core.market_snapshot import (
    GammaEnvironment,
    GammaExposure,
    IVRankTier,
    ScoringContext,
    Trend,
)
from app.core.scoring import (
    direction_fit_points,
    gamma_fit_points,
    iv_fit_points,
    liquidity_points,
    score_candidate,
    score_candidates,
)
from app.core.strategy_catalog import StrategyCandidate, StrategyType
from app.core.strategy_config import ScoringWeights


def _candidate(
    strategy_type=StrategyType.IRON_CONDOR,
    direction=Trend.NEUTRAL,
    win_rate=70,
    roc=25,
    using_real_prices=False,
    avg_open_interest=None,
) -> StrategyCandidate:
    return StrategyCandidate(
        name=strategy_type.value,
        strategy_type=strategy_type,
        direction=direction,
        strikes={},
        legs=[],
        contracts=1,
        net_credit=Decimal("200"),
        max_risk=Decimal("800"),
        max_profit=Decimal("200"),
        win_rate=win_rate,
        roc=roc,
        using_real_prices=using_real_prices,
        avg_open_interest=avg_open_interest,
    )


def _context(
    iv_rank="65",
    trend_score="60",
    trend=Trend.BULLISH,
    gamma=None,
    has_earnings_near=False,
    days_until_earnings=None,
) -> ScoringContext:
    return ScoringContext(
        iv_rank=Decimal(iv_rank),
        iv_rank_tier=IVRankTier.HIGH,
        trend_score=Decimal(trend_score),
        trend=trend,
        gamma=gamma or GammaExposure(Decimal("240"), GammaEnvironment.POSITIVE, available=True),
        has_earnings_near=has_earnings_near,
        days_until_earnings=days_until_earnings,
    )


@pytest.fixture
def weights():
    return ScoringWeights()


class TestScoreCandidate:
    def test_composite_breakdown(self) -> None:
        """17.5 win + 10 ROC + 9 technical + 12 IV fit + 10 direction + 10 gamma + 5 liquidity."""
        assert score_candidate(_candidate(), _context()) == 74

    def test_earnings_penalty(self) -> None:
        assert score_candidate(_candidate(), _context(has_earnings_near=True)) == 64
        assert score_candidate(_candidate(), _context(days_until_earnings=5)) == 64
        assert score_candidate(_candidate(), _context(days_until_earnings=12)) == 74

    def test_roc_contribution_caps(self) -> None:
        capped = score_candidate(_candidate(roc=500), _context())
        at_cap = score_candidate(_candidate(roc=50), _context())
        assert capped == at_cap

    def test_clamped_to_100(self) -> None:
        candidate = _candidate(win_rate=100, roc=500, using_real_prices=True, avg_open_interest=1000)
        assert score_candidate(candidate, _context(iv_rank="80", trend_score="100")) == 100

    def test_clamped_to_zero(self) -> None:
        weights = ScoringWeights(earnings_penalty=Decimal("100"))
        assert score_candidate(_candidate(), _context(has_earnings_near=True), weights) == 0

    def test_score_candidates_sets_scores(self) -> None:
        candidates = [_candidate(), _candidate(win_rate=40)]
        scored = score_candidates(candidates, _context())

        assert scored is candidates
        assert all(0 <= c.score <= 100 for c in scored)
        assert scored[0].score > scored[1].score


class TestFitTerms:
    @pytest.mark.parametrize(
        "iv_rank,expected", [("75", 15), ("70", 15), ("55", 12), ("35", 8), ("10", 4)]
    )
    def test_iv_fit_for_sellers(self, weights, iv_rank, expected) -> None:
        points = iv_fit_points(_candidate(), _context(iv_rank=iv_rank), weights)
        assert points == expected

    @pytest.mark.parametrize("iv_rank,expected", [("20", 15), ("40", 10), ("50", 5), ("90", 5)])
    def test_iv_fit_for_buyers(self, weights, iv_rank, expected) -> None:
        butterfly = _candidate(strategy_type=StrategyType.BUTTERFLY)
        assert iv_fit_points(butterfly, _context(iv_rank=iv_rank), weights) == expected

    def test_iv_fit_scales_with_weight(self) -> None:
        points = iv_fit_points(_candidate(), _context(iv_rank="75"), ScoringWeights(iv_fit=Decimal("10")))
        assert points == 10

    @pytest.mark.parametrize(
        "direction,trend,expected",
        [
            (Trend.NEUTRAL, Trend.BEARISH, 10),
            (Trend.BULLISH, Trend.BULLISH, 10),
            (Trend.BULLISH, Trend.NEUTRAL, 7),
            (Trend.BULLISH, Trend.BEARISH, 3),
        ],
    )
    def test_direction_fit(self, weights, direction, trend, expected) -> None:
        candidate = _candidate(strategy_type=StrategyType.VERTICAL_SPREAD, direction=direction)
        assert direction_fit_points(candidate, _context(trend=trend), weights) == expected

    def test_gamma_fit(self, weights) -> None:
        positive = _context()
        negative = _context(gamma=GammaExposure(Decimal("240"), GammaEnvironment.NEGATIVE, available=True))
        unavailable = _context(gamma=GammaExposure())
        seller = _candidate()
        buyer = _candidate(strategy_type=StrategyType.CALENDAR_SPREAD)

        assert gamma_fit_points(seller, positive, weights) == 10
        assert gamma_fit_points(seller, negative, weights) == 6
        assert gamma_fit_points(buyer, negative, weights) == 10
        assert gamma_fit_points(buyer, positive, weights) == 6
        assert gamma_fit_points(seller, unavailable, weights) == 5

    def test_liquidity(self, weights) -> None:
        assert liquidity_points(_candidate(), weights) == 5
        assert liquidity_points(_candidate(using_real_prices=True, avg_open_interest=250), weights) == 5
        assert liquidity_points(_candidate(using_real_prices=True, avg_open_interest=5000), weights) == 10
        assert liquidity_points(_candidate(using_real_prices=True, avg_open_interest=0), weights) == 0
