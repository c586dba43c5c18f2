"""
Tests for strategy analysis and volatility endpoints.
"""

from __future__ import annotations

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from fastapi import HTTPException

from app.api.v1 import strategy_recommendation as strategy_api
from app.api.v1 import volatility as volatility_api
from app.api.v1.schemas.strategy_recommendation import StrategyAnalysisRequest
from app.utils.cache import MemoryCache
from conftest import build_chain


@pytest.fixture
def memory_cache(monkeypatch) -> MemoryCache:
    cache = MemoryCache(default_ttl=60)
    monkeypatch.setattr(strategy_api, "get_cache", lambda: cache)
    return cache


def _request(**overrides) -> StrategyAnalysisRequest:
    payload = {
        "symbol": "aapl",
        "price": "250.50",
        "implied_vol": "0.35",
        "dte": 7,
        "iv_rank": 65,
        "trend": "bullish",
        "trend_score": 68,
        "gamma": {"zero_gamma": 240, "environment": "positive"},
    }
    payload.update(overrides)
    return StrategyAnalysisRequest(**payload)


@pytest.mark.asyncio
async def test_analyze_returns_ranked_strategies(memory_cache):
    """Scenario A request returns the top three ranked strategies."""
    response = await strategy_api.analyze_strategies(_request())

    assert response.symbol == "AAPL"
    assert response.iv_rank_tier == "high"
    assert response.volatility.one_sigma.move == Decimal("12.14")
    assert response.strike_band.adjustment == Decimal("0.85")
    assert [r.rank for r in response.recommendations] == [1, 2, 3]
    assert [r.tier for r in response.recommendations] == ["gold", "silver", "bronze"]
    assert response.candidates_considered == 5
    assert response.cached is False
    assert all(r.contracts >= 1 for r in response.recommendations)


@pytest.mark.asyncio
async def test_analyze_serves_repeat_requests_from_cache(memory_cache):
    first = await strategy_api.analyze_strategies(_request())
    second = await strategy_api.analyze_strategies(_request())

    assert second.cached is True
    assert [r.name for r in second.recommendations] == [r.name for r in first.recommendations]
    assert second.recommendations[0].score == first.recommendations[0].score


def test_cache_key_varies_with_payload():
    assert strategy_api.analysis_cache_key(_request()) != strategy_api.analysis_cache_key(
        _request(iv_rank=20)
    )
    assert strategy_api.analysis_cache_key(_request()).startswith("strategy:AAPL:7:")


@pytest.mark.asyncio
async def test_analyze_prices_from_contracts(memory_cache):
    response = await strategy_api.analyze_strategies(_request(contracts=build_chain()))

    assert response.options_available is True
    assert any(r.using_real_prices for r in response.recommendations)


@pytest.mark.asyncio
async def test_analyze_takes_iv_from_atm_call(memory_cache):
    response = await strategy_api.analyze_strategies(
        _request(implied_vol=None, contracts=build_chain())
    )

    assert response.volatility.implied_vol == Decimal("0.35")
    assert any("ATM call" in w for w in response.warnings)


@pytest.mark.asyncio
async def test_analyze_without_iv_is_unprocessable(memory_cache):
    with pytest.raises(HTTPException) as exc_info:
        await strategy_api.analyze_strategies(_request(implied_vol=None))

    assert exc_info.value.status_code == 422
    assert "Cannot analyze AAPL" in exc_info.value.detail


@pytest.mark.asyncio
async def test_analyze_neutral_defaults(memory_cache):
    """Missing IV rank and technicals fall back to neutral assumptions."""
    response = await strategy_api.analyze_strategies(
        _request(iv_rank=None, trend=None, trend_score=None, gamma=None)
    )

    assert response.iv_rank == Decimal(50)
    assert response.iv_rank_tier == "unknown"
    assert response.trend == "neutral"
    assert any("IV rank unavailable" in w for w in response.warnings)


@pytest.mark.asyncio
async def test_analyze_scores_technical_indicators(memory_cache):
    period = {
        "macd": {"macd": -1.0, "signal": -0.5, "hist": -0.5},
        "rsi": {"value": 45},
        "stoch": {"k": 35, "d": 45},
    }
    response = await strategy_api.analyze_strategies(
        _request(
            trend=None,
            trend_score=None,
            technical_indicators={"daily": period, "hourly1": period, "hourly2": period},
            historical_ivs=["0.20", "0.30", "0.40"],
            iv_rank=None,
        )
    )

    assert response.trend == "bearish"
    assert response.trend_score == Decimal(5)
    assert response.iv_rank == Decimal("75.0")
    names = [r.name for r in response.recommendations]
    assert "Cash-Secured Put" not in names


@pytest.mark.asyncio
async def test_analyze_unexpected_error_is_500(memory_cache, monkeypatch):
    monkeypatch.setattr(strategy_api, "recommend_strategies", MagicMock(side_effect=RuntimeError("boom")))

    with pytest.raises(HTTPException) as exc_info:
        await strategy_api.analyze_strategies(_request())

    assert exc_info.value.status_code == 500


def test_request_validation():
    with pytest.raises(ValueError):
        _request(trend="sideways")
    with pytest.raises(ValueError):
        _request(price="0")
    with pytest.raises(ValueError):
        _request(gamma={"zero_gamma": 240, "environment": "flat"})


@pytest.mark.asyncio
async def test_volatility_band_endpoint():
    response = await volatility_api.get_volatility_band(
        price=Decimal("250.50"), iv=Decimal("0.35"), dte=7
    )

    assert response.one_sigma.lower == Decimal("238.36")
    assert response.one_sigma.upper == Decimal("262.64")
    assert response.two_sigma.probability == Decimal("95.4")


@pytest.mark.asyncio
async def test_volatility_band_rejects_bad_input():
    with pytest.raises(HTTPException) as exc_info:
        await volatility_api.get_volatility_band(price=Decimal("250"), iv=Decimal("0"), dte=7)
    assert exc_info.value.status_code == 422


@pytest.mark.asyncio
async def test_range_probability_endpoint():
    response = await volatility_api.get_range_probability(
        price=Decimal("100"), iv=Decimal("0.30"), dte=30, lower=Decimal("100"), upper=None
    )
    assert response.probability_pct == Decimal("50.0")


@pytest.mark.asyncio
async def test_analyze_nocache_recomputes(memory_cache):
    await strategy_api.analyze_strategies(_request())
    response = await strategy_api.analyze_strategies(_request(nocache=True))

    assert response.cached is False
    assert strategy_api.analysis_cache_key(_request(nocache=True)) == strategy_api.analysis_cache_key(
        _request()
    )
