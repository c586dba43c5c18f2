"""
Strategy Analysis API Endpoints
Ranked short-dated options strategies for a market snapshot supplied by the caller.
"""

import hashlib
from datetime import UTC, datetime
from decimal import Decimal

from fastapi import APIRouter, HTTPException

from app.api.v1.schemas.strategy_recommendation import (
    StrategyAnalysisRequest,
    StrategyAnalysisResponse,
    StrategyCandidateResponse,
)
from app.api.v1.schemas.volatility import VolatilityRangeResponse
from app.config import settings
from app.core.exceptions import InvalidInput
from app.core.iv_rank import calculate_iv_rank, classify_iv_rank
from app.core.market_snapshot import (
    GammaEnvironment,
    GammaExposure,
    IVRankTier,
    MarketSnapshot,
    Trend,
)
from app.core.options_chain import extract_atm_iv
from app.core.strategy_recommender import recommend_strategies
from app.core.technical_score import calculate_technical_score
from app.utils.cache import get_cache
from app.utils.logger import app_logger

router = APIRouter(prefix="/strategy", tags=["strategy-analysis"])

NEUTRAL_IV_RANK = Decimal(50)
NEUTRAL_TREND_SCORE = Decimal(50)


def analysis_cache_key(request: StrategyAnalysisRequest) -> str:
    """Cache key from symbol, DTE and a digest of the full request payload."""
    digest = hashlib.sha256(request.model_dump_json(exclude={"nocache"}).encode()).hexdigest()[:16]
    return f"strategy:{request.symbol}:{request.dte}:{digest}"


def build_snapshot(request: StrategyAnalysisRequest, warnings: list[str]) -> MarketSnapshot:
    """
    Resolve IV, IV rank and technicals from the request into a MarketSnapshot.

    Missing IV rank or technicals fall back to neutral values with a warning.
    """
    raw_contracts = _raw_contracts(request)

    implied_vol = request.implied_vol
    if implied_vol is None and raw_contracts:
        implied_vol = extract_atm_iv(raw_contracts, request.price)
        if implied_vol is not None:
            warnings.append(f"Implied volatility {implied_vol} taken from the ATM call")

    if request.iv_rank is not None:
        iv_rank, iv_rank_tier = request.iv_rank, classify_iv_rank(request.iv_rank)
    else:
        ranked = calculate_iv_rank(implied_vol, request.historical_ivs)
        if ranked.iv_rank is None:
            iv_rank, iv_rank_tier = NEUTRAL_IV_RANK, IVRankTier.UNKNOWN
            warnings.append("IV rank unavailable - using neutral assumption")
        else:
            iv_rank, iv_rank_tier = ranked.iv_rank, ranked.tier

    if request.technical_indicators is not None:
        technical = calculate_technical_score(request.technical_indicators)
        trend_score, trend = Decimal(technical.score), technical.trend
    else:
        trend_score = request.trend_score if request.trend_score is not None else NEUTRAL_TREND_SCORE
        trend = Trend(request.trend) if request.trend else Trend.NEUTRAL
        if request.trend is None and request.trend_score is None:
            warnings.append("Technical trend unavailable - using neutral assumption")

    gamma = GammaExposure()
    if request.gamma is not None and request.gamma.zero_gamma is not None:
        gamma = GammaExposure(
            zero_gamma=request.gamma.zero_gamma,
            environment=GammaEnvironment(request.gamma.environment),
            available=True,
        )

    return MarketSnapshot(
        symbol=request.symbol,
        price=request.price,
        implied_vol=implied_vol,
        dte=request.dte,
        iv_rank=iv_rank,
        iv_rank_tier=iv_rank_tier,
        trend_score=trend_score,
        trend=trend,
        gamma=gamma,
        has_earnings_near=request.has_earnings_near,
        days_until_earnings=request.days_until_earnings,
    )


@router.post("/analyze", response_model=StrategyAnalysisResponse)
async def analyze_strategies(request: StrategyAnalysisRequest) -> StrategyAnalysisResponse:
    """
    Rank short-dated options strategies for one underlying.

    **How it works:**
    1. Computes the expected ±1σ/±2σ range from price, IV and DTE
    2. Scales the 1σ band by the gamma environment when GEX data is supplied
    3. Generates iron condor, vertical, butterfly, cash-secured put, calendar
       and diagonal candidates that pass their eligibility gates
    4. Prices legs from the supplied chain, or estimates premiums from IV
    5. Scores each candidate (0-100) and returns the top 3

    **Example Request:**
    ```json
    {
      "symbol": "AAPL",
      "price": 250.50,
      "implied_vol": 0.35,
      "dte": 7,
      "iv_rank": 65,
      "trend": "bullish",
      "trend_score": 68,
      "gamma": {"zero_gamma": 240, "environment": "positive"}
    }
    ```
    """
    cache = get_cache()
    cache_key = analysis_cache_key(request)

    cached = None if request.nocache else await cache.get(cache_key)
    if cached is not None:
        response = StrategyAnalysisResponse.model_validate(cached)
        response.cached = True
        return response

    warnings: list[str] = []
    try:
        snapshot = build_snapshot(request, warnings)
        result = recommend_strategies(
            snapshot,
            raw_contracts=_raw_contracts(request),
            as_of=request.as_of,
        )
    except InvalidInput as exc:
        raise HTTPException(
            status_code=422, detail=f"Cannot analyze {request.symbol}: {exc.message}"
        ) from exc
    except Exception as e:
        app_logger.error(f"Strategy analysis failed for {request.symbol}: {e}")
        raise HTTPException(
            status_code=500, detail=f"Error generating strategy recommendations: {str(e)}"
        ) from e

    response = StrategyAnalysisResponse(
        symbol=result.symbol,
        price=result.price,
        dte=result.dte,
        iv_rank=result.iv_rank,
        iv_rank_tier=result.iv_rank_tier.value,
        trend=result.trend.value,
        trend_score=snapshot.trend_score,
        volatility=VolatilityRangeResponse.from_range(result.volatility),
        strike_band=VolatilityRangeResponse.from_range(result.strike_band),
        recommendations=[
            StrategyCandidateResponse.from_candidate(candidate)
            for candidate in result.recommendations
        ],
        candidates_considered=result.candidates_considered,
        options_available=result.options_available,
        config_used=result.config_used,
        warnings=warnings + result.warnings,
        data_timestamp=datetime.now(UTC),
    )

    await cache.set(cache_key, response.model_dump(mode="json"), ttl=settings.ANALYSIS_CACHE_TTL)
    return response


def _raw_contracts(request: StrategyAnalysisRequest) -> list[dict] | None:
    if request.contracts is None:
        return None
    return [contract.model_dump(mode="json") for contract in request.contracts]
