"""
Strategy Recommendation Engine
Band computation, candidate generation, scoring and ranking for one market snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterable

from app.core.market_snapshot import IVRankTier, MarketSnapshot, Trend
from app.core.options_chain import parse_options_chain
from app.core.ranking import rank_candidates, summarize
from app.core.scoring import score_candidates
from app.core.strategy_catalog import ChainSet, StrategyCandidate, generate_candidates
from app.core.strategy_config import StrategyConfig, default_strategy_config
from app.core.volatility import VolatilityRange, adjust_for_gamma, compute_band
from app.utils.logger import app_logger


@dataclass
class StrategyRecommendationResult:
    """Complete recommendation result."""

    symbol: str
    price: Decimal
    dte: int
    iv_rank: Decimal
    iv_rank_tier: IVRankTier
    trend: Trend

    # Raw band and the band strikes were selected from (gamma-adjusted when enabled)
    volatility: VolatilityRange
    strike_band: VolatilityRange

    # Recommendations
    recommendations: list[StrategyCandidate]
    candidates_considered: int
    options_available: bool

    # Configuration used
    config_used: dict[str, Any]

    # Warnings
    warnings: list[str]


def build_chains(
    raw_contracts: Iterable[dict[str, Any]] | None,
    dte: int,
    config: StrategyConfig,
    as_of: date | None = None,
) -> ChainSet:
    """Parse the near chain at dte and the far chain for time-spread long legs."""
    if raw_contracts is None:
        return ChainSet()

    raw = list(raw_contracts)
    return ChainSet(
        near=parse_options_chain(raw, dte, as_of=as_of, tolerance=config.chain_dte_tolerance),
        far=parse_options_chain(
            raw,
            dte + config.time_spread_long_dte_offset,
            as_of=as_of,
            tolerance=config.chain_dte_tolerance,
        ),
    )


def recommend_strategies(
    snapshot: MarketSnapshot,
    raw_contracts: Iterable[dict[str, Any]] | None = None,
    as_of: date | None = None,
    config: StrategyConfig | None = None,
) -> StrategyRecommendationResult:
    """
    Generate ranked strategy recommendations.

    Pure over its inputs: the same snapshot and contracts always produce the
    same candidates, scores and ranks. No timestamps are added here.

    Args:
        snapshot: Market inputs for the underlying
        raw_contracts: Optional raw option contracts to price legs from
        as_of: Valuation date for contracts without a DTE field
        config: Policy values (built from settings if None)

    Returns:
        StrategyRecommendationResult with at most max_recommendations entries

    Raises:
        InvalidInput: when price, IV or DTE is missing, zero or negative
    """
    config = config or default_strategy_config()
    warnings = []

    volatility = compute_band(snapshot.price, snapshot.implied_vol, snapshot.dte)
    strike_band = volatility
    if config.apply_gamma_adjustment:
        strike_band = adjust_for_gamma(volatility, snapshot.gamma)
        if strike_band.adjustment_note:
            warnings.append(f"1σ band scaled ×{strike_band.adjustment:.3f}: {strike_band.adjustment_note}")

    chains = build_chains(raw_contracts, volatility.dte, config, as_of=as_of)
    if raw_contracts is not None and not chains.has_quotes:
        warnings.append(
            f"No contracts within ±{config.chain_dte_tolerance} days of {volatility.dte} DTE; "
            "premiums are estimated from implied volatility"
        )

    candidates = generate_candidates(snapshot, strike_band, chains, config)
    score_candidates(candidates, snapshot.scoring_context(), config.weights)
    ranked = rank_candidates(candidates, config.max_recommendations)

    if not ranked:
        warnings.append(f"No eligible strategies for {snapshot.symbol}")

    estimated = [c.name for c in ranked if not c.using_real_prices]
    if estimated and chains.has_quotes:
        warnings.append(f"Estimated pricing used for: {', '.join(estimated)}")

    app_logger.info(f"{snapshot.symbol} {volatility.dte}DTE recommendations: {summarize(ranked)}")

    return StrategyRecommendationResult(
        symbol=snapshot.symbol,
        price=volatility.price,
        dte=volatility.dte,
        iv_rank=snapshot.iv_rank,
        iv_rank_tier=snapshot.iv_rank_tier,
        trend=snapshot.trend,
        volatility=volatility,
        strike_band=strike_band,
        recommendations=ranked,
        candidates_considered=len(candidates),
        options_available=chains.has_quotes,
        config_used=config.as_dict(),
        warnings=warnings,
    )
