"""Pytest fixtures for strategy engine testing."""

from decimal import Decimal

import pytest

from app.core.market_snapshot import (
    GammaEnvironment,
    GammaExposure,
    IVRankTier,
    MarketSnapshot,
    Trend,
)
from app.core.strategy_config import StrategyConfig

SPOT = Decimal("250.50")


def make_contract(
    option_type: str,
    strike,
    mid,
    dte: int = 7,
    open_interest: int = 1000,
    iv: str = "0.35",
) -> dict:
    """Raw provider record with a 10 cent bid/ask spread around mid."""
    mid = Decimal(str(mid))
    return {
        "strike": str(strike),
        "type": option_type,
        "bid": str(mid - Decimal("0.05")),
        "ask": str(mid + Decimal("0.05")),
        "last": str(mid),
        "implied_volatility": iv,
        "delta": "0.5" if option_type == "call" else "-0.5",
        "volume": 250,
        "open_interest": open_interest,
        "days_to_expiration": dte,
    }


def synthetic_mid(option_type: str, strike: Decimal, spot: Decimal, dte: int) -> Decimal:
    """Intrinsic value plus a time value that decays away from the money."""
    if option_type == "call":
        intrinsic = max(spot - strike, Decimal(0))
    else:
        intrinsic = max(strike - spot, Decimal(0))
    time_value = max(Decimal("0.05"), Decimal("6") - Decimal("0.4") * abs(strike - spot))
    if dte > 7:
        time_value *= Decimal("1.4")
    return intrinsic + time_value


def build_chain(spot: Decimal = SPOT, dtes=(7, 14), strikes=range(200, 305, 5)) -> list[dict]:
    contracts = []
    for dte in dtes:
        for strike in strikes:
            strike = Decimal(strike)
            for option_type in ("call", "put"):
                mid = synthetic_mid(option_type, strike, spot, dte)
                contracts.append(make_contract(option_type, strike, mid, dte=dte))
    return contracts


@pytest.fixture
def config() -> StrategyConfig:
    """Engine configuration with the documented defaults."""
    return StrategyConfig()


@pytest.fixture
def scenario_a_snapshot() -> MarketSnapshot:
    """$250.50, 35% IV, 7 DTE, IV rank 65, bullish, positive gamma."""
    return MarketSnapshot(
        symbol="AAPL",
        price=SPOT,
        implied_vol=Decimal("0.35"),
        dte=7,
        iv_rank=Decimal("65"),
        iv_rank_tier=IVRankTier.HIGH,
        trend_score=Decimal("68"),
        trend=Trend.BULLISH,
        gamma=GammaExposure(
            zero_gamma=Decimal("240"),
            environment=GammaEnvironment.POSITIVE,
            available=True,
        ),
    )


@pytest.fixture
def low_iv_snapshot(scenario_a_snapshot) -> MarketSnapshot:
    """Scenario A with IV rank 20."""
    return MarketSnapshot(
        symbol=scenario_a_snapshot.symbol,
        price=scenario_a_snapshot.price,
        implied_vol=scenario_a_snapshot.implied_vol,
        dte=scenario_a_snapshot.dte,
        iv_rank=Decimal("20"),
        iv_rank_tier=IVRankTier.LOW,
        trend_score=scenario_a_snapshot.trend_score,
        trend=scenario_a_snapshot.trend,
        gamma=scenario_a_snapshot.gamma,
    )


@pytest.fixture
def weekly_chain() -> list[dict]:
    """Calls and puts at 7 and 14 DTE, strikes 200-300 in $5 steps."""
    return build_chain()
