"""
Strategy Engine Configuration
Immutable policy values injected into the recommendation core.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from app.config import Settings, settings


def _tiers(values: list[tuple[float, float]]) -> tuple[tuple[Decimal, Decimal], ...]:
    return tuple((Decimal(str(bound)), Decimal(str(step))) for bound, step in values)


def _factors(values: dict[str, float]) -> dict[str, Decimal]:
    return {key: Decimal(str(value)) for key, value in values.items()}


@dataclass(frozen=True)
class ScoringWeights:
    """Point weights for composite scoring (sum of maxima may exceed 100; totals are clamped)."""

    win_rate: Decimal = Decimal("25")
    roc: Decimal = Decimal("20")
    roc_cap: Decimal = Decimal("50")
    technical: Decimal = Decimal("15")
    iv_fit: Decimal = Decimal("15")
    direction: Decimal = Decimal("10")
    gamma: Decimal = Decimal("10")
    liquidity: Decimal = Decimal("10")
    liquidity_default: Decimal = Decimal("5")
    earnings_penalty: Decimal = Decimal("10")
    earnings_window_days: int = 7


@dataclass(frozen=True)
class StrategyConfig:
    """Policy constants for candidate generation, pricing and ranking."""

    min_net_premium: Decimal = Decimal("150")
    min_premium_per_contract: Decimal = Decimal("50")
    contract_multiplier: int = 100

    iron_condor_min_iv_rank: Decimal = Decimal("45")
    butterfly_max_iv_rank: Decimal = Decimal("60")
    time_spread_min_dte: int = 7
    time_spread_long_dte_offset: int = 7
    chain_dte_tolerance: int = 3

    strike_increment_tiers: tuple[tuple[Decimal, Decimal], ...] = (
        (Decimal("50"), Decimal("1")),
        (Decimal("100"), Decimal("2.5")),
        (Decimal("200"), Decimal("5")),
    )
    strike_increment_max: Decimal = Decimal("10")
    wing_width_tiers: tuple[tuple[Decimal, Decimal], ...] = (
        (Decimal("50"), Decimal("5")),
        (Decimal("100"), Decimal("10")),
        (Decimal("300"), Decimal("15")),
    )
    wing_width_max: Decimal = Decimal("20")

    premium_factors: dict[str, Decimal] = field(
        default_factory=lambda: {
            "iron_condor": Decimal("0.15"),
            "vertical_spread": Decimal("0.10"),
            "cash_secured_put": Decimal("0.12"),
            "butterfly": Decimal("0.12"),
            "calendar_spread": Decimal("0.07"),
            "diagonal_spread": Decimal("0.06"),
        }
    )
    short_leg_factors: dict[str, Decimal] = field(
        default_factory=lambda: {
            "calendar_spread": Decimal("0.15"),
            "diagonal_spread": Decimal("0.14"),
        }
    )
    profit_capture_ratios: dict[str, Decimal] = field(
        default_factory=lambda: {
            "calendar_spread": Decimal("0.70"),
            "diagonal_spread": Decimal("0.60"),
        }
    )
    time_spread_profit_zone_sigma: Decimal = Decimal("0.5")
    apply_gamma_adjustment: bool = True

    weights: ScoringWeights = field(default_factory=ScoringWeights)
    max_recommendations: int = 3

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> StrategyConfig:
        """Build the engine configuration from environment-backed settings."""
        source = source or settings
        return cls(
            min_net_premium=Decimal(str(source.MIN_NET_PREMIUM)),
            min_premium_per_contract=Decimal(str(source.MIN_PREMIUM_PER_CONTRACT)),
            contract_multiplier=source.CONTRACT_MULTIPLIER,
            iron_condor_min_iv_rank=Decimal(str(source.IRON_CONDOR_MIN_IV_RANK)),
            butterfly_max_iv_rank=Decimal(str(source.BUTTERFLY_MAX_IV_RANK)),
            time_spread_min_dte=source.TIME_SPREAD_MIN_DTE,
            time_spread_long_dte_offset=source.TIME_SPREAD_LONG_DTE_OFFSET,
            chain_dte_tolerance=source.CHAIN_DTE_TOLERANCE,
            strike_increment_tiers=_tiers(source.STRIKE_INCREMENT_TIERS),
            strike_increment_max=Decimal(str(source.STRIKE_INCREMENT_MAX)),
            wing_width_tiers=_tiers(source.WING_WIDTH_TIERS),
            wing_width_max=Decimal(str(source.WING_WIDTH_MAX)),
            premium_factors=_factors(source.PREMIUM_FACTORS),
            short_leg_factors=_factors(source.SHORT_LEG_FACTORS),
            profit_capture_ratios=_factors(source.PROFIT_CAPTURE_RATIOS),
            time_spread_profit_zone_sigma=Decimal(str(source.TIME_SPREAD_PROFIT_ZONE_SIGMA)),
            apply_gamma_adjustment=source.APPLY_GAMMA_ADJUSTMENT,
            weights=ScoringWeights(
                win_rate=Decimal(str(source.SCORING_WEIGHT_WIN_RATE)),
                roc=Decimal(str(source.SCORING_WEIGHT_ROC)),
                roc_cap=Decimal(str(source.SCORING_ROC_CAP)),
                technical=Decimal(str(source.SCORING_WEIGHT_TECHNICAL)),
                iv_fit=Decimal(str(source.SCORING_WEIGHT_IV_FIT)),
                direction=Decimal(str(source.SCORING_WEIGHT_DIRECTION)),
                gamma=Decimal(str(source.SCORING_WEIGHT_GAMMA)),
                liquidity=Decimal(str(source.SCORING_WEIGHT_LIQUIDITY)),
                liquidity_default=Decimal(str(source.SCORING_LIQUIDITY_DEFAULT)),
                earnings_penalty=Decimal(str(source.EARNINGS_PENALTY)),
                earnings_window_days=source.EARNINGS_WINDOW_DAYS,
            ),
            max_recommendations=source.MAX_RECOMMENDATIONS,
        )

    def strike_increment(self, underlying_price: Decimal) -> Decimal:
        """Strike grid increment for an underlying at this price."""
        for bound, step in self.strike_increment_tiers:
            if underlying_price < bound:
                return step
        return self.strike_increment_max

    def wing_width(self, underlying_price: Decimal) -> Decimal:
        """Spread/wing width in points for an underlying at this price."""
        for bound, width in self.wing_width_tiers:
            if underlying_price < bound:
                return width
        return self.wing_width_max

    def snap_to_strike_grid(self, target: Decimal, underlying_price: Decimal) -> Decimal:
        """
        Round a target level to the nearest listed-strike increment.

        The increment is chosen from the underlying price so every leg of a
        position lands on the same grid. Halves round up.
        """
        step = self.strike_increment(underlying_price)
        units = (target / step).quantize(Decimal(1), rounding=ROUND_HALF_UP)
        return units * step

    def as_dict(self) -> dict[str, Any]:
        """Serializable view of the policy values (reported with each analysis)."""
        return {
            "min_net_premium": float(self.min_net_premium),
            "min_premium_per_contract": float(self.min_premium_per_contract),
            "iron_condor_min_iv_rank": float(self.iron_condor_min_iv_rank),
            "butterfly_max_iv_rank": float(self.butterfly_max_iv_rank),
            "time_spread_min_dte": self.time_spread_min_dte,
            "strike_increment_tiers": [
                [float(bound), float(step)] for bound, step in self.strike_increment_tiers
            ],
            "strike_increment_max": float(self.strike_increment_max),
            "wing_width_tiers": [
                [float(bound), float(width)] for bound, width in self.wing_width_tiers
            ],
            "wing_width_max": float(self.wing_width_max),
            "premium_factors": {k: float(v) for k, v in self.premium_factors.items()},
            "scoring_weights": {
                "win_rate": float(self.weights.win_rate),
                "roc": float(self.weights.roc),
                "technical": float(self.weights.technical),
                "iv_fit": float(self.weights.iv_fit),
                "direction": float(self.weights.direction),
                "gamma": float(self.weights.gamma),
                "liquidity": float(self.weights.liquidity),
            },
        }


def default_strategy_config() -> StrategyConfig:
    """Configuration built from the global settings instance."""
    return StrategyConfig.from_settings(settings)
