"""
Strategy Catalog
One candidate generator per strategy type, sharing strike snapping, pricing, sizing and risk math.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from decimal import Decimal, ROUND_HALF_UP
from enum import Enum
from typing import Callable

from app.core.exceptions import DegenerateRange, InvalidInput, LegNotResolved, NotFound
from app.core.market_snapshot import GammaEnvironment, MarketSnapshot, Trend
from app.core.options_chain import OptionsChain, find_nearest
from app.core.strategy_config import StrategyConfig, default_strategy_config
from app.core.volatility import DAYS_PER_YEAR, VolatilityRange, probability_in_range
from app.utils.logger import app_logger, log_strategy_event

CENT = Decimal("0.01")


class StrategyType(str, Enum):
    """Supported strategy types."""

    IRON_CONDOR = "iron_condor"
    VERTICAL_SPREAD = "vertical_spread"
    BUTTERFLY = "butterfly"
    CASH_SECURED_PUT = "cash_secured_put"
    CALENDAR_SPREAD = "calendar_spread"
    DIAGONAL_SPREAD = "diagonal_spread"


# Net premium sellers; everything else pays a debit
SELLER_STRATEGIES = frozenset(
    {StrategyType.IRON_CONDOR, StrategyType.VERTICAL_SPREAD, StrategyType.CASH_SECURED_PUT}
)

TIME_SPREADS = frozenset({StrategyType.CALENDAR_SPREAD, StrategyType.DIAGONAL_SPREAD})


@dataclass(frozen=True)
class OptionLeg:
    """One leg of a position."""

    role: str
    option_type: str  # "call" or "put"
    side: str  # "short" or "long"
    strike: Decimal
    quantity: int = 1
    far_dated: bool = False  # Long leg of a time spread


@dataclass
class StrategyCandidate:
    """A generated strategy, later scored and ranked."""

    name: str
    strategy_type: StrategyType
    direction: Trend
    strikes: dict[str, Decimal]
    legs: list[OptionLeg]
    contracts: int
    max_risk: Decimal
    max_profit: Decimal
    win_rate: int
    roc: int
    using_real_prices: bool
    net_credit: Decimal | None = None
    net_debit: Decimal | None = None
    win_rate_source: str = "probability"
    breakevens: list[Decimal] = field(default_factory=list)
    leg_prices: dict[str, Decimal] = field(default_factory=dict)
    avg_open_interest: int | None = None
    dte: int | None = None
    long_dte: int | None = None
    rationale: list[str] = field(default_factory=list)

    # Set by scoring and ranking
    score: int | None = None
    rank: int | None = None
    tier: str | None = None

    @property
    def is_credit(self) -> bool:
        return self.net_credit is not None

    @property
    def net_premium(self) -> Decimal:
        """Credit received or debit paid, always positive."""
        return self.net_credit if self.net_credit is not None else self.net_debit

    @property
    def is_seller(self) -> bool:
        return self.strategy_type in SELLER_STRATEGIES


@dataclass(frozen=True)
class ChainSet:
    """Near chain at the target DTE and far chain for time-spread long legs."""

    near: OptionsChain | None = None
    far: OptionsChain | None = None

    @property
    def has_quotes(self) -> bool:
        return self.near is not None and not self.near.is_empty


@dataclass(frozen=True)
class LegPricing:
    """Per-contract pricing for a set of legs."""

    legs: list[OptionLeg]
    per_contract: Decimal  # Net credit or debit per contract, positive
    using_real_prices: bool
    short_leg_per_contract: Decimal | None = None
    leg_prices: dict[str, Decimal] = field(default_factory=dict)
    avg_open_interest: int | None = None
    fallback_reason: str | None = None


StrategyGenerator = Callable[
    [MarketSnapshot, VolatilityRange, ChainSet, StrategyConfig], "StrategyCandidate | None"
]


# --- shared math -----------------------------------------------------------


def sigma_move(band: VolatilityRange) -> Decimal:
    """Unadjusted 1σ move in price units: price × iv × √(dte/365)."""
    return band.price * band.iv * (Decimal(band.dte) / DAYS_PER_YEAR).sqrt()


def estimate_premium(band: VolatilityRange, factor: Decimal, config: StrategyConfig) -> Decimal:
    """Formula premium per contract, floored at the configured minimum."""
    per_contract = sigma_move(band) * factor * config.contract_multiplier
    return _cents(max(config.min_premium_per_contract, per_contract))


def size_position(per_contract: Decimal, config: StrategyConfig) -> int:
    """Contracts needed for the net premium to reach the configured floor."""
    if per_contract <= 0:
        raise DegenerateRange(f"non-positive premium per contract: {per_contract}")
    return max(1, math.ceil(config.min_net_premium / per_contract))


def estimate_win_rate(
    strategy_type: StrategyType,
    price,
    lower,
    upper,
    iv,
    dte,
    iv_rank: Decimal,
) -> tuple[int, str]:
    """
    Win probability as a whole percentage.

    Uses the normal range probability between the profit-zone bounds. When
    the probability model cannot be evaluated (missing or invalid IV, price
    or DTE) the per-strategy base rate is returned instead.

    Returns:
        (win_rate_pct, source) where source is "probability" or "base_rate"
    """
    try:
        probability = probability_in_range(price, lower, upper, iv, dte)
    except InvalidInput as exc:
        app_logger.info(f"Win rate for {strategy_type.value} from base rate table: {exc.message}")
        return base_win_rate(strategy_type, iv_rank), "base_rate"

    return _round_int(probability * 100), "probability"


def base_win_rate(strategy_type: StrategyType, iv_rank: Decimal) -> int:
    """Fixed per-strategy win rates with IV rank adjustments."""
    if strategy_type == StrategyType.IRON_CONDOR:
        return 68 + (7 if iv_rank > 70 else 4 if iv_rank > 50 else 0)
    if strategy_type == StrategyType.VERTICAL_SPREAD:
        return 72 + (5 if iv_rank > 60 else 0)
    if strategy_type == StrategyType.BUTTERFLY:
        return 55 + (10 if iv_rank < 40 else 0)
    if strategy_type == StrategyType.CASH_SECURED_PUT:
        return 76
    if strategy_type == StrategyType.CALENDAR_SPREAD:
        return 62
    return 58


def price_legs(
    strategy_type: StrategyType,
    legs: list[OptionLeg],
    is_credit: bool,
    band: VolatilityRange,
    chains: ChainSet,
    config: StrategyConfig,
) -> LegPricing:
    """
    Price legs from quotes when a chain is available, else from the IV formula.

    A leg that cannot be resolved (or quotes that give no net premium in the
    expected direction) falls back to estimated pricing. A leg strike at or
    below zero raises DegenerateRange.
    """
    _check_strikes(strategy_type, legs)

    reason = "option chain unavailable"
    if chains.has_quotes:
        try:
            return _price_from_quotes(strategy_type, legs, is_credit, chains, config)
        except LegNotResolved as exc:
            reason = exc.message
            log_strategy_event(app_logger, "", strategy_type.value, "price_fallback", reason)

    key = strategy_type.value
    short_leg = None
    if strategy_type in TIME_SPREADS:
        short_leg = _cents(
            sigma_move(band) * config.short_leg_factors[key] * config.contract_multiplier
        )

    return LegPricing(
        legs=legs,
        per_contract=estimate_premium(band, config.premium_factors[key], config),
        using_real_prices=False,
        short_leg_per_contract=short_leg,
        fallback_reason=reason,
    )


def _check_strikes(strategy_type: StrategyType, legs: list[OptionLeg]) -> None:
    for leg in legs:
        if leg.strike <= 0:
            raise DegenerateRange(
                f"{leg.role} strike {leg.strike} is not a listable strike",
                strategy=strategy_type.value,
            )


def _price_from_quotes(
    strategy_type: StrategyType,
    legs: list[OptionLeg],
    is_credit: bool,
    chains: ChainSet,
    config: StrategyConfig,
) -> LegPricing:
    resolved: list[OptionLeg] = []
    leg_prices: dict[str, Decimal] = {}
    open_interest: list[int] = []
    net_per_share = Decimal(0)
    short_leg_per_share = Decimal(0)

    for leg in legs:
        chain = chains.far if leg.far_dated else chains.near
        if chain is None:
            raise LegNotResolved(
                f"no chain for {leg.role} leg", strategy=strategy_type.value, role=leg.role
            )
        try:
            quote = find_nearest(chain.side(leg.option_type), leg.strike)
        except NotFound as exc:
            raise LegNotResolved(
                f"{leg.role} leg not quoted: {exc.message}",
                strategy=strategy_type.value,
                role=leg.role,
            ) from exc

        resolved.append(replace(leg, strike=quote.strike))
        leg_prices[leg.role] = quote.mid
        open_interest.append(quote.open_interest)

        signed = quote.mid * leg.quantity
        if leg.side == "short":
            net_per_share += signed
            short_leg_per_share += signed
        else:
            net_per_share -= signed

    per_contract = net_per_share * config.contract_multiplier
    if not is_credit:
        per_contract = -per_contract
    if per_contract <= 0:
        kind = "credit" if is_credit else "debit"
        raise LegNotResolved(
            f"quoted mids give no net {kind} ({per_contract:.2f})", strategy=strategy_type.value
        )

    short_leg = None
    if strategy_type in TIME_SPREADS:
        short_leg = _cents(short_leg_per_share * config.contract_multiplier)

    return LegPricing(
        legs=resolved,
        per_contract=_cents(per_contract),
        using_real_prices=True,
        short_leg_per_contract=short_leg,
        leg_prices=leg_prices,
        avg_open_interest=round(sum(open_interest) / len(open_interest)),
    )


def credit_risk(width: Decimal, net_credit: Decimal, contracts: int, config: StrategyConfig) -> Decimal:
    """Max loss of a credit position: width × 100 × contracts − credit."""
    if width <= 0:
        raise DegenerateRange(f"non-positive spread width: {width}")
    max_risk = width * config.contract_multiplier * contracts - net_credit
    if max_risk <= 0:
        raise DegenerateRange(f"credit {net_credit} covers the full width {width}")
    return _cents(max_risk)


def debit_profit(width: Decimal, net_debit: Decimal, contracts: int, config: StrategyConfig) -> Decimal:
    """Max profit of a debit position: width × 100 × contracts − debit."""
    if width <= 0:
        raise DegenerateRange(f"non-positive wing width: {width}")
    max_profit = width * config.contract_multiplier * contracts - net_debit
    if max_profit <= 0:
        raise DegenerateRange(f"debit {net_debit} exceeds the payout of width {width}")
    return _cents(max_profit)


def return_on_capital(gain: Decimal, capital: Decimal) -> int:
    """Whole-percent ROC; capital must be positive."""
    if capital <= 0:
        raise DegenerateRange(f"non-positive capital at risk: {capital}")
    return _round_int(gain / capital * 100)


# --- generators ------------------------------------------------------------


def generate_iron_condor(
    snapshot: MarketSnapshot,
    band: VolatilityRange,
    chains: ChainSet,
    config: StrategyConfig,
) -> StrategyCandidate | None:
    """Short put spread + short call spread with short strikes at the ±1σ band."""
    strategy_type = StrategyType.IRON_CONDOR
    if snapshot.iv_rank < config.iron_condor_min_iv_rank:
        _skip(snapshot, strategy_type, f"IV rank {snapshot.iv_rank} below {config.iron_condor_min_iv_rank}")
        return None

    price = band.price
    width = config.wing_width(price)
    put_sell = config.snap_to_strike_grid(band.one_sigma.lower, price)
    call_sell = config.snap_to_strike_grid(band.one_sigma.upper, price)

    pricing = price_legs(
        strategy_type,
        [
            OptionLeg("put_buy", "put", "long", put_sell - width),
            OptionLeg("put_sell", "put", "short", put_sell),
            OptionLeg("call_sell", "call", "short", call_sell),
            OptionLeg("call_buy", "call", "long", call_sell + width),
        ],
        True,
        band,
        chains,
        config,
    )
    strikes = _strike_map(pricing)
    if strikes["put_sell"] >= strikes["call_sell"]:
        raise DegenerateRange("short put strike is not below short call strike")

    contracts = size_position(pricing.per_contract, config)
    net_credit = _cents(pricing.per_contract * contracts)
    risk_width = max(
        strikes["put_sell"] - strikes["put_buy"],
        strikes["call_buy"] - strikes["call_sell"],
    )
    max_risk = credit_risk(risk_width, net_credit, contracts, config)

    per_share = _per_share(net_credit, contracts, config)
    lower_be = strikes["put_sell"] - per_share
    upper_be = strikes["call_sell"] + per_share
    win_rate, source = estimate_win_rate(
        strategy_type, band.price, lower_be, upper_be, band.iv, band.dte, snapshot.iv_rank
    )

    rationale = [
        _iv_rank_line(snapshot, "favors selling premium"),
        f"Trend {snapshot.trend.value} (technical score {snapshot.trend_score})",
        f"Short strikes {strikes['put_sell']}/{strikes['call_sell']} at the ±1σ band "
        f"({band.one_sigma.lower}-{band.one_sigma.upper}), wings {strikes['put_buy']}/{strikes['call_buy']}",
        f"Win probability ~{win_rate}% between breakevens {lower_be:.2f} and {upper_be:.2f}",
        _decay_line(net_credit, band.dte),
    ]

    return _finish(
        StrategyCandidate(
            name="Iron Condor",
            strategy_type=strategy_type,
            direction=Trend.NEUTRAL,
            strikes=strikes,
            legs=pricing.legs,
            contracts=contracts,
            net_credit=net_credit,
            max_risk=max_risk,
            max_profit=net_credit,
            win_rate=win_rate,
            win_rate_source=source,
            roc=return_on_capital(net_credit, max_risk),
            using_real_prices=pricing.using_real_prices,
            breakevens=[_cents(lower_be), _cents(upper_be)],
            dte=band.dte,
        ),
        snapshot,
        pricing,
        rationale,
    )


def generate_vertical_spread(
    snapshot: MarketSnapshot,
    band: VolatilityRange,
    chains: ChainSet,
    config: StrategyConfig,
) -> StrategyCandidate | None:
    """Credit spread on the side opposite the trend: bull put unless bearish."""
    strategy_type = StrategyType.VERTICAL_SPREAD
    price = band.price
    width = config.wing_width(price)
    bullish = snapshot.trend != Trend.BEARISH

    if bullish:
        option_type = "put"
        sell_strike = config.snap_to_strike_grid(band.one_sigma.lower, price)
        buy_strike = sell_strike - width
    else:
        option_type = "call"
        sell_strike = config.snap_to_strike_grid(band.one_sigma.upper, price)
        buy_strike = sell_strike + width

    pricing = price_legs(
        strategy_type,
        [
            OptionLeg("sell", option_type, "short", sell_strike),
            OptionLeg("buy", option_type, "long", buy_strike),
        ],
        True,
        band,
        chains,
        config,
    )
    strikes = _strike_map(pricing)

    contracts = size_position(pricing.per_contract, config)
    net_credit = _cents(pricing.per_contract * contracts)
    max_risk = credit_risk(abs(strikes["sell"] - strikes["buy"]), net_credit, contracts, config)

    per_share = _per_share(net_credit, contracts, config)
    if bullish:
        breakeven = strikes["sell"] - per_share
        win_rate, source = estimate_win_rate(
            strategy_type, band.price, breakeven, None, band.iv, band.dte, snapshot.iv_rank
        )
    else:
        breakeven = strikes["sell"] + per_share
        win_rate, source = estimate_win_rate(
            strategy_type, band.price, None, breakeven, band.iv, band.dte, snapshot.iv_rank
        )

    side_label = "put" if bullish else "call"
    rationale = [
        f"{'Bullish' if bullish else 'Bearish'} credit spread selling the {side_label} side "
        f"(trend {snapshot.trend.value}, technical score {snapshot.trend_score})",
        _iv_rank_line(snapshot, "supports collecting premium"),
        f"Sell {strikes['sell']}{_quoted(pricing, 'sell')}, buy {strikes['buy']}{_quoted(pricing, 'buy')} protection",
        f"Win probability ~{win_rate}% with breakeven {breakeven:.2f}",
        f"Risk/reward 1:{(max_risk / net_credit):.2f}",
        _decay_line(net_credit, band.dte),
    ]

    return _finish(
        StrategyCandidate(
            name="Bull Put Credit Spread" if bullish else "Bear Call Credit Spread",
            strategy_type=strategy_type,
            direction=Trend.BULLISH if bullish else Trend.BEARISH,
            strikes=strikes,
            legs=pricing.legs,
            contracts=contracts,
            net_credit=net_credit,
            max_risk=max_risk,
            max_profit=net_credit,
            win_rate=win_rate,
            win_rate_source=source,
            roc=return_on_capital(net_credit, max_risk),
            using_real_prices=pricing.using_real_prices,
            breakevens=[_cents(breakeven)],
            dte=band.dte,
        ),
        snapshot,
        pricing,
        rationale,
    )


def generate_butterfly(
    snapshot: MarketSnapshot,
    band: VolatilityRange,
    chains: ChainSet,
    config: StrategyConfig,
) -> StrategyCandidate | None:
    """Long call butterfly centered at the money."""
    strategy_type = StrategyType.BUTTERFLY
    if snapshot.iv_rank > config.butterfly_max_iv_rank:
        _skip(snapshot, strategy_type, f"IV rank {snapshot.iv_rank} above {config.butterfly_max_iv_rank}")
        return None

    price = band.price
    width = config.wing_width(price)
    center = config.snap_to_strike_grid(price, price)

    pricing = price_legs(
        strategy_type,
        [
            OptionLeg("lower", "call", "long", center - width),
            OptionLeg("center", "call", "short", center, quantity=2),
            OptionLeg("upper", "call", "long", center + width),
        ],
        False,
        band,
        chains,
        config,
    )
    strikes = _strike_map(pricing)
    wing = min(strikes["center"] - strikes["lower"], strikes["upper"] - strikes["center"])

    contracts = size_position(pricing.per_contract, config)
    net_debit = _cents(pricing.per_contract * contracts)
    max_profit = debit_profit(wing, net_debit, contracts, config)

    per_share = _per_share(net_debit, contracts, config)
    lower_be = strikes["lower"] + per_share
    upper_be = strikes["upper"] - per_share
    win_rate, source = estimate_win_rate(
        strategy_type, band.price, lower_be, upper_be, band.iv, band.dte, snapshot.iv_rank
    )

    rationale = [
        _iv_rank_line(snapshot, "keeps long premium affordable"),
        f"Buy {strikes['lower']}/{strikes['upper']} wings, sell 2× {strikes['center']} center",
        f"Max profit ${max_profit:.0f} if price pins {strikes['center']} at expiration",
        f"Risk limited to the ${net_debit:.0f} debit",
        f"Win probability ~{win_rate}% between breakevens {lower_be:.2f} and {upper_be:.2f}",
    ]

    return _finish(
        StrategyCandidate(
            name="Long Call Butterfly",
            strategy_type=strategy_type,
            direction=Trend.NEUTRAL,
            strikes=strikes,
            legs=pricing.legs,
            contracts=contracts,
            net_debit=net_debit,
            max_risk=net_debit,
            max_profit=max_profit,
            win_rate=win_rate,
            win_rate_source=source,
            roc=return_on_capital(max_profit, net_debit),
            using_real_prices=pricing.using_real_prices,
            breakevens=[_cents(lower_be), _cents(upper_be)],
            dte=band.dte,
        ),
        snapshot,
        pricing,
        rationale,
    )


def generate_cash_secured_put(
    snapshot: MarketSnapshot,
    band: VolatilityRange,
    chains: ChainSet,
    config: StrategyConfig,
) -> StrategyCandidate | None:
    """Short put 5% below spot, fully cash secured."""
    strategy_type = StrategyType.CASH_SECURED_PUT
    if snapshot.trend == Trend.BEARISH:
        _skip(snapshot, strategy_type, "bearish trend")
        return None

    price = band.price
    sell_strike = config.snap_to_strike_grid(price * Decimal("0.95"), price)

    pricing = price_legs(
        strategy_type,
        [OptionLeg("sell", "put", "short", sell_strike)],
        True,
        band,
        chains,
        config,
    )
    strikes = _strike_map(pricing)

    contracts = size_position(pricing.per_contract, config)
    net_credit = _cents(pricing.per_contract * contracts)
    max_risk = credit_risk(strikes["sell"], net_credit, contracts, config)

    per_share = _per_share(net_credit, contracts, config)
    breakeven = strikes["sell"] - per_share
    win_rate, source = estimate_win_rate(
        strategy_type, band.price, breakeven, None, band.iv, band.dte, snapshot.iv_rank
    )
    discount = (price - strikes["sell"]) / price * 100

    rationale = [
        "Premium collection for accounts willing to own the shares",
        f"Sell put {strikes['sell']}{_quoted(pricing, 'sell')}, {discount:.1f}% below spot",
        _iv_rank_line(snapshot, "improves premium collected"),
        f"Win probability ~{win_rate}% of expiring above {breakeven:.2f}",
        f"Effective cost basis ${breakeven:.2f} if assigned",
        _decay_line(net_credit, band.dte),
    ]

    return _finish(
        StrategyCandidate(
            name="Cash-Secured Put",
            strategy_type=strategy_type,
            direction=Trend.BULLISH,
            strikes=strikes,
            legs=pricing.legs,
            contracts=contracts,
            net_credit=net_credit,
            max_risk=max_risk,
            max_profit=net_credit,
            win_rate=win_rate,
            win_rate_source=source,
            roc=return_on_capital(net_credit, max_risk),
            using_real_prices=pricing.using_real_prices,
            breakevens=[_cents(breakeven)],
            dte=band.dte,
        ),
        snapshot,
        pricing,
        rationale,
    )


def generate_calendar_spread(
    snapshot: MarketSnapshot,
    band: VolatilityRange,
    chains: ChainSet,
    config: StrategyConfig,
) -> StrategyCandidate | None:
    """Sell the near ATM call, buy the same strike one week further out."""
    strategy_type = StrategyType.CALENDAR_SPREAD
    if band.dte < config.time_spread_min_dte:
        _skip(snapshot, strategy_type, f"DTE {band.dte} below {config.time_spread_min_dte}")
        return None

    price = band.price
    strike = config.snap_to_strike_grid(price, price)
    long_dte = band.dte + config.time_spread_long_dte_offset

    pricing = price_legs(
        strategy_type,
        [
            OptionLeg("near_sell", "call", "short", strike),
            OptionLeg("far_buy", "call", "long", strike, far_dated=True),
        ],
        False,
        band,
        chains,
        config,
    )
    strikes = _strike_map(pricing)
    return _time_spread(
        strategy_type,
        "Calendar Spread",
        Trend.NEUTRAL,
        strikes["near_sell"],
        long_dte,
        snapshot,
        band,
        pricing,
        config,
        [
            "Time decay play: sell the near expiration, buy the later one",
            f"Strike {strikes['near_sell']} at the money",
            f"Short leg {band.dte} DTE, long leg {long_dte} DTE",
        ],
    )


def generate_diagonal_spread(
    snapshot: MarketSnapshot,
    band: VolatilityRange,
    chains: ChainSet,
    config: StrategyConfig,
) -> StrategyCandidate | None:
    """Directional time spread: near short strike 3% out, far long strike 5% out."""
    strategy_type = StrategyType.DIAGONAL_SPREAD
    if band.dte < config.time_spread_min_dte:
        _skip(snapshot, strategy_type, f"DTE {band.dte} below {config.time_spread_min_dte}")
        return None
    if snapshot.trend == Trend.NEUTRAL:
        _skip(snapshot, strategy_type, "neutral trend")
        return None

    price = band.price
    step = config.strike_increment(price)
    bullish = snapshot.trend == Trend.BULLISH
    long_dte = band.dte + config.time_spread_long_dte_offset

    if bullish:
        option_type = "call"
        short_strike = config.snap_to_strike_grid(price * Decimal("1.03"), price)
        long_strike = max(config.snap_to_strike_grid(price * Decimal("1.05"), price), short_strike + step)
    else:
        option_type = "put"
        short_strike = config.snap_to_strike_grid(price * Decimal("0.97"), price)
        long_strike = min(config.snap_to_strike_grid(price * Decimal("0.95"), price), short_strike - step)

    pricing = price_legs(
        strategy_type,
        [
            OptionLeg("short_strike", option_type, "short", short_strike),
            OptionLeg("long_strike", option_type, "long", long_strike, far_dated=True),
        ],
        False,
        band,
        chains,
        config,
    )
    strikes = _strike_map(pricing)
    direction = "Bullish" if bullish else "Bearish"
    return _time_spread(
        strategy_type,
        f"{direction} Diagonal Spread",
        Trend.BULLISH if bullish else Trend.BEARISH,
        strikes["short_strike"],
        long_dte,
        snapshot,
        band,
        pricing,
        config,
        [
            f"{direction} time spread (trend {snapshot.trend.value}, technical score {snapshot.trend_score})",
            f"Sell near {strikes['short_strike']} {option_type}, buy far {strikes['long_strike']} {option_type}",
            f"Short leg {band.dte} DTE, long leg {long_dte} DTE",
        ],
    )


def _time_spread(
    strategy_type: StrategyType,
    name: str,
    direction: Trend,
    short_strike: Decimal,
    long_dte: int,
    snapshot: MarketSnapshot,
    band: VolatilityRange,
    pricing: LegPricing,
    config: StrategyConfig,
    rationale: list[str],
) -> StrategyCandidate:
    """Sizing, risk and win rate shared by calendar and diagonal spreads."""
    contracts = size_position(pricing.per_contract, config)
    net_debit = _cents(pricing.per_contract * contracts)

    capture = config.profit_capture_ratios[strategy_type.value]
    max_profit = _cents((pricing.short_leg_per_contract or Decimal(0)) * capture * contracts)
    if max_profit <= 0:
        raise DegenerateRange("time spread has no short leg premium to capture", strategy_type.value)

    half_zone = sigma_move(band) * config.time_spread_profit_zone_sigma
    lower, upper = short_strike - half_zone, short_strike + half_zone
    win_rate, source = estimate_win_rate(
        strategy_type, band.price, lower, upper, band.iv, band.dte, snapshot.iv_rank
    )

    rationale = rationale + [
        f"Max profit ~${max_profit:.0f} ({capture * 100:.0f}% of short leg premium) near {short_strike}",
        f"Win probability ~{win_rate}% of finishing within {lower:.2f}-{upper:.2f}",
        _decay_line(_cents((pricing.short_leg_per_contract or Decimal(0)) * contracts), band.dte),
    ]

    return _finish(
        StrategyCandidate(
            name=name,
            strategy_type=strategy_type,
            direction=direction,
            strikes=_strike_map(pricing),
            legs=pricing.legs,
            contracts=contracts,
            net_debit=net_debit,
            max_risk=net_debit,
            max_profit=max_profit,
            win_rate=win_rate,
            win_rate_source=source,
            roc=return_on_capital(max_profit, net_debit),
            using_real_prices=pricing.using_real_prices,
            breakevens=[_cents(lower), _cents(upper)],
            dte=band.dte,
            long_dte=long_dte,
        ),
        snapshot,
        pricing,
        rationale,
    )


# --- registry --------------------------------------------------------------

STRATEGY_GENERATORS: dict[StrategyType, StrategyGenerator] = {
    StrategyType.IRON_CONDOR: generate_iron_condor,
    StrategyType.VERTICAL_SPREAD: generate_vertical_spread,
    StrategyType.BUTTERFLY: generate_butterfly,
    StrategyType.CASH_SECURED_PUT: generate_cash_secured_put,
    StrategyType.CALENDAR_SPREAD: generate_calendar_spread,
    StrategyType.DIAGONAL_SPREAD: generate_diagonal_spread,
}


def generate_strategy(
    strategy_type: StrategyType,
    snapshot: MarketSnapshot,
    band: VolatilityRange,
    chains: ChainSet | None = None,
    config: StrategyConfig | None = None,
) -> StrategyCandidate | None:
    """
    Run one generator from the registry.

    Returns:
        The candidate, or None when the eligibility gate fails or the
        position is degenerate (zero/negative width, risk or profit)
    """
    config = config or default_strategy_config()
    chains = chains or ChainSet()
    generator = STRATEGY_GENERATORS[strategy_type]

    try:
        return generator(snapshot, band, chains, config)
    except DegenerateRange as exc:
        log_strategy_event(app_logger, snapshot.symbol, strategy_type.value, "excluded", exc.message)
        return None


def generate_candidates(
    snapshot: MarketSnapshot,
    band: VolatilityRange,
    chains: ChainSet | None = None,
    config: StrategyConfig | None = None,
) -> list[StrategyCandidate]:
    """Run every registered generator in registry order, keeping eligible candidates."""
    config = config or default_strategy_config()
    candidates = []
    for strategy_type in STRATEGY_GENERATORS:
        candidate = generate_strategy(strategy_type, snapshot, band, chains, config)
        if candidate is not None:
            candidates.append(candidate)
    return candidates


# --- helpers ---------------------------------------------------------------


def _finish(
    candidate: StrategyCandidate,
    snapshot: MarketSnapshot,
    pricing: LegPricing,
    rationale: list[str],
) -> StrategyCandidate:
    """Attach quote metadata and the trailing rationale lines."""
    candidate.leg_prices = dict(pricing.leg_prices)
    candidate.avg_open_interest = pricing.avg_open_interest

    lines = [line for line in rationale if line]
    gamma_line = _gamma_line(snapshot)
    if gamma_line:
        lines.append(gamma_line)
    if pricing.using_real_prices:
        lines.append("Priced from live option quotes (mid prices)")
    else:
        lines.append(f"Estimated from implied volatility ({pricing.fallback_reason}); verify quotes")
    candidate.rationale = lines
    return candidate


def _skip(snapshot: MarketSnapshot, strategy_type: StrategyType, reason: str) -> None:
    log_strategy_event(app_logger, snapshot.symbol, strategy_type.value, "gate_failed", reason)


def _strike_map(pricing: LegPricing) -> dict[str, Decimal]:
    return {leg.role: leg.strike for leg in pricing.legs}


def _per_share(total: Decimal, contracts: int, config: StrategyConfig) -> Decimal:
    return total / (config.contract_multiplier * contracts)


def _quoted(pricing: LegPricing, role: str) -> str:
    if role not in pricing.leg_prices:
        return ""
    return f" @ ${pricing.leg_prices[role]:.2f}"


def _iv_rank_line(snapshot: MarketSnapshot, verdict: str) -> str:
    tier = snapshot.iv_rank_tier.value.replace("_", " ")
    return f"IV rank {snapshot.iv_rank}% ({tier}) {verdict}"


def _decay_line(premium: Decimal, dte: int) -> str:
    return f"Estimated daily time decay ~${premium / dte:.0f}"


def _gamma_line(snapshot: MarketSnapshot) -> str | None:
    gamma = snapshot.gamma
    if not gamma.available:
        return None
    if gamma.environment == GammaEnvironment.POSITIVE:
        return f"Positive gamma (zero gamma {gamma.zero_gamma}) dampens moves"
    if gamma.environment == GammaEnvironment.NEGATIVE:
        return f"Negative gamma (zero gamma {gamma.zero_gamma}) amplifies moves"
    return f"Neutral gamma environment (zero gamma {gamma.zero_gamma})"


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _round_int(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))
