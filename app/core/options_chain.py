"""
Options Chain Matcher
Normalizes raw option-contract feeds into sorted call/put sides and resolves target strikes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Sequence

from app.core.exceptions import NotFound
from app.utils.logger import app_logger

DEFAULT_DTE_TOLERANCE = 3


@dataclass(slots=True, frozen=True)
class OptionQuote:
    """A single normalized option contract."""

    strike: Decimal
    option_type: str  # "call" or "put"
    bid: Decimal
    ask: Decimal
    mid: Decimal
    last: Decimal = Decimal(0)
    implied_vol: Decimal = Decimal(0)
    delta: Decimal = Decimal(0)
    gamma: Decimal = Decimal(0)
    theta: Decimal = Decimal(0)
    vega: Decimal = Decimal(0)
    volume: int = 0
    open_interest: int = 0
    expiration: date | None = None
    days_to_expiration: int | None = None


@dataclass(slots=True, frozen=True)
class OptionsChain:
    """Strike-ascending call and put quotes around one target expiration."""

    target_dte: int
    calls: list[OptionQuote] = field(default_factory=list)
    puts: list[OptionQuote] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.calls and not self.puts

    def side(self, option_type: str) -> list[OptionQuote]:
        """Return the call or put side."""
        return self.calls if option_type == "call" else self.puts


def parse_options_chain(
    raw_contracts: Iterable[dict[str, Any]] | None,
    target_dte: int,
    as_of: date | None = None,
    tolerance: int = DEFAULT_DTE_TOLERANCE,
) -> OptionsChain:
    """
    Build an OptionsChain from raw provider records.

    Args:
        raw_contracts: Raw records (strike, bid, ask, last, implied_volatility,
            greeks, volume, open_interest, expiration, type)
        target_dte: Target days to expiration
        as_of: Valuation date used when a record carries no DTE (default: today)
        tolerance: Keep contracts within this many days of target_dte

    Returns:
        OptionsChain with each side sorted by strike (empty when nothing matches)
    """
    as_of = as_of or date.today()
    calls: list[OptionQuote] = []
    puts: list[OptionQuote] = []
    skipped = 0

    for record in raw_contracts or []:
        quote = _parse_contract(record, as_of)
        if quote is None:
            skipped += 1
            continue

        if quote.days_to_expiration is None:
            continue
        if abs(quote.days_to_expiration - target_dte) > tolerance:
            continue

        if quote.option_type == "call":
            calls.append(quote)
        else:
            puts.append(quote)

    calls.sort(key=lambda q: q.strike)
    puts.sort(key=lambda q: q.strike)

    if skipped:
        app_logger.debug(f"Skipped {skipped} unparseable option records")

    return OptionsChain(target_dte=target_dte, calls=calls, puts=puts)


def find_nearest(side: Sequence[OptionQuote], target_strike: Decimal) -> OptionQuote:
    """
    Resolve a target strike to the closest quoted contract.

    Ties keep the first contract seen in a left-to-right scan, so on a
    strike-ascending side the lower strike wins.

    Raises:
        NotFound: when the side has no contracts
    """
    if not side:
        raise NotFound(f"No contracts quoted near strike {target_strike}")

    closest = side[0]
    for quote in side[1:]:
        if abs(quote.strike - target_strike) < abs(closest.strike - target_strike):
            closest = quote
    return closest


def extract_atm_iv(
    raw_contracts: Iterable[dict[str, Any]] | None,
    underlying_price: Decimal,
) -> Decimal | None:
    """
    Implied volatility of the call whose strike is closest to spot.

    Returns:
        IV in decimal form, or None when no call carries a usable IV
    """
    closest_iv = None
    closest_distance = None

    for record in raw_contracts or []:
        if record.get("type") != "call":
            continue
        strike = _to_decimal(record.get("strike"), default=None)
        if strike is None:
            continue
        distance = abs(strike - underlying_price)
        if closest_distance is None or distance < closest_distance:
            closest_distance = distance
            closest_iv = _to_decimal(record.get("implied_volatility"))

    if not closest_iv or closest_iv <= 0:
        return None
    return closest_iv


def _parse_contract(data: dict[str, Any], as_of: date) -> OptionQuote | None:
    """Parse one raw record; missing prices and greeks default to zero."""
    strike = _to_decimal(data.get("strike"), default=None)
    option_type = str(data.get("type", "")).lower()
    if strike is None or option_type not in ("call", "put"):
        return None

    bid = _to_decimal(data.get("bid"))
    ask = _to_decimal(data.get("ask"))

    expiration = _to_date(data.get("expiration"))
    days_to_expiration = data.get("days_to_expiration")
    if days_to_expiration is not None:
        try:
            days_to_expiration = int(days_to_expiration)
        except (TypeError, ValueError, OverflowError):
            return None
    elif expiration is not None:
        days_to_expiration = (expiration - as_of).days

    return OptionQuote(
        strike=strike,
        option_type=option_type,
        bid=bid,
        ask=ask,
        mid=(bid + ask) / 2,
        last=_to_decimal(data.get("last")),
        implied_vol=_to_decimal(data.get("implied_volatility")),
        delta=_to_decimal(data.get("delta")),
        gamma=_to_decimal(data.get("gamma")),
        theta=_to_decimal(data.get("theta")),
        vega=_to_decimal(data.get("vega")),
        volume=_to_int(data.get("volume")),
        open_interest=_to_int(data.get("open_interest")),
        expiration=expiration,
        days_to_expiration=days_to_expiration,
    )


def _to_decimal(value: Any, default: Decimal | None = Decimal(0)) -> Decimal | None:
    if value is None or value == "":
        return default
    try:
        result = Decimal(str(value))
    except InvalidOperation:
        return default
    return result if result.is_finite() else default


def _to_int(value: Any) -> int:
    try:
        return int(float(value or 0))
    except (TypeError, ValueError):
        return 0


def _to_date(value: Any) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(str(value)[:10], "%Y-%m-%d").date()
    except ValueError:
        return None
