"""
Volatility Analytics Helpers
Pure functions for sigma price bands, range probabilities and gamma-aware band adjustment.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from app.core.exceptions import InvalidInput
from app.core.market_snapshot import GammaEnvironment, GammaExposure

DAYS_PER_YEAR = Decimal(365)
CENT = Decimal("0.01")

# Theoretical normal coverage, attached as constants
ONE_SIGMA_PROBABILITY = Decimal("68.2")
TWO_SIGMA_PROBABILITY = Decimal("95.4")

# Abramowitz & Stegun 26.2.17
_CDF_P = Decimal("0.2316419")
_CDF_B = (
    Decimal("0.319381530"),
    Decimal("-0.356563782"),
    Decimal("1.781477937"),
    Decimal("-1.821255978"),
    Decimal("1.330274429"),
)
_INV_SQRT_2PI = Decimal("0.3989422804014327")

POSITIVE_GAMMA_FACTOR = Decimal("0.85")
NEGATIVE_GAMMA_FACTOR = Decimal("1.15")
ZERO_GAMMA_PROXIMITY_PCT = Decimal("0.02")
ZERO_GAMMA_PROXIMITY_FACTOR = Decimal("1.10")


@dataclass(slots=True, frozen=True)
class VolatilityBand:
    """Price band covering a number of standard deviations."""

    upper: Decimal
    lower: Decimal
    move: Decimal
    move_pct: Decimal
    probability: Decimal  # Theoretical coverage %, not fitted


@dataclass(slots=True, frozen=True)
class VolatilityRange:
    """1-sigma and 2-sigma bands for a price/IV/DTE triple."""

    price: Decimal
    iv: Decimal
    dte: int
    one_sigma: VolatilityBand
    two_sigma: VolatilityBand
    interpretation: str
    adjustment: Decimal = Decimal(1)
    adjustment_note: str | None = None


def compute_band(price, iv, dte) -> VolatilityRange:
    """
    Calculate the expected ±1σ and ±2σ price bands through expiration.

    Args:
        price: Current underlying price
        iv: Implied volatility in decimal form (0.35 = 35%)
        dte: Days to expiration

    Returns:
        VolatilityRange with both bands quantized to cents

    Raises:
        InvalidInput: when price, iv or dte is missing, zero or negative
    """
    price, iv, dte = _validate_inputs(price, iv, dte)

    time_factor = (Decimal(dte) / DAYS_PER_YEAR).sqrt()
    one_sigma_move = price * iv * time_factor

    return VolatilityRange(
        price=price,
        iv=iv,
        dte=dte,
        one_sigma=_band(price, one_sigma_move, ONE_SIGMA_PROBABILITY),
        two_sigma=_band(price, one_sigma_move * 2, TWO_SIGMA_PROBABILITY),
        interpretation=_interpret(iv, dte, time_factor),
    )


def probability_in_range(price, lower, upper, iv, dte) -> Decimal:
    """
    Probability that the underlying finishes between two bounds at expiration.

    Args:
        price: Current underlying price
        lower: Lower bound, or None / -Infinity for a one-sided probability
        upper: Upper bound, or None / +Infinity for a one-sided probability
        iv: Implied volatility in decimal form
        dte: Days to expiration

    Returns:
        Probability between 0 and 1
    """
    price, iv, dte = _validate_inputs(price, iv, dte)

    sigma = price * iv * (Decimal(dte) / DAYS_PER_YEAR).sqrt()

    lower = Decimal("-Infinity") if lower is None else _to_bound(lower, "lower bound")
    upper = Decimal("Infinity") if upper is None else _to_bound(upper, "upper bound")

    z_lower = (lower - price) / sigma
    z_upper = (upper - price) / sigma

    probability = normal_cdf(z_upper) - normal_cdf(z_lower)
    return max(Decimal(0), min(Decimal(1), probability))


def normal_cdf(z: Decimal) -> Decimal:
    """Standard normal CDF via the Abramowitz-Stegun rational approximation."""
    if z.is_infinite():
        return Decimal(1) if z > 0 else Decimal(0)

    t = Decimal(1) / (Decimal(1) + _CDF_P * abs(z))
    density = _INV_SQRT_2PI * (-(z * z) / 2).exp()

    poly = Decimal(0)
    for coefficient in reversed(_CDF_B):
        poly = t * (coefficient + poly)

    tail = density * poly
    return Decimal(1) - tail if z > 0 else tail


def adjust_for_gamma(volatility_range: VolatilityRange, gamma: GammaExposure | None) -> VolatilityRange:
    """
    Widen or narrow the 1σ band according to dealer gamma positioning.

    Positive gamma dampens moves (×0.85), negative gamma amplifies them
    (×1.15). Trading within 2% of the zero-gamma flip adds ×1.10.

    Args:
        volatility_range: Band computed by compute_band
        gamma: Gamma exposure summary

    Returns:
        New VolatilityRange; the input is returned unchanged without gamma data
    """
    if gamma is None or not gamma.available or not gamma.zero_gamma:
        return volatility_range

    factor = Decimal(1)
    if gamma.environment == GammaEnvironment.POSITIVE:
        factor = POSITIVE_GAMMA_FACTOR
        note = "Positive gamma environment dampens volatility"
    elif gamma.environment == GammaEnvironment.NEGATIVE:
        factor = NEGATIVE_GAMMA_FACTOR
        note = "Negative gamma environment amplifies volatility"
    else:
        note = "Neutral gamma environment"

    price = volatility_range.price
    distance_pct = abs(price - Decimal(str(gamma.zero_gamma))) / price
    if distance_pct < ZERO_GAMMA_PROXIMITY_PCT:
        factor *= ZERO_GAMMA_PROXIMITY_FACTOR
        note += f"; price within {ZERO_GAMMA_PROXIMITY_PCT * 100:.0f}% of zero gamma"

    one_sigma = _band(
        price,
        volatility_range.one_sigma.move * factor,
        volatility_range.one_sigma.probability,
    )

    return replace(
        volatility_range,
        one_sigma=one_sigma,
        adjustment=factor,
        adjustment_note=note,
    )


def _validate_inputs(price, iv, dte) -> tuple[Decimal, Decimal, int]:
    """Coerce inputs and reject missing, non-numeric, zero or negative values."""
    if price is None or iv is None or dte is None:
        raise InvalidInput("price, implied volatility and DTE are required")

    price = _to_finite_decimal(price, "price")
    iv = _to_finite_decimal(iv, "implied volatility")
    try:
        days = int(dte)
    except (TypeError, ValueError, OverflowError) as exc:
        raise InvalidInput(f"DTE must be a whole number of days, got {dte!r}") from exc

    if price <= 0:
        raise InvalidInput(f"price must be positive, got {price}")
    if iv <= 0:
        raise InvalidInput(f"implied volatility must be positive, got {iv}")
    if days <= 0:
        raise InvalidInput(f"DTE must be positive, got {dte}")

    return price, iv, days


def _to_finite_decimal(value, name: str) -> Decimal:
    try:
        number = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInput(f"{name} must be numeric, got {value!r}") from exc
    if not number.is_finite():
        raise InvalidInput(f"{name} must be finite, got {value!r}")
    return number


def _to_bound(value, name: str) -> Decimal:
    try:
        bound = Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise InvalidInput(f"{name} must be numeric, got {value!r}") from exc
    if bound.is_nan():
        raise InvalidInput(f"{name} must be numeric, got {value!r}")
    return bound


def _band(price: Decimal, move: Decimal, probability: Decimal) -> VolatilityBand:
    return VolatilityBand(
        upper=_cents(price + move),
        lower=_cents(price - move),
        move=_cents(move),
        move_pct=_cents(move / price * 100),
        probability=probability,
    )


def _cents(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _interpret(iv: Decimal, dte: int, time_factor: Decimal) -> str:
    """Human readable IV level and expected percentage move."""
    annualized = iv * 100

    if annualized > 50:
        level = "extreme"
    elif annualized > 35:
        level = "high"
    elif annualized > 20:
        level = "moderate"
    else:
        level = "low"

    expected_pct = iv * time_factor * 100
    return (
        f"Implied volatility {annualized:.1f}% ({level}), "
        f"expected move ±{expected_pct:.1f}% over {dte} days"
    )
