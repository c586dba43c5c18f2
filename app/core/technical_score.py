"""
Technical Score
Multi-timeframe MACD / RSI / stochastic composite on a 0-100 scale.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any

from app.core.market_snapshot import Trend

NEUTRAL_SCORE = Decimal(50)

# Daily 50%, 1-hour 25%, 2-hour 25%
PERIOD_WEIGHTS = {
    "daily": Decimal("0.50"),
    "hourly1": Decimal("0.25"),
    "hourly2": Decimal("0.25"),
}


@dataclass
class PeriodScore:
    """Score for one timeframe."""

    score: int
    trend: Trend
    signals: list[str] = field(default_factory=list)


@dataclass
class TechnicalScore:
    """Weighted composite across timeframes."""

    score: int
    trend: Trend
    strength: str
    details: dict[str, PeriodScore]
    interpretation: str


def calculate_technical_score(indicators: dict[str, Any] | None) -> TechnicalScore:
    """
    Combine per-timeframe indicator readings into one score.

    Args:
        indicators: {"daily": {...}, "hourly1": {...}, "hourly2": {...}} where each
            period holds macd {macd, signal, hist}, rsi {value} and stoch {k, d}

    Returns:
        TechnicalScore; the overall trend needs two of three timeframes to agree
    """
    indicators = indicators or {}
    details = {period: score_period(indicators.get(period)) for period in PERIOD_WEIGHTS}

    total = sum(Decimal(details[period].score) * weight for period, weight in PERIOD_WEIGHTS.items())

    trends = [detail.trend for detail in details.values()]
    if trends.count(Trend.BULLISH) >= 2:
        trend = Trend.BULLISH
    elif trends.count(Trend.BEARISH) >= 2:
        trend = Trend.BEARISH
    else:
        trend = Trend.NEUTRAL

    return TechnicalScore(
        score=_round(total),
        trend=trend,
        strength=_strength(total),
        details=details,
        interpretation=_interpretation(total, trend),
    )


def score_period(period: dict[str, Any] | None) -> PeriodScore:
    """Score one timeframe from a neutral 50; missing indicators stay neutral."""
    if not period or not period.get("macd") or not period.get("rsi") or not period.get("stoch"):
        return PeriodScore(score=int(NEUTRAL_SCORE), trend=Trend.NEUTRAL)

    score = NEUTRAL_SCORE
    signals: list[str] = []

    for evaluate, key in ((_evaluate_macd, "macd"), (_evaluate_rsi, "rsi"), (_evaluate_stoch, "stoch")):
        adjustment, period_signals = evaluate(period[key])
        score += adjustment
        signals.extend(period_signals)

    score = max(Decimal(0), min(Decimal(100), score))

    if score >= 60:
        trend = Trend.BULLISH
    elif score <= 40:
        trend = Trend.BEARISH
    else:
        trend = Trend.NEUTRAL

    return PeriodScore(score=_round(score), trend=trend, signals=signals)


def _evaluate_macd(macd: dict[str, Any]) -> tuple[int, list[str]]:
    adjustment = 0
    signals = []

    if _num(macd.get("hist")) > 0:
        adjustment += 15
        signals.append("MACD histogram positive")
    else:
        adjustment -= 15
        signals.append("MACD histogram negative")

    if _num(macd.get("macd")) > _num(macd.get("signal")):
        adjustment += 5
        signals.append("MACD above signal line")
    else:
        adjustment -= 5
        signals.append("MACD below signal line")

    return adjustment, signals


def _evaluate_rsi(rsi: dict[str, Any]) -> tuple[int, list[str]]:
    value = _num(rsi.get("value"))

    # Overbought/oversold readings score as reversal risk
    if value > 70:
        return -10, ["RSI overbought (>70)"]
    if value > 60:
        return 5, ["RSI strong (60-70)"]
    if value > 50:
        return 10, ["RSI leaning bullish (50-60)"]
    if value > 40:
        return -10, ["RSI leaning bearish (40-50)"]
    if value > 30:
        return -5, ["RSI weak (30-40)"]
    return 10, ["RSI oversold (<30)"]


def _evaluate_stoch(stoch: dict[str, Any]) -> tuple[int, list[str]]:
    k = _num(stoch.get("k"))
    d = _num(stoch.get("d"))

    if k > 80:
        adjustment, signals = -10, ["Stochastic overbought (>80)"]
    elif k > 50:
        adjustment, signals = 10, ["Stochastic strong (>50)"]
    elif k > 20:
        adjustment, signals = -10, ["Stochastic weak (<50)"]
    else:
        adjustment, signals = 10, ["Stochastic oversold (<20)"]

    if k > d:
        return adjustment + 5, signals + ["%K above %D"]
    return adjustment - 5, signals + ["%K below %D"]


def _strength(score: Decimal) -> str:
    if score >= 75:
        return "very_strong"
    if score >= 60:
        return "strong"
    if score >= 40:
        return "moderate"
    if score >= 25:
        return "weak"
    return "very_weak"


def _interpretation(score: Decimal, trend: Trend) -> str:
    if trend == Trend.BULLISH:
        if score >= 75:
            return "Strong uptrend, technicals very bullish"
        if score >= 60:
            return "Clear uptrend, technicals bullish"
        return "Mild uptrend, technicals lean bullish"
    if trend == Trend.BEARISH:
        if score <= 25:
            return "Strong downtrend, technicals very bearish"
        if score <= 40:
            return "Clear downtrend, technicals bearish"
        return "Mild downtrend, technicals lean bearish"
    return "Technicals neutral, no clear direction"


def _num(value: Any) -> Decimal:
    if value is None:
        return Decimal(0)
    return Decimal(str(value))


def _round(value: Decimal) -> int:
    return int(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))
