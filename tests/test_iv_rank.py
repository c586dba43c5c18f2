"""Unit tests for IV rank helpers."""

from decimal import Decimal

import pytest

from app.core.iv_rank import calculate_iv_percentile, calculate_iv_rank, classify_iv_rank
from app.core.market_snapshot import IVRankTier

HISTORY = [Decimal("0.20"), Decimal("0.25"), Decimal("0.30"), Decimal("0.40"), Decimal("0.60")]


def test_iv_rank_position_in_range() -> None:
    result = calculate_iv_rank(Decimal("0.45"), HISTORY)

    assert result.iv_rank == Decimal("62.5")
    assert result.tier == IVRankTier.HIGH
    assert result.recommendation == "sell_premium"
    assert result.min_iv == Decimal("0.20")
    assert result.max_iv == Decimal("0.60")


def test_iv_rank_low() -> None:
    result = calculate_iv_rank(0.22, [0.2, 0.3, 0.6])

    assert result.iv_rank == Decimal("5.0")
    assert result.tier == IVRankTier.LOW
    assert result.recommendation == "buy_options"
    assert "low" in result.interpretation


def test_flat_history_is_medium() -> None:
    result = calculate_iv_rank(Decimal("0.3"), [Decimal("0.3")] * 10)
    assert result.iv_rank == Decimal(50)
    assert result.tier == IVRankTier.MEDIUM


@pytest.mark.parametrize("current,history", [(None, HISTORY), (Decimal("0.3"), []), (Decimal("0.3"), None)])
def test_insufficient_data(current, history) -> None:
    result = calculate_iv_rank(current, history)
    assert result.iv_rank is None
    assert result.tier == IVRankTier.UNKNOWN
    assert result.recommendation == "insufficient_data"


@pytest.mark.parametrize(
    "iv_rank,tier",
    [
        (Decimal("80"), IVRankTier.VERY_HIGH),
        (Decimal("75"), IVRankTier.VERY_HIGH),
        (Decimal("65"), IVRankTier.HIGH),
        (Decimal("25"), IVRankTier.MEDIUM),
        (Decimal("24.9"), IVRankTier.LOW),
        (None, IVRankTier.UNKNOWN),
    ],
)
def test_classify_iv_rank(iv_rank, tier) -> None:
    assert classify_iv_rank(iv_rank) == tier


def test_iv_percentile() -> None:
    assert calculate_iv_percentile(Decimal("0.35"), HISTORY) == 60
    assert calculate_iv_percentile(Decimal("0.10"), HISTORY) == 0
    assert calculate_iv_percentile(None, HISTORY) is None
