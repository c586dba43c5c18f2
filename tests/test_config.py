"""
Test Configuration Module
"""

from decimal import Decimal

import pytest

from app.config import Settings
from app.core.strategy_config import StrategyConfig


def test_settings_defaults():
    """Test documented policy defaults"""
    settings = Settings(ENVIRONMENT="development")

    assert settings.ENVIRONMENT == "development"
    assert settings.LOG_LEVEL == "INFO"
    assert settings.MIN_NET_PREMIUM == 150.0
    assert settings.IRON_CONDOR_MIN_IV_RANK == 45.0
    assert settings.SCORING_WEIGHT_IV_FIT == 15.0
    assert settings.redis_configured is False


def test_environment_validation():
    """Test environment validation"""
    with pytest.raises(ValueError):
        Settings(ENVIRONMENT="invalid")


def test_log_level_normalized():
    """Test log level is upper-cased"""
    assert Settings(LOG_LEVEL="debug").LOG_LEVEL == "DEBUG"


def test_is_production_flag():
    """Test production environment flag"""
    settings = Settings(ENVIRONMENT="production")

    assert settings.is_production is True
    assert settings.is_development is False


def test_redis_configured():
    settings = Settings(
        UPSTASH_REDIS_REST_URL="https://test.upstash.io",
        UPSTASH_REDIS_REST_TOKEN="test_token",
    )
    assert settings.redis_configured is True


def test_unsorted_tiers_rejected():
    with pytest.raises(ValueError):
        Settings(STRIKE_INCREMENT_TIERS=[(100.0, 2.5), (50.0, 1.0)])
    with pytest.raises(ValueError):
        Settings(WING_WIDTH_TIERS=[(50.0, 0.0)])


def test_environment_override(monkeypatch):
    """Policy values are overridable from the environment"""
    monkeypatch.setenv("IRON_CONDOR_MIN_IV_RANK", "40")
    monkeypatch.setenv("MIN_NET_PREMIUM", "200")

    config = StrategyConfig.from_settings(Settings())

    assert config.iron_condor_min_iv_rank == Decimal("40.0")
    assert config.min_net_premium == Decimal("200.0")


class TestStrategyConfig:
    def test_from_settings_matches_defaults(self):
        assert StrategyConfig.from_settings(Settings()).as_dict() == StrategyConfig().as_dict()

    @pytest.mark.parametrize(
        "price,increment,width",
        [
            ("25", "1", "5"),
            ("75", "2.5", "10"),
            ("150", "5", "15"),
            ("250.50", "10", "15"),
            ("450", "10", "20"),
        ],
    )
    def test_price_tiers(self, price, increment, width):
        config = StrategyConfig()
        assert config.strike_increment(Decimal(price)) == Decimal(increment)
        assert config.wing_width(Decimal(price)) == Decimal(width)

    @pytest.mark.parametrize(
        "target,price,expected",
        [
            ("238.36", "250.50", "240"),
            ("245", "250.50", "250"),
            ("93.74", "90", "92.5"),
            ("42.49", "45", "42"),
            ("42.5", "45", "43"),
        ],
    )
    def test_snap_to_strike_grid(self, target, price, expected):
        assert StrategyConfig().snap_to_strike_grid(Decimal(target), Decimal(price)) == Decimal(expected)
