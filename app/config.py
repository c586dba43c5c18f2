"""
Configuration Management
Centralized configuration using Pydantic settings with environment variable support.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Uses .env file for local development.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    ENVIRONMENT: str = Field(
        default="development", description="Environment: development, staging, production"
    )
    DEBUG: bool = Field(default=False, description="Enable debug mode")
    LOG_LEVEL: str = Field(default="INFO", description="Logging level")

    # API Configuration
    API_V1_PREFIX: str = Field(default="/api/v1", description="API version 1 prefix")
    CORS_ORIGINS: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:8000"],
        description="Allowed CORS origins",
    )

    # Redis Cache (Upstash) - optional, falls back to the in-process cache
    UPSTASH_REDIS_REST_URL: str | None = Field(default=None, description="Upstash Redis REST URL")
    UPSTASH_REDIS_REST_TOKEN: str | None = Field(
        default=None, description="Upstash Redis REST token"
    )
    REDIS_TTL_DEFAULT: int = Field(default=300, description="Default cache TTL in seconds")
    ANALYSIS_CACHE_TTL: int = Field(
        default=180, description="Cache TTL for strategy analysis responses (seconds)"
    )

    # Sentry Monitoring
    SENTRY_DSN: str | None = Field(default=None, description="Sentry DSN for error tracking")

    # Premium Targets
    MIN_NET_PREMIUM: float = Field(
        default=150.0, description="Minimum net credit/debit per position in dollars"
    )
    MIN_PREMIUM_PER_CONTRACT: float = Field(
        default=50.0, description="Floor for estimated premium per contract in dollars"
    )
    CONTRACT_MULTIPLIER: int = Field(default=100, description="Shares per option contract")

    # Eligibility Gates
    IRON_CONDOR_MIN_IV_RANK: float = Field(
        default=45.0, description="Minimum IV rank for iron condors (revisions used 40 and 45)"
    )
    BUTTERFLY_MAX_IV_RANK: float = Field(
        default=60.0, description="Maximum IV rank for long butterflies"
    )
    TIME_SPREAD_MIN_DTE: int = Field(
        default=7, description="Minimum DTE for calendar and diagonal spreads"
    )
    TIME_SPREAD_LONG_DTE_OFFSET: int = Field(
        default=7, description="Extra days on the long leg of calendar/diagonal spreads"
    )
    CHAIN_DTE_TOLERANCE: int = Field(
        default=3, description="Days around the target expiration kept when parsing a chain"
    )

    # Strike Grid (upper price bound, increment) - price-tiered on the underlying
    STRIKE_INCREMENT_TIERS: list[tuple[float, float]] = Field(
        default=[(50.0, 1.0), (100.0, 2.5), (200.0, 5.0)],
        description="Strike increments for underlyings below each price bound",
    )
    STRIKE_INCREMENT_MAX: float = Field(
        default=10.0, description="Strike increment above the last tier"
    )
    WING_WIDTH_TIERS: list[tuple[float, float]] = Field(
        default=[(50.0, 5.0), (100.0, 10.0), (300.0, 15.0)],
        description="Spread/wing widths in points for underlyings below each price bound",
    )
    WING_WIDTH_MAX: float = Field(default=20.0, description="Wing width above the last tier")

    # Premium Estimation (fraction of the 1-sigma move per share)
    PREMIUM_FACTORS: dict[str, float] = Field(
        default={
            "iron_condor": 0.15,
            "vertical_spread": 0.10,
            "cash_secured_put": 0.12,
            "butterfly": 0.12,
            "calendar_spread": 0.07,
            "diagonal_spread": 0.06,
        },
        description="Per-strategy net premium factors for estimated pricing",
    )
    SHORT_LEG_FACTORS: dict[str, float] = Field(
        default={"calendar_spread": 0.15, "diagonal_spread": 0.14},
        description="Short leg premium factors for time spreads",
    )
    PROFIT_CAPTURE_RATIOS: dict[str, float] = Field(
        default={"calendar_spread": 0.70, "diagonal_spread": 0.60},
        description="Share of the short leg premium expected to be captured on time spreads",
    )
    TIME_SPREAD_PROFIT_ZONE_SIGMA: float = Field(
        default=0.5, description="Half-width of the time spread profit zone in 1-sigma units"
    )
    APPLY_GAMMA_ADJUSTMENT: bool = Field(
        default=True, description="Scale the 1-sigma band by the gamma environment"
    )

    # Strategy Scoring Weights (points)
    SCORING_WEIGHT_WIN_RATE: float = Field(default=25.0, description="Win rate points")
    SCORING_WEIGHT_ROC: float = Field(default=20.0, description="Return on capital points")
    SCORING_ROC_CAP: float = Field(default=50.0, description="ROC % earning full points")
    SCORING_WEIGHT_TECHNICAL: float = Field(default=15.0, description="Technical score points")
    SCORING_WEIGHT_IV_FIT: float = Field(
        default=15.0, description="IV rank fit points (revisions used 15 and 10)"
    )
    SCORING_WEIGHT_DIRECTION: float = Field(default=10.0, description="Direction fit points")
    SCORING_WEIGHT_GAMMA: float = Field(default=10.0, description="Gamma environment fit points")
    SCORING_WEIGHT_LIQUIDITY: float = Field(default=10.0, description="Liquidity points")
    SCORING_LIQUIDITY_DEFAULT: float = Field(
        default=5.0, description="Liquidity points when no real quotes are available"
    )
    EARNINGS_PENALTY: float = Field(default=10.0, description="Points removed near earnings")
    EARNINGS_WINDOW_DAYS: int = Field(default=7, description="Earnings proximity window (days)")
    MAX_RECOMMENDATIONS: int = Field(default=3, description="Number of ranked strategies returned")

    @field_validator("ENVIRONMENT")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value"""
        allowed = {"development", "staging", "production", "testing"}
        if v not in allowed:
            raise ValueError(f"ENVIRONMENT must be one of {allowed}")
        return v

    @field_validator("LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level"""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"LOG_LEVEL must be one of {allowed}")
        return v_upper

    @field_validator("STRIKE_INCREMENT_TIERS", "WING_WIDTH_TIERS")
    @classmethod
    def validate_tiers(cls, v: list[tuple[float, float]]) -> list[tuple[float, float]]:
        """Tiers must be positive and ordered by price bound"""
        bounds = [bound for bound, _ in v]
        if bounds != sorted(bounds):
            raise ValueError("price tiers must be sorted by ascending price bound")
        if any(step <= 0 for _, step in v):
            raise ValueError("tier increments must be positive")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production"""
        return self.ENVIRONMENT == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development"""
        return self.ENVIRONMENT == "development"

    @property
    def redis_configured(self) -> bool:
        """Check if Upstash credentials are present"""
        return bool(self.UPSTASH_REDIS_REST_URL and self.UPSTASH_REDIS_REST_TOKEN)


# Global settings instance
settings = Settings()
