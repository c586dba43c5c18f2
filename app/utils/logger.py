"""
Logging Configuration
Structured logging with Sentry integration for error tracking.
"""

import logging
import sys

from app.config import settings


def setup_logging() -> logging.Logger:
    """
    Configure application logging with structured output.
    Integrates with Sentry for error tracking in production.

    Returns:
        Configured logger instance
    """
    # Create logger
    logger = logging.getLogger("weekly_premium")
    logger.setLevel(getattr(logging, settings.LOG_LEVEL))

    # Remove existing handlers
    logger.handlers.clear()

    # Console handler with formatting
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, settings.LOG_LEVEL))

    # Format: timestamp - level - module - message
    formatter = logging.Formatter(
        fmt="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler.setFormatter(formatter)

    logger.addHandler(console_handler)

    logger.info(f"Logging initialized - Level: {settings.LOG_LEVEL}")
    logger.info(f"Environment: {settings.ENVIRONMENT}")
    if settings.SENTRY_DSN:
        logger.info("Sentry monitoring enabled")

    return logger


def log_strategy_event(
    logger: logging.Logger,
    symbol: str,
    strategy: str,
    event: str,
    detail: str | None = None,
) -> None:
    """
    Log a strategy generation event (gate skip, pricing fallback, exclusion).

    Args:
        logger: Logger instance
        symbol: Underlying ticker
        strategy: Strategy type value (e.g., "iron_condor")
        event: Short event name (e.g., "price_fallback")
        detail: Optional human readable detail
    """
    log_data = {"symbol": symbol, "strategy": strategy, "event": event}

    if detail:
        log_data["detail"] = detail

    if event == "excluded":
        logger.warning(f"Strategy excluded: {log_data}")
    else:
        logger.debug(f"Strategy event: {log_data}")


# Global logger instance
app_logger = setup_logging()
