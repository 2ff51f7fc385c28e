"""Configuration for revolut-ledger.

This module provides Pydantic Settings-based configuration with environment
variable support and sensible defaults for statement processing.

Usage:
    from revolut_ledger.config import LedgerSettings, configure_logging

    # Load from environment variables and .env file
    settings = LedgerSettings()
    configure_logging(settings)

    print(settings.price_tolerance)
"""

import logging
from decimal import Decimal
from typing import Literal, Optional

import structlog
from pydantic import Field, ValidationInfo, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LedgerSettings(BaseSettings):
    """Root configuration for statement parsing and consolidation.

    Environment Variables:
        REVOLUT_LEDGER_LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
        REVOLUT_LEDGER_LOG_FORMAT: ``console`` or ``json`` log lines
        REVOLUT_LEDGER_PRICE_TOLERANCE: Largest accepted gap between a trade's
            declared price and the price implied by its value
        REVOLUT_LEDGER_IMPLIED_PRICE_SCALE: Decimal places of the implied price
        REVOLUT_LEDGER_MAX_WORKERS: Documents parsed in parallel (1 = sequential)

    Example:
        settings = LedgerSettings(price_tolerance=Decimal("0.01"))
    """

    model_config = SettingsConfigDict(
        env_prefix="REVOLUT_LEDGER_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: LogLevel = Field(
        default="INFO",
        description="Lowest level of emitted log events",
    )
    log_format: Literal["console", "json"] = Field(
        default="console",
        description="Renderer for log events",
    )
    price_tolerance: Decimal = Field(
        default=Decimal("0.005"),
        ge=0,
        description="Maximum accepted |implied price - declared price| for trades",
    )
    implied_price_scale: int = Field(
        default=8,
        ge=0,
        le=28,
        description="Decimal places of the implied trade price",
    )
    max_workers: int = Field(
        default=1,
        ge=1,
        le=64,
        description="Worker threads used to parse documents",
    )

    @field_validator("log_level", "log_format", mode="before")
    @classmethod
    def normalize_case(cls, v: object, info: ValidationInfo) -> object:
        if not isinstance(v, str):
            return v
        v = v.strip()
        return v.upper() if info.field_name == "log_level" else v.lower()


def configure_logging(settings: Optional[LedgerSettings] = None) -> None:
    """Configure structlog to drop events below the configured level."""
    settings = settings or LedgerSettings()
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(settings.log_level)
        ),
        cache_logger_on_first_use=False,
    )
