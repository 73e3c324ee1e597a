"""
BioShield Configuration.

Loaded from environment variables and an optional .env file.
"""

from decimal import Decimal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Application ──────────────────────────────────────────────────────
    app_name: str = "BioShield"
    app_version: str = "1.0.0"
    environment: str = Field(default="development", alias="ENVIRONMENT")

    # ── Oracle validation ────────────────────────────────────────────────
    oracle_max_age_seconds: int = Field(default=3600, alias="ORACLE_MAX_AGE_SECONDS")
    oracle_max_relative_uncertainty: Decimal = Field(
        default=Decimal("0.01"), alias="ORACLE_MAX_RELATIVE_UNCERTAINTY",
        description="Largest uncertainty/|price| accepted from a price feed",
    )
    oracle_min_sample_size: int = Field(default=3, alias="ORACLE_MIN_SAMPLE_SIZE")
    oracle_max_variance: Decimal = Field(
        default=Decimal("0.10"), alias="ORACLE_MAX_VARIANCE",
        description="Coefficient-of-variation ceiling for aggregator feeds",
    )
    oracle_min_sources: int = Field(
        default=2, alias="ORACLE_MIN_SOURCES",
        description="Feed kinds a snapshot needs before it may drive a payout",
    )

    # ── Underwriting ─────────────────────────────────────────────────────
    max_coverage_period_seconds: int = Field(
        default=5 * 365 * 86400, alias="MAX_COVERAGE_PERIOD_SECONDS",
    )
    max_custom_conditions: int = Field(default=5, alias="MAX_CUSTOM_CONDITIONS")
    max_pool_fee_basis_points: int = Field(default=1000, alias="MAX_POOL_FEE_BASIS_POINTS")
    lives_discount_percentage: int = Field(
        default=50, ge=0, le=100, alias="LIVES_DISCOUNT_PERCENTAGE",
    )
    utilization_surcharge_bp: int = Field(default=8000, alias="UTILIZATION_SURCHARGE_BP")
    utilization_discount_bp: int = Field(default=3000, alias="UTILIZATION_DISCOUNT_BP")

    # ── Operational ──────────────────────────────────────────────────────
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="json", alias="LOG_FORMAT")  # json or console


settings = Settings()
