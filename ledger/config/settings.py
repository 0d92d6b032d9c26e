"""
Configuration Management for Personal Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
This makes it easy to see where data lives and which business constants
exist, and ensures everything is validated at startup.
"""

from decimal import Decimal
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_BANK_RATES = {
    "RHB": Decimal("2.6"),
    "Maybank": Decimal("2.5"),
    "Hong Leong": Decimal("2.3"),
    "Alliance": Decimal("2.85"),
    "AmBank": Decimal("2.55"),
    "Standard Chartered": Decimal("2.65"),
}


class StorageSettings(BaseSettings):
    """Flat-file storage configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_STORAGE_",
        extra="ignore"
    )

    data_dir: Path = Field(
        default=Path("data"),
        description="Directory holding the CSV logs"
    )

    # File names within data_dir
    users_file: str = Field(default="users.csv")
    transactions_file: str = Field(default="transactions.csv")
    savings_file: str = Field(default="savings.csv")
    loans_file: str = Field(default="loans.csv")
    accounts_file: str = Field(
        default="accounts.csv",
        description="Per-user savings pot and last activity date"
    )

    # Retry policy for file writes
    retry_attempts: int = Field(
        default=3,
        ge=1,
        le=10,
        description="How many times a failed write is attempted"
    )
    retry_min_wait: float = Field(
        default=0.5,
        ge=0.0,
        description="Minimum back-off between attempts (seconds)"
    )
    retry_max_wait: float = Field(
        default=4.0,
        ge=0.0,
        description="Maximum back-off between attempts (seconds)"
    )

    @field_validator('retry_max_wait')
    @classmethod
    def validate_wait_bounds(cls, v: float, info) -> float:
        """Max wait can't be below min wait."""
        min_wait = info.data.get("retry_min_wait", 0.0)
        if v < min_wait:
            raise ValueError("retry_max_wait must be >= retry_min_wait")
        return v


class LedgerRulesSettings(BaseSettings):
    """Business constants for the accounting engines."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_",
        extra="ignore"
    )

    description_max_length: int = Field(
        default=100,
        ge=1,
        description="Maximum transaction description length"
    )
    reminder_window_days: int = Field(
        default=5,
        ge=0,
        description="Days before the due date that a loan reminder fires"
    )
    savings_transfer_description: str = Field(
        default="Monthly Savings Transfer",
        description="Description of the synthetic sweep transaction"
    )
    max_amount: Decimal = Field(
        default=Decimal("1000000000000"),
        gt=0,
        description="Largest amount, principal or rate accepted from input"
    )
    max_repayment_period: int = Field(
        default=600,
        ge=1,
        description="Longest loan term in months"
    )
    password_min_length: int = Field(default=6, ge=1)
    bank_rates: dict[str, Decimal] = Field(
        default_factory=lambda: dict(DEFAULT_BANK_RATES),
        description="Annual deposit rate (percent) per bank"
    )


class LoggingSettings(BaseSettings):
    """Structured logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LEDGER_LOG_",
        extra="ignore"
    )

    level: str = Field(
        default="INFO",
        description="Minimum log level"
    )
    json_output: bool = Field(
        default=True,
        description="Render JSON lines (False = human-readable console)"
    )

    @field_validator('level')
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Unsupported log level: {v}. Allowed: {allowed}")
        return v.upper()


class Settings(BaseSettings):
    """
    Root settings container.

    Aggregates all sub-settings for easy access.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    storage: StorageSettings = Field(default_factory=StorageSettings)
    rules: LedgerRulesSettings = Field(default_factory=LedgerRulesSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()
