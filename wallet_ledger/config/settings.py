"""
Configuration Management for Wallet Ledger

Uses pydantic-settings for type-safe configuration from environment variables.

DESIGN DECISION: All configuration is centralized here.
Thresholds used by the goal calculator and the balance reconciler live
here rather than as literals scattered through the business logic.
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Key-value store backend configuration."""

    model_config = SettingsConfigDict(
        env_prefix="WALLET_LEDGER_STORE_",
        extra="ignore"
    )

    backend: str = Field(
        default="file",
        pattern="^(memory|file)$",
        description="Store backend: 'memory' (volatile) or 'file' (JSON files)"
    )
    data_dir: Path = Field(
        default=Path(".wallet_ledger"),
        description="Directory holding one JSON file per store key"
    )


class LedgerSettings(BaseSettings):
    """Ledger repository configuration."""

    model_config = SettingsConfigDict(
        env_prefix="WALLET_LEDGER_",
        extra="ignore"
    )

    default_currency: str = Field(
        default="USD",
        description="Currency for new wallets when the user profile has none"
    )
    balance_epsilon: float = Field(
        default=1e-6,
        ge=0.0,
        description="Largest balance divergence tolerated before self-healing"
    )
    heal_on_load: bool = Field(
        default=True,
        description="Recompute wallet balances from transaction history on load"
    )

    @field_validator('default_currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        """Currency codes are stored upper-case."""
        return v.strip().upper()


class GoalSettings(BaseSettings):
    """Goal progress classification thresholds."""

    model_config = SettingsConfigDict(
        env_prefix="WALLET_LEDGER_GOAL_",
        extra="ignore"
    )

    behind_threshold: float = Field(
        default=0.10,
        gt=0.0,
        le=1.0,
        description="Required daily progress above which a goal is 'behind'"
    )
    at_risk_threshold: float = Field(
        default=0.05,
        gt=0.0,
        le=1.0,
        description="Required daily progress above which a goal is 'at risk'"
    )
    urgent_days: int = Field(
        default=7,
        ge=0,
        description="Goals due within this many days are urgent"
    )
    almost_there_ratio: float = Field(
        default=0.8,
        ge=0.0,
        le=1.0,
        description="Progress ratio from which a goal is 'almost there'"
    )


class AppSettings(BaseSettings):
    """
    Main application settings.

    Loads configuration from environment variables and .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    debug_mode: bool = Field(
        default=False,
        description="Emit DEBUG-severity audit events"
    )


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

    @property
    def store(self) -> StoreSettings:
        return StoreSettings()

    @property
    def ledger(self) -> LedgerSettings:
        return LedgerSettings()

    @property
    def goals(self) -> GoalSettings:
        return GoalSettings()

    @property
    def app(self) -> AppSettings:
        return AppSettings()


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings (cached).

    Uses LRU cache to ensure settings are only loaded once.
    Call get_settings.cache_clear() to reload if needed.
    """
    return Settings()


def validate_all_settings() -> dict[str, bool]:
    """
    Validate all settings are properly configured.

    Returns a dict of {setting_name: is_valid}.
    Useful for startup checks.
    """
    results = {}

    settings = get_settings()

    for name in ("store", "ledger", "goals", "app"):
        try:
            _ = getattr(settings, name)
            results[name] = True
        except Exception as e:
            results[name] = False
            results[f"{name}_error"] = str(e)

    goals = settings.goals
    if goals.at_risk_threshold >= goals.behind_threshold:
        results["goals"] = False
        results["goals_error"] = "at_risk_threshold must be below behind_threshold"

    return results
