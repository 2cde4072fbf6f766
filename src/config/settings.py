"""
Inventory engine settings.

Values come from the environment (or a ``.env`` file). Storage options use the
``STORAGE_`` prefix and costing options the ``COSTING_`` prefix, e.g.
``COSTING_DEFAULT_STRATEGY=last_cost``.
"""

from decimal import Decimal
from pathlib import Path
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

CostingStrategyName = Literal["last_cost", "weighted_average"]


class StorageSettings(BaseSettings):
    """Where the inventory database lives and how it is opened."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "inventory.db"

    pool_size: int = Field(default=5, ge=1)
    busy_timeout: int = Field(default=30000, ge=0)  # ms

    @model_validator(mode="after")
    def create_data_dir(self) -> "StorageSettings":
        self.data_dir.mkdir(parents=True, exist_ok=True)
        return self

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class CostingSettings(BaseSettings):
    """How unit prices are computed and stored."""

    model_config = SettingsConfigDict(env_prefix="COSTING_")

    # Fractional digits of stored prices
    price_scale: int = Field(default=4, ge=0, le=10)

    # Strategy for items created without one
    default_strategy: CostingStrategyName = "weighted_average"

    # Supplier price moves smaller than this keep the recorded price
    supplier_price_tolerance: Decimal = Field(default=Decimal("0.01"), ge=0)

    @field_validator("default_strategy", mode="before")
    @classmethod
    def normalize_strategy(cls, v):
        if isinstance(v, str):
            return v.strip().lower().replace("-", "_")
        return v


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "Inventory Costing Engine"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    storage: StorageSettings = Field(default_factory=StorageSettings)
    costing: CostingSettings = Field(default_factory=CostingSettings)

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


_settings: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings, loaded on first call."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Forget loaded settings so the next call re-reads the environment."""
    global _settings
    _settings = None
