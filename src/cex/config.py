"""Configuration system using pydantic-settings with .env and optional YAML override."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Client settings loaded from environment variables and optional YAML config."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Exchange client to build through the factory
    exchange: str = "simulated"

    # Product and account
    product_name: str = "BTC-USD"
    account_id: str = "simulated"
    currency: str = "USD"
    account_balance: float = Field(default=10000.0, gt=0)
    product_quantity: float = Field(default=0.0, ge=0)
    fee: float = Field(default=0.0, ge=0, le=100)

    # Price updates a filled order waits in PENDING before DONE (0 = settle at once)
    settlement_ticks: int = Field(default=0, ge=0)

    # Logging
    log_level: str = "INFO"
    log_json: bool = False

    # Config file path
    config_file: str = ""

    @field_validator("exchange")
    @classmethod
    def normalize_exchange(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("product_name")
    @classmethod
    def validate_product_name(cls, v: str) -> str:
        base, sep, quote = v.partition("-")
        if not sep or not base or not quote:
            raise ValueError("product_name must look like BASE-QUOTE, e.g. BTC-USD")
        return v.upper()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @model_validator(mode="after")
    def apply_yaml_overrides(self) -> "Settings":
        """Apply overrides from YAML config file if specified."""
        config_path = Path(self.config_file) if self.config_file else Path("config.yaml")
        if config_path.exists():
            with open(config_path) as f:
                yaml_config = yaml.safe_load(f)
            if yaml_config and isinstance(yaml_config, dict):
                for key, value in yaml_config.items():
                    if hasattr(self, key):
                        object.__setattr__(self, key, value)
        return self


def load_settings(**overrides: Any) -> Settings:
    """Create a Settings instance with optional overrides."""
    return Settings(**overrides)
