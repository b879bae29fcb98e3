"""Tests for configuration system."""

import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from cex.config import Settings, load_settings


class TestSettings:
    def test_defaults(self):
        settings = Settings(config_file="nonexistent.yaml")
        assert settings.exchange == "simulated"
        assert settings.product_name == "BTC-USD"
        assert settings.account_balance == 10000.0
        assert settings.fee == 0.0
        assert settings.product_quantity == 0.0
        assert settings.currency == "USD"
        assert settings.settlement_ticks == 0
        assert settings.log_level == "INFO"
        assert settings.log_json is False

    def test_fee_bounds(self):
        Settings(fee=0, config_file="nonexistent.yaml")
        Settings(fee=100, config_file="nonexistent.yaml")
        with pytest.raises(ValidationError):
            Settings(fee=-1, config_file="nonexistent.yaml")
        with pytest.raises(ValidationError):
            Settings(fee=101, config_file="nonexistent.yaml")

    def test_balance_must_be_positive(self):
        with pytest.raises(ValidationError):
            Settings(account_balance=0, config_file="nonexistent.yaml")

    def test_negative_product_quantity_rejected(self):
        with pytest.raises(ValidationError):
            Settings(product_quantity=-0.5, config_file="nonexistent.yaml")

    def test_product_name_normalized(self):
        settings = Settings(product_name="eth-usd", config_file="nonexistent.yaml")
        assert settings.product_name == "ETH-USD"

    def test_invalid_product_name(self):
        with pytest.raises(ValidationError):
            Settings(product_name="BTCUSD", config_file="nonexistent.yaml")

    def test_exchange_name_normalized(self):
        settings = Settings(exchange=" Simulated ", config_file="nonexistent.yaml")
        assert settings.exchange == "simulated"

    def test_log_level_case_insensitive(self):
        s = Settings(log_level="debug", config_file="nonexistent.yaml")
        assert s.log_level == "DEBUG"

    def test_invalid_log_level(self):
        with pytest.raises(ValidationError):
            Settings(log_level="VERBOSE", config_file="nonexistent.yaml")

    def test_from_env_vars(self):
        env = {
            "ACCOUNT_BALANCE": "2500",
            "FEE": "0.25",
            "PRODUCT_NAME": "ETH-USD",
            "LOG_LEVEL": "DEBUG",
        }
        with patch.dict(os.environ, env, clear=False):
            settings = Settings(config_file="nonexistent.yaml")
            assert settings.account_balance == 2500.0
            assert settings.fee == 0.25
            assert settings.product_name == "ETH-USD"
            assert settings.log_level == "DEBUG"

    def test_yaml_override(self, tmp_path):
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("fee: 0.5\nproduct_quantity: 2\nunknown_key: 1\n")
        settings = Settings(config_file=str(yaml_file))
        assert settings.fee == 0.5
        assert settings.product_quantity == 2
        assert not hasattr(settings, "unknown_key")

    def test_yaml_file_not_found_is_ok(self):
        settings = Settings(config_file="definitely_nonexistent.yaml")
        assert settings.exchange == "simulated"

    def test_load_settings_overrides(self):
        settings = load_settings(fee=1.5, config_file="nonexistent.yaml")
        assert settings.fee == 1.5
