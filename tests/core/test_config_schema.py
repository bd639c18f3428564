"""Tests for lithos.core.config_schema and Config.validated()."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from lithos.core.config import Config, reset_config
from lithos.core.config_schema import LithosConfig
from lithos.core.exceptions import ConfigurationError


@pytest.fixture(autouse=True)
def _reset_singleton():
    reset_config()
    yield
    reset_config()


class TestConfigSchema:
    def test_valid_config(self):
        cfg = LithosConfig.model_validate(
            {
                "paths": {"data_dir": "/tmp/lithos-data"},
                "ledger": {"base_currency": "usd", "fx_rate": 1.27},
                "history": {"max_points": 60, "default_range": "1Y"},
                "prices": {"synthetic_days": 180, "synthetic_volatility": 0.02},
            }
        )
        assert cfg.paths.data_dir == Path("/tmp/lithos-data")
        assert cfg.ledger.base_currency == "USD"
        assert cfg.ledger.fx_rate == 1.27
        assert cfg.history.max_points == 60
        assert cfg.prices.synthetic_days == 180

    def test_defaults_populate(self):
        cfg = LithosConfig()
        assert cfg.ledger.base_currency == "GBP"
        assert cfg.history.default_range == "1M"
        assert cfg.prices.synthetic_volatility == 0.015
        assert cfg.logging.level == "WARNING"

    def test_path_expansion(self):
        cfg = LithosConfig.model_validate({"paths": {"data_dir": "~/.lithos"}})
        assert cfg.paths.data_dir.is_absolute()
        assert "~" not in str(cfg.paths.data_dir)

    def test_unknown_base_currency(self):
        with pytest.raises(ValidationError, match="base_currency"):
            LithosConfig.model_validate({"ledger": {"base_currency": "JPY"}})

    def test_negative_fx_rate(self):
        with pytest.raises(ValidationError, match="fx_rate"):
            LithosConfig.model_validate({"ledger": {"fx_rate": -1}})

    def test_max_points_too_small(self):
        with pytest.raises(ValidationError, match="max_points"):
            LithosConfig.model_validate({"history": {"max_points": 1}})

    def test_unknown_range(self):
        with pytest.raises(ValidationError, match="default_range"):
            LithosConfig.model_validate({"history": {"default_range": "2W"}})

    def test_volatility_bounds(self):
        with pytest.raises(ValidationError, match="synthetic_volatility"):
            LithosConfig.model_validate({"prices": {"synthetic_volatility": 1.5}})

    def test_extra_sections_allowed(self):
        cfg = LithosConfig.model_validate({"custom": {"anything": True}})
        assert cfg.model_extra["custom"] == {"anything": True}


class TestValidated:
    def test_defaults_validate(self, tmp_dir):
        cfg = Config(data_dir=tmp_dir).validated()
        assert cfg.paths.data_dir == Path(tmp_dir)
        assert cfg.ledger.fx_rate == 0.0

    def test_env_strings_coerced(self, tmp_dir, monkeypatch):
        monkeypatch.setenv("LITHOS_LEDGER__FX_RATE", "1.31")
        monkeypatch.setenv("LITHOS_HISTORY__MAX_POINTS", "45")
        cfg = Config(data_dir=tmp_dir).validated()
        assert cfg.ledger.fx_rate == pytest.approx(1.31)
        assert cfg.history.max_points == 45

    def test_invalid_raises_configuration_error(self, tmp_dir):
        config = Config(data_dir=tmp_dir)
        config.set("history.max_points", 0)
        with pytest.raises(ConfigurationError, match="Invalid configuration"):
            config.validated()
