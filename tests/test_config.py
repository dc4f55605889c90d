"""Tests for environment-driven settings."""

import pytest

from payroll_calc.calculators.engine import PayrollEngine
from payroll_calc.calculators.rules import RuleSetNotFoundError
from payroll_calc.calculators.tax_calculator import PflCapMode
from payroll_calc.config import Settings, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("ENGINE_VERSION", "PAYROLL_TAX_YEAR", "PAYROLL_PFL_CAP_MODE", "PAYROLL_MAX_WORKERS"):
        monkeypatch.delenv(name, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class TestSettings:

    def test_defaults(self):
        settings = Settings.from_env()

        assert settings.engine_version == "1.0.0"
        assert settings.tax_year == 2026
        assert settings.pfl_cap_mode == PflCapMode.PER_PERIOD
        assert settings.pay_run_max_workers == 1

    def test_overrides(self, monkeypatch):
        monkeypatch.setenv("PAYROLL_PFL_CAP_MODE", "YEAR_TO_DATE")
        monkeypatch.setenv("PAYROLL_MAX_WORKERS", "8")
        monkeypatch.setenv("ENGINE_VERSION", "2.0.0")

        settings = Settings.from_env()

        assert settings.pfl_cap_mode == PflCapMode.YEAR_TO_DATE
        assert settings.pay_run_max_workers == 8
        assert settings.engine_version == "2.0.0"

    def test_workers_at_least_one(self, monkeypatch):
        monkeypatch.setenv("PAYROLL_MAX_WORKERS", "0")
        assert Settings.from_env().pay_run_max_workers == 1

    def test_invalid_cap_mode(self, monkeypatch):
        monkeypatch.setenv("PAYROLL_PFL_CAP_MODE", "monthly")
        with pytest.raises(ValueError):
            Settings.from_env()

    def test_cached(self):
        assert get_settings() is get_settings()


class TestEngineConfiguration:

    def test_engine_uses_configured_mode(self, monkeypatch):
        monkeypatch.setenv("PAYROLL_PFL_CAP_MODE", "year_to_date")

        engine = PayrollEngine()

        assert engine.tax_calculator.pfl_cap_mode == PflCapMode.YEAR_TO_DATE
        assert engine.rules.tax_year == 2026

    def test_constructor_overrides_settings(self, monkeypatch):
        monkeypatch.setenv("PAYROLL_PFL_CAP_MODE", "year_to_date")

        engine = PayrollEngine(pfl_cap_mode=PflCapMode.PER_PERIOD)

        assert engine.tax_calculator.pfl_cap_mode == PflCapMode.PER_PERIOD

    def test_unregistered_tax_year(self, monkeypatch):
        monkeypatch.setenv("PAYROLL_TAX_YEAR", "2019")

        with pytest.raises(RuleSetNotFoundError):
            PayrollEngine()
