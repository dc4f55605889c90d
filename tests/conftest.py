"""Pytest fixtures for payroll calculator tests."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import pytest

from payroll_calc.calculators.engine import PayrollEngine
from payroll_calc.calculators.rules import NEW_YORK_2026
from payroll_calc.calculators.tax_calculator import PflCapMode, TaxCalculator
from payroll_calc.calculators.types import (
    DeductionDefinition,
    PayrollInput,
    YtdAccumulators,
)
from payroll_calc.config import Settings


@pytest.fixture
def settings() -> Settings:
    """Settings independent of the environment."""
    return Settings(
        engine_version="1.0.0",
        tax_year=2026,
        pfl_cap_mode=PflCapMode.PER_PERIOD,
        pay_run_max_workers=1,
    )


@pytest.fixture
def engine(settings) -> PayrollEngine:
    return PayrollEngine(rules=NEW_YORK_2026, settings=settings)


@pytest.fixture
def calculator() -> TaxCalculator:
    return TaxCalculator(NEW_YORK_2026)


def make_input(**overrides: Any) -> PayrollInput:
    """A 40-hour week at $25/hr, single, no allowances, nothing year-to-date.

    ``ytd_gross_pay`` is accepted as a shortcut for ``ytd=YtdAccumulators(gross_pay=...)``.
    """
    ytd_gross = overrides.pop("ytd_gross_pay", None)
    if ytd_gross is not None:
        overrides["ytd"] = YtdAccumulators(gross_pay=Decimal(str(ytd_gross)))
    values: dict[str, Any] = {
        "regular_hours": Decimal("40"),
        "overtime_hours": Decimal("0"),
        "hourly_rate": Decimal("25"),
        "overtime_multiplier": Decimal("1.5"),
        "federal_filing_status": "single",
        "federal_allowances": 0,
        "federal_taxes_withheld": True,
        "state_taxes_withheld": True,
        "sui_rate": Decimal("2.1"),
    }
    values.update(overrides)
    return PayrollInput(**values)


def make_deduction(**overrides: Any) -> DeductionDefinition:
    values: dict[str, Any] = {
        "deduction_type": "401k",
        "amount_kind": "fixed",
        "amount": Decimal("100"),
        "is_pre_tax": True,
    }
    values.update(overrides)
    return DeductionDefinition(**values)


@pytest.fixture
def payroll_input_factory():
    return make_input


@pytest.fixture
def deduction_factory():
    return make_deduction
