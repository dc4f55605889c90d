"""Unit tests for pay rate resolution."""

from decimal import Decimal

import pytest

from payroll_calc.calculators.rate_resolver import PayType, RateNotFoundError, RateResolver


class TestHourly:

    def test_returns_rate(self):
        assert RateResolver().resolve_hourly_rate(PayType.HOURLY, hourly_rate="25.50") == Decimal("25.50")

    def test_missing_rate(self):
        with pytest.raises(RateNotFoundError) as exc_info:
            RateResolver().resolve_hourly_rate("hourly", employee_key="emp-7")

        assert exc_info.value.employee_key == "emp-7"
        assert "emp-7" in str(exc_info.value)


class TestSalary:
    """Salaried employees are converted to a weekly hourly equivalent."""

    def test_whole_rate(self):
        rate = RateResolver().resolve_hourly_rate(PayType.SALARY, annual_salary=Decimal("52000"))
        assert rate == Decimal("25.0000")

    def test_rate_quantized(self):
        rate = RateResolver().resolve_hourly_rate("salary", annual_salary="65000")
        # 65000 / 52 / 40 = 31.25
        assert rate == Decimal("31.2500")

    def test_repeating_rate_rounded(self):
        rate = RateResolver().resolve_hourly_rate("salary", annual_salary="50000")
        # 50000 / 52 / 40 = 24.038461...
        assert rate == Decimal("24.0385")

    def test_custom_week(self):
        resolver = RateResolver(standard_weekly_hours=Decimal("37.5"))
        assert resolver.resolve_hourly_rate("salary", annual_salary="39000") == Decimal("20.0000")

    def test_missing_salary(self):
        with pytest.raises(RateNotFoundError):
            RateResolver().resolve_hourly_rate(PayType.SALARY, hourly_rate="25")

    def test_unknown_pay_type(self):
        with pytest.raises(ValueError):
            RateResolver().resolve_hourly_rate("commission", hourly_rate="25")
