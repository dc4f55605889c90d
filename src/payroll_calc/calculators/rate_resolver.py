"""Pay rate resolution for hourly and salaried employees."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from payroll_calc.calculators.types import to_decimal

RATE_PRECISION = Decimal("0.0001")


class PayType(str, Enum):
    HOURLY = "hourly"
    SALARY = "salary"


class RateNotFoundError(Exception):
    """Raised when an employee has no rate for their pay type."""

    def __init__(self, pay_type: PayType | str, employee_key: str | None = None):
        self.pay_type = pay_type
        self.employee_key = employee_key
        who = f" for employee {employee_key}" if employee_key else ""
        super().__init__(f"No {PayType(pay_type).value} rate on file{who}")


class RateResolver:
    """Resolves the hourly rate the engine is called with.

    The engine only understands hours times rate. Salaried employees are
    converted to the hourly equivalent of one weekly period:
    annual salary / periods per year / standard weekly hours.
    """

    def __init__(self, periods_per_year: int = 52, standard_weekly_hours: Decimal = Decimal("40")):
        self.periods_per_year = periods_per_year
        self.standard_weekly_hours = standard_weekly_hours

    def resolve_hourly_rate(
        self,
        pay_type: PayType | str,
        hourly_rate: Decimal | float | str | None = None,
        annual_salary: Decimal | float | str | None = None,
        employee_key: str | None = None,
    ) -> Decimal:
        """Resolve the hourly (or hourly-equivalent) rate.

        Raises:
            RateNotFoundError: If the rate required by the pay type is missing
        """
        pay_type = PayType(pay_type)

        if pay_type == PayType.HOURLY:
            if hourly_rate is None:
                raise RateNotFoundError(pay_type, employee_key)
            return to_decimal(hourly_rate, "hourly_rate")

        if annual_salary is None:
            raise RateNotFoundError(pay_type, employee_key)
        salary = to_decimal(annual_salary, "annual_salary")
        weekly = salary / self.periods_per_year
        return (weekly / self.standard_weekly_hours).quantize(RATE_PRECISION, rounding=ROUND_HALF_UP)
