"""Payroll calculation engine."""

from payroll_calc.calculators.engine import (
    EmployeeCalculation,
    PayrollEngine,
    PayRunCalculationResult,
    apply_deduction_deltas,
    compute,
)
from payroll_calc.calculators.line_builder import LineItemBuilder
from payroll_calc.calculators.rate_resolver import PayType, RateNotFoundError, RateResolver
from payroll_calc.calculators.rules import (
    NEW_YORK_2026,
    PayrollRuleSet,
    RuleSetNotFoundError,
    get_rule_set,
)
from payroll_calc.calculators.tax_calculator import PflCapMode, TaxCalculator

__all__ = [
    "EmployeeCalculation",
    "PayrollEngine",
    "PayRunCalculationResult",
    "apply_deduction_deltas",
    "compute",
    "LineItemBuilder",
    "PayType",
    "RateNotFoundError",
    "RateResolver",
    "NEW_YORK_2026",
    "PayrollRuleSet",
    "RuleSetNotFoundError",
    "get_rule_set",
    "PflCapMode",
    "TaxCalculator",
]
