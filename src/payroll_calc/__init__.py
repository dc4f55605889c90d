"""Payroll tax-calculation engine for small-business pay runs."""

from payroll_calc.calculators import PayrollEngine, compute
from payroll_calc.calculators.types import (
    AmountKind,
    DeductionDefinition,
    DeductionType,
    FilingStatus,
    PayrollInput,
    PayrollInputError,
    PayrollResult,
    YtdAccumulators,
)
from payroll_calc.formatting import format_currency

__version__ = "1.0.0"

__all__ = [
    "PayrollEngine",
    "compute",
    "AmountKind",
    "DeductionDefinition",
    "DeductionType",
    "FilingStatus",
    "PayrollInput",
    "PayrollInputError",
    "PayrollResult",
    "YtdAccumulators",
    "format_currency",
]
