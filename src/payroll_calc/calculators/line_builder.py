"""Line item builder with idempotent hashing."""

from __future__ import annotations

import hashlib
import json
from decimal import ROUND_HALF_UP, Decimal
from typing import TYPE_CHECKING

from payroll_calc.calculators.types import (
    ZERO,
    DeductionLine,
    DeductionType,
    LineCandidate,
    LineType,
)

if TYPE_CHECKING:
    from payroll_calc.calculators.types import PayrollResult

# (code, result attribute, label) in pay-stub order
TAX_LINES = (
    ("federal_income_tax", "federal_income_tax", "Federal Income Tax"),
    ("state_income_tax", "state_income_tax", "State Income Tax"),
    ("local_tax", "local_tax", "Local Income Tax"),
    ("social_security", "social_security_employee", "Social Security Tax (Employee)"),
    ("medicare", "medicare_employee", "Medicare Tax (Employee)"),
    ("additional_medicare", "additional_medicare", "Additional Medicare Tax"),
    ("disability_insurance", "disability_insurance", "State Disability Insurance"),
    ("paid_family_leave", "paid_family_leave", "Paid Family Leave"),
)

EMPLOYER_TAX_LINES = (
    ("social_security_employer", "social_security_employer", "Social Security Tax (Employer)"),
    ("medicare_employer", "medicare_employer", "Medicare Tax (Employer)"),
    ("sui", "sui_employer", "SUI (State Unemployment)"),
    ("futa", "futa_employer", "FUTA (Federal Unemployment)"),
)


class LineItemBuilder:
    """Builds line items with deterministic hashing for idempotency.

    Sign conventions (non-negotiable):
    - EARNING: positive
    - DEDUCTION (employee): negative
    - TAX (employee): negative
    - EMPLOYER_TAX: positive (liability)

    Rounding:
    - USD to 2 decimals, half away from zero, at every line item
    - Totals are sums of already-rounded lines
    """

    OUTPUT_PRECISION = Decimal("0.01")

    @staticmethod
    def round_to_cents(amount: Decimal) -> Decimal:
        """Round amount to 2 decimal places (cents)."""
        return amount.quantize(LineItemBuilder.OUTPUT_PRECISION, rounding=ROUND_HALF_UP)

    @staticmethod
    def compute_line_hash(line: LineCandidate) -> str:
        """Compute deterministic hash for a line item.

        The hash is based on the canonical representation of defining fields,
        ensuring identical inputs produce identical hashes.
        """
        canonical = line.to_canonical_dict()
        json_str = json.dumps(canonical, sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]

    @staticmethod
    def create_earning_line(
        code: str,
        amount: Decimal,
        quantity: Decimal | None = None,
        rate: Decimal | None = None,
        explanation: str | None = None,
    ) -> LineCandidate:
        """Create an earning line item (positive amount)."""
        return LineCandidate(
            line_type=LineType.EARNING,
            code=code,
            amount=LineItemBuilder.round_to_cents(abs(amount)),
            quantity=quantity,
            rate=rate,
            explanation=explanation,
        )

    @staticmethod
    def create_deduction_line(deduction: DeductionLine) -> LineCandidate:
        """Create a deduction line item (negative amount)."""
        return LineCandidate(
            line_type=LineType.DEDUCTION,
            code=deduction.deduction_type.value,
            amount=-LineItemBuilder.round_to_cents(abs(deduction.amount)),
            explanation=f"{deduction.name} ({'pre-tax' if deduction.is_pre_tax else 'post-tax'})",
            deduction_type=deduction.deduction_type,
        )

    @staticmethod
    def create_tax_line(code: str, amount: Decimal, explanation: str | None = None) -> LineCandidate:
        """Create an employee tax line item (negative amount)."""
        return LineCandidate(
            line_type=LineType.TAX,
            code=code,
            amount=-LineItemBuilder.round_to_cents(abs(amount)),
            explanation=explanation,
        )

    @staticmethod
    def create_employer_tax_line(
        code: str, amount: Decimal, explanation: str | None = None
    ) -> LineCandidate:
        """Create an employer tax line item (positive amount, liability)."""
        return LineCandidate(
            line_type=LineType.EMPLOYER_TAX,
            code=code,
            amount=LineItemBuilder.round_to_cents(abs(amount)),
            explanation=explanation,
        )

    @staticmethod
    def build_lines(
        result: PayrollResult,
        regular_hours: Decimal | None = None,
        overtime_hours: Decimal | None = None,
        hourly_rate: Decimal | None = None,
    ) -> list[LineCandidate]:
        """Flatten a computation result into signed line items.

        Zero tax lines are skipped; earnings are always emitted so a stub
        shows the hours even when no pay results.
        """
        lines = [
            LineItemBuilder.create_earning_line(
                "regular", result.regular_pay, quantity=regular_hours, rate=hourly_rate,
                explanation="Regular pay",
            ),
        ]
        if result.overtime_pay > 0:
            lines.append(
                LineItemBuilder.create_earning_line(
                    "overtime", result.overtime_pay, quantity=overtime_hours,
                    explanation="Overtime pay",
                )
            )
        other = result.gross_pay - result.regular_pay - result.overtime_pay
        if other > 0:
            lines.append(
                LineItemBuilder.create_earning_line("other", other, explanation="Other earnings")
            )

        for deduction in result.pre_tax_deductions:
            lines.append(LineItemBuilder.create_deduction_line(deduction))

        for code, attr, label in TAX_LINES:
            amount = getattr(result, attr)
            if amount > 0:
                lines.append(LineItemBuilder.create_tax_line(code, amount, label))

        for deduction in result.post_tax_deductions:
            lines.append(LineItemBuilder.create_deduction_line(deduction))

        for code, attr, label in EMPLOYER_TAX_LINES:
            amount = getattr(result, attr)
            if amount > 0:
                lines.append(LineItemBuilder.create_employer_tax_line(code, amount, label))

        return lines

    @staticmethod
    def calculate_net_from_lines(lines: list[LineCandidate]) -> Decimal:
        """Calculate net pay from line items.

        NET = Σ(EARNING) + Σ(DEDUCTION) + Σ(TAX)

        Note: EMPLOYER_TAX is excluded from net calculation (it's a liability).
        """
        net = ZERO
        for line in lines:
            if line.line_type != LineType.EMPLOYER_TAX:
                net += line.amount
        return LineItemBuilder.round_to_cents(net)

    @staticmethod
    def calculate_gross_from_lines(lines: list[LineCandidate]) -> Decimal:
        """Calculate gross pay from line items."""
        gross = ZERO
        for line in lines:
            if line.line_type == LineType.EARNING:
                gross += line.amount
        return LineItemBuilder.round_to_cents(gross)

    @staticmethod
    def validate_line_signs(lines: list[LineCandidate]) -> list[str]:
        """Validate that all line items have correct signs.

        Returns list of error messages (empty if all valid).
        """
        errors: list[str] = []

        for i, line in enumerate(lines):
            if line.line_type in (LineType.EARNING, LineType.EMPLOYER_TAX):
                if line.amount < 0:
                    errors.append(
                        f"Line {i} ({line.line_type.value}) has negative amount {line.amount}, expected positive"
                    )
            elif line.amount > 0:
                errors.append(
                    f"Line {i} ({line.line_type.value}) has positive amount {line.amount}, expected negative"
                )

        return errors

    @staticmethod
    def sum_by_type(lines: list[LineCandidate]) -> dict[LineType, Decimal]:
        """Sum line amounts by type."""
        totals: dict[LineType, Decimal] = {lt: ZERO for lt in LineType}
        for line in lines:
            totals[line.line_type] += line.amount
        return totals

    @staticmethod
    def sum_deductions_by_type(lines: list[LineCandidate]) -> dict[DeductionType, Decimal]:
        """Positive deduction totals per report bucket; every bucket is present."""
        totals: dict[DeductionType, Decimal] = {dt: ZERO for dt in DeductionType}
        for line in lines:
            if line.line_type == LineType.DEDUCTION and line.deduction_type is not None:
                totals[line.deduction_type] += abs(line.amount)
        return totals
