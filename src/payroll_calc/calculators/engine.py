"""Payroll calculation engine - main orchestrator."""

from __future__ import annotations

import hashlib
import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field, replace
from decimal import ROUND_DOWN, Decimal
from typing import Any, Iterable, Mapping
from uuid import UUID

from pydantic import ValidationError

from payroll_calc.calculators.line_builder import LineItemBuilder
from payroll_calc.calculators.rate_resolver import RateNotFoundError, RateResolver
from payroll_calc.calculators.rules import PayrollRuleSet, get_rule_set
from payroll_calc.calculators.tax_calculator import PflCapMode, TaxCalculator
from payroll_calc.calculators.types import (
    ZERO,
    AmountKind,
    DeductionDefinition,
    DeductionDelta,
    DeductionLine,
    DeductionType,
    LineType,
    PayrollInput,
    PayrollInputError,
    PayrollResult,
    YtdAccumulators,
)
from payroll_calc.config import Settings, get_settings
from payroll_calc.schemas import PayrollInputSchema

logger = logging.getLogger(__name__)

round_to_cents = LineItemBuilder.round_to_cents


@dataclass
class EmployeeCalculation:
    """Result of calculating pay for one employee in a pay run."""

    employee_key: str
    calculation_id: UUID | None
    inputs_fingerprint: str
    result: PayrollResult | None
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.result is not None and len(self.errors) == 0


@dataclass
class PayRunCalculationResult:
    """Result of calculating an entire pay run."""

    results: dict[str, EmployeeCalculation]  # employee_key -> calculation
    total_gross: Decimal = ZERO
    total_net: Decimal = ZERO
    total_employer_cost: Decimal = ZERO
    deduction_totals: dict[DeductionType, Decimal] = field(default_factory=dict)
    error_count: int = 0


class PayrollEngine:
    """Main payroll calculation engine.

    Calculation pipeline (stable order per employee):
    1) Earnings: regular, overtime, other
    2) Pre-tax deductions (reduce income-tax wages)
    3) Taxable wages
    4) Employee taxes: federal, state, local, FICA, disability, PFL
    5) Post-tax deductions
    6) Net pay
    7) Employer taxes (liability only)
    8) YTD deltas for the caller to persist

    Every line is rounded to cents as it is produced; totals are sums of
    rounded lines.
    """

    def __init__(
        self,
        rules: PayrollRuleSet | None = None,
        settings: Settings | None = None,
        pfl_cap_mode: PflCapMode | None = None,
    ):
        self.settings = settings or get_settings()
        self.rules = rules or get_rule_set(self.settings.tax_year)
        self.tax_calculator = TaxCalculator(
            self.rules, pfl_cap_mode or self.settings.pfl_cap_mode
        )

    def compute(self, payroll_input: PayrollInput) -> PayrollResult:
        """Calculate one employee's pay for one period."""
        p = payroll_input
        taxes = self.tax_calculator

        # 1) Earnings
        regular_pay = round_to_cents(p.regular_hours * p.hourly_rate)
        overtime_pay = round_to_cents(p.overtime_hours * p.hourly_rate * p.overtime_multiplier)
        gross_pay = round_to_cents(regular_pay + overtime_pay + p.other_earnings)

        # 2) Pre-tax deductions
        pre_tax = self._apply_deductions(p.deductions, gross_pay, pre_tax=True)
        total_pre_tax = sum((d.amount for d in pre_tax), ZERO)

        # 3) Taxable wages for income tax; FICA stays on gross
        taxable_wages = gross_pay - total_pre_tax

        # 4) Employee taxes
        federal_income_tax = taxes.federal_income_tax(
            taxable_wages, p.federal_filing_status, p.federal_allowances, p.federal_taxes_withheld
        )
        state_income_tax = taxes.state_income_tax(
            taxable_wages, p.state_filing_status, p.state_allowances, p.state_taxes_withheld
        )
        if p.nyc_resident and p.yonkers_resident:
            logger.warning(
                "Both resident flags set; applying %s resident tax only",
                self.rules.resident_wage_tax.code if self.rules.resident_wage_tax else "wage",
            )
        local_tax = taxes.local_tax(
            taxable_wages, state_income_tax, p.nyc_resident, p.yonkers_resident
        )
        fica = taxes.fica(gross_pay, p.ytd.gross_pay)
        disability_insurance = taxes.disability_insurance(gross_pay)
        paid_family_leave = taxes.paid_family_leave(gross_pay, p.ytd.paid_family_leave)

        total_tax_withholdings = (
            federal_income_tax
            + state_income_tax
            + local_tax
            + fica.social_security_employee
            + fica.medicare_employee
            + fica.additional_medicare
            + disability_insurance
            + paid_family_leave
        )

        # 5) Post-tax deductions
        post_tax = self._apply_deductions(p.deductions, gross_pay, pre_tax=False)
        total_post_tax = sum((d.amount for d in post_tax), ZERO)

        # 6) Net
        total_deductions = total_pre_tax + total_tax_withholdings + total_post_tax
        net_pay = round_to_cents(gross_pay - total_deductions)

        # 7) Employer taxes
        sui_employer = taxes.sui(gross_pay, p.ytd.gross_pay, p.sui_rate)
        futa_employer = taxes.futa(gross_pay, p.ytd.gross_pay, p.futa_rate)
        total_employer_cost = (
            fica.social_security_employer + fica.medicare_employer + sui_employer + futa_employer
        )

        # 8) Deltas
        applied = sorted(pre_tax + post_tax, key=lambda d: d.source_index)
        deltas = tuple(
            DeductionDelta(source_index=d.source_index, deduction_id=d.deduction_id, amount=d.amount)
            for d in applied
        )
        ytd_after = YtdAccumulators(
            gross_pay=p.ytd.gross_pay + gross_pay,
            social_security_wages=p.ytd.social_security_wages + fica.social_security_wages,
            medicare_wages=p.ytd.medicare_wages + gross_pay,
            paid_family_leave=p.ytd.paid_family_leave + paid_family_leave,
        )

        logger.debug(
            "Computed pay: gross=%s taxable=%s withholdings=%s net=%s employer=%s",
            gross_pay, taxable_wages, total_tax_withholdings, net_pay, total_employer_cost,
        )

        return PayrollResult(
            regular_pay=regular_pay,
            overtime_pay=overtime_pay,
            gross_pay=gross_pay,
            pre_tax_deductions=tuple(pre_tax),
            total_pre_tax_deductions=total_pre_tax,
            taxable_wages=taxable_wages,
            federal_income_tax=federal_income_tax,
            state_income_tax=state_income_tax,
            local_tax=local_tax,
            social_security_employee=fica.social_security_employee,
            medicare_employee=fica.medicare_employee,
            additional_medicare=fica.additional_medicare,
            disability_insurance=disability_insurance,
            paid_family_leave=paid_family_leave,
            total_tax_withholdings=total_tax_withholdings,
            post_tax_deductions=tuple(post_tax),
            total_post_tax_deductions=total_post_tax,
            total_deductions=total_deductions,
            net_pay=net_pay,
            social_security_employer=fica.social_security_employer,
            medicare_employer=fica.medicare_employer,
            sui_employer=sui_employer,
            futa_employer=futa_employer,
            total_employer_cost=total_employer_cost,
            deduction_deltas=deltas,
            ytd_after=ytd_after,
        )

    def _apply_deductions(
        self,
        deductions: Iterable[DeductionDefinition],
        gross_pay: Decimal,
        pre_tax: bool,
    ) -> list[DeductionLine]:
        """Apply one side (pre- or post-tax) of the deductions in input order."""
        lines: list[DeductionLine] = []
        for index, ded in enumerate(deductions):
            if ded.is_pre_tax != pre_tax:
                continue
            amount = self._calculate_deduction(ded, gross_pay)
            if amount <= 0:
                # Exhausted limits and zero amounts are left off the stub.
                continue
            lines.append(
                DeductionLine(
                    deduction_type=ded.deduction_type,
                    name=ded.name,
                    amount=amount,
                    is_pre_tax=ded.is_pre_tax,
                    source_index=index,
                    deduction_id=ded.deduction_id,
                )
            )
        return lines

    @staticmethod
    def _calculate_deduction(ded: DeductionDefinition, gross_pay: Decimal) -> Decimal:
        """Nominal amount clamped to the remaining annual limit, in cents."""
        if ded.amount_kind == AmountKind.FIXED:
            amount = ded.amount
        else:
            amount = gross_pay * ded.amount / 100

        remaining = ded.remaining_limit
        if remaining is not None:
            # Floored to cents; applied amounts never exceed the limit.
            amount = min(
                amount,
                remaining.quantize(LineItemBuilder.OUTPUT_PRECISION, rounding=ROUND_DOWN),
            )

        return round_to_cents(max(ZERO, amount))

    # === Pay runs ===

    def calculate_pay_run(
        self, inputs: Mapping[str, PayrollInput | Mapping[str, Any]], max_workers: int | None = None
    ) -> PayRunCalculationResult:
        """Calculate pay for every employee in a pay run.

        Values may be PayrollInput objects or camelCase records as read from
        the payroll-record store. Each employee is independent; invalid
        inputs are recorded against that employee and the rest of the run
        continues.
        """
        workers = max_workers or self.settings.pay_run_max_workers
        items = list(inputs.items())

        if workers > 1 and len(items) > 1:
            with ThreadPoolExecutor(max_workers=workers) as pool:
                calculations = list(pool.map(lambda kv: self._calculate_employee(*kv), items))
        else:
            calculations = [self._calculate_employee(key, value) for key, value in items]

        results: dict[str, EmployeeCalculation] = {}
        total_gross = ZERO
        total_net = ZERO
        total_employer = ZERO
        deduction_totals: dict[DeductionType, Decimal] = {dt: ZERO for dt in DeductionType}
        error_count = 0

        for calc in calculations:
            results[calc.employee_key] = calc
            if not calc.success:
                error_count += 1
                logger.warning(
                    "Pay calculation failed for employee %s: %s",
                    calc.employee_key, "; ".join(calc.errors),
                )
                continue
            lines = LineItemBuilder.build_lines(calc.result)
            total_gross += LineItemBuilder.calculate_gross_from_lines(lines)
            total_net += LineItemBuilder.calculate_net_from_lines(lines)
            total_employer += LineItemBuilder.sum_by_type(lines)[LineType.EMPLOYER_TAX]
            for deduction_type, amount in LineItemBuilder.sum_deductions_by_type(lines).items():
                deduction_totals[deduction_type] += amount

        logger.info(
            "Pay run calculated: employees=%d errors=%d gross=%s net=%s employer=%s",
            len(results), error_count, total_gross, total_net, total_employer,
        )

        return PayRunCalculationResult(
            results=results,
            total_gross=total_gross,
            total_net=total_net,
            total_employer_cost=total_employer,
            deduction_totals=deduction_totals,
            error_count=error_count,
        )

    def _calculate_employee(
        self, employee_key: str, record: PayrollInput | Mapping[str, Any]
    ) -> EmployeeCalculation:
        try:
            if isinstance(record, PayrollInput):
                payroll_input = record
            else:
                payroll_input = PayrollInputSchema.model_validate(record).to_domain(
                    RateResolver(periods_per_year=self.rules.periods_per_year)
                )
            result = self.compute(payroll_input)
        except ValidationError as e:
            return EmployeeCalculation(
                employee_key=employee_key,
                calculation_id=None,
                inputs_fingerprint="",
                result=None,
                errors=[f"{err['loc']}: {err['msg']}" for err in e.errors()],
            )
        except (PayrollInputError, RateNotFoundError) as e:
            return EmployeeCalculation(
                employee_key=employee_key,
                calculation_id=None,
                inputs_fingerprint="",
                result=None,
                errors=[str(e)],
            )

        inputs_fingerprint = self._compute_inputs_fingerprint(payroll_input)
        return EmployeeCalculation(
            employee_key=employee_key,
            calculation_id=self._generate_calculation_id(employee_key, inputs_fingerprint),
            inputs_fingerprint=inputs_fingerprint,
            result=result,
        )

    def _generate_calculation_id(self, employee_key: str, inputs_fingerprint: str) -> UUID:
        """Generate deterministic calculation ID."""
        data = {
            "employee_key": employee_key,
            "engine_version": self.settings.engine_version,
            "tax_year": self.rules.tax_year,
            "state_code": self.rules.state_code,
            "pfl_cap_mode": self.tax_calculator.pfl_cap_mode.value,
            "inputs_fingerprint": inputs_fingerprint,
        }
        json_str = json.dumps(data, sort_keys=True)
        hash_bytes = hashlib.sha256(json_str.encode()).digest()
        return UUID(bytes=hash_bytes[:16])

    @staticmethod
    def _compute_inputs_fingerprint(payroll_input: PayrollInput) -> str:
        """Compute fingerprint of everything the calculation read."""
        json_str = json.dumps(_canonical(payroll_input), sort_keys=True)
        return hashlib.sha256(json_str.encode()).hexdigest()[:32]


def _canonical(value: Any) -> Any:
    """JSON-ready form of an input with Decimals as normalized strings."""
    if isinstance(value, Decimal):
        return str(value.normalize()) if value else "0"
    if isinstance(value, (PayrollInput, DeductionDefinition, YtdAccumulators)):
        return {name: _canonical(v) for name, v in vars(value).items()}
    if isinstance(value, (list, tuple)):
        return [_canonical(v) for v in value]
    if hasattr(value, "value") and not isinstance(value, bool):
        return value.value
    return value


def apply_deduction_deltas(
    deductions: Iterable[DeductionDefinition], result: PayrollResult
) -> tuple[DeductionDefinition, ...]:
    """Advance each deduction's ytd_amount by what this period applied.

    Positions must match the ``PayrollInput.deductions`` the result was
    computed from.
    """
    applied = {delta.source_index: delta.amount for delta in result.deduction_deltas}
    return tuple(
        replace(ded, ytd_amount=ded.ytd_amount + applied[index]) if index in applied else ded
        for index, ded in enumerate(deductions)
    )


def compute(payroll_input: PayrollInput, rules: PayrollRuleSet | None = None) -> PayrollResult:
    """Calculate one employee's pay with the configured (or given) rule set."""
    return PayrollEngine(rules=rules).compute(payroll_input)
