"""Pydantic schemas for the engine's plain-data boundary.

The pay-run workflow reads employee, deduction and YTD figures out of the
payroll-record store as camelCase JSON; results go back the same way.
"""

from __future__ import annotations

from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field, field_serializer
from pydantic.alias_generators import to_camel

from payroll_calc.calculators.rate_resolver import PayType, RateResolver
from payroll_calc.calculators.types import (
    DeductionDefinition,
    DeductionLine,
    PayrollInput,
    PayrollResult,
    YtdAccumulators,
)


class CamelModel(BaseModel):
    """Base schema: camelCase on the wire, snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ============================================================================
# Input schemas
# ============================================================================


class DeductionSchema(CamelModel):
    """One recurring deduction as stored on the employee."""

    deduction_type: str
    name: str = ""
    amount_type: str = "fixed"
    amount: Decimal
    pre_tax: bool = False
    annual_limit: Decimal | None = None
    ytd_amount: Decimal = Decimal("0")
    id: str | None = None

    def to_domain(self) -> DeductionDefinition:
        return DeductionDefinition(
            deduction_type=self.deduction_type,
            amount_kind=self.amount_type,
            amount=self.amount,
            is_pre_tax=self.pre_tax,
            annual_limit=self.annual_limit,
            ytd_amount=self.ytd_amount,
            name=self.name,
            deduction_id=self.id,
        )


class PayrollInputSchema(CamelModel):
    """Schema for one employee's pay-period input."""

    regular_hours: Decimal = Decimal("0")
    overtime_hours: Decimal = Decimal("0")
    pay_type: PayType = PayType.HOURLY
    hourly_rate: Decimal | None = None
    annual_salary: Decimal | None = None
    overtime_multiplier: Decimal = Decimal("1.5")
    other_earnings: Decimal = Decimal("0")

    filing_status: str | None = None
    allowances: int | None = None
    state_filing_status: str | None = None
    state_allowances: int | None = None
    federal_taxes_withheld: bool = True
    state_taxes_withheld: bool = True
    nyc_resident: bool = False
    yonkers_resident: bool = False

    ytd_gross_pay: Decimal = Decimal("0")
    ytd_social_security_wages: Decimal = Decimal("0")
    ytd_medicare_wages: Decimal = Decimal("0")
    ytd_paid_family_leave: Decimal = Decimal("0")

    sui_rate: Decimal = Decimal("0")
    futa_rate: Decimal | None = None

    deductions: list[DeductionSchema] = Field(default_factory=list)

    def to_domain(self, rate_resolver: RateResolver | None = None) -> PayrollInput:
        """Build the engine input, resolving salaried rates to an hourly equivalent.

        Raises:
            RateNotFoundError: If the pay type's rate is missing
            PayrollInputError: If any value violates the input contract
        """
        resolver = rate_resolver or RateResolver()
        hourly_rate = resolver.resolve_hourly_rate(
            self.pay_type, hourly_rate=self.hourly_rate, annual_salary=self.annual_salary
        )
        return PayrollInput(
            regular_hours=self.regular_hours,
            overtime_hours=self.overtime_hours,
            hourly_rate=hourly_rate,
            overtime_multiplier=self.overtime_multiplier,
            other_earnings=self.other_earnings,
            federal_filing_status=self.filing_status,
            federal_allowances=self.allowances or 0,
            state_filing_status=self.state_filing_status,
            state_allowances=self.state_allowances,
            federal_taxes_withheld=self.federal_taxes_withheld,
            state_taxes_withheld=self.state_taxes_withheld,
            nyc_resident=self.nyc_resident,
            yonkers_resident=self.yonkers_resident,
            ytd=YtdAccumulators(
                gross_pay=self.ytd_gross_pay,
                social_security_wages=self.ytd_social_security_wages,
                medicare_wages=self.ytd_medicare_wages,
                paid_family_leave=self.ytd_paid_family_leave,
            ),
            sui_rate=self.sui_rate,
            futa_rate=self.futa_rate,
            deductions=tuple(d.to_domain() for d in self.deductions),
        )


# ============================================================================
# Result schemas
# ============================================================================


class MoneyModel(CamelModel):
    """Serializes Decimal fields as fixed two-place strings."""

    @field_serializer("*", mode="wrap", when_used="json")
    def _money(self, value, handler):
        if isinstance(value, Decimal):
            return f"{value:.2f}"
        return handler(value)


class DeductionLineSchema(MoneyModel):
    type: str
    name: str
    amount: Decimal
    pre_tax: bool
    id: str | None = None

    @classmethod
    def from_domain(cls, line: DeductionLine) -> DeductionLineSchema:
        return cls(
            type=line.deduction_type.value,
            name=line.name,
            amount=line.amount,
            pre_tax=line.is_pre_tax,
            id=line.deduction_id,
        )


class PayrollResultSchema(MoneyModel):
    """Schema for a persisted payroll-record snapshot."""

    regular_pay: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal
    pre_tax_deductions: list[DeductionLineSchema]
    total_pre_tax_deductions: Decimal
    taxable_wages: Decimal
    federal_income_tax: Decimal
    state_income_tax: Decimal
    local_tax: Decimal
    social_security_employee: Decimal
    medicare_employee: Decimal
    additional_medicare: Decimal
    disability_insurance: Decimal
    paid_family_leave: Decimal
    total_tax_withholdings: Decimal
    post_tax_deductions: list[DeductionLineSchema]
    total_post_tax_deductions: Decimal
    total_deductions: Decimal
    net_pay: Decimal
    social_security_employer: Decimal
    medicare_employer: Decimal
    sui_employer: Decimal
    futa_employer: Decimal
    total_employer_cost: Decimal

    @classmethod
    def from_domain(cls, result: PayrollResult) -> PayrollResultSchema:
        return cls(
            **result.monetary_fields(),
            pre_tax_deductions=[DeductionLineSchema.from_domain(d) for d in result.pre_tax_deductions],
            post_tax_deductions=[DeductionLineSchema.from_domain(d) for d in result.post_tax_deductions],
        )
