"""Tax calculation driven by a tax-year rule set."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from payroll_calc.calculators.line_builder import LineItemBuilder
from payroll_calc.calculators.rules import PayrollRuleSet, WithholdingTable
from payroll_calc.calculators.types import ZERO, FilingStatus

HUNDRED = Decimal("100")
round_to_cents = LineItemBuilder.round_to_cents


class PflCapMode(str, Enum):
    """How the paid-family-leave annual maximum is enforced."""

    # Cap each period at the annual maximum; no cross-period tracking.
    PER_PERIOD = "per_period"
    # Cap at what remains of the annual maximum given ytd.paid_family_leave.
    YEAR_TO_DATE = "year_to_date"


@dataclass(frozen=True)
class FicaTaxes:
    """Social Security and Medicare for one period, both sides."""

    social_security_employee: Decimal
    social_security_employer: Decimal
    medicare_employee: Decimal
    medicare_employer: Decimal
    additional_medicare: Decimal
    social_security_wages: Decimal  # portion of gross under the wage base


def wage_base_portion(wages: Decimal, ytd_wages: Decimal, wage_base: Decimal) -> Decimal:
    """Portion of this period's wages still under an annual wage base."""
    return max(ZERO, min(wages, wage_base - ytd_wages))


def threshold_excess(wages: Decimal, ytd_wages: Decimal, threshold: Decimal) -> Decimal:
    """Portion of this period's wages that lands above an annual threshold.

    This is the overlap of [ytd, ytd + wages] with [threshold, inf).
    """
    return max(ZERO, min(wages, ytd_wages + wages - threshold))


class TaxCalculator:
    """Calculates every withholding and employer tax for one period.

    All methods are pure; the only state is the immutable rule set, so a
    single calculator can be shared across threads.
    """

    def __init__(self, rules: PayrollRuleSet, pfl_cap_mode: PflCapMode = PflCapMode.PER_PERIOD):
        self.rules = rules
        self.pfl_cap_mode = pfl_cap_mode

    # === Income tax withholding ===

    def _annualized_withholding(
        self,
        taxable_wages: Decimal,
        table: WithholdingTable,
        filing_status: FilingStatus,
        allowances: int,
    ) -> Decimal:
        """Percentage method: annualize, subtract deductions, apply brackets, de-annualize."""
        periods = self.rules.periods_per_year
        annual_wages = taxable_wages * periods
        annual_taxable = max(ZERO, annual_wages - table.deduction_for(filing_status, allowances))
        annual_tax = table.annual_tax(annual_taxable, filing_status)
        return max(ZERO, round_to_cents(annual_tax / periods))

    def federal_income_tax(
        self,
        taxable_wages: Decimal,
        filing_status: FilingStatus,
        allowances: int,
        withheld: bool = True,
    ) -> Decimal:
        if not withheld:
            return ZERO
        return self._annualized_withholding(
            taxable_wages, self.rules.federal, filing_status, allowances
        )

    def state_income_tax(
        self,
        taxable_wages: Decimal,
        filing_status: FilingStatus,
        allowances: int,
        withheld: bool = True,
    ) -> Decimal:
        if not withheld:
            return ZERO
        return self._annualized_withholding(
            taxable_wages, self.rules.state, filing_status, allowances
        )

    def local_tax(
        self,
        taxable_wages: Decimal,
        state_income_tax: Decimal,
        wage_tax_resident: bool,
        surcharge_resident: bool,
    ) -> Decimal:
        """Resident municipal tax.

        The wage-tax jurisdiction is checked first, so it wins when both
        residency flags are set.
        """
        wage_tax = self.rules.resident_wage_tax
        surcharge = self.rules.resident_surcharge
        if wage_tax_resident and wage_tax is not None:
            base = max(ZERO, taxable_wages) / self.rules.periods_per_year
            return round_to_cents(base * wage_tax.rate)
        if surcharge_resident and surcharge is not None:
            return round_to_cents(state_income_tax * surcharge.rate)
        return ZERO

    # === FICA ===

    def fica(self, gross_pay: Decimal, ytd_gross_pay: Decimal) -> FicaTaxes:
        """Social Security (capped), Medicare (uncapped) and Additional Medicare.

        FICA is assessed on full gross; pre-tax deductions do not reduce it.
        """
        rules = self.rules
        ss_wages = wage_base_portion(gross_pay, ytd_gross_pay, rules.social_security_wage_base)
        social_security = round_to_cents(ss_wages * rules.social_security_rate)
        medicare = round_to_cents(max(ZERO, gross_pay) * rules.medicare_rate)
        additional_wages = threshold_excess(
            gross_pay, ytd_gross_pay, rules.additional_medicare_threshold
        )
        return FicaTaxes(
            social_security_employee=social_security,
            social_security_employer=social_security,
            medicare_employee=medicare,
            medicare_employer=medicare,
            additional_medicare=round_to_cents(additional_wages * rules.additional_medicare_rate),
            social_security_wages=ss_wages,
        )

    # === State disability / paid family leave ===

    def disability_insurance(self, gross_pay: Decimal) -> Decimal:
        rules = self.rules
        return round_to_cents(
            max(ZERO, min(gross_pay * rules.disability_rate, rules.disability_period_cap))
        )

    def paid_family_leave(self, gross_pay: Decimal, ytd_withheld: Decimal = ZERO) -> Decimal:
        rules = self.rules
        nominal = gross_pay * rules.paid_family_leave_rate
        cap = rules.paid_family_leave_annual_cap
        if self.pfl_cap_mode == PflCapMode.YEAR_TO_DATE:
            cap = max(ZERO, cap - ytd_withheld)
        return round_to_cents(max(ZERO, min(nominal, cap)))

    # === Employer-only taxes ===

    def sui(self, gross_pay: Decimal, ytd_gross_pay: Decimal, rate_percent: Decimal) -> Decimal:
        taxable = wage_base_portion(gross_pay, ytd_gross_pay, self.rules.sui_wage_base)
        return round_to_cents(taxable * rate_percent / HUNDRED)

    def futa(
        self, gross_pay: Decimal, ytd_gross_pay: Decimal, rate_percent: Decimal | None = None
    ) -> Decimal:
        # An unset or zero rate falls back to the default.
        if not rate_percent:
            rate_percent = self.rules.default_futa_rate
        taxable = wage_base_portion(gross_pay, ytd_gross_pay, self.rules.futa_wage_base)
        return round_to_cents(taxable * rate_percent / HUNDRED)
