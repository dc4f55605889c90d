"""Tax-year rule sets.

Bracket tables, standard deductions, rates and wage bases live here as
data. Calculation code only ever receives a ``PayrollRuleSet``; adding a tax
year or a jurisdiction means adding a rule set, not touching the maths.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping

from payroll_calc.calculators.types import ZERO, FilingStatus


class RuleSetNotFoundError(LookupError):
    """Raised when no rule set is registered for a tax year."""

    def __init__(self, tax_year: int):
        self.tax_year = tax_year
        super().__init__(f"No payroll rule set registered for tax year {tax_year}")


@dataclass(frozen=True)
class TaxBracket:
    """Tax bracket for progressive taxation."""

    min_amount: Decimal
    max_amount: Decimal | None  # None = no upper limit
    rate: Decimal  # As decimal, e.g., 0.22 for 22%
    flat_amount: Decimal = ZERO  # Tax owed on all lower brackets


def brackets(*rows: tuple[str, str, str]) -> tuple[TaxBracket, ...]:
    """Build a bracket table from (floor, rate, flat) rows in ascending order."""
    table = []
    for i, (floor, rate, flat) in enumerate(rows):
        upper = rows[i + 1][0] if i + 1 < len(rows) else None
        table.append(
            TaxBracket(
                min_amount=Decimal(floor),
                max_amount=Decimal(upper) if upper is not None else None,
                rate=Decimal(rate),
                flat_amount=Decimal(flat),
            )
        )
    return tuple(table)


@dataclass(frozen=True)
class WithholdingTable:
    """Annual percentage-method table for one income-tax jurisdiction."""

    standard_deduction: Mapping[FilingStatus, Decimal]
    allowance_amount: Decimal
    brackets: Mapping[FilingStatus, tuple[TaxBracket, ...]]

    def _lookup(self, table: Mapping[FilingStatus, object], status: FilingStatus):
        if status in table:
            return table[status]
        # Head of household shares the single schedule unless given its own.
        return table[FilingStatus.SINGLE]

    def deduction_for(self, status: FilingStatus, allowances: int) -> Decimal:
        return self._lookup(self.standard_deduction, status) + self.allowance_amount * allowances

    def brackets_for(self, status: FilingStatus) -> tuple[TaxBracket, ...]:
        return self._lookup(self.brackets, status)

    def annual_tax(self, taxable_income: Decimal, status: FilingStatus) -> Decimal:
        """Tax on an annual amount: flat amount of the bracket plus rate on the excess.

        The bracket whose floor is the largest one not above the income
        applies, so floors are inclusive.
        """
        if taxable_income <= 0:
            return ZERO
        applicable: TaxBracket | None = None
        for bracket in self.brackets_for(status):
            if taxable_income >= bracket.min_amount:
                applicable = bracket
            else:
                break
        if applicable is None:
            return ZERO
        return applicable.flat_amount + (taxable_income - applicable.min_amount) * applicable.rate


@dataclass(frozen=True)
class LocalTax:
    """A resident tax for one municipality."""

    code: str
    rate: Decimal


@dataclass(frozen=True)
class PayrollRuleSet:
    """All statutory constants for one tax year and one state."""

    tax_year: int
    state_code: str
    federal: WithholdingTable
    state: WithholdingTable
    periods_per_year: int = 52

    social_security_rate: Decimal = Decimal("0.062")
    social_security_wage_base: Decimal = Decimal("176100")
    medicare_rate: Decimal = Decimal("0.0145")
    additional_medicare_rate: Decimal = Decimal("0.009")
    additional_medicare_threshold: Decimal = Decimal("200000")

    disability_rate: Decimal = ZERO
    disability_period_cap: Decimal = ZERO
    paid_family_leave_rate: Decimal = ZERO
    paid_family_leave_annual_cap: Decimal = ZERO

    sui_wage_base: Decimal = ZERO
    futa_wage_base: Decimal = Decimal("7000")
    default_futa_rate: Decimal = Decimal("0.6")  # percent, after state credit

    # Flat rate on taxable_wages / periods_per_year
    resident_wage_tax: LocalTax | None = None
    # Percentage of the state income tax
    resident_surcharge: LocalTax | None = None


_FEDERAL_2026 = WithholdingTable(
    standard_deduction={
        FilingStatus.SINGLE: Decimal("15000"),
        FilingStatus.MARRIED: Decimal("30000"),
        FilingStatus.HEAD_OF_HOUSEHOLD: Decimal("15000"),
    },
    allowance_amount=Decimal("4400"),
    brackets={
        FilingStatus.SINGLE: brackets(
            ("0", "0.10", "0"),
            ("11925", "0.12", "1192.50"),
            ("48475", "0.22", "5578.50"),
            ("103350", "0.24", "17651"),
            ("197300", "0.32", "40199"),
            ("250525", "0.35", "57231"),
            ("626350", "0.37", "188769.75"),
        ),
        FilingStatus.MARRIED: brackets(
            ("0", "0.10", "0"),
            ("23850", "0.12", "2385"),
            ("96950", "0.22", "11157"),
            ("206700", "0.24", "35302"),
            ("394600", "0.32", "80398"),
            ("501050", "0.35", "114462"),
            ("751600", "0.37", "202154.50"),
        ),
    },
)

# NYS-50-T-NYS Method II; "standard deduction" is the base exemption.
_NEW_YORK_STATE_2026 = WithholdingTable(
    standard_deduction={
        FilingStatus.SINGLE: Decimal("7400"),
        FilingStatus.MARRIED: Decimal("7950"),
        FilingStatus.HEAD_OF_HOUSEHOLD: Decimal("7400"),
    },
    allowance_amount=Decimal("1000"),
    brackets={
        FilingStatus.SINGLE: brackets(
            ("0", "0.04", "0"),
            ("8500", "0.045", "340"),
            ("11700", "0.0525", "484"),
            ("13900", "0.055", "599.50"),
            ("80650", "0.06", "4270.75"),
            ("215400", "0.0685", "12355.75"),
            ("1077550", "0.0965", "71413.03"),
            ("5000000", "0.103", "449929.48"),
            ("25000000", "0.109", "2509929.48"),
        ),
        FilingStatus.MARRIED: brackets(
            ("0", "0.04", "0"),
            ("17150", "0.045", "686"),
            ("23600", "0.0525", "976.25"),
            ("27900", "0.055", "1202"),
            ("161550", "0.06", "8552.75"),
            ("323200", "0.0685", "18251.75"),
            ("2155350", "0.0965", "143754.03"),
            ("5000000", "0.103", "418212.93"),
            ("25000000", "0.109", "2478212.93"),
        ),
    },
)

NEW_YORK_2026 = PayrollRuleSet(
    tax_year=2026,
    state_code="NY",
    federal=_FEDERAL_2026,
    state=_NEW_YORK_STATE_2026,
    disability_rate=Decimal("0.005"),
    disability_period_cap=Decimal("0.60"),
    paid_family_leave_rate=Decimal("0.00388"),
    paid_family_leave_annual_cap=Decimal("354.53"),
    sui_wage_base=Decimal("13000"),
    resident_wage_tax=LocalTax(code="NYC", rate=Decimal("0.03876")),
    resident_surcharge=LocalTax(code="YONKERS", rate=Decimal("0.16475")),
)

RULE_SETS: dict[int, PayrollRuleSet] = {
    NEW_YORK_2026.tax_year: NEW_YORK_2026,
}


def get_rule_set(tax_year: int) -> PayrollRuleSet:
    """Get the registered rule set for a tax year."""
    try:
        return RULE_SETS[tax_year]
    except KeyError:
        raise RuleSetNotFoundError(tax_year) from None
