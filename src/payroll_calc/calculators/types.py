"""Type definitions for calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

ZERO = Decimal("0")


class PayrollInputError(ValueError):
    """Raised when a payroll input violates the engine's contract."""

    def __init__(self, field_name: str, value: Any, reason: str):
        self.field = field_name
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field_name}={value!r}: {reason}")


def to_decimal(value: Any, field_name: str) -> Decimal:
    """Convert ints, floats and strings to Decimal without float drift."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise PayrollInputError(field_name, value, "expected a number")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise PayrollInputError(field_name, value, "expected a number") from e


def _non_negative(value: Any, field_name: str) -> Decimal:
    amount = to_decimal(value, field_name)
    if not amount.is_finite() or amount < 0:
        raise PayrollInputError(field_name, value, "must be a non-negative number")
    return amount


class FilingStatus(str, Enum):
    """W-4 / IT-2104 filing status."""

    SINGLE = "single"
    MARRIED = "married"
    HEAD_OF_HOUSEHOLD = "head_of_household"

    @classmethod
    def parse(cls, value: FilingStatus | str | None, field_name: str = "filing_status") -> FilingStatus:
        # Employees without a W-4 on file are withheld at the single rate.
        if value is None:
            return cls.SINGLE
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as e:
            raise PayrollInputError(field_name, value, "unknown filing status") from e


class AmountKind(str, Enum):
    """How a deduction amount is interpreted."""

    FIXED = "fixed"
    PERCENTAGE = "percentage"  # percent of gross, e.g. 5 for 5%

    @classmethod
    def parse(cls, value: AmountKind | str) -> AmountKind:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).lower())
        except ValueError as e:
            raise PayrollInputError("amount_kind", value, "unknown amount kind") from e


class DeductionType(str, Enum):
    """Report bucket for a deduction. Never used in the arithmetic."""

    RETIREMENT_401K = "401k"
    ROTH_401K = "roth_401k"
    HEALTH_INSURANCE = "health_insurance"
    DENTAL = "dental"
    VISION = "vision"
    HSA = "hsa"
    FSA = "fsa"
    LIFE_INSURANCE = "life_insurance"
    GARNISHMENT = "garnishment"
    CHILD_SUPPORT = "child_support"
    LOAN_REPAYMENT = "loan_repayment"
    OTHER = "other"

    @classmethod
    def parse(cls, value: DeductionType | str | None) -> DeductionType:
        """Map a free-form category tag onto the closed set, falling back to OTHER."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.OTHER
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class DeductionDefinition:
    """One active recurring deduction for an employee."""

    deduction_type: DeductionType
    amount_kind: AmountKind
    amount: Decimal
    is_pre_tax: bool
    annual_limit: Decimal | None = None
    ytd_amount: Decimal = ZERO
    name: str = ""
    deduction_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "deduction_type", DeductionType.parse(self.deduction_type))
        object.__setattr__(self, "amount_kind", AmountKind.parse(self.amount_kind))
        object.__setattr__(self, "amount", _non_negative(self.amount, "amount"))
        object.__setattr__(self, "ytd_amount", _non_negative(self.ytd_amount, "ytd_amount"))
        if self.annual_limit is not None:
            limit = _non_negative(self.annual_limit, "annual_limit")
            # A stored limit of 0 means "no limit", same as a missing one.
            object.__setattr__(self, "annual_limit", limit if limit else None)
        if not self.name:
            object.__setattr__(self, "name", self.deduction_type.value)

    @property
    def remaining_limit(self) -> Decimal | None:
        """Room left under the annual limit, or None when unlimited."""
        if self.annual_limit is None:
            return None
        return max(ZERO, self.annual_limit - self.ytd_amount)


@dataclass(frozen=True)
class YtdAccumulators:
    """Year-to-date totals as of the start of a pay period.

    Owned by the caller; the engine reads it and reports the advanced
    values in ``PayrollResult.ytd_after``.
    """

    gross_pay: Decimal = ZERO
    social_security_wages: Decimal = ZERO
    medicare_wages: Decimal = ZERO
    paid_family_leave: Decimal = ZERO

    def __post_init__(self) -> None:
        for name in ("gross_pay", "social_security_wages", "medicare_wages", "paid_family_leave"):
            object.__setattr__(self, name, _non_negative(getattr(self, name), f"ytd.{name}"))


@dataclass(frozen=True)
class PayrollInput:
    """Everything the engine needs for one employee and one weekly period."""

    regular_hours: Decimal
    hourly_rate: Decimal
    overtime_hours: Decimal = ZERO
    overtime_multiplier: Decimal = Decimal("1.5")
    other_earnings: Decimal = ZERO

    federal_filing_status: FilingStatus = FilingStatus.SINGLE
    federal_allowances: int = 0
    # None means "same as federal", matching a single W-4 on file.
    state_filing_status: FilingStatus | None = None
    state_allowances: int | None = None
    federal_taxes_withheld: bool = True
    state_taxes_withheld: bool = True

    nyc_resident: bool = False
    yonkers_resident: bool = False

    ytd: YtdAccumulators = field(default_factory=YtdAccumulators)

    sui_rate: Decimal = ZERO  # percent, e.g. 2.1
    futa_rate: Decimal | None = None  # percent; None or 0 uses the rule set default

    deductions: tuple[DeductionDefinition, ...] = ()

    def __post_init__(self) -> None:
        for name in ("regular_hours", "overtime_hours", "hourly_rate", "other_earnings", "sui_rate"):
            object.__setattr__(self, name, _non_negative(getattr(self, name), name))
        if self.futa_rate is not None:
            object.__setattr__(self, "futa_rate", _non_negative(self.futa_rate, "futa_rate"))

        multiplier = to_decimal(self.overtime_multiplier, "overtime_multiplier")
        if not multiplier.is_finite() or multiplier < 1:
            raise PayrollInputError(
                "overtime_multiplier", self.overtime_multiplier, "must be at least 1"
            )
        object.__setattr__(self, "overtime_multiplier", multiplier)

        federal_status = FilingStatus.parse(self.federal_filing_status, "federal_filing_status")
        object.__setattr__(self, "federal_filing_status", federal_status)
        object.__setattr__(
            self,
            "state_filing_status",
            federal_status
            if self.state_filing_status is None
            else FilingStatus.parse(self.state_filing_status, "state_filing_status"),
        )

        federal_allowances = self._allowances(self.federal_allowances, "federal_allowances")
        object.__setattr__(self, "federal_allowances", federal_allowances)
        object.__setattr__(
            self,
            "state_allowances",
            federal_allowances
            if self.state_allowances is None
            else self._allowances(self.state_allowances, "state_allowances"),
        )

        if self.ytd is None:
            object.__setattr__(self, "ytd", YtdAccumulators())
        object.__setattr__(self, "deductions", tuple(self.deductions))

    @staticmethod
    def _allowances(value: Any, field_name: str) -> int:
        if value is None:
            return 0
        reason = "must be a non-negative whole number"
        if isinstance(value, bool):
            raise PayrollInputError(field_name, value, reason)
        try:
            whole = int(value)
        except (TypeError, ValueError, OverflowError) as e:
            raise PayrollInputError(field_name, value, reason) from e
        if whole != value or whole < 0:
            raise PayrollInputError(field_name, value, reason)
        return whole


class LineType(str, Enum):
    """Pay line item types."""

    EARNING = "EARNING"
    DEDUCTION = "DEDUCTION"
    TAX = "TAX"
    EMPLOYER_TAX = "EMPLOYER_TAX"


@dataclass
class LineCandidate:
    """A signed line item ready for persistence."""

    line_type: LineType
    code: str
    amount: Decimal  # Final amount (signed per conventions)

    # Quantity/rate (for hourly earnings)
    quantity: Decimal | None = None
    rate: Decimal | None = None

    explanation: str | None = None
    deduction_type: DeductionType | None = None

    def to_canonical_dict(self) -> dict[str, Any]:
        """Return canonical dict for hashing (deterministic ordering)."""
        return {
            "line_type": self.line_type.value,
            "code": self.code,
            "deduction_type": self.deduction_type.value if self.deduction_type else None,
            "quantity": str(self.quantity) if self.quantity is not None else None,
            "rate": str(self.rate) if self.rate is not None else None,
            "amount": str(self.amount),
        }


@dataclass(frozen=True)
class DeductionLine:
    """A deduction actually applied this period."""

    deduction_type: DeductionType
    name: str
    amount: Decimal
    is_pre_tax: bool
    source_index: int  # position in PayrollInput.deductions
    deduction_id: str | None = None


@dataclass(frozen=True)
class DeductionDelta:
    """Amount the caller must add to a deduction's ytd_amount."""

    source_index: int
    deduction_id: str | None
    amount: Decimal


@dataclass(frozen=True)
class PayrollResult:
    """Fully itemized output of one engine computation."""

    # Earnings
    regular_pay: Decimal
    overtime_pay: Decimal
    gross_pay: Decimal

    # Pre-tax deductions reduce income-tax wages only
    pre_tax_deductions: tuple[DeductionLine, ...]
    total_pre_tax_deductions: Decimal
    taxable_wages: Decimal

    # Employee withholdings
    federal_income_tax: Decimal
    state_income_tax: Decimal
    local_tax: Decimal
    social_security_employee: Decimal
    medicare_employee: Decimal
    additional_medicare: Decimal
    disability_insurance: Decimal
    paid_family_leave: Decimal
    total_tax_withholdings: Decimal

    post_tax_deductions: tuple[DeductionLine, ...]
    total_post_tax_deductions: Decimal

    total_deductions: Decimal
    net_pay: Decimal

    # Employer liability, not withheld from the employee
    social_security_employer: Decimal
    medicare_employer: Decimal
    sui_employer: Decimal
    futa_employer: Decimal
    total_employer_cost: Decimal

    deduction_deltas: tuple[DeductionDelta, ...] = ()
    ytd_after: YtdAccumulators = field(default_factory=YtdAccumulators)

    @property
    def deductions(self) -> tuple[DeductionLine, ...]:
        return self.pre_tax_deductions + self.post_tax_deductions

    def monetary_fields(self) -> dict[str, Decimal]:
        """All scalar money amounts keyed by field name."""
        return {
            name: value
            for name, value in vars(self).items()
            if isinstance(value, Decimal)
        }
