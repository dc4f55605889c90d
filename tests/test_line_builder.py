"""Unit tests for line item builder."""

from decimal import Decimal

import pytest

from payroll_calc.calculators.line_builder import LineItemBuilder
from payroll_calc.calculators.types import DeductionLine, DeductionType, LineType


class TestRounding:
    """Tests for cent rounding."""

    @pytest.mark.parametrize(
        "amount,expected",
        [
            (Decimal("2.665"), Decimal("2.67")),
            (Decimal("-2.665"), Decimal("-2.67")),
            (Decimal("2.664"), Decimal("2.66")),
            (Decimal("0.005"), Decimal("0.01")),
            (Decimal("100"), Decimal("100.00")),
        ],
    )
    def test_half_away_from_zero(self, amount, expected):
        assert LineItemBuilder.round_to_cents(amount) == expected

    def test_idempotent(self):
        once = LineItemBuilder.round_to_cents(Decimal("84.375"))
        assert LineItemBuilder.round_to_cents(once) == once


class TestLineSigns:
    """Tests for sign conventions."""

    def test_earning_positive(self):
        line = LineItemBuilder.create_earning_line("regular", Decimal("-1000"))
        assert line.amount == Decimal("1000.00")
        assert line.line_type == LineType.EARNING

    def test_tax_negative(self):
        line = LineItemBuilder.create_tax_line("federal_income_tax", Decimal("80.80"))
        assert line.amount == Decimal("-80.80")

    def test_deduction_negative(self):
        deduction = DeductionLine(
            deduction_type=DeductionType.DENTAL,
            name="Dental",
            amount=Decimal("12.50"),
            is_pre_tax=True,
            source_index=0,
        )
        line = LineItemBuilder.create_deduction_line(deduction)

        assert line.amount == Decimal("-12.50")
        assert line.deduction_type == DeductionType.DENTAL
        assert "pre-tax" in line.explanation

    def test_employer_tax_positive(self):
        line = LineItemBuilder.create_employer_tax_line("sui", Decimal("-21"))
        assert line.amount == Decimal("21.00")

    def test_validate_flags_wrong_signs(self):
        good = LineItemBuilder.create_tax_line("medicare", Decimal("14.50"))
        bad = LineItemBuilder.create_tax_line("medicare", Decimal("14.50"))
        bad.amount = Decimal("14.50")

        assert LineItemBuilder.validate_line_signs([good]) == []
        errors = LineItemBuilder.validate_line_signs([good, bad])
        assert len(errors) == 1
        assert "Line 1" in errors[0]


class TestLineHash:
    """Tests for deterministic line hashing."""

    def test_same_line_same_hash(self):
        a = LineItemBuilder.create_earning_line("regular", Decimal("1000"), Decimal("40"), Decimal("25"))
        b = LineItemBuilder.create_earning_line("regular", Decimal("1000"), Decimal("40"), Decimal("25"))
        assert LineItemBuilder.compute_line_hash(a) == LineItemBuilder.compute_line_hash(b)

    def test_explanation_not_hashed(self):
        a = LineItemBuilder.create_tax_line("medicare", Decimal("14.50"), "Medicare")
        b = LineItemBuilder.create_tax_line("medicare", Decimal("14.50"), "Medicare Tax")
        assert LineItemBuilder.compute_line_hash(a) == LineItemBuilder.compute_line_hash(b)

    def test_amount_changes_hash(self):
        a = LineItemBuilder.create_tax_line("medicare", Decimal("14.50"))
        b = LineItemBuilder.create_tax_line("medicare", Decimal("14.51"))
        assert LineItemBuilder.compute_line_hash(a) != LineItemBuilder.compute_line_hash(b)
        assert len(LineItemBuilder.compute_line_hash(a)) == 32


class TestBuildLines:
    """Tests for flattening a result into pay-stub lines."""

    @pytest.fixture
    def result(self, engine, payroll_input_factory, deduction_factory):
        return engine.compute(
            payroll_input_factory(
                overtime_hours=Decimal("5"),
                other_earnings=Decimal("50"),
                nyc_resident=True,
                deductions=(
                    deduction_factory(amount=Decimal("100")),
                    deduction_factory(
                        deduction_type="garnishment", amount=Decimal("40"), is_pre_tax=False
                    ),
                ),
            )
        )

    def test_net_reconciles(self, result):
        lines = LineItemBuilder.build_lines(result)
        assert LineItemBuilder.calculate_net_from_lines(lines) == result.net_pay

    def test_gross_reconciles(self, result):
        lines = LineItemBuilder.build_lines(result)
        assert LineItemBuilder.calculate_gross_from_lines(lines) == result.gross_pay

    def test_signs_valid(self, result):
        assert LineItemBuilder.validate_line_signs(LineItemBuilder.build_lines(result)) == []

    def test_employer_lines_total(self, result):
        totals = LineItemBuilder.sum_by_type(LineItemBuilder.build_lines(result))

        assert totals[LineType.EMPLOYER_TAX] == result.total_employer_cost
        assert -totals[LineType.TAX] == result.total_tax_withholdings
        assert -totals[LineType.DEDUCTION] == (
            result.total_pre_tax_deductions + result.total_post_tax_deductions
        )

    def test_stub_order(self, result):
        codes = [line.code for line in LineItemBuilder.build_lines(result)]

        assert codes[:3] == ["regular", "overtime", "other"]
        assert codes[3] == "401k"
        assert codes.index("garnishment") > codes.index("paid_family_leave")
        assert codes[-1] == "futa"

    def test_zero_taxes_skipped(self, engine, payroll_input_factory):
        result = engine.compute(payroll_input_factory())
        codes = [line.code for line in LineItemBuilder.build_lines(result)]

        assert "local_tax" not in codes
        assert "additional_medicare" not in codes
        assert "overtime" not in codes

    def test_hours_and_rate_on_regular_line(self, engine, payroll_input_factory):
        result = engine.compute(payroll_input_factory())
        lines = LineItemBuilder.build_lines(
            result, regular_hours=Decimal("40"), hourly_rate=Decimal("25")
        )

        assert lines[0].quantity == Decimal("40")
        assert lines[0].rate == Decimal("25")

    def test_deductions_by_type(self, result):
        totals = LineItemBuilder.sum_deductions_by_type(LineItemBuilder.build_lines(result))

        assert totals[DeductionType.RETIREMENT_401K] == Decimal("100.00")
        assert totals[DeductionType.GARNISHMENT] == Decimal("40.00")
        assert totals[DeductionType.HSA] == 0
