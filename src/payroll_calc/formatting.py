"""Display formatting for pay stubs and reports."""

from __future__ import annotations

import re
from decimal import Decimal

from payroll_calc.calculators.line_builder import LineItemBuilder
from payroll_calc.calculators.types import to_decimal

_NON_DIGITS = re.compile(r"\D")


def format_currency(amount: Decimal | int | float | str) -> str:
    """Format a USD amount as ``$1,234.56`` or ``-$1,234.56``."""
    value = LineItemBuilder.round_to_cents(to_decimal(amount, "amount"))
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"


def _digits(value: str) -> str:
    return _NON_DIGITS.sub("", value or "")


def format_ssn(ssn: str) -> str:
    """Format an SSN as XXX-XX-XXXX; anything that isn't nine digits is returned unchanged."""
    digits = _digits(ssn)
    if len(digits) != 9:
        return ssn
    return f"{digits[:3]}-{digits[3:5]}-{digits[5:]}"


def mask_ssn(ssn: str) -> str:
    digits = _digits(ssn)
    if len(digits) != 9:
        return "***-**-****"
    return f"***-**-{digits[5:]}"


def mask_account_number(account_number: str) -> str:
    if not account_number:
        return ""
    digits = _digits(account_number)
    if len(digits) < 4:
        return "****"
    return f"****{digits[-4:]}"


def format_phone_number(phone: str) -> str:
    """Format a ten-digit phone number as (XXX) XXX-XXXX."""
    if not phone:
        return ""
    digits = _digits(phone)
    if len(digits) != 10:
        return phone
    return f"({digits[:3]}) {digits[3:6]}-{digits[6:]}"
