"""
Document arithmetic shared by orders, bills and invoices

All money values are Decimal quantized to two places (half up).
"""

import math
import random
import re
import time
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Iterable, Optional

from shiv_accounts.core.constants import PaymentStatus, TaxMethod

TWOPLACES = Decimal("0.01")
ZERO = Decimal("0.00")

MOBILE_RE = re.compile(r"^[6-9]\d{9}$")
PINCODE_RE = re.compile(r"^[1-9][0-9]{5}$")


def money(value: Any) -> Decimal:
    """Convert int/float/str/Decimal/None to a 2-place Decimal"""
    if value is None or value == "":
        return ZERO
    return Decimal(str(value)).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def calculate_tax(amount: Any, rate: Any, method: str = TaxMethod.PERCENTAGE) -> Decimal:
    """
    Tax on a base amount

    PERCENTAGE: amount * rate / 100
    FIXED_VALUE: the rate itself
    """
    if method == TaxMethod.FIXED_VALUE:
        return money(rate)
    return money(Decimal(str(amount)) * Decimal(str(rate)) / Decimal("100"))


def calculate_total(subtotal: Any, tax_amount: Any) -> Decimal:
    return money(subtotal) + money(tax_amount)


@dataclass
class LineAmounts:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


@dataclass
class DocumentTotals:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


def price_line(quantity: Any, unit_price: Any, tax: Optional[Any] = None) -> LineAmounts:
    """
    Price one order line

    `tax` is any object with `rate` and `computation_method` (a Tax row);
    None means the line is untaxed.
    """
    subtotal = money(Decimal(str(quantity)) * Decimal(str(unit_price)))
    tax_amount = ZERO
    if tax is not None:
        tax_amount = calculate_tax(subtotal, tax.rate, tax.computation_method)
    return LineAmounts(subtotal=subtotal, tax_amount=tax_amount, total=calculate_total(subtotal, tax_amount))


def sum_lines(lines: Iterable[LineAmounts]) -> DocumentTotals:
    subtotal = ZERO
    tax_amount = ZERO
    for line in lines:
        subtotal += line.subtotal
        tax_amount += line.tax_amount
    return DocumentTotals(subtotal=subtotal, tax_amount=tax_amount, total=calculate_total(subtotal, tax_amount))


def generate_document_number(prefix: str) -> str:
    """PREFIX-<last 6 digits of the ms timestamp>-<3 random digits>"""
    timestamp = str(int(time.time() * 1000))[-6:]
    suffix = f"{random.randint(0, 999):03d}"
    return f"{prefix}-{timestamp}-{suffix}"


def pagination(page: int, limit: int, total: int) -> dict:
    total_pages = math.ceil(total / limit) if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": total_pages,
        "offset": (page - 1) * limit,
        "has_next": page < total_pages,
        "has_prev": page > 1,
    }


def payment_status_for(paid_amount: Decimal, total: Decimal) -> str:
    """UNPAID → PARTIAL → PAID as payments accumulate"""
    if paid_amount <= ZERO:
        return PaymentStatus.UNPAID
    if paid_amount >= total:
        return PaymentStatus.PAID
    return PaymentStatus.PARTIAL


def is_valid_mobile(value: str) -> bool:
    return bool(MOBILE_RE.match(value))


def is_valid_pincode(value: str) -> bool:
    return bool(PINCODE_RE.match(value))
