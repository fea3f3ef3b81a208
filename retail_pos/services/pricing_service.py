"""
Pricing service - subtotal, discount, tax and total for a cart.

Pure functions only: nothing here touches application state.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict, Iterable

from retail_pos.models import CartLine, Discount, DiscountType
from retail_pos.utils.number_format import quantize_money

TAX_RATE = Decimal('0.10')
MAX_PERCENTAGE = Decimal('100')


@dataclass(frozen=True)
class Totals:
    """Computed cart totals. ``discounted_subtotal + tax == total`` always."""

    subtotal: Decimal
    discount_amount: Decimal
    discounted_subtotal: Decimal
    tax: Decimal
    total: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'subtotal': str(self.subtotal),
            'discount': str(self.discount_amount),
            'discountedSubtotal': str(self.discounted_subtotal),
            'tax': str(self.tax),
            'total': str(self.total),
        }


def calculate_subtotal(lines: Iterable[CartLine]) -> Decimal:
    """Sum of price * quantity over the cart lines."""
    return quantize_money(sum((line.line_total for line in lines), Decimal('0')))


def calculate_discount(subtotal: Decimal, discount: Discount) -> Decimal:
    """
    Discount amount for a subtotal.

    Percentages are clamped to 100 and fixed amounts to the subtotal, so the
    result never exceeds the subtotal. A discount with no positive value
    gives zero.
    """
    if discount is None or not discount.is_active:
        return Decimal('0.00')

    if discount.type == DiscountType.PERCENTAGE:
        percentage = min(discount.value, MAX_PERCENTAGE)
        amount = subtotal * percentage / MAX_PERCENTAGE
    else:
        amount = min(discount.value, subtotal)

    return min(quantize_money(amount), subtotal)


def calculate_totals(lines: Iterable[CartLine], discount: Discount, tax_enabled: bool,
                     tax_rate: Decimal = TAX_RATE) -> Totals:
    """
    Price a cart.

    Args:
        lines: Cart lines (price snapshot and quantity)
        discount: Cart discount; inactive discounts are ignored
        tax_enabled: Whether tax applies to the discounted subtotal
        tax_rate: Tax rate (10% unless configured otherwise)

    Returns:
        Totals with subtotal, discount, discounted subtotal, tax and total

    Example:
        two units at 100, 10% discount, tax on ->
        subtotal 200.00, discount 20.00, discounted 180.00, tax 18.00, total 198.00
    """
    subtotal = calculate_subtotal(lines)
    discount_amount = calculate_discount(subtotal, discount)
    discounted_subtotal = subtotal - discount_amount
    tax = quantize_money(discounted_subtotal * tax_rate) if tax_enabled else Decimal('0.00')
    total = discounted_subtotal + tax

    return Totals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        discounted_subtotal=discounted_subtotal,
        tax=tax,
        total=total,
    )
