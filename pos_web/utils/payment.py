"""
Payment totals shown on the checkout screen

The backend recomputes and stores the final figures; these are for display
and for the values posted with the payment.
"""

import math

from pos_web.utils.helpers import round_half_up

PAYMENT_METHODS = ('CASH', 'QRIS', 'DEBIT', 'TRANSFER')


def parse_discount(value):
    """Discount from user input; blanks, garbage and negatives become 0"""
    try:
        discount = float(value)
    except (TypeError, ValueError):
        return 0
    if math.isnan(discount) or math.isinf(discount) or discount < 0:
        return 0
    return int(discount) if discount.is_integer() else discount


def compute_totals(order_total, discount=0, include_tax=False, tax_rate=0.10):
    """
    Compute checkout figures for an order

    Args:
        order_total: order total before discount and tax
        discount: discount amount (raw user input accepted)
        include_tax: whether tax is charged
        tax_rate: tax rate as a fraction

    Returns:
        dict: subtotal, discount, final_subtotal, tax, total
    """
    discount = parse_discount(discount)
    final_subtotal = max(0, order_total - discount)
    tax = round_half_up(final_subtotal * tax_rate) if include_tax else 0
    return {
        'subtotal': order_total,
        'discount': discount,
        'final_subtotal': final_subtotal,
        'tax': tax,
        'total': final_subtotal + tax,
        'include_tax': bool(include_tax),
    }


def is_truthy(value):
    """Checkbox / JSON flag parsing"""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'on', 'yes')
