"""
Pricing rules for checkout.

All amounts are Decimal rupees (INR). Pure functions, no database access.

    tax      = 18% GST on the subtotal, rounded to paise
    shipping = free from ₹500, otherwise a flat rate by destination state
"""
from decimal import Decimal, ROUND_HALF_EVEN

PAISE = Decimal('0.01')

GST_RATE = Decimal('0.18')
FREE_SHIPPING_THRESHOLD = Decimal('500')
DEFAULT_SHIPPING_RATE = Decimal('60')

# Keys are lower-cased state names
SHIPPING_RATES = {
    'maharashtra': Decimal('40'),
    'karnataka': Decimal('40'),
    'tamil nadu': Decimal('50'),
    'delhi': Decimal('45'),
    'gujarat': Decimal('45'),
}


def to_money(amount) -> Decimal:
    """Round to two decimal places (banker's rounding)."""
    return Decimal(amount).quantize(PAISE, rounding=ROUND_HALF_EVEN)


def calculate_tax(subtotal: Decimal) -> Decimal:
    return to_money(subtotal * GST_RATE)


def calculate_shipping(subtotal: Decimal, state_name) -> Decimal:
    if subtotal >= FREE_SHIPPING_THRESHOLD:
        return to_money(0)

    key = (state_name or '').strip().lower()
    return to_money(SHIPPING_RATES.get(key, DEFAULT_SHIPPING_RATE))


def calculate_total(subtotal: Decimal, tax: Decimal, shipping: Decimal,
                    discount: Decimal = Decimal('0')) -> Decimal:
    """subtotal + tax + shipping - discount, never below zero."""
    gross = subtotal + tax + shipping
    discount = min(max(discount, Decimal('0')), gross)
    return to_money(gross - discount)
