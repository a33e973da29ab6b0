"""
storefront/cart/pricing.py
--------------------------
Pure pricing rules for a cart snapshot.

Nothing is cached: every call recomputes from the items it is given.
Carts are small, and a stale total is worse than a few multiplications.

Rules (amounts in whole pesos)
──────────────────────────────
    subtotal  = Σ unit_price × quantity
    discount  = 10% of subtotal  if subtotal >  500.000   (exclusive)
    shipping  = 0                if after_discount >= 300.000
                10.000           if after_discount >= 100.000
                15.000           otherwise
    total     = subtotal − discount + shipping

The same shipping rule is used for the live cart summary and for the
printed receipt.
"""
from __future__ import annotations
import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from storefront.utils.money import format_money


Q = Decimal('0.01')   # quantize target

DISCOUNT_THRESHOLD         = Decimal('500000')
DISCOUNT_RATE              = Decimal('0.10')
FREE_SHIPPING_THRESHOLD    = Decimal('300000')
REDUCED_SHIPPING_THRESHOLD = Decimal('100000')
REDUCED_SHIPPING_FEE       = Decimal('10000')
STANDARD_SHIPPING_FEE      = Decimal('15000')

_NON_DIGITS = re.compile(r'[^0-9]')


@dataclass(frozen=True)
class PricingResult:
    """Derived totals for one snapshot. Never persisted."""
    subtotal: Decimal
    discount: Decimal
    shipping: Decimal
    total:    Decimal

    @property
    def is_free_shipping(self) -> bool:
        return self.shipping == 0

    def as_dict(self) -> dict:
        """JSON-friendly view with raw and formatted amounts."""
        return {
            'subtotal':          str(self.subtotal),
            'discount':          str(self.discount),
            'shipping':          str(self.shipping),
            'total':             str(self.total),
            'freeShipping':      self.is_free_shipping,
            'formattedSubtotal': format_money(self.subtotal),
            'formattedDiscount': format_money(self.discount),
            'formattedShipping': format_money(self.shipping),
            'formattedTotal':    format_money(self.total),
        }


def normalize_price(value) -> Decimal:
    """
    Coerce a stored price to Decimal.

    Numbers are used as-is. Strings are legacy display values such as
    "$89.900": every non-digit is stripped, and no digits at all means 0.
    NaN and infinities also count as 0.
    """
    if isinstance(value, (int, float, Decimal)) and not isinstance(value, bool):
        price = Decimal(str(value))
        return price if price.is_finite() else Decimal('0')
    digits = _NON_DIGITS.sub('', str(value))
    return Decimal(digits) if digits else Decimal('0')


def line_total(item) -> Decimal:
    return normalize_price(item.unit_price) * item.quantity


def subtotal(items) -> Decimal:
    """Sum of unit_price × quantity over the snapshot."""
    return sum((line_total(item) for item in items), start=Decimal('0'))


def volume_discount(amount: Decimal) -> Decimal:
    """10% off when the subtotal is strictly above the threshold."""
    if amount > DISCOUNT_THRESHOLD:
        return (amount * DISCOUNT_RATE).quantize(Q, rounding=ROUND_HALF_UP)
    return Decimal('0')


def shipping(after_discount: Decimal) -> Decimal:
    """Flat tiered shipping on the amount left after the discount."""
    if after_discount >= FREE_SHIPPING_THRESHOLD:
        return Decimal('0')
    if after_discount >= REDUCED_SHIPPING_THRESHOLD:
        return REDUCED_SHIPPING_FEE
    return STANDARD_SHIPPING_FEE


def total(subtotal_amount: Decimal, discount: Decimal, shipping_fee: Decimal) -> Decimal:
    return subtotal_amount - discount + shipping_fee


def summarize(subtotal_amount, discount=None) -> PricingResult:
    """
    Price a pre-computed subtotal. When `discount` is None the volume
    discount rule is applied; otherwise the given discount is trusted.
    """
    subtotal_amount = Decimal(str(subtotal_amount))
    if discount is None:
        discount = volume_discount(subtotal_amount)
    else:
        discount = Decimal(str(discount))
    fee = shipping(subtotal_amount - discount)
    return PricingResult(
        subtotal=subtotal_amount,
        discount=discount,
        shipping=fee,
        total=total(subtotal_amount, discount, fee),
    )


def price_cart(items) -> PricingResult:
    """Full pricing for a cart snapshot."""
    return summarize(subtotal(items))
