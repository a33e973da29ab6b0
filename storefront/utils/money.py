"""
storefront/utils/money.py
-------------------------
Currency formatting for Colombian pesos (COP). HTML escaping of
receipt content is left to Jinja2 autoescaping.

COP has no minor unit in everyday use, so amounts are shown without
decimals: 89900 → "$89.900". Fractions (e.g. a 10% discount on an
odd subtotal) are rounded half away from zero for display only; the
underlying Decimal is never modified.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP


def format_money(amount) -> str:
    """Return `amount` as a peso string: "$1.234.567", "-$5.000"."""
    try:
        value = Decimal(str(amount))
        if not value.is_finite():
            return f"${amount}"
        value = value.quantize(Decimal('1'), rounding=ROUND_HALF_UP)
    except (InvalidOperation, ValueError):
        return f"${amount}"

    sign = '-' if value < 0 else ''
    grouped = f"{abs(value):,}".replace(',', '.')
    return f"{sign}${grouped}"
