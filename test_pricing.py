"""
test_pricing.py — Tests for the cart pricing rules.
Run: pytest test_pricing.py -v
"""
from decimal import Decimal

import pytest

from storefront.cart import pricing
from storefront.cart.pricing import price_cart, summarize
from storefront.cart.store import LineItem


def line(price, qty, name='Jean', size='M'):
    return LineItem(id=f'item_{name}_{size}', name=name, unit_price=price,
                    size=size, quantity=qty, added_at='2026-10-18T10:00:00.000Z')


# ── 1. subtotal ───────────────────────────────────────────────────

def test_subtotal_sums_price_times_quantity():
    items = [line(89900, 2), line(109900, 1, name='Blusa')]
    # 2 × 89.900 + 109.900 = 289.700
    assert pricing.subtotal(items) == Decimal('289700')


def test_subtotal_empty_cart_is_zero():
    assert pricing.subtotal([]) == Decimal('0')


def test_legacy_string_prices_are_normalised():
    items = [line('$89.900', 2)]
    assert pricing.subtotal(items) == Decimal('179800')


def test_non_finite_price_counts_as_zero():
    result = price_cart([line(float('nan'), 1), line(float('inf'), 2, name='Blusa')])
    assert result.subtotal == Decimal('0')
    assert result.total == Decimal('15000')


@pytest.mark.parametrize('raw, expected', [
    (89900, Decimal('89900')),
    ('$89.900', Decimal('89900')),
    ('COP 1.250.000', Decimal('1250000')),
    ('gratis', Decimal('0')),
    ('', Decimal('0')),
    (None, Decimal('0')),
    (12.0, Decimal('12.0')),
    (float('nan'), Decimal('0')),
    (float('inf'), Decimal('0')),
    (Decimal('-Infinity'), Decimal('0')),
])
def test_normalize_price(raw, expected):
    assert pricing.normalize_price(raw) == expected


# ── 2. volume discount ────────────────────────────────────────────

def test_discount_just_above_threshold():
    assert pricing.volume_discount(Decimal('500001')) == Decimal('50000.10')


def test_no_discount_at_threshold():
    # Threshold is exclusive
    assert pricing.volume_discount(Decimal('500000')) == Decimal('0')


def test_discount_is_ten_percent():
    assert pricing.volume_discount(Decimal('600000')) == Decimal('60000')


# ── 3. shipping tiers (on amount after discount) ──────────────────

@pytest.mark.parametrize('amount, fee', [
    ('0',       '15000'),
    ('99999',   '15000'),
    ('100000',  '10000'),
    ('299999',  '10000'),
    ('300000',  '0'),
    ('1000000', '0'),
])
def test_shipping_tiers(amount, fee):
    assert pricing.shipping(Decimal(amount)) == Decimal(fee)


def test_shipping_uses_amount_after_discount():
    # 520.000 − 52.000 = 468.000 → free; 320.000 has no discount → free
    result = summarize(Decimal('520000'))
    assert result.discount == Decimal('52000')
    assert result.shipping == Decimal('0')


# ── 4. totals ─────────────────────────────────────────────────────

def test_empty_cart_total_is_shipping():
    result = price_cart([])
    assert result.subtotal == 0
    assert result.discount == 0
    assert result.shipping == Decimal('15000')
    assert result.total == Decimal('15000')


def test_mid_tier_cart():
    result = price_cart([line(89900, 2)])   # 179.800
    assert result.discount == 0
    assert result.shipping == Decimal('10000')
    assert result.total == Decimal('189800')
    assert not result.is_free_shipping


def test_large_cart_gets_discount_and_free_shipping():
    result = price_cart([line(150000, 4)])  # 600.000
    assert result.discount == Decimal('60000')
    assert result.shipping == 0
    assert result.total == Decimal('540000')
    assert result.is_free_shipping


def test_summarize_trusts_given_discount():
    result = summarize(Decimal('200000'), Decimal('5000'))
    assert result.discount == Decimal('5000')
    assert result.total == Decimal('205000')   # 195.000 + 10.000 shipping


def test_as_dict_has_formatted_amounts():
    data = price_cart([line(89900, 2)]).as_dict()
    assert data['formattedSubtotal'] == '$179.800'
    assert data['formattedShipping'] == '$10.000'
    assert data['freeShipping'] is False
