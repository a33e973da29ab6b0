"""
storefront/receipts/generator.py
--------------------------------
Turns a final cart snapshot + pricing summary into a printable receipt
and records it in the shopper's receipt history.

Format of the receipt number:  NYM-YYYYMMDDHHMMSS-NNNN
Example:                       NYM-20261018143045-4821

Numbers carry no sequence: the 4-digit suffix is random. Two checkouts
in the same second can draw the same suffix, so a number already in
the shopper's history is redrawn before use.

generate() never raises. Any fault while building, rendering or
recording is logged and reported as None; the caller shows a single
generic message and leaves the cart untouched.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import List, Optional
from urllib.parse import quote

from jinja2 import Environment, PackageLoader, select_autoescape

from storefront.cart import pricing
from storefront.cart.pricing import PricingResult
from storefront.utils import ids
from storefront.utils.money import format_money

logger = logging.getLogger(__name__)

QR_ENDPOINT = 'https://api.qrserver.com/v1/create-qr-code/?size=120x120&data='
MAX_NUMBER_ATTEMPTS = 20

_env = Environment(
    loader=PackageLoader('storefront', 'templates'),
    autoescape=select_autoescape(['html']),
)
_env.filters['money'] = format_money


class ReceiptError(Exception):
    """The receipt could not be built from the given snapshot."""


@dataclass(frozen=True)
class ReceiptLine:
    """One row of the printed breakdown."""
    index:      int
    name:       str
    size:       str
    unit_price: Decimal
    quantity:   int
    subtotal:   Decimal


@dataclass
class Receipt:
    number:     str
    created_at: datetime
    lines:      List[ReceiptLine]
    pricing:    PricingResult
    document:   str = field(repr=False, default='')

    @property
    def total(self) -> Decimal:
        return self.pricing.total

    def to_record(self) -> dict:
        """Stored history record: {number, createdAt, total, document}."""
        total = self.total
        return {
            'number':    self.number,
            'createdAt': self.created_at.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z'),
            'total':     int(total) if total == total.to_integral_value() else float(total),
            'document':  self.document,
        }


def _summary_amounts(summary):
    """Pull (subtotal, discount) out of a PricingResult or a plain mapping."""
    if isinstance(summary, PricingResult):
        return summary.subtotal, summary.discount
    if not isinstance(summary, dict):
        raise ReceiptError('Summary must be a mapping with a numeric subtotal')

    subtotal = summary.get('subtotal')
    if isinstance(subtotal, bool) or not isinstance(subtotal, (int, float, Decimal)):
        raise ReceiptError('Summary subtotal is missing or not a number')
    discount = summary.get('discount') or 0
    return subtotal, discount


class ReceiptGenerator:
    """
    Builds receipts for one shopper.

    Args:
        history:       ReceiptHistory the finished receipts go into
        number_prefix: prefix of every receipt number
        shop_name:     printed in the header
        shop_details:  lines printed under the shop name
        clock:         returns the current aware datetime (tests override)
    """

    def __init__(self, history, number_prefix=ids.RECEIPT_PREFIX,
                 shop_name='GLAMOUR NYM', shop_details=(), clock=None):
        self.history = history
        self.number_prefix = number_prefix
        self.shop_name = shop_name
        self.shop_details = list(shop_details)
        self._clock = clock or (lambda: datetime.now().astimezone())

    # ── Numbering ─────────────────────────────────────────────────

    def next_number(self, now: datetime) -> str:
        for _ in range(MAX_NUMBER_ATTEMPTS):
            number = ids.receipt_number(self.number_prefix, now=now)
            if not self.history.contains(number):
                return number
        raise ReceiptError(f'No free receipt number for {now:%Y%m%d%H%M%S}')

    # ── Build ─────────────────────────────────────────────────────

    def build(self, items, summary) -> Receipt:
        """
        Build (but do not record) a receipt.

        Shipping and total are always recomputed from subtotal and
        discount with the canonical pricing rules.
        """
        if not items:
            raise ReceiptError('No items to put on the receipt')

        subtotal, discount = _summary_amounts(summary)
        result = pricing.summarize(subtotal, discount)

        lines = []
        for index, item in enumerate(items, start=1):
            unit_price = pricing.normalize_price(item.unit_price)
            lines.append(ReceiptLine(
                index=index,
                name=item.name,
                size=item.size or 'N/A',
                unit_price=unit_price,
                quantity=item.quantity,
                subtotal=unit_price * item.quantity,
            ))

        now = self._clock()
        receipt = Receipt(
            number=self.next_number(now),
            created_at=now,
            lines=lines,
            pricing=result,
        )
        receipt.document = self.render(receipt)
        return receipt

    def render(self, receipt: Receipt) -> str:
        """Self-contained printable HTML document for `receipt`."""
        template = _env.get_template('receipts/receipt.html')
        return template.render(
            receipt=receipt,
            date=receipt.created_at.strftime('%d/%m/%Y'),
            time=receipt.created_at.strftime('%H:%M:%S'),
            shop_name=self.shop_name,
            shop_details=self.shop_details,
            qr_url=QR_ENDPOINT + quote(receipt.number, safe=''),
            year=receipt.created_at.year,
        )

    # ── Public entry point ────────────────────────────────────────

    def generate(self, items, summary) -> Optional[Receipt]:
        """
        Build and record a receipt.

        Returns the Receipt, or None if anything went wrong. Nothing is
        left in history on failure.
        """
        try:
            receipt = self.build(items, summary)
            self.history.record(receipt)
        except Exception:
            logger.exception('Receipt generation failed')
            return None

        logger.info('Receipt %s generated | Total: %s', receipt.number, receipt.total)
        return receipt


def checkout(cart, generator: ReceiptGenerator) -> Optional[Receipt]:
    """
    Complete a purchase: receipt first, then empty the cart.

    The cart is cleared only after the receipt has been recorded, so a
    failed generation loses nothing.
    """
    items = cart.items()
    if not items:
        return None

    receipt = generator.generate(items, pricing.price_cart(items))
    if receipt is not None:
        cart.clear()
    return receipt
