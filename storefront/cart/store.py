"""
storefront/cart/store.py
------------------------
The shopper's cart: an ordered list of line items persisted as JSON
under a single key of the durable store.

Persisted shape (one JSON array under CART_STORAGE_KEY):
[
    {
        "id":        "item_1700397045123_k3j9a0zq1",
        "name":      "Pantalón Clásico",
        "unitPrice": 89900,
        "size":      "M",
        "quantity":  2,
        "addedAt":   "2026-10-18T14:30:45.123Z"
    },
    ...
]

(name, size) is unique within a cart: adding the same pair again bumps
the quantity of the existing line instead of appending a new one.

Storage is fail-open in both directions. An unreadable or corrupt
value loads as an empty cart; a failed write is logged and ignored,
and the in-memory list stays authoritative for the rest of the request.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from decimal import Decimal

from storefront.cart.pricing import normalize_price
from storefront.storage.backends import fail_open, read_json, write_json
from storefront.utils import ids

logger = logging.getLogger(__name__)


def _utc_timestamp() -> str:
    """ISO-8601, millisecond precision, 'Z' suffix."""
    now = datetime.now(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S.') + f'{now.microsecond // 1000:03d}Z'


@dataclass
class LineItem:
    """One product + size selection."""
    id:         str
    name:       str
    unit_price: int
    size:       str
    quantity:   int
    added_at:   str

    def to_dict(self) -> dict:
        return {
            'id':        self.id,
            'name':      self.name,
            'unitPrice': self.unit_price,
            'size':      self.size,
            'quantity':  self.quantity,
            'addedAt':   self.added_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> LineItem:
        """
        Rebuild a line from its stored form. unitPrice is kept exactly as
        stored (older carts saved display strings like "$89.900");
        pricing normalises it on read. Numeric prices must be finite and
        not negative, quantities at least 1.
        """
        unit_price = data['unitPrice']
        if isinstance(unit_price, (int, float)) and not isinstance(unit_price, bool):
            price = Decimal(str(unit_price))
            if not price.is_finite() or price < 0:
                raise ValueError(f'Invalid stored price {unit_price!r}')

        quantity = int(data['quantity'])
        if quantity < 1:
            raise ValueError(f'Invalid stored quantity {quantity!r}')

        return cls(
            id=data['id'],
            name=data['name'],
            unit_price=unit_price,
            size=data['size'],
            quantity=quantity,
            added_at=data.get('addedAt', ''),
        )


class CartStore:
    """
    Single source of truth for one shopper's cart.

    Construct one per shopper with the storage handle for that shopper;
    there is no shared module-level cart.
    """

    def __init__(self, storage, key: str = 'cart'):
        self._storage = storage
        self._key = key
        self._items: list[LineItem] = []
        self.load()

    # ── Persistence ───────────────────────────────────────────────

    def load(self) -> None:
        """(Re)read the cart from storage, falling back to empty."""
        raw = fail_open(
            lambda: read_json(self._storage, self._key),
            default=None,
            message='Could not load cart from storage',
        )
        self._items = self._decode(raw)

    def _decode(self, raw) -> list[LineItem]:
        if raw is None:
            return []
        if not isinstance(raw, list):
            logger.warning('Discarding stored cart: expected a list, got %s', type(raw).__name__)
            return []
        try:
            return [LineItem.from_dict(entry) for entry in raw]
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            logger.warning('Discarding malformed stored cart: %r', exc)
            return []

    def _save(self) -> None:
        fail_open(
            lambda: write_json(self._storage, self._key, [item.to_dict() for item in self._items]),
            message='Could not save cart to storage',
        )

    # ── Write ─────────────────────────────────────────────────────

    def add_item(self, name: str, price, size: str, quantity: int = 1) -> LineItem:
        """
        Add `quantity` units of (name, size).

        Arguments are expected to be validated by the caller; only type
        coercion happens here. Returns the line that now holds the units.
        """
        quantity = int(quantity)
        line = self._find(lambda item: item.name == name and item.size == size)

        if line is not None:
            line.quantity += quantity
        else:
            line = LineItem(
                id=ids.line_item_id(),
                name=name,
                unit_price=int(normalize_price(price)),
                size=size,
                quantity=quantity,
                added_at=_utc_timestamp(),
            )
            self._items.append(line)

        self._save()
        return replace(line)

    def remove_item(self, item_id: str) -> None:
        """Drop the line with `item_id`; unknown ids are ignored."""
        self._items = [item for item in self._items if item.id != item_id]
        self._save()

    def update_quantity(self, item_id: str, quantity: int) -> None:
        """Set a line's quantity; zero or less removes the line."""
        line = self._find(lambda item: item.id == item_id)
        if line is None:
            return

        quantity = int(quantity)
        if quantity <= 0:
            self.remove_item(item_id)
        else:
            line.quantity = quantity
            self._save()

    def clear(self) -> None:
        """Empty the cart after checkout or on request."""
        self._items = []
        self._save()

    # ── Read ──────────────────────────────────────────────────────

    def items(self) -> tuple[LineItem, ...]:
        """Snapshot of the lines in insertion order (copies, safe to keep)."""
        return tuple(replace(item) for item in self._items)

    def total_quantity(self) -> int:
        return sum(item.quantity for item in self._items)

    def is_empty(self) -> bool:
        return not self._items

    def __len__(self):
        return len(self._items)

    def _find(self, predicate):
        return next((item for item in self._items if predicate(item)), None)
