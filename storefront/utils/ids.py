"""
storefront/utils/ids.py
-----------------------
Opaque identifiers for cart lines and receipts.

Formats
───────
Cart line (millisecond resolution):
    item_1700397045123_k3j9a0zq1
    prefix _ epoch-millis _ 9 random chars from [0-9a-z]

Receipt number (second resolution):
    NYM-20261018143045-4821
    prefix - YYYYMMDDHHMMSS - random 1000..9999

There is no counter or shared state: two ids minted in the same
millisecond/second differ through the random suffix only. These are
NOT cryptographically secure; collisions are possible but negligible
for a single shopper's cart and receipt history.
"""
import random
import string
from datetime import datetime, timezone

ALPHABET = string.digits + string.ascii_lowercase
SUFFIX_LENGTH = 9

LINE_ITEM_PREFIX = 'item'
RECEIPT_PREFIX = 'NYM'


def generate(prefix: str, resolution: str = 'ms', now: datetime = None) -> str:
    """
    Build an identifier from a prefix, a clock reading and a random suffix.

    Args:
        prefix:     human-readable prefix ("item", "NYM")
        resolution: 'ms' for cart lines, 's' for receipt numbers
        now:        clock override (tests); defaults to the current time

    Returns:
        str, see module docstring for the two formats
    """
    if resolution == 'ms':
        now = now or datetime.now(timezone.utc)
        millis = int(now.timestamp() * 1000)
        suffix = ''.join(random.choices(ALPHABET, k=SUFFIX_LENGTH))
        return f"{prefix}_{millis}_{suffix}"

    if resolution == 's':
        # Receipts carry the shopper's local wall-clock time
        now = now or datetime.now()
        return f"{prefix}-{now:%Y%m%d%H%M%S}-{random.randint(1000, 9999)}"

    raise ValueError(f"Unknown id resolution {resolution!r}")


def line_item_id() -> str:
    return generate(LINE_ITEM_PREFIX, 'ms')


def receipt_number(prefix: str = RECEIPT_PREFIX, now: datetime = None) -> str:
    return generate(prefix, 's', now=now)