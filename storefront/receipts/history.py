"""
storefront/receipts/history.py
------------------------------
Bounded per-shopper receipt log.

Layout in the durable store
───────────────────────────
    <index_key>            ["NYM-20261018143045-4821", ...]   newest first
    <key_prefix><number>   {"number", "createdAt", "total", "document"}

The index is capped (50 by default). Recording a receipt beyond the
cap drops the oldest number from the index and deletes its record,
so storage use stays bounded without any background job.

purge_older_than() is the optional age-based maintenance pass; it is
only run on demand (CLI), never implicitly.
"""
import logging
from datetime import datetime, timedelta, timezone

from storefront.storage.backends import fail_open, read_json, write_json

logger = logging.getLogger(__name__)


def _parse_timestamp(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class ReceiptHistory:

    def __init__(self, storage, index_key='receipts', key_prefix='receipt_', cap=50):
        self._storage = storage
        self.index_key = index_key
        self.key_prefix = key_prefix
        self.cap = cap

    def _key(self, number: str) -> str:
        return f"{self.key_prefix}{number}"

    def _read_index(self) -> list:
        """
        Current index. A malformed index is treated as empty; storage
        faults propagate so record() never overwrites an index it could
        not read.
        """
        try:
            numbers = read_json(self._storage, self.index_key)
        except ValueError as exc:
            logger.warning('Discarding malformed receipt index: %s', exc)
            return []
        if not isinstance(numbers, list):
            return []
        return [n for n in numbers if isinstance(n, str)]

    # ── Write ─────────────────────────────────────────────────────

    def record(self, receipt) -> None:
        """
        Persist `receipt` and put it at the head of the index.

        All or nothing: if the index cannot be updated, the record that
        was just written is deleted again and the error is re-raised.
        """
        key = self._key(receipt.number)
        write_json(self._storage, key, receipt.to_record())

        try:
            numbers = [n for n in self._read_index() if n != receipt.number]
            numbers.insert(0, receipt.number)
            evicted = numbers[self.cap:]
            write_json(self._storage, self.index_key, numbers[:self.cap])
        except Exception:
            fail_open(lambda: self._storage.remove(key),
                      message=f'Could not roll back receipt {receipt.number}')
            raise

        for number in evicted:
            logger.info('Evicting receipt %s (history cap %d)', number, self.cap)
            fail_open(lambda n=number: self._storage.remove(self._key(n)),
                      message=f'Could not delete evicted receipt {number}')

    def purge_older_than(self, days: int = 30, now: datetime = None) -> int:
        """
        Drop receipts older than `days` (and index entries whose record
        is gone or unreadable). Returns how many index entries were removed.
        """
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=days)

        numbers = fail_open(self._read_index, default=[],
                            message='Could not read receipt index for purge')
        kept = []
        for number in numbers:
            record = self.get(number)
            try:
                created = _parse_timestamp(record['createdAt']) if record else None
            except (KeyError, TypeError, ValueError):
                created = None

            if created is not None and created >= cutoff:
                kept.append(number)
            else:
                fail_open(lambda n=number: self._storage.remove(self._key(n)),
                          message=f'Could not delete expired receipt {number}')

        removed = len(numbers) - len(kept)
        if removed:
            fail_open(lambda: write_json(self._storage, self.index_key, kept),
                      message='Could not write purged receipt index')
            logger.info('Purged %d receipt(s) older than %d days', removed, days)
        return removed

    # ── Read ──────────────────────────────────────────────────────

    def numbers(self) -> list:
        """Receipt numbers, newest first."""
        return fail_open(self._read_index, default=[],
                         message='Could not read receipt index')

    def contains(self, number: str) -> bool:
        return self.get(number) is not None or number in self.numbers()

    def get(self, number: str):
        """Stored record for `number`, or None."""
        record = fail_open(lambda: read_json(self._storage, self._key(number)),
                           message=f'Could not read receipt {number}')
        return record if isinstance(record, dict) else None

    def all(self) -> list:
        """Every stored record, newest first. Missing records are skipped."""
        records = []
        for number in self.numbers():
            record = self.get(number)
            if record is not None:
                records.append(record)
        return records

    def __len__(self):
        return len(self.numbers())
