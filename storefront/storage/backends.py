"""
storefront/storage/backends.py
------------------------------
Durable key-value store, one namespace per shopper.

Contract (both backends):
    get(key)            -> str | None
    set(key, value)     -> None
    remove(key)         -> None      (absent key is not an error)
    keys(prefix='')     -> list[str]

Database errors and quota exhaustion surface as StorageError and
nothing else. Callers never see SQLAlchemy exceptions; they wrap
calls in fail_open() to substitute a default when storage is degraded.
"""
import json
import logging

from sqlalchemy.exc import SQLAlchemyError

from storefront import db
from storefront.storage.models import StorageEntry

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Read, write or delete on the durable store failed."""


class QuotaExceededError(StorageError):
    """A write would push the namespace past its byte quota."""


def _entry_size(key: str, value: str) -> int:
    return len(key.encode('utf-8')) + len(value.encode('utf-8'))


# ── In-memory backend ─────────────────────────────────────────────

class MemoryStorage:
    """Dict-backed store for scripts and tests. Same contract as SqlStorage."""

    def __init__(self, quota_bytes: int = None):
        self.quota_bytes = quota_bytes
        self._data = {}

    def get(self, key):
        return self._data.get(key)

    def set(self, key, value):
        if self.quota_bytes is not None:
            used = sum(_entry_size(k, v) for k, v in self._data.items() if k != key)
            if used + _entry_size(key, value) > self.quota_bytes:
                raise QuotaExceededError(
                    f'Writing {key!r} exceeds quota of {self.quota_bytes} bytes'
                )
        self._data[key] = value

    def remove(self, key):
        self._data.pop(key, None)

    def keys(self, prefix=''):
        return [k for k in self._data if k.startswith(prefix)]


# ── SQLAlchemy backend ────────────────────────────────────────────

class SqlStorage:
    """
    Store backed by the storage_entries table.

    Each write commits immediately; there is no unit of work spanning
    several keys, just as a browser's localStorage has none. A failed
    statement is rolled back before StorageError is raised so the
    shared db.session stays usable for the rest of the request.
    """

    def __init__(self, namespace: str, quota_bytes: int = None):
        self.namespace = namespace
        self.quota_bytes = quota_bytes

    def _query(self):
        return db.session.query(StorageEntry).filter(StorageEntry.namespace == self.namespace)

    def get(self, key):
        try:
            entry = self._query().filter(StorageEntry.key == key).first()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError(f'Read of {key!r} failed') from exc
        return entry.value if entry else None

    def set(self, key, value):
        try:
            entries = self._query().all()
            if self.quota_bytes is not None:
                used = sum(e.size for e in entries if e.key != key)
                if used + _entry_size(key, value) > self.quota_bytes:
                    raise QuotaExceededError(
                        f'Writing {key!r} exceeds quota of {self.quota_bytes} bytes '
                        f'for namespace {self.namespace}'
                    )

            entry = next((e for e in entries if e.key == key), None)
            if entry is None:
                db.session.add(StorageEntry(namespace=self.namespace, key=key, value=value))
            else:
                entry.value = value
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError(f'Write of {key!r} failed') from exc

    def remove(self, key):
        try:
            self._query().filter(StorageEntry.key == key).delete(synchronize_session=False)
            db.session.commit()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError(f'Delete of {key!r} failed') from exc

    def keys(self, prefix=''):
        try:
            rows = self._query().with_entities(StorageEntry.key).all()
        except SQLAlchemyError as exc:
            db.session.rollback()
            raise StorageError('Key listing failed') from exc
        return [row[0] for row in rows if row[0].startswith(prefix)]


# ── JSON helpers ──────────────────────────────────────────────────

def read_json(storage, key):
    """
    Decode the JSON value under `key`.

    Returns None when the key is absent. Raises StorageError on a
    storage fault and ValueError when the stored text is not JSON.
    """
    raw = storage.get(key)
    if raw is None:
        return None
    return json.loads(raw)


def write_json(storage, key, value) -> None:
    storage.set(key, json.dumps(value, ensure_ascii=False, separators=(',', ':')))


# ── Recovery policy ───────────────────────────────────────────────

def fail_open(operation, default=None, message='Storage operation failed'):
    """
    Run `operation()`; on a storage fault or undecodable data, log a
    warning and return `default` instead of raising.
    """
    try:
        return operation()
    except (StorageError, ValueError) as exc:
        logger.warning('%s: %s', message, exc)
        return default
