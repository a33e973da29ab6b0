from datetime import datetime
from storefront import db


class StorageEntry(db.Model):
    """
    One key/value pair in a shopper's durable store.

    Each shopper (browser) owns a namespace, so the same key (e.g. the
    cart key) exists once per shopper. Values are JSON strings; the
    table itself knows nothing about carts or receipts.
    """
    __tablename__ = 'storage_entries'
    __table_args__ = (
        db.UniqueConstraint('namespace', 'key', name='uq_storage_namespace_key'),
    )

    id         = db.Column(db.Integer, primary_key=True)
    namespace  = db.Column(db.String(64), nullable=False, index=True)
    key        = db.Column(db.String(200), nullable=False)
    value      = db.Column(db.Text, nullable=False)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow,
                           onupdate=datetime.utcnow)

    @property
    def size(self) -> int:
        """Bytes charged against the namespace quota (key + value, UTF-8)."""
        return len(self.key.encode('utf-8')) + len(self.value.encode('utf-8'))

    def __repr__(self):
        return f"<StorageEntry {self.namespace}:{self.key} ({self.size} B)>"
