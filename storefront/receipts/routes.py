from flask import abort, jsonify, url_for

from storefront import services
from storefront.receipts import receipts
from storefront.utils.money import format_money


# ── HISTORY ───────────────────────────────────────────────────────

@receipts.route('/')
def index():
    """The shopper's receipts, newest first (documents omitted)."""
    history = services.get_receipt_history()
    return jsonify([{
        'number':         rec.get('number'),
        'createdAt':      rec.get('createdAt'),
        'total':          rec.get('total'),
        'formattedTotal': format_money(rec.get('total', 0)),
        'url':            url_for('receipts.show', number=rec.get('number')),
    } for rec in history.all()])


# ── PRINTABLE RECEIPT ─────────────────────────────────────────────

@receipts.route('/<number>')
def show(number):
    """Serve the stored printable document exactly as generated."""
    record = services.get_receipt_history().get(number)
    if record is None or not record.get('document'):
        abort(404)
    return record['document'], 200, {'Content-Type': 'text/html; charset=utf-8'}
