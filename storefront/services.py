"""
storefront/services.py
----------------------
Wiring of the cart and receipt components for the current shopper.

Each browser gets a random shopper id in its session cookie; that id is
the storage namespace for its cart and receipt history. Components are
built on demand from that id and the app config. Nothing is cached at
module level or on flask.g: an app context can outlive a request (tests,
CLI), and a cached store would leak one shopper's cart into another's.
"""
import uuid
from flask import current_app, session

from storefront.storage.backends import SqlStorage
from storefront.cart.store import CartStore
from storefront.receipts.history import ReceiptHistory
from storefront.receipts.generator import ReceiptGenerator


def shopper_id() -> str:
    """Namespace of the current browser, created on first visit."""
    sid = session.get('shopper_id')
    if not sid:
        sid = uuid.uuid4().hex
        session['shopper_id'] = sid
        session.permanent = True
    return sid


def get_storage(namespace: str = None) -> SqlStorage:
    return SqlStorage(
        namespace or shopper_id(),
        quota_bytes=current_app.config['STORAGE_QUOTA_BYTES'],
    )


def get_cart_store(namespace: str = None) -> CartStore:
    return CartStore(get_storage(namespace), key=current_app.config['CART_STORAGE_KEY'])


def get_receipt_history(namespace: str = None) -> ReceiptHistory:
    cfg = current_app.config
    return ReceiptHistory(
        get_storage(namespace),
        index_key=cfg['RECEIPT_INDEX_KEY'],
        key_prefix=cfg['RECEIPT_KEY_PREFIX'],
        cap=cfg['RECEIPT_HISTORY_CAP'],
    )


def get_receipt_generator(namespace: str = None) -> ReceiptGenerator:
    cfg = current_app.config
    return ReceiptGenerator(
        get_receipt_history(namespace),
        number_prefix=cfg['RECEIPT_NUMBER_PREFIX'],
        shop_name=cfg['SHOP_NAME'],
        shop_details=cfg['SHOP_DETAILS'],
    )
