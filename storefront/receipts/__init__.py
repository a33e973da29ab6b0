"""
storefront/receipts
-------------------
Receipt history blueprint.
URL prefix: /receipts
"""
from flask import Blueprint

receipts = Blueprint('receipts', __name__)

from storefront.receipts import routes  # noqa: E402, F401
