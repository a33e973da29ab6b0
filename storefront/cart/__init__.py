"""
storefront/cart
---------------
Shopping cart blueprint.
URL prefix: /cart
"""
from flask import Blueprint

cart = Blueprint('cart', __name__)

from storefront.cart import routes  # noqa: E402, F401
