"""
storefront/cart/validators.py
-----------------------------
Boundary validation for "add to cart" requests.
Returns a dict of field -> error_message.
An empty dict means all fields are valid.
"""
from decimal import Decimal, InvalidOperation


def _text(form_data: dict, field: str) -> str:
    value = form_data.get(field)
    return '' if value is None else str(value).strip()


def validate_add_form(form_data: dict) -> dict:
    """
    Validate raw add-to-cart data (form fields or a JSON body).

    Returns:
        dict of {field_name: error_message} — empty if all valid.
    """
    errors = {}

    # ── name ─────────────────────────────────────────────────────
    name = _text(form_data, 'name')
    if not name:
        errors['name'] = 'Product name is required.'
    elif len(name) > 200:
        errors['name'] = 'Product name must be 200 characters or fewer.'

    # ── price ─────────────────────────────────────────────────────
    price_raw = _text(form_data, 'price')
    if not price_raw:
        errors['price'] = 'Price is required.'
    else:
        try:
            price = Decimal(price_raw)
            if not price.is_finite():
                errors['price'] = 'Price must be a valid number.'
            elif price < 0:
                errors['price'] = 'Price cannot be negative.'
            elif price != price.to_integral_value():
                errors['price'] = 'Price must be a whole number of pesos.'
        except InvalidOperation:
            errors['price'] = 'Price must be a valid number.'

    # ── size ──────────────────────────────────────────────────────
    size = _text(form_data, 'size')
    if not size:
        errors['size'] = 'Please select a size.'
    elif len(size) > 20:
        errors['size'] = 'Size must be 20 characters or fewer.'

    # ── quantity ──────────────────────────────────────────────────
    qty_raw = _text(form_data, 'quantity')
    try:
        qty = int(qty_raw)
        if qty < 1:
            errors['quantity'] = 'Quantity must be at least 1.'
    except ValueError:
        errors['quantity'] = 'Quantity must be a whole number.'

    return errors


def parse_add_form(form_data: dict) -> dict:
    """
    Convert validated raw values to the types CartStore.add_item expects.
    Call only after validate_add_form returns no errors.
    """
    return {
        'name':     _text(form_data, 'name'),
        'price':    int(Decimal(_text(form_data, 'price'))),
        'size':     _text(form_data, 'size'),
        'quantity': int(_text(form_data, 'quantity')),
    }
