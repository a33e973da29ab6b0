from flask import request, jsonify, url_for, current_app

from storefront import services
from storefront.cart import cart
from storefront.cart.pricing import line_total, normalize_price, price_cart
from storefront.cart.validators import validate_add_form, parse_add_form
from storefront.receipts import generator as receipt_generator
from storefront.utils.money import format_money


CHECKOUT_FAILED = 'Hubo un error al generar la factura. Por favor, intenta de nuevo.'


def _payload():
    """Request data from a JSON body or a form post."""
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        return data
    return request.form.to_dict()


def _cart_state(store):
    """Everything the cart page needs to re-render."""
    items = store.items()
    result = price_cart(items)
    lines = []
    for item in items:
        line = item.to_dict()
        line['formattedUnitPrice'] = format_money(normalize_price(item.unit_price))
        line['formattedSubtotal']  = format_money(line_total(item))
        lines.append(line)
    return {
        'items':         lines,
        'totalQuantity': store.total_quantity(),
        'summary':       result.as_dict(),
    }


# ── VIEW CART ─────────────────────────────────────────────────────

@cart.route('/')
def index():
    """Current cart lines plus pricing summary."""
    return jsonify(_cart_state(services.get_cart_store()))


# ── ADD ITEM ──────────────────────────────────────────────────────

@cart.route('/add', methods=['POST'])
def add_item():
    """
    Add a product + size to the cart.
    Invalid input is refused with ok=false and per-field errors.
    """
    data   = _payload()
    errors = validate_add_form(data)
    if errors:
        current_app.logger.warning(f"Add to cart refused: {errors}")
        return jsonify({'ok': False, 'errors': errors}), 400

    store = services.get_cart_store()
    line  = store.add_item(**parse_add_form(data))

    state = _cart_state(store)
    state.update(ok=True, item=line.to_dict())
    return jsonify(state)


# ── REMOVE ITEM ───────────────────────────────────────────────────

@cart.route('/remove', methods=['POST'])
def remove_item():
    item_id = str(_payload().get('id', '')).strip()
    store = services.get_cart_store()
    if item_id:
        store.remove_item(item_id)

    state = _cart_state(store)
    state['ok'] = True
    return jsonify(state)


# ── UPDATE QUANTITY ───────────────────────────────────────────────

@cart.route('/update', methods=['POST'])
def update_quantity():
    data    = _payload()
    item_id = str(data.get('id', '')).strip()
    try:
        quantity = int(data.get('quantity'))
    except (TypeError, ValueError):
        return jsonify({'ok': False, 'errors': {'quantity': 'Quantity must be a whole number.'}}), 400

    store = services.get_cart_store()
    store.update_quantity(item_id, quantity)

    state = _cart_state(store)
    state['ok'] = True
    return jsonify(state)


# ── CLEAR ─────────────────────────────────────────────────────────

@cart.route('/clear', methods=['POST'])
def clear():
    store = services.get_cart_store()
    store.clear()
    state = _cart_state(store)
    state['ok'] = True
    return jsonify(state)


# ── CHECKOUT ──────────────────────────────────────────────────────

@cart.route('/checkout', methods=['POST'])
def checkout():
    """
    Finalise the purchase:
      1. Snapshot + price the cart
      2. Build and record the receipt
      3. Clear the cart (only if 2 succeeded)
    """
    store = services.get_cart_store()
    if store.is_empty():
        return jsonify({'ok': False, 'error': 'Tu carrito está vacío.'}), 400

    receipt = receipt_generator.checkout(store, services.get_receipt_generator())
    if receipt is None:
        return jsonify({'ok': False, 'error': CHECKOUT_FAILED}), 500

    current_app.logger.info(
        f"Checkout by shopper {services.shopper_id()}: {receipt.number} | Total: {receipt.total}"
    )
    return jsonify({
        'ok':             True,
        'receiptNumber':  receipt.number,
        'total':          str(receipt.total),
        'formattedTotal': format_money(receipt.total),
        'url':            url_for('receipts.show', number=receipt.number),
    })
