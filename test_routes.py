"""
test_routes.py — End-to-end tests through the cart and receipt endpoints.
Run: pytest test_routes.py -v
"""
import pytest

from storefront import create_app, db
from storefront.storage.backends import SqlStorage


@pytest.fixture(scope='function')
def client():
    app = create_app('testing')
    with app.app_context():
        db.create_all()
        yield app.test_client()
        db.session.remove()
        db.drop_all()


def add(client, name='Pantalón Clásico', price=89900, size='M', quantity=1):
    return client.post('/cart/add', json={
        'name': name, 'price': price, 'size': size, 'quantity': quantity,
    })


# ── 1. Add / view ─────────────────────────────────────────────────

def test_empty_cart(client):
    data = client.get('/cart/').get_json()
    assert data['items'] == []
    assert data['totalQuantity'] == 0
    assert data['summary']['formattedTotal'] == '$15.000'


def test_add_and_merge(client):
    add(client, quantity=2)
    resp = add(client, quantity=3)
    data = resp.get_json()

    assert resp.status_code == 200
    assert data['ok'] is True
    assert len(data['items']) == 1
    assert data['items'][0]['quantity'] == 5
    assert data['items'][0]['formattedSubtotal'] == '$449.500'
    assert data['totalQuantity'] == 5


def test_add_from_form_post(client):
    resp = client.post('/cart/add', data={
        'name': 'Jean', 'price': '109900', 'size': 'L', 'quantity': '1',
    })
    assert resp.get_json()['ok'] is True


@pytest.mark.parametrize('payload, field', [
    ({'price': 1000, 'size': 'M', 'quantity': 1}, 'name'),
    ({'name': 'Jean', 'size': 'M', 'quantity': 1}, 'price'),
    ({'name': 'Jean', 'price': -5, 'size': 'M', 'quantity': 1}, 'price'),
    ({'name': 'Jean', 'price': 1000, 'quantity': 1}, 'size'),
    ({'name': 'Jean', 'price': 1000, 'size': 'M', 'quantity': 0}, 'quantity'),
    ({'name': 'Jean', 'price': 1000, 'size': 'M', 'quantity': 'two'}, 'quantity'),
])
def test_add_rejects_invalid_input(client, payload, field):
    resp = client.post('/cart/add', json=payload)
    data = resp.get_json()
    assert resp.status_code == 400
    assert data['ok'] is False
    assert field in data['errors']
    assert client.get('/cart/').get_json()['items'] == []


def test_cart_persists_between_requests(client):
    add(client, name='Jean', size='L')
    add(client, name='Blusa', size='S')
    names = [i['name'] for i in client.get('/cart/').get_json()['items']]
    assert names == ['Jean', 'Blusa']


def test_corrupt_stored_cart_still_serves(client):
    with client.session_transaction() as sess:
        sess['shopper_id'] = 'shopper-corrupt'
    SqlStorage('shopper-corrupt').set(
        client.application.config['CART_STORAGE_KEY'],
        '[{"id": "x", "name": "Jean", "unitPrice": NaN, "size": "M", "quantity": 1e999}]',
    )

    resp = client.get('/cart/')
    assert resp.status_code == 200
    assert resp.get_json()['items'] == []

    assert add(client).get_json()['ok'] is True


def test_carts_are_per_shopper(client):
    add(client)
    other = client.application.test_client()
    assert other.get('/cart/').get_json()['items'] == []


# ── 2. Update / remove / clear ────────────────────────────────────

def test_update_and_remove(client):
    item_id = add(client, quantity=2).get_json()['item']['id']

    data = client.post('/cart/update', json={'id': item_id, 'quantity': 4}).get_json()
    assert data['items'][0]['quantity'] == 4

    data = client.post('/cart/update', json={'id': item_id, 'quantity': 0}).get_json()
    assert data['items'] == []


def test_update_requires_integer(client):
    item_id = add(client).get_json()['item']['id']
    resp = client.post('/cart/update', json={'id': item_id, 'quantity': 'lots'})
    assert resp.status_code == 400


def test_remove_unknown_id(client):
    add(client)
    data = client.post('/cart/remove', json={'id': 'item_nope'}).get_json()
    assert data['ok'] is True
    assert len(data['items']) == 1


def test_clear(client):
    add(client)
    data = client.post('/cart/clear').get_json()
    assert data['items'] == []


# ── 3. Checkout + receipts ────────────────────────────────────────

def test_checkout_empty_cart_refused(client):
    resp = client.post('/cart/checkout')
    assert resp.status_code == 400
    assert resp.get_json()['ok'] is False


def test_checkout_creates_receipt_and_clears_cart(client):
    add(client, quantity=2)                    # 179.800
    add(client, name='Jean', price=109900, size='L')   # 109.900

    data = client.post('/cart/checkout').get_json()
    assert data['ok'] is True
    assert data['formattedTotal'] == '$299.700'
    assert client.get('/cart/').get_json()['items'] == []

    history = client.get('/receipts/').get_json()
    assert [r['number'] for r in history] == [data['receiptNumber']]
    assert history[0]['formattedTotal'] == '$299.700'

    doc = client.get(data['url'])
    assert doc.status_code == 200
    assert doc.content_type.startswith('text/html')
    assert data['receiptNumber'].encode() in doc.data


def test_checkout_failure_keeps_cart(client, monkeypatch):
    add(client)

    def refuse(self, key, value):
        if key == client.application.config['RECEIPT_INDEX_KEY']:
            from storefront.storage.backends import StorageError
            raise StorageError('quota exceeded')
        return original(self, key, value)

    original = SqlStorage.set
    monkeypatch.setattr(SqlStorage, 'set', refuse)

    resp = client.post('/cart/checkout')
    assert resp.status_code == 500
    assert 'error al generar la factura' in resp.get_json()['error']

    monkeypatch.undo()
    assert len(client.get('/cart/').get_json()['items']) == 1
    assert client.get('/receipts/').get_json() == []


def test_unknown_receipt_404(client):
    resp = client.get('/receipts/NYM-20260101000000-1234')
    assert resp.status_code == 404
    assert resp.get_json()['ok'] is False
