"""
Tests for the inventory and stock-movement API
"""
import pytest


@pytest.fixture
def item(admin_client):
    response = admin_client.post('/api/inventory', json={
        'product_name': 'Widget',
        'unit': 'box',
        'purchase_price': 4,
        'sale_price': 9.99,
        'initial_stock': 10,
        'reorder_point': 5,
    })
    assert response.status_code == 201, response.get_json()
    return response.get_json()


def _adjust(client, item_id, **payload):
    return client.post(f'/api/inventory/{item_id}/adjust-stock', json=payload)


def test_create_item(item):
    assert item['current_stock'] == 10
    assert item['initial_stock'] == 10
    assert item['status'] == 'inStock'
    assert 'version_id' in item


def test_create_item_validation(admin_client):
    response = admin_client.post('/api/inventory', json={'product_name': '', 'initial_stock': -1})
    assert response.status_code == 400
    body = response.get_json()
    assert body['success'] is False
    assert 'product_name' in body['errors']


def test_create_item_requires_json_object(admin_client):
    response = admin_client.post('/api/inventory', data='nope', content_type='text/plain')
    assert response.status_code == 400


def test_adjust_stock_clamps_at_zero(admin_client, item):
    response = _adjust(admin_client, item['id'], adjustment=-15, reason='sale')
    assert response.status_code == 200
    body = response.get_json()
    assert body['success'] is True
    assert body['new_stock'] == 0
    assert body['clamped'] is True
    assert body['movement']['quantity'] == -15
    assert body['movement']['previous_stock'] == 10
    assert body['movement']['product_name'] == 'Widget'

    state = admin_client.get(f"/api/inventory/{item['id']}/stock").get_json()
    assert state['current_stock'] == 0
    assert state['status'] == 'outOfStock'


@pytest.mark.parametrize('payload, field', [
    ({'adjustment': -1}, 'reason'),
    ({'adjustment': 0, 'reason': 'count'}, 'adjustment'),
    ({'adjustment': 'x', 'reason': 'count'}, 'adjustment'),
    ({'mode': 'set', 'quantity': -3, 'reason': 'count'}, 'quantity'),
    ({'mode': 'sideways', 'quantity': 3, 'reason': 'count'}, 'mode'),
])
def test_adjust_stock_validation(admin_client, item, payload, field):
    response = _adjust(admin_client, item['id'], **payload)
    assert response.status_code == 400
    assert field in response.get_json()['errors']


def test_adjust_stock_unknown_item(admin_client):
    response = _adjust(admin_client, 9999, adjustment=1, reason='count')
    assert response.status_code == 404
    assert response.get_json()['error'] == 'Inventory item 9999 not found'


def test_adjust_stock_is_admin_only(sales_client, item):
    assert _adjust(sales_client, item['id'], adjustment=1, reason='count').status_code == 403


def test_adjust_stock_modes(admin_client, item):
    assert _adjust(admin_client, item['id'], mode='increase', quantity=5, reason='delivery').get_json()['new_stock'] == 15
    assert _adjust(admin_client, item['id'], mode='decrease', quantity=3, reason='damage').get_json()['new_stock'] == 12
    body = _adjust(admin_client, item['id'], mode='set', quantity=4, reason='stock take').get_json()
    assert body['new_stock'] == 4
    assert body['movement']['movement_type'] == 'adjustment'

    low = admin_client.get('/api/inventory/low-stock').get_json()
    assert [entry['id'] for entry in low] == [item['id']]
    assert low[0]['status'] == 'lowStock'


def test_movement_history_newest_first(admin_client, item):
    for delta in (1, 2, 3):
        _adjust(admin_client, item['id'], adjustment=delta, reason='count')

    movements = admin_client.get(f"/api/inventory/{item['id']}/movements").get_json()
    assert [m['quantity'] for m in movements] == [3, 2, 1]
    assert movements[0]['previous_stock'] == movements[1]['new_stock']

    limited = admin_client.get(f"/api/inventory/{item['id']}/movements?limit=1").get_json()
    assert len(limited) == 1

    report = admin_client.get(f"/api/inventory/{item['id']}/verify-ledger").get_json()
    assert report['is_consistent'] is True
    assert report['ledger_total'] == 6


def test_stock_movements_listing(admin_client, item):
    for delta in (1, -1, 2):
        _adjust(admin_client, item['id'], adjustment=delta, reason='count')

    page = admin_client.get('/api/stock-movements?per_page=2').get_json()
    assert page['total'] == 3
    assert page['pages'] == 2
    assert len(page['items']) == 2
    assert 'movement_types' in page['filters']

    outgoing = admin_client.get('/api/stock-movements?movement_type=out').get_json()
    assert [m['quantity'] for m in outgoing['items']] == [-1]

    bad = admin_client.get('/api/stock-movements?date_from=yesterday')
    assert bad.status_code == 400


def test_update_item_rejects_stock_fields(admin_client, item):
    response = admin_client.put(f"/api/inventory/{item['id']}", json={'current_stock': 100})
    assert response.status_code == 400
    assert response.get_json()['errors'] == {'current_stock': 'read-only'}

    response = admin_client.put(f"/api/inventory/{item['id']}", json={'sale_price': 11.5})
    assert response.status_code == 200
    assert response.get_json()['sale_price'] == 11.5
    assert response.get_json()['current_stock'] == 10


def test_list_and_search(admin_client, viewer_client, item):
    admin_client.post('/api/inventory', json={'product_name': 'Gadget', 'initial_stock': 0})

    names = [entry['product_name'] for entry in viewer_client.get('/api/inventory').get_json()]
    assert names == ['Gadget', 'Widget']

    found = viewer_client.get('/api/inventory?search=widg').get_json()
    assert [entry['id'] for entry in found] == [item['id']]

    assert viewer_client.get('/api/inventory/9999').status_code == 404
