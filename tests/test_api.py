import json

from app import init_sample_data
from checkout import TransientOrderError
from models import Category, Order, OrderItem, Product, db


def add_mug(client, product_id, quantity=1, **options):
    return client.post('/api/cart/add', json={'product_id': product_id, 'quantity': quantity, 'options': options})


DELIVERY = {'customer_name': 'Amina', 'phone': '+216 12 345 678', 'city': 'Tunis', 'address': 'Rue 1'}


class FailingClient(object):
    def __init__(self):
        self.calls = 0

    def create_order(self, payload):
        self.calls += 1
        raise TransientOrderError('Network error: connection refused')


# ========== Storefront ==========

def test_category_tree(client, catalog):
    tree = client.get('/api/categories').get_json()

    assert [node['name'] for node in tree] == ['Electronics', 'Gifts']
    assert [child['name'] for child in tree[0]['children']] == ['Laptops', 'Phones']


def test_category_options_are_indented(client, catalog):
    options = client.get('/api/categories/options').get_json()

    assert [o['label'] for o in options] == ['Electronics', '\xa0\xa0└ Laptops', '\xa0\xa0└ Phones', 'Gifts']


def test_products_filtered_by_category_subtree(client, catalog):
    def names(query):
        return {p['name'] for p in client.get('/api/products' + query).get_json()}

    assert names('?category=Electronics') == {'Phone X', 'Laptop Pro'}
    assert names('?category=Phones') == {'Phone X'}
    assert names('?category=Garden') == set()
    assert names('') == {'Phone X', 'Laptop Pro', 'Engraved mug'}
    assert names('?search=mug') == {'Engraved mug'}


def test_product_detail_includes_controls(client, catalog):
    response = client.get(f"/api/products/{catalog['mug']}")
    data = response.get_json()

    assert response.status_code == 200
    assert [c['control'] for c in data['controls']] == ['input', 'button-group']
    assert data['form_schema']['fields'][1]['id'] == 'wrap'


def test_inactive_product_is_hidden(client, catalog):
    assert client.get(f"/api/products/{catalog['hidden']}").status_code == 404


def test_add_to_cart_merges_same_options(client, catalog):
    add_mug(client, catalog['mug'], wrap='yes', engraving_text='Hi')
    response = add_mug(client, catalog['mug'], 2, engraving_text='Hi', wrap='yes')
    cart = response.get_json()['cart']

    assert response.status_code == 200
    assert len(cart['items']) == 1
    assert cart['count'] == 3
    assert cart['total'] == 15
    assert cart['items'][0]['options_display'] == ['Engraving Text: Hi', 'Wrap: yes']


def test_add_to_cart_validates_options(client, catalog):
    response = add_mug(client, catalog['mug'], engraving_text='Hi')

    assert response.status_code == 400
    assert list(response.get_json()['errors']) == ['wrap']
    assert client.get('/api/cart').get_json()['count'] == 0


def test_add_to_cart_checks_stock(client, catalog):
    assert add_mug(client, catalog['laptop'], 2).status_code == 200
    assert add_mug(client, catalog['laptop'], 1).status_code == 400
    assert add_mug(client, catalog['laptop'], 0).status_code == 400
    assert add_mug(client, 9999).status_code == 404


def test_update_and_remove_cart_lines(client, catalog):
    key = add_mug(client, catalog['phone']).get_json()['optionsKey']

    response = client.put('/api/cart/update', json={'optionsKey': key, 'quantity': 4})
    assert response.get_json()['cart']['count'] == 4
    assert client.put('/api/cart/update', json={'optionsKey': key, 'quantity': 6}).status_code == 400
    assert client.put('/api/cart/update', json={'optionsKey': 'nope', 'quantity': 1}).status_code == 404

    response = client.put('/api/cart/update', json={'optionsKey': key, 'quantity': 0})
    assert response.get_json()['cart']['items'] == []

    key = add_mug(client, catalog['phone']).get_json()['optionsKey']
    response = client.delete('/api/cart/remove', json={'optionsKey': key})
    assert response.get_json()['cart']['count'] == 0


def test_update_with_negative_quantity_removes_line(client, catalog):
    key = add_mug(client, catalog['phone'], 3).get_json()['optionsKey']
    add_mug(client, catalog['mug'], wrap='yes')

    response = client.put('/api/cart/update', json={'optionsKey': key, 'quantity': -5})
    cart = response.get_json()['cart']

    assert response.status_code == 200
    assert [item['product_id'] for item in cart['items']] == [str(catalog['mug'])]
    assert cart['items'][0]['subtotal'] == 5
    assert cart['count'] == 1


def test_clear_cart(client, catalog):
    add_mug(client, catalog['phone'])

    response = client.post('/api/cart/clear')

    assert response.get_json()['cart'] == {'items': [], 'total': 0, 'count': 0}


def test_checkout_creates_order_and_clears_cart(client, catalog):
    add_mug(client, catalog['mug'], 2, wrap='yes', engraving_text='Hi')
    add_mug(client, catalog['phone'])

    response = client.post('/api/checkout', json=DELIVERY)
    data = response.get_json()

    assert response.status_code == 201
    assert data['success'] is True
    assert client.get('/api/cart').get_json()['count'] == 0

    order = db.session.get(Order, int(data['orderId']))
    assert order.total_price == 20
    assert order.status == 'pending'
    items = OrderItem.query.filter_by(order_id=order.id).order_by(OrderItem.id).all()
    assert [i.product_name for i in items] == ['Engraved mug', 'Phone X']
    assert json.loads(items[0].options) == {'engraving_text': 'Hi', 'wrap': 'yes'}
    assert items[1].options is None


def test_checkout_validation_errors(client, catalog):
    response = client.post('/api/checkout', json=dict(DELIVERY, phone='12'))
    assert response.status_code == 400
    assert 'phone' in response.get_json()['errors']

    response = client.post('/api/checkout?lang=fr', json=DELIVERY)
    assert response.status_code == 400
    assert response.get_json()['error'] == 'Votre panier est vide'


def test_checkout_failure_keeps_cart(app, client, catalog):
    failing = FailingClient()
    app.config['ORDER_CLIENT'] = failing
    add_mug(client, catalog['phone'])

    response = client.post('/api/checkout', json=DELIVERY)

    assert response.status_code == 502
    assert response.get_json()['network'] is True
    assert failing.calls == 3
    assert client.get('/api/cart').get_json()['count'] == 1
    assert Order.query.count() == 0


def test_order_endpoint_validation(client):
    response = client.post('/api/orders', json={'customer_name': 'A'})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'جميع الحقول المطلوبة يجب ملؤها'

    response = client.post('/api/orders', json=dict(DELIVERY, items=[]))
    assert response.status_code == 400
    assert response.get_json()['error'] == 'السلة فارغة'


def test_order_endpoint_keeps_order_when_items_fail(client):
    payload = dict(DELIVERY, total_price=10, items=[
        {'product_id': None, 'product_name': 'Broken', 'price': 10, 'quantity': 'many'},
    ])

    response = client.post('/api/orders', json=payload)

    assert response.status_code == 200
    order_id = int(response.get_json()['orderId'])
    assert db.session.get(Order, order_id) is not None
    assert OrderItem.query.filter_by(order_id=order_id).count() == 0


def test_home_payload(client, catalog):
    data = client.get('/api/home').get_json()

    assert [c['name'] for c in data['categories']] == ['Electronics', 'Gifts']
    assert len(data['products']) == 3
    assert data['settings'] == {'hero_background': {}, 'landing_config': {}, 'site_content': {}}


def test_sample_data_seeding(app, client):
    init_sample_data()
    init_sample_data()

    tree = client.get('/api/categories').get_json()
    assert len(tree) == 2
    assert Product.query.count() == 3
    clothing = next(node for node in tree if node['children'])
    products = client.get('/api/products', query_string={'category': clothing['name']}).get_json()
    assert len(products) == 2


# ========== Admin ==========

def test_admin_routes_require_login(client):
    assert client.get('/api/admin/products').status_code == 401
    assert client.post('/api/admin/login', json={'email': 'x@y.z', 'password': 'bad'}).status_code == 401


def test_admin_me_and_logout(admin_client):
    assert admin_client.get('/api/admin/me').get_json()['admin']['email'] == 'admin@test.local'

    admin_client.post('/api/admin/logout')

    assert admin_client.get('/api/admin/me').status_code == 401


def test_admin_product_crud(admin_client, catalog):
    response = admin_client.post('/api/admin/products', json={
        'name': 'Tablet', 'price': 300, 'stock': 4, 'category_id': catalog['electronics'],
    })
    assert response.status_code == 201
    product_id = response.get_json()['product']['id']

    assert admin_client.post('/api/admin/products', json={'name': 'Free', 'price': -1}).status_code == 400
    response = admin_client.put(f'/api/admin/products/{product_id}', json={'price': 250})
    assert response.get_json()['product']['price'] == 250

    assert admin_client.delete(f'/api/admin/products/{product_id}').status_code == 200
    assert admin_client.delete(f'/api/admin/products/{product_id}').status_code == 404


def test_admin_create_category_with_schema(admin_client, catalog):
    response = admin_client.post('/api/admin/categories', json={
        'name': 'Tablets',
        'parent_id': catalog['electronics'],
        'form_schema': {'fields': [{'label': 'Storage', 'type': 'select', 'options': ['64GB', '128GB']}]},
    })

    assert response.status_code == 201
    category = response.get_json()['category']
    assert category['form_schema']['fields'][0]['id'].startswith('field_')

    tree = admin_client.get('/api/categories').get_json()
    assert 'Tablets' in [c['name'] for c in tree[0]['children']]


def test_admin_rejects_invalid_schema(admin_client, catalog):
    response = admin_client.post('/api/admin/categories', json={
        'name': 'Broken',
        'form_schema': {'fields': [{'id': 'f', 'label': 'Pick', 'type': 'select'}]},
    })

    assert response.status_code == 400
    assert response.get_json()['errors'] == ['Field Pick needs at least one option']


def test_admin_reparent_rejects_cycles(admin_client, catalog):
    url = f"/api/admin/categories/{catalog['electronics']}"

    assert admin_client.put(url, json={'parent_id': catalog['phones']}).status_code == 400
    assert admin_client.put(url, json={'parent_id': catalog['electronics']}).status_code == 400
    assert admin_client.put(url, json={'parent_id': catalog['gifts']}).status_code == 200


def test_admin_delete_category_removes_subtree(admin_client, catalog):
    response = admin_client.delete(f"/api/admin/categories/{catalog['electronics']}")

    assert response.status_code == 200
    assert sorted(response.get_json()['deleted']) == sorted(
        [catalog['electronics'], catalog['phones'], catalog['laptops']])
    db.session.expire_all()
    assert Category.query.count() == 1
    assert db.session.get(Product, catalog['phone']).category_id is None
    assert [c['name'] for c in admin_client.get('/api/categories').get_json()] == ['Gifts']


def test_admin_category_listing_reports_integrity(admin_client, catalog):
    data = admin_client.get('/api/admin/categories').get_json()

    assert data['integrity'] == {'orphans': [], 'cycles': []}
    assert [o['label'] for o in data['options']][:2] == ['Electronics', '\xa0\xa0└ Laptops']


def test_admin_order_status_and_display(admin_client, catalog):
    add_mug(admin_client, catalog['mug'], wrap='no', engraving_text='Sam')
    order_id = admin_client.post('/api/checkout', json=DELIVERY).get_json()['orderId']
    url = f'/api/admin/orders/{order_id}'

    order = admin_client.get(url).get_json()
    assert order['items'][0]['options_display'] == ['Engraving: Sam', 'Gift wrap: no']

    assert admin_client.put(url + '/status', json={'status': 'lost'}).status_code == 400
    response = admin_client.put(url + '/status', json={'status': 'shipped'})
    assert response.get_json()['order']['status'] == 'shipped'
    assert len(admin_client.get('/api/admin/orders?status=shipped').get_json()) == 1


def test_admin_stats(admin_client, catalog):
    order_ids = []
    for product_id in (catalog['phone'], catalog['laptop'], catalog['phone']):
        add_mug(admin_client, product_id)
        order_ids.append(admin_client.post('/api/checkout', json=DELIVERY).get_json()['orderId'])
    admin_client.put(f'/api/admin/orders/{order_ids[0]}/status', json={'status': 'delivered'})
    admin_client.put(f'/api/admin/orders/{order_ids[1]}/status', json={'status': 'cancelled'})

    stats = admin_client.get('/api/admin/stats').get_json()

    assert stats['total_orders'] == 3
    assert stats['pending_orders'] == 1
    assert stats['total_revenue'] == 10
    assert stats['total_products'] == 4
    assert [str(o['id']) for o in stats['recent_orders']] == list(reversed(order_ids))


def test_admin_stats_requires_login(client):
    assert client.get('/api/admin/stats').status_code == 401


def test_admin_settings_feed_home(admin_client):
    assert admin_client.put('/api/admin/settings/unknown', json={'value': {}}).status_code == 400
    assert admin_client.put('/api/admin/settings/site_content', json={'value': 'x'}).status_code == 400

    response = admin_client.put('/api/admin/settings/site_content', json={'value': {'title': 'Souq'}})
    assert response.status_code == 200

    assert admin_client.get('/api/admin/settings/site_content').get_json()['value'] == {'title': 'Souq'}
    assert admin_client.get('/api/home').get_json()['settings']['site_content'] == {'title': 'Souq'}


def test_admin_banners(admin_client):
    assert admin_client.post('/api/admin/banners', json={'title': 'No image'}).status_code == 400
    response = admin_client.post('/api/admin/banners', json={'title': 'Sale', 'image': 'sale.jpg'})
    banner_id = response.get_json()['banner']['id']

    assert [b['title'] for b in admin_client.get('/api/home').get_json()['banners']] == ['Sale']
    admin_client.put(f'/api/admin/banners/{banner_id}', json={'is_active': False})
    assert admin_client.get('/api/home').get_json()['banners'] == []
    assert admin_client.delete(f'/api/admin/banners/{banner_id}').status_code == 200
