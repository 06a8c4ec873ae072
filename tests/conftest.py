import os

import pytest

os.environ['DATABASE_URL'] = 'sqlite://'
os.environ['SEED_SAMPLE_DATA'] = '0'
os.environ['SECRET_KEY'] = 'test-secret'
os.environ['ORDER_RETRY_DELAY'] = '0'
os.environ['ORDER_API_URL'] = ''

from app import app as flask_app, data_cache  # noqa: E402
from form_schema import FormSchema  # noqa: E402
from models import AdminUser, Category, Product, db  # noqa: E402

ADMIN_EMAIL = 'admin@test.local'
ADMIN_PASSWORD = 'secret-pass'

GIFT_SCHEMA = {'fields': [
    {'id': 'engraving_text', 'label': 'Engraving', 'type': 'text', 'required': False},
    {'id': 'wrap', 'label': 'Gift wrap', 'type': 'radio', 'required': True, 'options': ['yes', 'no']},
]}


@pytest.fixture
def app():
    flask_app.config.update(TESTING=True, ORDER_CLIENT=None, ORDER_API_URL='')
    with flask_app.app_context():
        db.drop_all()
        db.create_all()
        data_cache.clear()
        yield flask_app
        db.session.remove()
    data_cache.clear()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def catalog(app):
    """Electronics > {Phones, Laptops}, Gifts (with an options form), and a few products"""
    electronics = Category(name='Electronics', slug='electronics')
    gifts = Category(name='Gifts', slug='gifts')
    gifts.schema = FormSchema.from_json(GIFT_SCHEMA)
    db.session.add_all([electronics, gifts])
    db.session.commit()

    phones = Category(name='Phones', slug='phones', parent_id=electronics.id)
    laptops = Category(name='Laptops', slug='laptops', parent_id=electronics.id)
    db.session.add_all([phones, laptops])
    db.session.commit()

    phone = Product(name='Phone X', price=10, stock=5, category_id=phones.id, description='A phone')
    laptop = Product(name='Laptop Pro', price=100, stock=2, category_id=laptops.id, description='A laptop')
    mug = Product(name='Engraved mug', price=5, stock=10, category_id=gifts.id, description='A mug')
    hidden = Product(name='Hidden', price=1, stock=1, category_id=phones.id, is_active=False)
    db.session.add_all([phone, laptop, mug, hidden])
    db.session.commit()

    return {
        'electronics': electronics.id,
        'gifts': gifts.id,
        'phones': phones.id,
        'laptops': laptops.id,
        'phone': phone.id,
        'laptop': laptop.id,
        'mug': mug.id,
        'hidden': hidden.id,
    }


@pytest.fixture
def admin_client(client):
    admin = AdminUser(name='Admin', email=ADMIN_EMAIL)
    admin.set_password(ADMIN_PASSWORD)
    db.session.add(admin)
    db.session.commit()
    response = client.post('/api/admin/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})
    assert response.status_code == 200
    return client
