"""
Pytest configuration and fixtures for the back office

The ``app`` fixture builds a fresh application over a temporary SQLite file
for every test. Unit tests that talk to the database directly use ``ctx``;
API tests go through the authenticated clients and open their own
``app.app_context()`` when they need to inspect rows.
"""
import pytest

from backoffice import create_app
from backoffice import db as _db
from backoffice.data.core.user_info.user import User, ROLE_ADMIN, ROLE_SALES, ROLE_VIEWER

PASSWORDS = {
    'admin': 'admin123456789',
    'sales': 'sales123456789',
    'viewer': 'viewer123456789',
}


@pytest.fixture(scope='function')
def app(tmp_path):
    """Create Flask application for testing"""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': f"sqlite:///{tmp_path / 'backoffice_test.db'}",
        'WTF_CSRF_ENABLED': False,
        'RATELIMIT_ENABLED': False,
        'ENABLE_HTTPS': False,
        'FORCE_HTTPS_REDIRECT': False,
        'SESSION_COOKIE_SECURE': False,
        'REMEMBER_COOKIE_SECURE': False,
        'ADMIN_USER_PASSWORD': PASSWORDS['admin'],
        'STOCK_ADJUST_MAX_RETRIES': 3,
        'QUOTE_DEFAULT_VALIDITY_DAYS': 30,
    })

    with app.app_context():
        _db.create_all()
        for username, role in (('admin', ROLE_ADMIN), ('sales', ROLE_SALES), ('viewer', ROLE_VIEWER)):
            user = User(username=username, email=f'{username}@example.com', role=role)
            user.set_password(PASSWORDS[username])
            _db.session.add(user)
        _db.session.commit()

    yield app

    with app.app_context():
        _db.session.remove()
        _db.drop_all()
        _db.engine.dispose()


@pytest.fixture(scope='function')
def ctx(app):
    """Push an application context for tests that use the session directly"""
    with app.app_context():
        yield app
        _db.session.rollback()
        _db.session.remove()


@pytest.fixture(scope='function')
def admin_id(app):
    with app.app_context():
        return User.query.filter_by(username='admin').one().id


@pytest.fixture(scope='function')
def client(app):
    """Create Flask test client"""
    return app.test_client()


def login_user(client, username='admin', password=None):
    """Helper function to login a user"""
    return client.post('/login', json={
        'username': username,
        'password': password or PASSWORDS[username],
    })


def _logged_in_client(app, username):
    client = app.test_client()
    response = login_user(client, username)
    assert response.status_code == 200, response.get_json()
    return client


@pytest.fixture(scope='function')
def admin_client(app):
    return _logged_in_client(app, 'admin')


@pytest.fixture(scope='function')
def sales_client(app):
    return _logged_in_client(app, 'sales')


@pytest.fixture(scope='function')
def viewer_client(app):
    return _logged_in_client(app, 'viewer')


@pytest.fixture(scope='function')
def make_item(ctx):
    """Factory registering a committed inventory item"""
    from backoffice.buisness.inventory.inventory_manager import InventoryManager

    def _make_item(product_name='Widget', initial_stock=10, reorder_point=5, **extra):
        data = {
            'product_name': product_name,
            'unit': 'unit',
            'purchase_price': 4.0,
            'sale_price': 10.0,
            'initial_stock': initial_stock,
            'reorder_point': reorder_point,
        }
        data.update(extra)
        item = InventoryManager().create_item(data)
        _db.session.commit()
        return item

    return _make_item
