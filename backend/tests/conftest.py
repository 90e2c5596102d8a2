"""
Pytest fixtures for storefront backend tests.

Provides an in-memory SQLite app, per-test table cleanup, in-memory
repository/inventory backends, and signed-in test clients.
"""

import pytest

from storefront import create_app
from storefront.extensions import db
from storefront.persistence import MemoryRecordStore
from storefront.services import catalog_service
from storefront.services.inventory_service import MemoryInventoryStore, default_inventory
from storefront.services.order_repository import OrderRepository


ADMIN_EMAIL = "ops@shop.test"
CUSTOMER_EMAIL = "jane@shop.test"
OTHER_CUSTOMER_EMAIL = "sam@shop.test"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ADMIN_EMAILS': [ADMIN_EMAIL],
        'SESSION_LOGIN_ENABLED': True,
        'AUTO_CONFIRM_ORDERS_DEFAULT': True,
    })

    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.drop_all()


@pytest.fixture(scope='function')
def clean_db(app):
    """Clear all data but keep schema."""
    with app.app_context():
        for table in reversed(db.metadata.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()


@pytest.fixture(scope='function')
def db_session(app, clean_db):
    """Fresh database with an app context held for the test."""
    with app.app_context():
        yield db.session
        db.session.rollback()


@pytest.fixture(scope='function')
def catalog(app, clean_db):
    """Two products: a tee with 3 in stock and a mug with 10."""
    with app.app_context():
        inventory = default_inventory()
        catalog_service.upsert_product(
            product_id="TEE-1", name="Cotton Tee", price=100, stock=3, category="apparel", inventory=inventory,
        )
        catalog_service.upsert_product(
            product_id="MUG-1", name="Stoneware Mug", price=50, stock=10, category="home", inventory=inventory,
        )
    return {"tee": "TEE-1", "mug": "MUG-1"}


@pytest.fixture
def memory_store():
    return MemoryRecordStore()


@pytest.fixture
def memory_repo(memory_store):
    return OrderRepository(memory_store)


@pytest.fixture
def memory_inventory():
    return MemoryInventoryStore({"TEE-1": 3, "MUG-1": 10})


def _signed_in_client(app, email):
    client = app.test_client()
    resp = client.post("/api/session", json={"email": email})
    assert resp.status_code == 200
    return client


@pytest.fixture(scope='function')
def client(app):
    """Anonymous test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def customer_client(app, clean_db):
    return _signed_in_client(app, CUSTOMER_EMAIL)


@pytest.fixture(scope='function')
def other_customer_client(app, clean_db):
    return _signed_in_client(app, OTHER_CUSTOMER_EMAIL)


@pytest.fixture(scope='function')
def admin_client(app, clean_db):
    return _signed_in_client(app, ADMIN_EMAIL)
