"""
Pytest fixtures for backend tests.

Provides the test app on an in-memory database, a fresh schema per test,
a store with configured items and equipment, and admin/employee profiles.
"""

import pytest
from app import create_app
from app.extensions import db
from app.models import ROLE_ADMIN, ROLE_EMPLOYEE, Item, Store, User
from app.services import subscription_service


EQUIPMENT = [
    {"id": "freezer1", "label": "Walk-in Freezer"},
    {"id": "fridge1", "label": "Prep Fridge"},
]


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'DEFAULT_TIMEZONE': 'UTC',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()
        subscription_service.hub.clear()

        yield db.session

        # Cleanup after test
        db.session.rollback()
        subscription_service.hub.clear()


@pytest.fixture(scope='function')
def store(db_session):
    """Store "main" with a freezer and a fridge."""
    store = Store(id="main", name="Main Kitchen", is_active=True, temperature_equipment=list(EQUIPMENT))
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def other_store(db_session):
    store = Store(id="annex", name="Annex", is_active=True, temperature_equipment=[])
    db_session.add(store)
    db_session.commit()
    return store


@pytest.fixture(scope='function')
def items(db_session, store):
    """milk (threshold 5), rice (threshold 2), napkins (no threshold)."""
    rows = [
        Item(id="milk", store_id=store.id, name="Milk", category="Dairy", category_order=1,
             default_unit="litre", low_stock_threshold=5, sort_order=10),
        Item(id="rice", store_id=store.id, name="Rice", category="Dry", category_order=2,
             default_unit="kg", low_stock_threshold=2, sort_order=20),
        Item(id="napkins", store_id=store.id, name="Napkins", category="Supplies",
             default_unit="packet", low_stock_threshold=None, sort_order=30),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return {row.id: row for row in rows}


@pytest.fixture(scope='function')
def admin(db_session, store):
    """Admin with no store list: access to every store."""
    user = User(role=ROLE_ADMIN, employee_id="boss", name="Boss", store_ids=[], is_active=True)
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def employee(db_session, store):
    user = User(
        role=ROLE_EMPLOYEE,
        employee_id="emp01",
        name="Sam",
        store_ids=[store.id],
        default_store_id=store.id,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def second_employee(db_session, store):
    user = User(
        role=ROLE_EMPLOYEE,
        employee_id="emp02",
        name="Alex",
        store_ids=[store.id],
        default_store_id=store.id,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    return user


def identity_headers(user) -> dict:
    """Helper to create upstream identity headers."""
    return {'X-User-Id': str(user.id)}


def full_counts(**quantities) -> dict:
    """Entered values for the `items` fixture; unspecified items default to 10."""
    values = {"milk": 10, "rice": 10, "napkins": 10}
    values.update(quantities)
    return {item_id: {"quantity": qty} for item_id, qty in values.items()}
