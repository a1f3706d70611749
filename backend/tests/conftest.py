"""
Pytest fixtures for ShopPOS backend tests.

Provides test database setup, catalog/staff fixtures, and test client.
"""

from decimal import Decimal

import pytest
from shoppos import create_app
from shoppos.extensions import db
from shoppos.models import Category, Employee, Product


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'BCRYPT_ROUNDS': 4,
        'REPORT_TIMEZONE': 'UTC',
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

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='function')
def category(db_session):
    category = Category(name="Drinks", color="#3366ff")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def products(db_session, category):
    """Two catalog products: Cola (10.00) and Chips (2.50)."""
    cola = Product(name="Cola", price=Decimal("10.00"), barcode="111", category_id=category.id, stock=20)
    chips = Product(name="Chips", price=Decimal("2.50"), barcode="222", stock=5)
    db_session.add_all([cola, chips])
    db_session.commit()
    return cola, chips


@pytest.fixture(scope='function')
def employee(db_session):
    """Employee with a 10% commission."""
    emp = Employee(name="Sam", phone="555-0100", salary=Decimal("1000.00"), commission=Decimal("10.00"))
    db_session.add(emp)
    db_session.commit()
    return emp

