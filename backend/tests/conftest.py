"""
Pytest fixtures for AgroKasir backend tests.

The database is a real SQLite file: invoice numbers are allocated on a
separate connection, which an in-memory database would not share.
"""

import pytest

from agrokasir import create_app
from agrokasir.extensions import db
from agrokasir.models import Customer, User
from agrokasir.permissions import ROLE_ADMIN, ROLE_VIEWER
from agrokasir.services.auth_service import hash_password
from agrokasir.services.token_service import issue_token

TEST_PASSWORD = "Password123!"


@pytest.fixture(scope='session')
def app(tmp_path_factory):
    """Create application for testing."""
    db_path = tmp_path_factory.mktemp("db") / "agrokasir-test.sqlite3"
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': f'sqlite:///{db_path}',
        'SQLALCHEMY_ENGINE_OPTIONS': {'connect_args': {'timeout': 30}},
        'JWT_SECRET': 'test-secret',
        'LOG_LEVEL': 'WARNING',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Empty every table before the test."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()
    db.session.remove()


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is slow on purpose; hash the shared test password once."""
    return hash_password(TEST_PASSWORD)


def _make_user(session, password_hash, username, role, name=None):
    user = User(
        username=username,
        name=name or username.title(),
        password_hash=password_hash,
        role=role,
        is_active=True,
    )
    session.add(user)
    session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session, password_hash):
    return _make_user(db_session, password_hash, "admin", ROLE_ADMIN, name="Administrator")


@pytest.fixture(scope='function')
def viewer_user(db_session, password_hash):
    return _make_user(db_session, password_hash, "viewer", ROLE_VIEWER)


@pytest.fixture(scope='function')
def admin_headers(app, admin_user):
    return {"Authorization": f"Bearer {issue_token(admin_user)}"}


@pytest.fixture(scope='function')
def viewer_headers(app, viewer_user):
    return {"Authorization": f"Bearer {issue_token(viewer_user)}"}


@pytest.fixture(scope='function')
def make_product(db_session):
    """
    Factory for products. stock is booked through the ledger as opening
    stock so the counter and the movements agree.
    """
    from agrokasir.services.products_service import create_product

    def _make(name="Urea 50kg", sell_price=10000, cost_price=8000, stock=10,
              category="Pupuk", unit="sak", min_stock=5):
        return create_product(patch={
            "name": name,
            "category": category,
            "unit": unit,
            "cost_price": cost_price,
            "sell_price": sell_price,
            "stock_qty": stock,
            "min_stock": min_stock,
        })

    return _make


@pytest.fixture(scope='function')
def make_customer(db_session):
    def _make(name="Pak Budi", phone="08123456789"):
        customer = Customer(name=name, phone=phone)
        db_session.add(customer)
        db_session.commit()
        return customer

    return _make


def movement_count(product_id=None):
    from agrokasir.models import StockMovement
    query = db.session.query(StockMovement)
    if product_id is not None:
        query = query.filter_by(product_id=product_id)
    return query.count()


def reload(model, obj_id):
    """Fresh copy of a row, bypassing the identity map."""
    db.session.expire_all()
    return db.session.get(model, obj_id)

