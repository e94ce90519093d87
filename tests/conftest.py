import os
from decimal import Decimal
from typing import Generator

# Keep the app's own engine off disk and tokens signed with a test key
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "storefront-test-secret-0123456789abcdef")

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from storefront import crud, schemas
from storefront.auth import create_access_token
from storefront.db import Base, get_db
from storefront.deps import get_gateway
from storefront.enums import Role
from storefront.main import app
from storefront.payments import PaymentError, payment_result
from storefront.seed import seed


class FakeGateway:
    """Stands in for Braintree; records every sale it is asked to make."""

    def __init__(self):
        self.approve = True
        self.available = True
        self.sales = []

    def client_token(self) -> str:
        if not self.available:
            raise PaymentError("gateway unreachable")
        return "fake-client-token"

    def sale(self, amount: Decimal, nonce: str) -> dict:
        self.sales.append((amount, nonce))
        if self.approve:
            return payment_result(True, "Payment Success", amount, nonce, transaction_id=f"txn{len(self.sales)}")
        return payment_result(False, "Do Not Honor", amount, nonce, errors={"validationErrors": []})


@pytest.fixture(scope="function")
def db_session() -> Generator:
    # Use in-memory SQLite with a single connection
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine, future=True)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture(scope="function")
def client(db_session, gateway):
    # Override dependencies to use the same session and the fake gateway
    def override_get_db():
        try:
            yield db_session
        finally:
            pass
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    from fastapi.testclient import TestClient
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_user(db, email, name="Daniel", password="secret123", role=Role.SHOPPER):
    data = schemas.RegisterRequest(
        name=name, email=email, password=password,
        phone="91234567", address="1 Computing Drive", answer="Football",
    )
    return crud.create_user(db, data, role=role)


@pytest.fixture
def admin(db_session):
    return make_user(db_session, "root@test.sg", name="Root", role=Role.ADMIN)


@pytest.fixture
def shopper(db_session):
    return make_user(db_session, "shopper@test.com", name="Shopper")


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": create_access_token(admin.id)}


@pytest.fixture
def shopper_headers(shopper):
    return {"Authorization": create_access_token(shopper.id)}


@pytest.fixture
def catalog(db_session):
    """Seeded catalog: products and categories keyed by name."""
    seed(db_session)
    return {
        "products": {p.name: p for p in crud.list_products(db_session, limit=100)},
        "categories": {c.name: c for c in crud.list_categories(db_session)},
    }
