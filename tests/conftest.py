"""
Shared test fixtures: SQLite test database, test client, auth helpers, sample catalog.
"""

import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set JWT_SECRET before importing app modules
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["SEED_DEMO_CATALOG"] = "false"

from order_builder import models
from order_builder.auth import create_access_token
from order_builder.database import Base, get_db
from order_builder.main import app
from order_builder.schemas import Product


TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def setup_database():
    """Create all tables before each test, drop after."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client():
    """FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


def _headers(*permissions, user_id="user-1"):
    token = create_access_token(user_id, permissions)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers():
    """Operator allowed to create both orders and estimates."""
    return _headers("invoices:create", "estimates:create")


@pytest.fixture
def estimate_only_headers():
    """Operator who may only raise estimates."""
    return _headers("estimates:create")


@pytest.fixture
def other_operator_headers():
    """A second operator with full rights, who did not start the session."""
    return _headers("invoices:create", "estimates:create", user_id="user-2")


@pytest.fixture
def sample_catalog():
    """Three-product catalog in a fixed order."""
    return [
        Product(id="p-a", name="Product A", unit_price=100.0, available_qty=10, category="Electronics"),
        Product(id="p-b", name="Product B", unit_price=50.0, available_qty=5, category="Electronics"),
        Product(id="p-c", name="Product C", unit_price=25.0, available_qty=0, category="Clothing"),
    ]


@pytest.fixture
def seeded_catalog(db):
    """Insert the sample catalog plus two parties into the test database."""
    electronics = models.Category(name="Electronics")
    clothing = models.Category(name="Clothing")
    db.add_all([electronics, clothing])
    db.flush()
    db.add_all([
        models.Product(id="p-a", product_name="Product A", price=100.0, qty=10, category_id=electronics.id),
        models.Product(id="p-b", product_name="Product B", price=50.0, qty=5, category_id=electronics.id),
        models.Product(id="p-c", product_name="Product C", price=25.0, qty=0, category_id=clothing.id),
        models.Party(id="party-1", company_name="Acme Traders"),
        models.Party(id="party-2", company_name="Blue Mart"),
    ])
    db.commit()
