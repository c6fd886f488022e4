"""
Shared test fixtures for ShopDesk tests

Provides database setup, client creation, and user fixtures
"""
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from shopdesk.main import app
from shopdesk.db.base import Base
from shopdesk.db.session import get_db
from shopdesk.core.settings import get_settings
from shopdesk.core.security import create_access_token, hash_password
from shopdesk.core.limiter import limiter

from tests.factories import reset_sequences

# Disable rate limiting for tests
limiter.enabled = False


# Create in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(engine):
    """Create all tables for testing using SQLAlchemy metadata"""
    from shopdesk.models import (  # noqa: F401
        User, Order, OrderNote, OrderStatusHistory, Shipment, Sequence
    )
    Base.metadata.create_all(bind=engine)


def drop_tables(engine):
    """Drop all tables after testing"""
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db_session():
    """Create a fresh database session for each test"""
    create_tables(engine)
    reset_sequences()

    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        drop_tables(engine)


@pytest.fixture
def settings():
    """Application settings with test overrides applied per test."""
    return get_settings().model_copy()


@pytest.fixture
def client(db_session, settings):
    """Create a test client with database and settings overrides"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    # No context manager: the lifespan hook would try the real database
    test_client = TestClient(app)
    yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def admin_user(db_session):
    """Create an admin user for testing"""
    from shopdesk.models.user import User

    user = User(
        email="admin@example.com",
        password_hash=hash_password("AdminPass123!"),
        first_name="Admin",
        last_name="User",
        account_type="admin",
        status="active",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def operator_user(db_session):
    """Create an operator (staff, not admin) user for testing"""
    from shopdesk.models.user import User

    user = User(
        email="operator@example.com",
        password_hash=hash_password("OperatorPass123!"),
        first_name="Oper",
        last_name="Ator",
        account_type="operator",
        status="active",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def customer_user(db_session):
    """Create a customer user for testing"""
    from shopdesk.models.user import User

    user = User(
        email="customer@example.com",
        password_hash=hash_password("CustomerPass123!"),
        first_name="Customer",
        last_name="User",
        account_type="customer",
        status="active",
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def admin_token(admin_user):
    """Generate an access token for the admin user"""
    return create_access_token(admin_user.id)


@pytest.fixture
def customer_token(customer_user):
    """Generate an access token for the customer user"""
    return create_access_token(customer_user.id)


@pytest.fixture
def admin_headers(admin_token):
    """Return authorization headers for admin user"""
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def operator_headers(operator_user):
    """Return authorization headers for operator user"""
    return {"Authorization": f"Bearer {create_access_token(operator_user.id)}"}


@pytest.fixture
def customer_headers(customer_token):
    """Return authorization headers for customer user"""
    return {"Authorization": f"Bearer {customer_token}"}
