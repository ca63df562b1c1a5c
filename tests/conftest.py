"""
Shared test fixtures: SQLite test database, test client, auth helpers.
"""

import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

# Set JWT_SECRET before importing app modules
os.environ["JWT_SECRET"] = "test-secret-key-for-testing-only"
os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["OPENROUTER_API_KEY"] = ""

from paintquote.database import Base, get_db
from paintquote.main import app
from paintquote.calculators.types import CompanyDefaults


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
    return TestClient(app)


@pytest.fixture
def db():
    """Direct database session for test setup/assertions."""
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def auth_headers(client):
    """Register a contractor (default rates 3/2/5, markup 45, tax 0) and return auth headers."""
    response = client.post("/api/auth/register", json={
        "email": "test@painter.com",
        "password": "strongpassword123",
        "company_name": "Brush & Roller Co",
    })
    assert response.status_code == 200
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def guest_headers(client):
    response = client.post("/api/auth/guest")
    assert response.status_code == 200
    token = response.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def company_defaults():
    """Rates 3/2/5, markup 20%, tax 8%."""
    return CompanyDefaults(
        walls_rate=3.0,
        ceilings_rate=2.0,
        trim_rate=5.0,
        markup_percentage=20.0,
        tax_rate=8.0,
    )
