"""
Pytest configuration and fixtures.
Provides test database, client, and common test utilities.
"""

import os

# Settings are read at import time; pin them before importing the app.
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("DISABLE_BOOTSTRAP_USERS", "true")

from typing import Callable, Generator  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, SQLModel, create_engine  # noqa: E402
from sqlmodel.pool import StaticPool  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.config import settings  # noqa: E402
from app.db.session import get_session  # noqa: E402
from app.main import app  # noqa: E402
from app.models.user import Role, User  # noqa: E402
from app.services.user_service import UserService  # noqa: E402

DEFAULT_PASSWORD = "Str0ng!Pass"


@pytest.fixture(name="session")
def session_fixture() -> Generator[Session, None, None]:
    """
    Create a test database session.
    Uses an in-memory SQLite database for fast tests.
    """
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)

    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session) -> Generator[TestClient, None, None]:
    """
    Create a test client with dependency overrides.
    """

    def get_session_override() -> Generator[Session, None, None]:
        yield session

    app.dependency_overrides[get_session] = get_session_override

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(name="user_service")
def user_service_fixture(session: Session) -> UserService:
    return UserService(session)


@pytest.fixture(name="make_user")
def make_user_fixture(user_service: UserService) -> Callable[..., User]:
    """
    Factory for accounts in any role. All use ``DEFAULT_PASSWORD``.
    """

    def _make_user(email: str, role: Role = Role.GUEST, first_name: str = "Test") -> User:
        return user_service.create_user(
            email=email,
            first_name=first_name,
            last_name=role.value.title(),
            password=DEFAULT_PASSWORD,
            role=role,
        )

    return _make_user


@pytest.fixture(name="guest")
def guest_fixture(make_user: Callable[..., User]) -> User:
    return make_user("guest@example.com", Role.GUEST)


@pytest.fixture(name="client_user")
def client_user_fixture(make_user: Callable[..., User]) -> User:
    return make_user("client@example.com", Role.CLIENT)


@pytest.fixture(name="employee")
def employee_fixture(make_user: Callable[..., User]) -> User:
    return make_user("employee@example.com", Role.EMPLOYEE)


@pytest.fixture(name="admin")
def admin_fixture(make_user: Callable[..., User]) -> User:
    return make_user("admin@example.com", Role.ADMIN)


def login(client: TestClient, email: str, password: str = DEFAULT_PASSWORD) -> str:
    """Log in through the API and return the bearer token."""
    response = client.post(
        f"{settings.API_V1_PREFIX}/auth/login",
        data={"username": email, "password": password},
    )
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


def auth_headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(name="guest_token")
def guest_token_fixture(client: TestClient, guest: User) -> str:
    return login(client, guest.email)


@pytest.fixture(name="employee_token")
def employee_token_fixture(client: TestClient, employee: User) -> str:
    return login(client, employee.email)


@pytest.fixture(name="admin_token")
def admin_token_fixture(client: TestClient, admin: User) -> str:
    return login(client, admin.email)


@pytest.fixture(name="application_data")
def application_data_fixture() -> dict:
    """A complete upgrade application that passes every field rule."""
    return {
        "phone_number": "+14155550123",
        "address": "1 Market Street, San Francisco, CA",
        "occupation": "Engineer",
        "annual_income": 120000.0,
        "investment_goals": "Long-term retirement savings and growth",
        "risk_tolerance": "MODERATE",
        "expected_investment_amount": 25000.0,
        "source_of_funds": "Salary and savings",
        "agree_to_identity_verification": True,
        "accept_terms_and_conditions": True,
    }
