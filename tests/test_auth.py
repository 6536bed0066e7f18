"""
Tests for authentication endpoints.
"""

from fastapi.testclient import TestClient

from app.core.config import settings
from app.models.user import User
from conftest import DEFAULT_PASSWORD


def test_register_user(client: TestClient) -> None:
    """Test user registration."""
    response = client.post(
        f"{settings.API_V1_PREFIX}/auth/register",
        json={
            "email": "newuser@example.com",
            "password": "Str0ng!Pass",
            "first_name": "New",
            "last_name": "User",
        },
    )
    assert response.status_code == 201
    data = response.json()
    assert data["email"] == "newuser@example.com"
    assert data["full_name"] == "New User"
    assert data["role"] == "GUEST"
    assert "id" in data
    assert "hashed_password" not in data


def test_register_duplicate_email(client: TestClient, guest: User) -> None:
    """Test that duplicate email registration fails."""
    response = client.post(
        f"{settings.API_V1_PREFIX}/auth/register",
        json={
            "email": guest.email,
            "password": "Str0ng!Pass",
            "first_name": "Duplicate",
            "last_name": "User",
        },
    )
    assert response.status_code == 400
    assert "already registered" in response.json()["detail"].lower()


def test_register_weak_password_lists_violations(client: TestClient) -> None:
    """All policy violations come back together."""
    response = client.post(
        f"{settings.API_V1_PREFIX}/auth/register",
        json={
            "email": "weak@example.com",
            "password": "weak",
            "first_name": "Weak",
            "last_name": "User",
        },
    )
    assert response.status_code == 400
    data = response.json()
    assert data["code"] == "VALIDATION_ERROR"
    assert "Password must be at least 8 characters long" in data["errors"]
    assert "Password must contain at least one special character" in data["errors"]


def test_login_success(client: TestClient, guest: User) -> None:
    """Test successful login."""
    response = client.post(
        f"{settings.API_V1_PREFIX}/auth/login",
        data={
            "username": guest.email,
            "password": DEFAULT_PASSWORD,
        },
    )
    assert response.status_code == 200
    data = response.json()
    assert "access_token" in data
    assert data["token_type"] == "bearer"


def test_login_wrong_password(client: TestClient, guest: User) -> None:
    """Test login with wrong password."""
    response = client.post(
        f"{settings.API_V1_PREFIX}/auth/login",
        data={
            "username": guest.email,
            "password": "Wr0ng!Password",
        },
    )
    assert response.status_code == 401


def test_login_nonexistent_user(client: TestClient) -> None:
    """Test login with non-existent user."""
    response = client.post(
        f"{settings.API_V1_PREFIX}/auth/login",
        data={
            "username": "nonexistent@example.com",
            "password": DEFAULT_PASSWORD,
        },
    )
    assert response.status_code == 401


def test_invalid_token_rejected(client: TestClient) -> None:
    response = client.get(
        f"{settings.API_V1_PREFIX}/users/me",
        headers={"Authorization": "Bearer not-a-token"},
    )
    assert response.status_code == 401
