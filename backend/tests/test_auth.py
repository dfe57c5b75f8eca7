"""Tests for the authentication system."""
import pytest
from fastapi import status

from futureminds.auth import AuthService, User
from futureminds.auth.schemas import UserCreate
from futureminds.models import AppRole

from conftest import TEST_PASSWORD, make_user

# Test data
NEW_USER = {
    "email": "newuser@example.com",
    "password": "NewPass123!",
    "display_name": "New User",
    "role": "student",
}


def login(client, email, password=TEST_PASSWORD):
    return client.post(
        "/auth/login",
        data={"username": email, "password": password},
        headers={"content-type": "application/x-www-form-urlencoded"},
    )


def test_register_user(client, db_session):
    """Registration creates the account with profile, role and empty progress."""
    response = client.post("/auth/register", json=NEW_USER)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["email"] == NEW_USER["email"]
    assert data["display_name"] == "New User"
    assert data["roles"] == ["student"]
    assert "hashed_password" not in data

    user = db_session.query(User).filter(User.email == NEW_USER["email"]).one()
    assert user.progress.xp == 0
    assert user.progress.level == 1

    # Duplicate email
    response = client.post("/auth/register", json=NEW_USER)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.parametrize("changes", [
    {"password": "short1A"},
    {"password": "nouppercase1"},
    {"password": "NoDigitsHere"},
    {"role": "admin"},
    {"email": "not-an-email"},
    {"display_name": ""},
])
def test_register_rejects_bad_input(client, changes):
    response = client.post("/auth/register", json={**NEW_USER, **changes})
    assert response.status_code == 422


def test_login(client, student):
    """Test user login and token generation."""
    response = login(client, student.email)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert "access_token" in data
    assert "refresh_token" in data
    assert data["token_type"] == "bearer"

    response = login(client, student.email, "wrongpassword")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_refresh_rotates_and_logout_revokes(client, student):
    """Refreshing swaps the refresh token; revoked tokens stop working."""
    refresh_token = login(client, student.email).json()["refresh_token"]

    response = client.post("/auth/refresh", json={"refresh_token": refresh_token})
    assert response.status_code == status.HTTP_200_OK
    rotated = response.json()["refresh_token"]
    assert rotated != refresh_token

    response = client.post("/auth/refresh", json={"refresh_token": refresh_token})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    response = client.post("/auth/refresh", json={"refresh_token": "invalid_token"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    response = client.post("/auth/logout", json={"refresh_token": rotated})
    assert response.status_code == status.HTTP_200_OK
    response = client.post("/auth/refresh", json={"refresh_token": rotated})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_protected_endpoint(client, student):
    """Test access to protected endpoints."""
    response = client.get("/auth/me")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    token = login(client, student.email).json()["access_token"]
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["email"] == student.email

    response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_role_gate(client, auth_headers, student, educator):
    """Educator-only routes refuse students."""
    response = client.get("/classes", headers=auth_headers(student))
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = client.get("/classes", headers=auth_headers(educator))
    assert response.status_code == status.HTTP_200_OK


def test_admin_passes_every_role_gate(client, db_session, auth_headers):
    admin = make_user(db_session, "admin@example.com", AppRole.admin)
    response = client.get("/classes", headers=auth_headers(admin))
    assert response.status_code == status.HTTP_200_OK


def test_verify_token_round_trip(db_session, student):
    service = AuthService(db_session)
    token_data = service.verify_token(service.access_token_for(student))

    assert token_data.user_id == student.id
    assert token_data.email == student.email
    assert token_data.roles == ["student"]


def test_register_user_service(db_session):
    user = AuthService(db_session).register_user(UserCreate(
        email="parent2@example.com", password="Family123!", display_name="Sam", role=AppRole.parent,
    ))

    assert user.role_names == ["parent"]
    assert user.profile.display_name == "Sam"
    assert user.last_login is None


def test_refresh_token_cannot_be_used_as_bearer(client, student):
    refresh_token = login(client, student.email).json()["refresh_token"]
    response = client.get("/auth/me", headers={"Authorization": f"Bearer {refresh_token}"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
