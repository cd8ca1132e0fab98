import pytest
from fastapi import status
from httpx import AsyncClient

from crm.auth.security import create_access_token
from crm.users.models import User

pytestmark = pytest.mark.asyncio

AUTH_URL = "/api/v1/auth"


async def login(test_client: AsyncClient, email: str, password: str):
    return await test_client.post(f"{AUTH_URL}/login", json={"email": email, "password": password})


async def test_register_creates_standard_user(test_client: AsyncClient):
    payload = {"email": "nouveau@example.com", "password": "motdepasse", "first_name": "Luc", "role": "admin"}
    response = await test_client.post(f"{AUTH_URL}/register", json=payload)

    assert response.status_code == status.HTTP_201_CREATED
    user = response.json()["user"]
    assert user["email"] == "nouveau@example.com"
    assert user["role"] == "user"
    assert user["is_active"] is True
    assert "password_hash" not in user


async def test_register_rejects_duplicate_and_invalid(test_client: AsyncClient, test_user: User):
    response = await test_client.post(f"{AUTH_URL}/register", json={"email": test_user.email, "password": "motdepasse"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "error" in response.json()

    response = await test_client.post(f"{AUTH_URL}/register", json={"email": "pas-un-email", "password": "motdepasse"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = await test_client.post(f"{AUTH_URL}/register", json={"email": "court@example.com", "password": "abc"})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_login_success(test_client: AsyncClient, test_user: User):
    response = await login(test_client, "user@example.com", "userpassword")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["user"]["id"] == test_user.id
    assert data["user"]["last_login_at"] is not None


async def test_login_failures(test_client: AsyncClient, test_user: User, inactive_user: User):
    response = await login(test_client, "user@example.com", "mauvais")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    response = await login(test_client, "inconnu@example.com", "userpassword")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    response = await login(test_client, "inactive@example.com", "inactivepassword")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


async def test_token_is_required(test_client: AsyncClient):
    response = await test_client.get(f"{AUTH_URL}/profile")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert "error" in response.json()

    response = await test_client.get(f"{AUTH_URL}/profile", headers={"Authorization": "Bearer pas-un-token"})
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


async def test_token_of_inactive_user_is_rejected(test_client: AsyncClient, inactive_user: User):
    token = create_access_token(user_id=inactive_user.id, email=inactive_user.email, role=inactive_user.role)
    headers = {"Authorization": f"Bearer {token}"}

    response = await test_client.get(f"{AUTH_URL}/verify", headers=headers)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


async def test_profile_and_verify(test_client: AsyncClient, test_user: User, auth_headers_user: dict):
    response = await test_client.get(f"{AUTH_URL}/profile", headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["email"] == test_user.email

    response = await test_client.get(f"{AUTH_URL}/verify", headers=auth_headers_user)
    assert response.json() == {"valid": True, "user_id": test_user.id, "email": test_user.email, "role": "user"}

    response = await test_client.put(f"{AUTH_URL}/profile", json={"first_name": "Jeanne"}, headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["user"]["first_name"] == "Jeanne"


async def test_profile_email_must_stay_unique(
    test_client: AsyncClient, auth_headers_user: dict, admin_user: User
):
    response = await test_client.put(f"{AUTH_URL}/profile", json={"email": admin_user.email}, headers=auth_headers_user)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_change_password(test_client: AsyncClient, auth_headers_user: dict):
    url = f"{AUTH_URL}/change-password"
    response = await test_client.post(
        url, json={"current_password": "mauvais", "new_password": "nouveaumdp"}, headers=auth_headers_user
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = await test_client.post(
        url, json={"current_password": "userpassword", "new_password": "nouveaumdp"}, headers=auth_headers_user
    )
    assert response.status_code == status.HTTP_200_OK

    assert (await login(test_client, "user@example.com", "userpassword")).status_code == status.HTTP_401_UNAUTHORIZED
    assert (await login(test_client, "user@example.com", "nouveaumdp")).status_code == status.HTTP_200_OK


async def test_logout(test_client: AsyncClient):
    response = await test_client.post(f"{AUTH_URL}/logout")
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["message"]
