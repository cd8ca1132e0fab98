import pytest
from fastapi import status
from httpx import AsyncClient

from crm.users.exceptions import LastAdminException
from crm.users.models import User, UserAdminUpdate
from crm.users.repositories import SQLAlchemyUserRepository
from crm.users.service import UserService

pytestmark = pytest.mark.asyncio

ADMIN_URL = "/api/v1/admin"


async def test_admin_routes_require_admin_role(test_client: AsyncClient, auth_headers_user: dict):
    response = await test_client.get(f"{ADMIN_URL}/users", headers=auth_headers_user)
    assert response.status_code == status.HTTP_403_FORBIDDEN

    response = await test_client.get(f"{ADMIN_URL}/system/info")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


async def test_list_and_filter_users(
    test_client: AsyncClient, auth_headers_admin: dict, test_user: User, inactive_user: User
):
    response = await test_client.get(f"{ADMIN_URL}/users", headers=auth_headers_admin)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total"] == 3
    assert data["pages"] == 1

    response = await test_client.get(f"{ADMIN_URL}/users", params={"active": "false"}, headers=auth_headers_admin)
    assert [u["email"] for u in response.json()["users"]] == [inactive_user.email]

    response = await test_client.get(f"{ADMIN_URL}/users", params={"role": "admin"}, headers=auth_headers_admin)
    assert response.json()["total"] == 1


async def test_read_and_update_user(test_client: AsyncClient, auth_headers_admin: dict, test_user: User):
    url = f"{ADMIN_URL}/users/{test_user.id}"
    response = await test_client.get(url, headers=auth_headers_admin)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["email"] == test_user.email

    response = await test_client.put(url, json={"role": "admin", "last_name": "Durand"}, headers=auth_headers_admin)
    assert response.status_code == status.HTTP_200_OK
    user = response.json()["user"]
    assert user["role"] == "admin"
    assert user["last_name"] == "Durand"

    response = await test_client.put(url, json={"role": "superuser"}, headers=auth_headers_admin)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = await test_client.get(f"{ADMIN_URL}/users/9999", headers=auth_headers_admin)
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_deactivate_and_activate_user(test_client: AsyncClient, auth_headers_admin: dict, test_user: User):
    response = await test_client.patch(f"{ADMIN_URL}/users/{test_user.id}/deactivate", headers=auth_headers_admin)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["user"]["is_active"] is False

    response = await test_client.post(
        "/api/v1/auth/login", json={"email": test_user.email, "password": "userpassword"}
    )
    assert response.status_code == status.HTTP_401_UNAUTHORIZED

    response = await test_client.patch(f"{ADMIN_URL}/users/{test_user.id}/activate", headers=auth_headers_admin)
    assert response.json()["user"]["is_active"] is True


async def test_admin_cannot_modify_own_account(
    test_client: AsyncClient, auth_headers_admin: dict, admin_user: User
):
    response = await test_client.patch(f"{ADMIN_URL}/users/{admin_user.id}/deactivate", headers=auth_headers_admin)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = await test_client.delete(f"{ADMIN_URL}/users/{admin_user.id}", headers=auth_headers_admin)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_last_active_admin_is_protected(db_session, admin_user: User, test_user: User):
    service = UserService(SQLAlchemyUserRepository(db_session))

    with pytest.raises(LastAdminException):
        await service.update_user(admin_user.id, UserAdminUpdate(role="user"), acting_user_id=test_user.id)
    with pytest.raises(LastAdminException):
        await service.delete_user(admin_user.id, acting_user_id=test_user.id)

    await service.update_user(test_user.id, UserAdminUpdate(role="admin"), acting_user_id=admin_user.id)
    demoted = await service.update_user(admin_user.id, UserAdminUpdate(role="user"), acting_user_id=test_user.id)
    assert demoted.role == "user"


async def test_delete_user(test_client: AsyncClient, auth_headers_admin: dict, test_user: User):
    response = await test_client.delete(f"{ADMIN_URL}/users/{test_user.id}", headers=auth_headers_admin)
    assert response.status_code == status.HTTP_200_OK

    response = await test_client.get(f"{ADMIN_URL}/users/{test_user.id}", headers=auth_headers_admin)
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_system_info_and_health(test_client: AsyncClient, auth_headers_admin: dict):
    response = await test_client.get(f"{ADMIN_URL}/system/info", headers=auth_headers_admin)
    assert response.status_code == status.HTTP_200_OK
    info = response.json()
    assert info["database"] == "sqlite"
    assert info["users"] == 1

    response = await test_client.get(f"{ADMIN_URL}/system/health", headers=auth_headers_admin)
    assert response.json()["status"] == "healthy"
