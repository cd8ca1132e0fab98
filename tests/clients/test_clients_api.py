import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from crm.clients.models import Client
from crm.projects.models import Project

pytestmark = pytest.mark.asyncio

CLIENTS_URL = "/api/v1/clients"


async def test_list_clients_requires_token(test_client: AsyncClient):
    response = await test_client.get(CLIENTS_URL)
    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert "error" in response.json()


async def test_create_and_read_client(test_client: AsyncClient, auth_headers_user: dict):
    payload = {"name": "Martin Rénovation", "email": "Martin@Example.com", "phone": "0102030405", "contact_type": "company"}
    response = await test_client.post(CLIENTS_URL, json=payload, headers=auth_headers_user)
    assert response.status_code == status.HTTP_201_CREATED
    data = response.json()
    assert data["message"]
    client_id = data["client"]["id"]
    assert data["client"]["name"] == "Martin Rénovation"
    assert data["client"]["is_active"] is True

    response = await test_client.get(f"{CLIENTS_URL}/{client_id}", headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK
    detail = response.json()
    assert detail["id"] == client_id
    assert detail["projects"] == []
    assert detail["quotes"] == []


async def test_create_client_rejects_unknown_contact_type(test_client: AsyncClient, auth_headers_user: dict):
    response = await test_client.post(
        CLIENTS_URL, json={"name": "X", "contact_type": "alien"}, headers=auth_headers_user
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "error" in response.json()


async def test_duplicate_email_rejected_on_create_and_update(test_client: AsyncClient, auth_headers_user: dict):
    first = await test_client.post(CLIENTS_URL, json={"name": "A", "email": "a@example.com"}, headers=auth_headers_user)
    assert first.status_code == status.HTTP_201_CREATED

    duplicate = await test_client.post(CLIENTS_URL, json={"name": "B", "email": "a@example.com"}, headers=auth_headers_user)
    assert duplicate.status_code == status.HTTP_400_BAD_REQUEST
    assert "a@example.com" in duplicate.json()["error"]

    second = await test_client.post(CLIENTS_URL, json={"name": "C", "email": "c@example.com"}, headers=auth_headers_user)
    second_id = second.json()["client"]["id"]
    response = await test_client.put(
        f"{CLIENTS_URL}/{second_id}", json={"email": "a@example.com"}, headers=auth_headers_user
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    # Conserver son propre email n'est pas un doublon
    response = await test_client.put(
        f"{CLIENTS_URL}/{second_id}", json={"email": "c@example.com", "city": "Lyon"}, headers=auth_headers_user
    )
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["client"]["city"] == "Lyon"


async def test_update_rejects_unknown_fields(test_client: AsyncClient, auth_headers_user: dict, sample_client: Client):
    response = await test_client.put(
        f"{CLIENTS_URL}/{sample_client.id}", json={"is_deleted": True}, headers=auth_headers_user
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_pagination_metadata(test_client: AsyncClient, auth_headers_user: dict, db_session: AsyncSession):
    db_session.add_all([Client(name=f"Client {i:02d}") for i in range(25)])
    await db_session.commit()

    response = await test_client.get(CLIENTS_URL, params={"page": 1, "limit": 10}, headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total"] == 25
    assert data["pages"] == 3
    assert data["page"] == 1
    assert data["limit"] == 10
    assert len(data["clients"]) == 10

    last = await test_client.get(CLIENTS_URL, params={"page": 3, "limit": 10}, headers=auth_headers_user)
    assert len(last.json()["clients"]) == 5


async def test_search_and_active_filters(test_client: AsyncClient, auth_headers_user: dict, db_session: AsyncSession):
    db_session.add_all(
        [
            Client(name="Bernard Toiture", company="Toits & Co"),
            Client(name="Leroy", company="Plomberie Leroy", is_active=False),
        ]
    )
    await db_session.commit()

    response = await test_client.get(CLIENTS_URL, params={"search": "toit"}, headers=auth_headers_user)
    assert [c["name"] for c in response.json()["clients"]] == ["Bernard Toiture"]

    response = await test_client.get(CLIENTS_URL, params={"active": "false"}, headers=auth_headers_user)
    assert [c["name"] for c in response.json()["clients"]] == ["Leroy"]


async def test_delete_client_blocked_by_active_project(
    test_client: AsyncClient, auth_headers_user: dict, sample_project: Project, db_session: AsyncSession
):
    client_id = sample_project.client_id
    response = await test_client.delete(f"{CLIENTS_URL}/{client_id}", headers=auth_headers_user)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "error" in response.json()

    sample_project.status = "completed"
    db_session.add(sample_project)
    await db_session.commit()

    response = await test_client.delete(f"{CLIENTS_URL}/{client_id}", headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK

    response = await test_client.get(f"{CLIENTS_URL}/{client_id}", headers=auth_headers_user)
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_deleted_client_email_can_be_reused(test_client: AsyncClient, auth_headers_user: dict, sample_client: Client):
    response = await test_client.delete(f"{CLIENTS_URL}/{sample_client.id}", headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK

    response = await test_client.post(
        CLIENTS_URL, json={"name": "Nouveau Dupont", "email": sample_client.email}, headers=auth_headers_user
    )
    assert response.status_code == status.HTTP_201_CREATED


async def test_client_stats(test_client: AsyncClient, auth_headers_user: dict, db_session: AsyncSession):
    db_session.add_all(
        [
            Client(name="A", contact_type="company"),
            Client(name="B", contact_type="individual"),
            Client(name="C", contact_type="individual", is_active=False),
        ]
    )
    await db_session.commit()

    response = await test_client.get(f"{CLIENTS_URL}/stats", headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total_clients"] == 3
    assert data["active_clients"] == 2
    assert data["inactive_clients"] == 1
