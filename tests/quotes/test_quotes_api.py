import re
from decimal import Decimal

import pytest
from fastapi import status
from httpx import AsyncClient

from crm.clients.models import Client
from crm.projects.models import Project

pytestmark = pytest.mark.asyncio

QUOTES_URL = "/api/v1/quotes"
QUOTE_NUMBER = re.compile(r"^COT-\d{6}-\d{4}$")

ITEMS = [
    {"description": "Maçonnerie", "quantity": "2", "unit": "jour", "unit_price": "100.00"},
    {"description": "Fournitures", "quantity": "1", "unit_price": "50.00"},
]


def assert_totals_consistent(quote: dict):
    subtotal = Decimal(quote["subtotal"])
    expected = subtotal + subtotal * Decimal(quote["tax_rate"]) / 100 - Decimal(quote["discount"])
    assert Decimal(quote["total"]) == expected.quantize(Decimal("0.01"))


async def create_quote(test_client: AsyncClient, headers: dict, client_id: int, **overrides) -> dict:
    payload = {"client_id": client_id, "title": "Travaux", "tax_rate": "20", "discount": "10", "items": ITEMS}
    payload.update(overrides)
    response = await test_client.post(QUOTES_URL, json=payload, headers=headers)
    assert response.status_code == status.HTTP_201_CREATED, response.text
    return response.json()["quote"]


async def test_create_quote_computes_totals(test_client: AsyncClient, auth_headers_user: dict, sample_client: Client):
    quote = await create_quote(test_client, auth_headers_user, sample_client.id)

    assert QUOTE_NUMBER.match(quote["quote_number"])
    assert quote["status"] == "draft"
    assert Decimal(quote["subtotal"]) == Decimal("250.00")
    assert Decimal(quote["tax_amount"]) == Decimal("50.00")
    assert Decimal(quote["total"]) == Decimal("290.00")
    assert_totals_consistent(quote)
    assert [item["position"] for item in quote["items"]] == [0, 1]
    assert Decimal(quote["items"][0]["total"]) == Decimal("200.00")
    assert quote["items"][1]["unit"] == "pcs"
    assert quote["client"]["id"] == sample_client.id


async def test_quote_numbers_increase(test_client: AsyncClient, auth_headers_user: dict, sample_client: Client):
    first = await create_quote(test_client, auth_headers_user, sample_client.id)
    second = await create_quote(test_client, auth_headers_user, sample_client.id)
    assert second["quote_number"] > first["quote_number"]


async def test_create_quote_validation(test_client: AsyncClient, auth_headers_user: dict, sample_client: Client):
    response = await test_client.post(
        QUOTES_URL, json={"client_id": sample_client.id, "title": "Vide", "items": []}, headers=auth_headers_user
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = await test_client.post(
        QUOTES_URL, json={"client_id": 999, "title": "Inconnu", "items": ITEMS}, headers=auth_headers_user
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    bad_item = [{"description": "Négatif", "quantity": "-1", "unit_price": "10"}]
    response = await test_client.post(
        QUOTES_URL, json={"client_id": sample_client.id, "title": "Négatif", "items": bad_item}, headers=auth_headers_user
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_quote_project_must_belong_to_client(
    test_client: AsyncClient, auth_headers_user: dict, sample_project: Project, db_session
):
    other = Client(name="Autre client")
    db_session.add(other)
    await db_session.commit()

    response = await test_client.post(
        QUOTES_URL,
        json={"client_id": other.id, "project_id": sample_project.id, "title": "Mauvais projet", "items": ITEMS},
        headers=auth_headers_user,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    quote = await create_quote(test_client, auth_headers_user, sample_project.client_id, project_id=sample_project.id)
    assert quote["project"]["id"] == sample_project.id


async def test_update_recomputes_totals(test_client: AsyncClient, auth_headers_user: dict, sample_client: Client):
    quote = await create_quote(test_client, auth_headers_user, sample_client.id)
    url = f"{QUOTES_URL}/{quote['id']}"

    response = await test_client.put(url, json={"tax_rate": "10", "discount": "0"}, headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK
    updated = response.json()["quote"]
    assert Decimal(updated["total"]) == Decimal("275.00")
    assert_totals_consistent(updated)

    new_items = [{"description": "Forfait", "quantity": "3", "unit_price": "33.33"}]
    response = await test_client.put(url, json={"items": new_items}, headers=auth_headers_user)
    updated = response.json()["quote"]
    assert len(updated["items"]) == 1
    assert Decimal(updated["subtotal"]) == Decimal("99.99")
    assert Decimal(updated["total"]) == Decimal("109.99")
    assert_totals_consistent(updated)

    response = await test_client.put(url, json={"title": "Nouveau titre"}, headers=auth_headers_user)
    assert response.json()["quote"]["total"] == updated["total"]


async def test_status_transitions(test_client: AsyncClient, auth_headers_user: dict, sample_client: Client):
    quote = await create_quote(test_client, auth_headers_user, sample_client.id)
    url = f"{QUOTES_URL}/{quote['id']}/status"

    response = await test_client.patch(url, json={"status": "accepted"}, headers=auth_headers_user)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    for target in ("sent", "accepted"):
        response = await test_client.patch(url, json={"status": target}, headers=auth_headers_user)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["quote"]["status"] == target

    response = await test_client.patch(url, json={"status": "archived"}, headers=auth_headers_user)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_accepted_quote_is_frozen(test_client: AsyncClient, auth_headers_user: dict, sample_client: Client):
    quote = await create_quote(test_client, auth_headers_user, sample_client.id)
    url = f"{QUOTES_URL}/{quote['id']}"
    await test_client.patch(f"{url}/status", json={"status": "sent"}, headers=auth_headers_user)
    await test_client.patch(f"{url}/status", json={"status": "accepted"}, headers=auth_headers_user)

    response = await test_client.put(url, json={"discount": "100"}, headers=auth_headers_user)
    assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = await test_client.put(url, json={"notes": "Signé"}, headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK

    response = await test_client.delete(url, headers=auth_headers_user)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_delete_and_list(test_client: AsyncClient, auth_headers_user: dict, sample_client: Client):
    first = await create_quote(test_client, auth_headers_user, sample_client.id, title="Toiture")
    await create_quote(test_client, auth_headers_user, sample_client.id, title="Façade")

    response = await test_client.get(QUOTES_URL, params={"search": "toit"}, headers=auth_headers_user)
    assert [q["title"] for q in response.json()["quotes"]] == ["Toiture"]

    response = await test_client.delete(f"{QUOTES_URL}/{first['id']}", headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK

    response = await test_client.get(QUOTES_URL, headers=auth_headers_user)
    data = response.json()
    assert data["total"] == 1
    assert data["quotes"][0]["title"] == "Façade"


async def test_quote_stats(test_client: AsyncClient, auth_headers_user: dict, sample_client: Client):
    quote = await create_quote(test_client, auth_headers_user, sample_client.id)
    await create_quote(test_client, auth_headers_user, sample_client.id)
    url = f"{QUOTES_URL}/{quote['id']}/status"
    await test_client.patch(url, json={"status": "sent"}, headers=auth_headers_user)
    await test_client.patch(url, json={"status": "accepted"}, headers=auth_headers_user)

    response = await test_client.get(f"{QUOTES_URL}/stats", headers=auth_headers_user)
    stats = response.json()
    assert stats["total_quotes"] == 2
    assert stats["accepted_quotes"] == 1
    assert stats["draft_quotes"] == 1
    assert stats["conversion_rate"] == 50.0
    assert Decimal(stats["accepted_value"]) == Decimal("290.00")
    assert stats["this_month_quotes"] == 2
