from decimal import Decimal

import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from crm.materials.models import Material, ProjectMaterial
from crm.projects.models import Project

pytestmark = pytest.mark.asyncio

MATERIALS_URL = "/api/v1/materials"


async def test_create_material(test_client: AsyncClient, auth_headers_user: dict):
    payload = {
        "name": "Parpaing 20",
        "category": "Maçonnerie",
        "unit": "pièce",
        "unit_price": "1.20",
        "stock": "500",
        "min_stock": "100",
        "sku": "PAR-20",
    }
    response = await test_client.post(MATERIALS_URL, json=payload, headers=auth_headers_user)
    assert response.status_code == status.HTTP_201_CREATED
    material = response.json()["material"]
    assert material["sku"] == "PAR-20"
    assert material["is_low_stock"] is False

    duplicate = await test_client.post(MATERIALS_URL, json=payload, headers=auth_headers_user)
    assert duplicate.status_code == status.HTTP_400_BAD_REQUEST


async def test_create_material_rejects_negative_price(test_client: AsyncClient, auth_headers_user: dict):
    payload = {"name": "X", "category": "Y", "unit": "u", "unit_price": "-1"}
    response = await test_client.post(MATERIALS_URL, json=payload, headers=auth_headers_user)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_stock_in_and_out(test_client: AsyncClient, auth_headers_user: dict, sample_material: Material):
    url = f"{MATERIALS_URL}/{sample_material.id}/stock"

    response = await test_client.patch(url, json={"quantity": "5", "type": "in", "reason": "Livraison"}, headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK
    assert Decimal(response.json()["material"]["stock"]) == Decimal("15")

    response = await test_client.patch(url, json={"quantity": "12", "type": "out"}, headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK
    material = response.json()["material"]
    assert Decimal(material["stock"]) == Decimal("3")
    assert material["is_low_stock"] is True

    response = await test_client.get(f"{MATERIALS_URL}/{sample_material.id}/movements", headers=auth_headers_user)
    movements = response.json()["movements"]
    assert [m["movement_type"] for m in movements] == ["out", "in"]
    assert Decimal(movements[0]["stock_after"]) == Decimal("3")
    assert movements[1]["reason"] == "Livraison"


async def test_stock_out_beyond_available_is_rejected(
    test_client: AsyncClient, auth_headers_user: dict, sample_material: Material
):
    url = f"{MATERIALS_URL}/{sample_material.id}/stock"
    response = await test_client.patch(url, json={"quantity": "10.01", "type": "out"}, headers=auth_headers_user)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "error" in response.json()

    response = await test_client.get(f"{MATERIALS_URL}/{sample_material.id}", headers=auth_headers_user)
    assert Decimal(response.json()["stock"]) == Decimal("10")

    response = await test_client.get(f"{MATERIALS_URL}/{sample_material.id}/movements", headers=auth_headers_user)
    assert response.json()["movements"] == []


async def test_stock_adjustment_validation(test_client: AsyncClient, auth_headers_user: dict, sample_material: Material):
    url = f"{MATERIALS_URL}/{sample_material.id}/stock"
    for body in ({"quantity": "0", "type": "in"}, {"quantity": "1", "type": "transfer"}):
        response = await test_client.patch(url, json=body, headers=auth_headers_user)
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    response = await test_client.patch(f"{MATERIALS_URL}/9999/stock", json={"quantity": "1", "type": "in"}, headers=auth_headers_user)
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_low_stock_and_categories(test_client: AsyncClient, auth_headers_user: dict, db_session: AsyncSession):
    db_session.add_all(
        [
            Material(name="Vis", category="Quincaillerie", unit="boîte", unit_price=Decimal("5"), stock=Decimal("2"), min_stock=Decimal("5")),
            Material(name="Planche", category="Bois", unit="m", unit_price=Decimal("12"), stock=Decimal("40"), min_stock=Decimal("10")),
            Material(name="Clous", category="Quincaillerie", unit="boîte", unit_price=Decimal("3"), stock=Decimal("0"), min_stock=Decimal("1"), is_active=False),
        ]
    )
    await db_session.commit()

    response = await test_client.get(f"{MATERIALS_URL}/low-stock", headers=auth_headers_user)
    data = response.json()
    assert data["count"] == 1
    assert data["materials"][0]["name"] == "Vis"

    response = await test_client.get(f"{MATERIALS_URL}/categories", headers=auth_headers_user)
    assert response.json()["categories"] == ["Bois", "Quincaillerie"]

    response = await test_client.get(f"{MATERIALS_URL}/stats", headers=auth_headers_user)
    stats = response.json()
    assert stats["total_materials"] == 3
    assert stats["active_materials"] == 2
    assert Decimal(stats["total_value"]) == Decimal("490.00")


async def test_delete_material_in_use_is_refused(
    test_client: AsyncClient,
    auth_headers_user: dict,
    db_session: AsyncSession,
    sample_material: Material,
    sample_project: Project,
):
    db_session.add(
        ProjectMaterial(
            project_id=sample_project.id,
            material_id=sample_material.id,
            quantity_planned=Decimal("3"),
            unit_price=Decimal("8.50"),
            total_cost=Decimal("25.50"),
        )
    )
    await db_session.commit()

    response = await test_client.delete(f"{MATERIALS_URL}/{sample_material.id}", headers=auth_headers_user)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_delete_unused_material(test_client: AsyncClient, auth_headers_user: dict, sample_material: Material):
    response = await test_client.delete(f"{MATERIALS_URL}/{sample_material.id}", headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK
    response = await test_client.get(f"{MATERIALS_URL}/{sample_material.id}", headers=auth_headers_user)
    assert response.status_code == status.HTTP_404_NOT_FOUND
