import re
from decimal import Decimal

import pytest
from fastapi import status
from httpx import AsyncClient

from crm.clients.models import Client
from crm.materials.models import Material
from crm.projects.models import Project

pytestmark = pytest.mark.asyncio

PROJECTS_URL = "/api/v1/projects"
PROJECT_CODE = re.compile(r"^PRJ-\d{8}-\d{4}$")


async def test_create_project_generates_code(test_client: AsyncClient, auth_headers_user: dict, sample_client: Client):
    payload = {
        "name": "Rénovation cuisine",
        "client_id": sample_client.id,
        "priority": "high",
        "budget": "15000.00",
        "start_date": "2024-05-01",
        "end_date": "2024-06-30",
    }
    response = await test_client.post(PROJECTS_URL, json=payload, headers=auth_headers_user)
    assert response.status_code == status.HTTP_201_CREATED
    project = response.json()["project"]
    assert PROJECT_CODE.match(project["code"])
    assert project["status"] == "planning"
    assert project["client"]["id"] == sample_client.id
    assert Decimal(project["budget"]) == Decimal("15000.00")


async def test_create_project_for_unknown_client(test_client: AsyncClient, auth_headers_user: dict):
    response = await test_client.post(PROJECTS_URL, json={"name": "Orphelin", "client_id": 999}, headers=auth_headers_user)
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "999" in response.json()["error"]


async def test_create_project_rejects_inverted_dates(test_client: AsyncClient, auth_headers_user: dict, sample_client: Client):
    payload = {"name": "Dates", "client_id": sample_client.id, "start_date": "2024-06-30", "end_date": "2024-05-01"}
    response = await test_client.post(PROJECTS_URL, json=payload, headers=auth_headers_user)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_project_status_changes_are_unrestricted(
    test_client: AsyncClient, auth_headers_user: dict, sample_project: Project
):
    url = f"{PROJECTS_URL}/{sample_project.id}"
    for target in ("completed", "in_progress", "on_hold"):
        response = await test_client.put(url, json={"status": target}, headers=auth_headers_user)
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["project"]["status"] == target

    response = await test_client.put(url, json={"status": "finished"}, headers=auth_headers_user)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_list_projects_filters(test_client: AsyncClient, auth_headers_user: dict, sample_project: Project):
    response = await test_client.get(PROJECTS_URL, params={"status": "planning"}, headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["total"] == 1
    assert data["projects"][0]["code"] == sample_project.code

    response = await test_client.get(PROJECTS_URL, params={"status": "completed"}, headers=auth_headers_user)
    assert response.json()["total"] == 0

    response = await test_client.get(PROJECTS_URL, params={"search": "extension"}, headers=auth_headers_user)
    assert response.json()["total"] == 1


async def test_delete_project(test_client: AsyncClient, auth_headers_user: dict, sample_project: Project):
    url = f"{PROJECTS_URL}/{sample_project.id}"
    assert (await test_client.delete(url, headers=auth_headers_user)).status_code == status.HTTP_200_OK
    assert (await test_client.get(url, headers=auth_headers_user)).status_code == status.HTTP_404_NOT_FOUND


async def test_project_materials(
    test_client: AsyncClient, auth_headers_user: dict, sample_project: Project, sample_material: Material
):
    url = f"{PROJECTS_URL}/{sample_project.id}/materials"
    response = await test_client.post(
        url, json={"material_id": sample_material.id, "quantity_planned": "4"}, headers=auth_headers_user
    )
    assert response.status_code == status.HTTP_201_CREATED
    line = response.json()["project_material"]
    assert Decimal(line["unit_price"]) == Decimal("8.50")
    assert Decimal(line["total_cost"]) == Decimal("34.00")
    assert line["material"]["name"] == sample_material.name

    response = await test_client.post(
        url,
        json={"material_id": sample_material.id, "quantity_planned": "2", "unit_price": "7.00"},
        headers=auth_headers_user,
    )
    assert response.status_code == status.HTTP_201_CREATED

    response = await test_client.get(url, headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["project"]["id"] == sample_project.id
    assert len(data["materials"]) == 2
    assert Decimal(data["total_cost"]) == Decimal("48.00")


async def test_add_unknown_material_to_project(test_client: AsyncClient, auth_headers_user: dict, sample_project: Project):
    response = await test_client.post(
        f"{PROJECTS_URL}/{sample_project.id}/materials",
        json={"material_id": 404, "quantity_planned": "1"},
        headers=auth_headers_user,
    )
    assert response.status_code == status.HTTP_404_NOT_FOUND


async def test_project_stats(test_client: AsyncClient, auth_headers_user: dict, sample_project: Project):
    response = await test_client.get(f"{PROJECTS_URL}/stats", headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["stats"]["total_projects"] == 1
    assert data["status_count"]["planning"] == 1
    assert Decimal(data["stats"]["total_budget"]) == Decimal("50000.00")
