from datetime import timedelta
from decimal import Decimal

import pytest
from fastapi import status
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from crm.clients.models import Client
from crm.core.utils import utcnow
from crm.materials.models import Material
from crm.projects.models import Project
from crm.quotes.models import Quote
from crm.reports.aggregation import one_month_before

pytestmark = pytest.mark.asyncio

REPORTS_URL = "/api/v1/reports"


async def add_quotes(session: AsyncSession, client: Client, *specs):
    for number, total, status_ in specs:
        session.add(
            Quote(quote_number=number, client_id=client.id, title=number, status=status_, subtotal=Decimal(total), total=Decimal(total))
        )
    await session.commit()


async def test_reports_require_authentication(test_client: AsyncClient):
    response = await test_client.get(f"{REPORTS_URL}/clients")
    assert response.status_code == status.HTTP_401_UNAUTHORIZED


async def test_clients_report(
    test_client: AsyncClient, auth_headers_user: dict, db_session: AsyncSession, sample_project: Project
):
    client = await db_session.get(Client, sample_project.client_id)
    db_session.add(Client(name="Particulier inactif", contact_type="individual", is_active=False))
    await db_session.commit()
    await add_quotes(db_session, client, ("COT-R1", "120.00", "sent"), ("COT-R2", "80.00", "accepted"))

    response = await test_client.get(f"{REPORTS_URL}/clients", headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK
    report = response.json()
    summary = report["summary"]
    assert summary["total_clients"] == 2
    assert summary["active_clients"] == 1
    assert summary["inactive_clients"] == 1
    assert summary["total_projects"] == 1
    assert summary["total_quotes"] == 2
    assert Decimal(summary["total_value"]) == Decimal("200.00")
    assert summary["contact_type_count"]["company"] == 1
    assert summary["contact_type_count"]["individual"] == 1

    row = next(r for r in report["clients"] if r["id"] == client.id)
    assert row["projects"] == 1
    assert Decimal(row["quote_value"]) == Decimal("200.00")

    response = await test_client.get(f"{REPORTS_URL}/clients", params={"status": "inactive"}, headers=auth_headers_user)
    assert [r["name"] for r in response.json()["clients"]] == ["Particulier inactif"]

    response = await test_client.get(f"{REPORTS_URL}/clients", params={"status": "archived"}, headers=auth_headers_user)
    assert response.status_code == status.HTTP_400_BAD_REQUEST


async def test_projects_report(test_client: AsyncClient, auth_headers_user: dict, sample_project: Project):
    response = await test_client.get(f"{REPORTS_URL}/projects", headers=auth_headers_user)
    report = response.json()
    summary = report["summary"]
    assert summary["total_projects"] == 1
    assert summary["status_count"]["planning"] == 1
    assert Decimal(summary["total_budget"]) == Decimal("50000.00")
    assert Decimal(summary["total_cost"]) == Decimal("12000.00")
    assert Decimal(summary["profit_margin"]) == Decimal("38000.00")
    assert report["projects"][0]["client"] == "Dupont Bâtiment"

    response = await test_client.get(f"{REPORTS_URL}/projects", params={"status": "completed"}, headers=auth_headers_user)
    assert response.json()["summary"]["total_projects"] == 0


async def test_quotes_report_conversion_rate(
    test_client: AsyncClient, auth_headers_user: dict, db_session: AsyncSession, sample_client: Client
):
    await add_quotes(
        db_session,
        sample_client,
        ("COT-Q1", "100.00", "accepted"),
        ("COT-Q2", "200.00", "sent"),
        ("COT-Q3", "300.00", "rejected"),
    )

    response = await test_client.get(f"{REPORTS_URL}/quotes", headers=auth_headers_user)
    summary = response.json()["summary"]
    assert summary["total_quotes"] == 3
    assert summary["conversion_rate"] == 33.33
    assert Decimal(summary["status_value"]["rejected"]) == Decimal("300.00")
    assert Decimal(summary["total_value"]) == Decimal("600.00")


async def test_materials_report(
    test_client: AsyncClient, auth_headers_user: dict, db_session: AsyncSession, sample_material: Material
):
    db_session.add(Material(name="Plaque de plâtre", category="Plâtrerie", unit="u", unit_price=Decimal("6.00"), stock=Decimal("2"), min_stock=Decimal("5")))
    await db_session.commit()

    response = await test_client.get(f"{REPORTS_URL}/materials", headers=auth_headers_user)
    summary = response.json()["summary"]
    assert summary["total_materials"] == 2
    assert Decimal(summary["total_value"]) == Decimal("97.00")
    assert summary["low_stock_count"] == 1
    assert summary["category_stats"]["Maçonnerie"]["count"] == 1
    assert Decimal(summary["category_stats"]["Plâtrerie"]["value"]) == Decimal("12.00")

    response = await test_client.get(f"{REPORTS_URL}/materials", params={"low_stock": "true"}, headers=auth_headers_user)
    assert [m["name"] for m in response.json()["materials"]] == ["Plaque de plâtre"]


async def test_materials_report_ignores_inactive_low_stock(
    test_client: AsyncClient, auth_headers_user: dict, db_session: AsyncSession
):
    db_session.add(
        Material(
            name="Ancien enduit",
            category="Plâtrerie",
            unit="sac",
            unit_price=Decimal("4.00"),
            stock=Decimal("1"),
            min_stock=Decimal("5"),
            is_active=False,
        )
    )
    await db_session.commit()

    response = await test_client.get("/api/v1/materials/low-stock", headers=auth_headers_user)
    assert response.json()["count"] == 0

    response = await test_client.get(f"{REPORTS_URL}/materials", headers=auth_headers_user)
    report = response.json()
    assert report["summary"]["low_stock_count"] == 0
    assert report["materials"][0]["low_stock"] is False


async def test_financial_report_default_period(
    test_client: AsyncClient,
    auth_headers_user: dict,
    db_session: AsyncSession,
    sample_project: Project,
    sample_material: Material,
):
    client = await db_session.get(Client, sample_project.client_id)
    await add_quotes(db_session, client, ("COT-F1", "20000.00", "accepted"), ("COT-F2", "500.00", "draft"))

    response = await test_client.get(f"{REPORTS_URL}/financial", headers=auth_headers_user)
    assert response.status_code == status.HTTP_200_OK
    report = response.json()
    today = utcnow().date()
    assert report["period"] == {"start_date": one_month_before(today).isoformat(), "end_date": today.isoformat()}
    assert Decimal(report["revenue"]["total"]) == Decimal("20000.00")
    assert Decimal(report["revenue"]["pending"]) == Decimal("500.00")
    assert Decimal(report["revenue"]["active_value"]) == Decimal("50000.00")
    assert Decimal(report["costs"]["projects"]) == Decimal("12000.00")
    assert Decimal(report["profit"]["amount"]) == Decimal("8000.00")
    assert report["profit"]["margin"] == 40.0
    assert Decimal(report["assets"]["inventory_value"]) == Decimal("85.00")
    assert Decimal(report["invoicing"]["invoiced"]) == Decimal("0")


async def test_report_period_filters(test_client: AsyncClient, auth_headers_user: dict, sample_client: Client):
    today = utcnow().date()

    response = await test_client.get(
        f"{REPORTS_URL}/clients",
        params={"start_date": (today + timedelta(days=1)).isoformat()},
        headers=auth_headers_user,
    )
    assert response.json()["summary"]["total_clients"] == 0

    response = await test_client.get(
        f"{REPORTS_URL}/clients", params={"end_date": today.isoformat()}, headers=auth_headers_user
    )
    assert response.json()["summary"]["total_clients"] == 1

    response = await test_client.get(
        f"{REPORTS_URL}/financial",
        params={"start_date": today.isoformat(), "end_date": (today - timedelta(days=3)).isoformat()},
        headers=auth_headers_user,
    )
    assert response.status_code == status.HTTP_400_BAD_REQUEST
    assert "error" in response.json()
