import logging
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query

from crm.auth.dependencies import get_current_active_user
from crm.core.exceptions import handle_service_errors
from crm.reports.dependencies import ReportServiceDep
from crm.reports.models import ClientReport, FinancialReport, MaterialReport, ProjectReport, QuoteReport

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_active_user)])


def handle_report_service_errors(e: Exception):
    handle_service_errors(e, "Report")


@router.get("/clients", response_model=ClientReport)
async def clients_report(
    service: ReportServiceDep,
    start_date: Optional[date] = Query(None, description="Date de début (YYYY-MM-DD)"),
    end_date: Optional[date] = Query(None, description="Date de fin incluse (YYYY-MM-DD)"),
    status_filter: Optional[str] = Query(None, alias="status", pattern="^(active|inactive)$"),
):
    """Rapport détaillé des clients."""
    active = None if status_filter is None else status_filter == "active"
    try:
        return await service.clients_report(start_date, end_date, active)
    except Exception as e:
        handle_report_service_errors(e)


@router.get("/projects", response_model=ProjectReport)
async def projects_report(
    service: ReportServiceDep,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    client_id: Optional[int] = Query(None, ge=1),
):
    try:
        return await service.projects_report(start_date, end_date, status_filter, client_id)
    except Exception as e:
        handle_report_service_errors(e)


@router.get("/quotes", response_model=QuoteReport)
async def quotes_report(
    service: ReportServiceDep,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    status_filter: Optional[str] = Query(None, alias="status"),
    client_id: Optional[int] = Query(None, ge=1),
):
    try:
        return await service.quotes_report(start_date, end_date, status_filter, client_id)
    except Exception as e:
        handle_report_service_errors(e)


@router.get("/materials", response_model=MaterialReport)
async def materials_report(
    service: ReportServiceDep,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    category: Optional[str] = Query(None),
    low_stock: bool = Query(False, description="Uniquement les matériaux sous le seuil minimal"),
):
    """Inventaire valorisé des matériaux."""
    try:
        return await service.materials_report(start_date, end_date, category, low_stock)
    except Exception as e:
        handle_report_service_errors(e)


@router.get("/financial", response_model=FinancialReport)
async def financial_report(
    service: ReportServiceDep,
    start_date: Optional[date] = Query(None, description="Par défaut: un mois avant la date de fin"),
    end_date: Optional[date] = Query(None, description="Par défaut: aujourd'hui"),
):
    try:
        return await service.financial_report(start_date, end_date)
    except Exception as e:
        handle_report_service_errors(e)
