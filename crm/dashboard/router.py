import logging

from fastapi import APIRouter, Depends, Query

from crm.auth.dependencies import get_current_active_user
from crm.core.exceptions import handle_service_errors
from crm.dashboard.dependencies import DashboardServiceDep
from crm.dashboard.models import (
    DashboardStats,
    FinancialSummary,
    MonthlyRevenue,
    ProjectsByStatus,
    RecentActivity,
    UpcomingDeadlines,
)
from crm.reports.constants import DEFAULT_ACTIVITY_LIMIT, MAX_ACTIVITY_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_active_user)])


def handle_dashboard_service_errors(e: Exception):
    handle_service_errors(e, "Dashboard")


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(service: DashboardServiceDep):
    """Compteurs globaux et créations du mois en cours."""
    try:
        return await service.get_stats()
    except Exception as e:
        handle_dashboard_service_errors(e)


@router.get("/recent-activity", response_model=RecentActivity)
async def recent_activity(
    service: DashboardServiceDep,
    limit: int = Query(DEFAULT_ACTIVITY_LIMIT, ge=1, le=MAX_ACTIVITY_LIMIT),
):
    try:
        return await service.get_recent_activity(limit)
    except Exception as e:
        handle_dashboard_service_errors(e)


@router.get("/projects-by-status", response_model=ProjectsByStatus)
async def projects_by_status(service: DashboardServiceDep):
    try:
        return await service.get_projects_by_status()
    except Exception as e:
        handle_dashboard_service_errors(e)


@router.get("/monthly-revenue", response_model=MonthlyRevenue)
async def monthly_revenue(service: DashboardServiceDep):
    """Douze points mensuels, du plus ancien au mois courant."""
    try:
        return await service.get_monthly_revenue()
    except Exception as e:
        handle_dashboard_service_errors(e)


@router.get("/upcoming-deadlines", response_model=UpcomingDeadlines)
async def upcoming_deadlines(service: DashboardServiceDep):
    try:
        return await service.get_upcoming_deadlines()
    except Exception as e:
        handle_dashboard_service_errors(e)


@router.get("/financial-summary", response_model=FinancialSummary)
async def financial_summary(service: DashboardServiceDep):
    try:
        return await service.get_financial_summary()
    except Exception as e:
        handle_dashboard_service_errors(e)
