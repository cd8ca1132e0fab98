import logging
from datetime import datetime, timedelta
from typing import Optional

from crm.clients.models import Client
from crm.core.utils import start_of_month, utcnow
from crm.documents.calculator import money
from crm.documents.constants import (
    PROJECT_ACTIVE_STATUSES,
    PROJECT_STATUS_COMPLETED,
    QUOTE_PENDING_STATUSES,
    QUOTE_STATUS_ACCEPTED,
)
from crm.dashboard.models import (
    ActivityItem,
    ClientCounters,
    DashboardStats,
    DeadlineItem,
    FinancialSummary,
    MaterialCounters,
    MonthlyCounters,
    MonthlyRevenue,
    MonthlyRevenuePoint,
    ProjectCounters,
    ProjectsByStatus,
    QuoteCounters,
    RecentActivity,
    StatusCount,
    UpcomingDeadlines,
)
from crm.materials.models import Material
from crm.materials.repositories import low_stock_clause
from crm.projects.models import Project
from crm.quotes.models import Quote
from crm.reports import aggregation
from crm.reports.constants import DEADLINE_WINDOW_DAYS, DEFAULT_ACTIVITY_LIMIT
from crm.reports.interfaces.repositories import AbstractReportRepository
from crm.reports.service import client_label

logger = logging.getLogger(__name__)


class DashboardService:
    """Indicateurs du tableau de bord, calculés à la demande."""

    def __init__(self, repository: AbstractReportRepository):
        self.repository = repository

    async def get_stats(self, now: Optional[datetime] = None) -> DashboardStats:
        now = now or utcnow()
        repo = self.repository
        month_start = start_of_month(now)
        logger.debug(f"[DashboardService] Stats computed at {now}")

        return DashboardStats(
            clients=ClientCounters(
                total=await repo.count(Client),
                active=await repo.count(Client, Client.is_active == True),  # noqa: E712
            ),
            projects=ProjectCounters(
                total=await repo.count(Project),
                active=await repo.count(Project, Project.status.in_(PROJECT_ACTIVE_STATUSES)),
                completed=await repo.count(Project, Project.status == PROJECT_STATUS_COMPLETED),
            ),
            quotes=QuoteCounters(
                total=await repo.count(Quote),
                pending=await repo.count(Quote, Quote.status.in_(QUOTE_PENDING_STATUSES)),
                accepted=await repo.count(Quote, Quote.status == QUOTE_STATUS_ACCEPTED),
                total_value=money(await repo.total(Quote, Quote.total)),
                accepted_value=money(await repo.total(Quote, Quote.total, Quote.status == QUOTE_STATUS_ACCEPTED)),
            ),
            materials=MaterialCounters(
                total=await repo.count(Material, Material.is_active == True),  # noqa: E712
                low_stock=await repo.count(Material, low_stock_clause()),
                inventory_value=money(await repo.total(Material, Material.stock * Material.unit_price)),
            ),
            monthly=MonthlyCounters(
                clients=await repo.count(Client, Client.created_at >= month_start),
                projects=await repo.count(Project, Project.created_at >= month_start),
                quotes=await repo.count(Quote, Quote.created_at >= month_start),
            ),
        )

    async def get_recent_activity(self, limit: int = DEFAULT_ACTIVITY_LIMIT) -> RecentActivity:
        """
        Dernières créations et alertes de stock.

        Chaque source fournit au plus `limit // 4 + 1` éléments; le flux fusionné
        est trié du plus récent au plus ancien puis tronqué à `limit`.
        """
        per_source = aggregation.per_source_limit(limit)
        repo = self.repository

        clients = [
            {
                "id": client.id,
                "type": "client",
                "action": "created",
                "description": f"Nouveau client : {client.name}",
                "created_at": client.created_at,
            }
            for client in await repo.recent_clients(per_source)
        ]
        projects = [
            {
                "id": project.id,
                "type": "project",
                "action": "created",
                "description": f"Nouveau projet : {project.name} pour {client_label(project)}",
                "created_at": project.created_at,
            }
            for project in await repo.recent_projects(per_source)
        ]
        quotes = [
            {
                "id": quote.id,
                "type": "quote",
                "action": "created",
                "description": f"Nouveau devis : {quote.title} pour {client_label(quote)}",
                "created_at": quote.created_at,
            }
            for quote in await repo.recent_quotes(per_source)
        ]
        materials = [
            {
                "id": material.id,
                "type": "material",
                "action": "low_stock",
                "description": f"Stock bas : {material.name} ({material.stock:.2f} {material.unit})",
                "created_at": material.updated_at,
            }
            for material in await repo.low_stock_materials(per_source)
        ]

        activities = aggregation.merge_activities((clients, projects, quotes, materials), limit)
        return RecentActivity(activities=[ActivityItem(**a) for a in activities], count=len(activities))

    async def get_projects_by_status(self) -> ProjectsByStatus:
        counts = await self.repository.project_status_counts()
        return ProjectsByStatus(data=[StatusCount(status=s, count=n) for s, n in counts.items()])

    async def get_monthly_revenue(self, now: Optional[datetime] = None) -> MonthlyRevenue:
        """Somme des devis acceptés par mois de création, sur les 12 derniers mois."""
        now = now or utcnow()
        since = aggregation.month_starts(now)[0]
        entries = await self.repository.accepted_quote_entries(since)
        series = aggregation.monthly_series(entries, now)
        return MonthlyRevenue(data=[MonthlyRevenuePoint(**point) for point in series])

    async def get_upcoming_deadlines(self, now: Optional[datetime] = None) -> UpcomingDeadlines:
        today = (now or utcnow()).date()
        until = today + timedelta(days=DEADLINE_WINDOW_DAYS)
        projects = await self.repository.upcoming_deadlines(today, until)
        items = [
            DeadlineItem(
                id=project.id,
                code=project.code,
                name=project.name,
                client=client_label(project),
                end_date=project.end_date,
                days_left=aggregation.days_left(project.end_date, today),
                status=project.status,
                progress=project.progress,
            )
            for project in projects
        ]
        return UpcomingDeadlines(projects=items, count=len(items))

    async def get_financial_summary(self, now: Optional[datetime] = None) -> FinancialSummary:
        now = now or utcnow()
        repo = self.repository
        accepted = Quote.status == QUOTE_STATUS_ACCEPTED

        current_start, current_end = aggregation.month_bounds(now)
        previous_start, previous_end = aggregation.month_bounds(now, -1)
        current = await repo.total(Quote, Quote.total, accepted, Quote.created_at >= current_start, Quote.created_at < current_end)
        previous = await repo.total(Quote, Quote.total, accepted, Quote.created_at >= previous_start, Quote.created_at < previous_end)

        return FinancialSummary(
            current_month_revenue=money(current),
            last_month_revenue=money(previous),
            growth_percentage=aggregation.growth_percentage(current, previous),
            pending_quotes_value=money(await repo.total(Quote, Quote.total, Quote.status.in_(QUOTE_PENDING_STATUSES))),
            inventory_value=money(await repo.total(Material, Material.stock * Material.unit_price)),
        )
