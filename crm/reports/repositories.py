import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from crm.clients.models import Client
from crm.documents.constants import PROJECT_STATUSES, QUOTE_STATUS_ACCEPTED
from crm.materials.models import Material
from crm.materials.repositories import low_stock_clause
from crm.projects.models import Project
from crm.quotes.models import Quote
from crm.reports.constants import PROJECT_OPEN_STATUSES
from crm.reports.interfaces.repositories import AbstractReportRepository

logger = logging.getLogger(__name__)


def in_range(column, start: Optional[datetime], end: Optional[datetime]) -> list:
    """Critères [start, end[ sur une colonne datetime, bornes optionnelles."""
    criteria = []
    if start is not None:
        criteria.append(column >= start)
    if end is not None:
        criteria.append(column < end)
    return criteria


class SQLAlchemyReportRepository(AbstractReportRepository):
    """Implémentation SQLAlchemy des lectures de rapport. Toutes les lignes supprimées sont exclues."""

    def __init__(self, db_session: AsyncSession):
        self.db = db_session

    async def _all(self, stmt) -> list:
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().unique().all())

    async def list_clients(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None, active: Optional[bool] = None
    ) -> List[Client]:
        logger.debug(f"[ReportRepository] Clients from {start} to {end}, active={active}")
        stmt = (
            select(Client)
            .where(Client.is_deleted == False, *in_range(Client.created_at, start, end))  # noqa: E712
            .options(selectinload(Client.projects), selectinload(Client.quotes))
            .order_by(Client.created_at.desc(), Client.id.desc())
        )
        if active is not None:
            stmt = stmt.where(Client.is_active == active)
        return await self._all(stmt)

    async def list_projects(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
    ) -> List[Project]:
        logger.debug(f"[ReportRepository] Projects from {start} to {end}, status={status}, client={client_id}")
        stmt = (
            select(Project)
            .where(Project.is_deleted == False, *in_range(Project.created_at, start, end))  # noqa: E712
            .options(selectinload(Project.client), selectinload(Project.project_materials))
            .order_by(Project.created_at.desc(), Project.id.desc())
        )
        if status:
            stmt = stmt.where(Project.status == status)
        if client_id:
            stmt = stmt.where(Project.client_id == client_id)
        return await self._all(stmt)

    async def list_quotes(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
    ) -> List[Quote]:
        logger.debug(f"[ReportRepository] Quotes from {start} to {end}, status={status}, client={client_id}")
        stmt = (
            select(Quote)
            .where(Quote.is_deleted == False, *in_range(Quote.created_at, start, end))  # noqa: E712
            .options(selectinload(Quote.client), selectinload(Quote.project), selectinload(Quote.items))
            .order_by(Quote.created_at.desc(), Quote.id.desc())
        )
        if status:
            stmt = stmt.where(Quote.status == status)
        if client_id:
            stmt = stmt.where(Quote.client_id == client_id)
        return await self._all(stmt)

    async def list_materials(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        category: Optional[str] = None,
        low_stock: bool = False,
    ) -> List[Material]:
        stmt = (
            select(Material)
            .where(Material.is_deleted == False, *in_range(Material.created_at, start, end))  # noqa: E712
            .order_by(Material.category, Material.name)
        )
        if category:
            stmt = stmt.where(Material.category == category)
        if low_stock:
            stmt = stmt.where(low_stock_clause())
        return await self._all(stmt)

    async def count(self, model: Any, *criteria: Any) -> int:
        stmt = select(func.count()).select_from(model).where(model.is_deleted == False, *criteria)  # noqa: E712
        return await self.db.scalar(stmt) or 0

    async def total(self, model: Any, column: Any, *criteria: Any) -> Decimal:
        stmt = select(func.coalesce(func.sum(column), 0)).where(model.is_deleted == False, *criteria)  # noqa: E712
        value = await self.db.scalar(stmt)
        return Decimal(str(value or 0))

    async def accepted_quote_entries(self, since: datetime) -> List[Tuple[datetime, Decimal]]:
        result = await self.db.execute(
            select(Quote.created_at, Quote.total).where(
                Quote.is_deleted == False,  # noqa: E712
                Quote.status == QUOTE_STATUS_ACCEPTED,
                Quote.created_at >= since,
            )
        )
        return [(created_at, Decimal(str(total))) for created_at, total in result.all()]

    async def recent_clients(self, limit: int) -> List[Client]:
        stmt = (
            select(Client)
            .where(Client.is_deleted == False)  # noqa: E712
            .order_by(Client.created_at.desc(), Client.id.desc())
            .limit(limit)
        )
        return await self._all(stmt)

    async def recent_projects(self, limit: int) -> List[Project]:
        stmt = (
            select(Project)
            .where(Project.is_deleted == False)  # noqa: E712
            .options(selectinload(Project.client))
            .order_by(Project.created_at.desc(), Project.id.desc())
            .limit(limit)
        )
        return await self._all(stmt)

    async def recent_quotes(self, limit: int) -> List[Quote]:
        stmt = (
            select(Quote)
            .where(Quote.is_deleted == False)  # noqa: E712
            .options(selectinload(Quote.client))
            .order_by(Quote.created_at.desc(), Quote.id.desc())
            .limit(limit)
        )
        return await self._all(stmt)

    async def low_stock_materials(self, limit: int) -> List[Material]:
        stmt = (
            select(Material)
            .where(Material.is_deleted == False, low_stock_clause())  # noqa: E712
            .order_by(Material.updated_at.desc(), Material.id.desc())
            .limit(limit)
        )
        return await self._all(stmt)

    async def project_status_counts(self) -> Dict[str, int]:
        rows = await self.db.execute(
            select(Project.status, func.count())
            .where(Project.is_deleted == False)  # noqa: E712
            .group_by(Project.status)
        )
        counts = {status: 0 for status in PROJECT_STATUSES}
        counts.update({status: n for status, n in rows.all()})
        return counts

    async def upcoming_deadlines(self, today: date, until: date) -> List[Project]:
        stmt = (
            select(Project)
            .where(
                Project.is_deleted == False,  # noqa: E712
                Project.status.in_(PROJECT_OPEN_STATUSES),
                Project.end_date >= today,
                Project.end_date <= until,
            )
            .options(selectinload(Project.client))
            .order_by(Project.end_date.asc(), Project.id.asc())
        )
        return await self._all(stmt)
