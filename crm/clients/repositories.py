import logging
from datetime import timedelta
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from crm.clients.constants import RECENT_CLIENTS_DAYS
from crm.clients.interfaces.repositories import AbstractClientRepository
from crm.clients.models import Client, ClientCreate
from crm.core.repositories import SQLAlchemyRepository, search_clause
from crm.core.utils import utcnow
from crm.documents.constants import PROJECT_ACTIVE_STATUSES
from crm.projects.models import Project

logger = logging.getLogger(__name__)


class SQLAlchemyClientRepository(SQLAlchemyRepository[Client], AbstractClientRepository):
    """Implémentation SQLAlchemy du repository des clients."""

    model = Client
    load_options = (selectinload(Client.projects), selectinload(Client.quotes))

    async def get_by_id(self, client_id: int) -> Optional[Client]:
        logger.debug(f"[ClientRepository] Getting client by ID: {client_id}")
        return await self.fetch(client_id)

    async def list(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> Tuple[List[Client], int]:
        logger.debug(f"[ClientRepository] Listing clients: offset={offset}, limit={limit}, search={search}, active={active}")
        stmt = self.live()
        if search:
            stmt = stmt.where(search_clause(search, (Client.name, Client.email, Client.company)))
        if active is not None:
            stmt = stmt.where(Client.is_active == active)
        stmt = stmt.order_by(Client.created_at.desc(), Client.id.desc())
        return await self.paginate(stmt, offset, limit)

    async def create(self, client_data: ClientCreate) -> Client:
        logger.debug(f"[ClientRepository] Creating client: {client_data.name}")
        client = Client(**client_data.model_dump())
        return await self.add(client)

    async def update(self, client: Client, changes: dict) -> Client:
        logger.debug(f"[ClientRepository] Updating client ID: {client.id} fields={list(changes)}")
        return await self.apply(client, changes)

    async def delete(self, client: Client) -> None:
        logger.debug(f"[ClientRepository] Soft deleting client ID: {client.id}")
        await self.soft_delete(client)

    async def email_exists(self, email: str, exclude_id: Optional[int] = None) -> bool:
        return await self.exists(exclude_id=exclude_id, email=email)

    async def count_active_projects(self, client_id: int) -> int:
        return await self.db.scalar(
            select(func.count())
            .select_from(Project)
            .where(
                Project.client_id == client_id,
                Project.is_deleted == False,  # noqa: E712
                Project.status.in_(PROJECT_ACTIVE_STATUSES),
            )
        ) or 0

    async def stats(self) -> Dict:
        total = await self.count()
        active = await self.count(is_active=True)
        recent = await self.count(created_at__gte=utcnow() - timedelta(days=RECENT_CLIENTS_DAYS))
        rows = await self.db.execute(
            select(Client.contact_type, func.count())
            .where(Client.is_deleted == False)  # noqa: E712
            .group_by(Client.contact_type)
            .order_by(Client.contact_type)
        )
        return {
            "total_clients": total,
            "active_clients": active,
            "inactive_clients": total - active,
            "contact_types": [{"contact_type": ct, "count": n} for ct, n in rows.all()],
            "recent_clients": recent,
        }
