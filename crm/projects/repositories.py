import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import selectinload

from crm.clients.models import Client
from crm.core.repositories import SQLAlchemyRepository, search_clause
from crm.documents.numbering import generate_project_code
from crm.materials.models import ProjectMaterial
from crm.projects.constants import PROJECT_STATUSES
from crm.projects.interfaces.repositories import AbstractProjectRepository
from crm.projects.models import Project

logger = logging.getLogger(__name__)


class SQLAlchemyProjectRepository(SQLAlchemyRepository[Project], AbstractProjectRepository):
    """Implémentation SQLAlchemy du repository des projets."""

    model = Project
    load_options = (selectinload(Project.client), selectinload(Project.quotes))

    async def get_by_id(self, project_id: int) -> Optional[Project]:
        logger.debug(f"[ProjectRepository] Getting project by ID: {project_id}")
        return await self.fetch(project_id)

    async def list(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        priority: Optional[str] = None,
    ) -> Tuple[List[Project], int]:
        logger.debug(f"[ProjectRepository] Listing projects: offset={offset}, limit={limit}, status={status}")
        stmt = self.live()
        if search:
            stmt = stmt.where(search_clause(search, (Project.name, Project.description, Project.code)))
        if status:
            stmt = stmt.where(Project.status == status)
        if client_id:
            stmt = stmt.where(Project.client_id == client_id)
        if priority:
            stmt = stmt.where(Project.priority == priority)
        stmt = stmt.order_by(Project.created_at.desc(), Project.id.desc())
        return await self.paginate(stmt, offset, limit)

    async def create(self, project: Project) -> Project:
        logger.debug(f"[ProjectRepository] Creating project {project.code}")
        return await self.add(project)

    async def update(self, project: Project, changes: dict) -> Project:
        return await self.apply(project, changes)

    async def delete(self, project: Project) -> None:
        await self.soft_delete(project)

    async def next_code(self) -> str:
        return await generate_project_code(self.db)

    async def client_exists(self, client_id: int) -> bool:
        count = await self.db.scalar(
            select(func.count())
            .select_from(Client)
            .where(Client.id == client_id, Client.is_deleted == False)  # noqa: E712
        )
        return bool(count)

    async def list_materials(self, project_id: int) -> List[ProjectMaterial]:
        result = await self.db.execute(
            select(ProjectMaterial)
            .where(ProjectMaterial.project_id == project_id)
            .options(selectinload(ProjectMaterial.material))
            .order_by(ProjectMaterial.created_at, ProjectMaterial.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def add_material(self, project_material: ProjectMaterial) -> ProjectMaterial:
        self.db.add(project_material)
        await self.db.flush()
        result = await self.db.execute(
            select(ProjectMaterial)
            .where(ProjectMaterial.id == project_material.id)
            .options(selectinload(ProjectMaterial.material))
            .execution_options(populate_existing=True)
        )
        return result.scalars().one()

    async def stats(self) -> Dict:
        live = Project.is_deleted == False  # noqa: E712
        status_rows = await self.db.execute(
            select(Project.status, func.count()).where(live).group_by(Project.status)
        )
        status_count = {s: 0 for s in PROJECT_STATUSES}
        status_count.update({s: n for s, n in status_rows.all()})

        priority_rows = await self.db.execute(
            select(Project.priority, func.count()).where(live).group_by(Project.priority).order_by(Project.priority)
        )
        type_rows = await self.db.execute(
            select(Project.project_type, func.count()).where(live).group_by(Project.project_type).order_by(Project.project_type)
        )
        sums = (
            await self.db.execute(
                select(
                    func.coalesce(func.sum(Project.budget), 0),
                    func.coalesce(func.sum(Project.actual_cost), 0),
                    func.coalesce(func.avg(Project.progress), 0),
                ).where(live)
            )
        ).one()
        return {
            "stats": {
                "total_projects": sum(status_count.values()),
                "active_projects": status_count.get("in_progress", 0),
                "completed_projects": status_count.get("completed", 0),
                "planning_projects": status_count.get("planning", 0),
                "total_budget": Decimal(str(sums[0])),
                "total_actual_cost": Decimal(str(sums[1])),
                "average_progress": round(float(sums[2]), 2),
            },
            "status_count": status_count,
            "priority_stats": [{"priority": p, "count": n} for p, n in priority_rows.all()],
            "type_stats": [{"project_type": t, "count": n} for t, n in type_rows.all()],
        }
