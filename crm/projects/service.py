import logging
from typing import List, Optional, Tuple

from crm.core.repositories import live_items
from crm.core.schemas import ProjectSummary, QuoteSummary
from crm.documents import status as status_machine
from crm.documents.calculator import line_total, money
from crm.materials.exceptions import InactiveMaterialException, MaterialNotFoundException
from crm.materials.interfaces.repositories import AbstractMaterialRepository
from crm.materials.models import (
    ProjectMaterial,
    ProjectMaterialCreate,
    ProjectMaterialListResponse,
    ProjectMaterialRead,
)
from crm.projects.exceptions import (
    InvalidProjectDatesException,
    ProjectClientNotFoundException,
    ProjectNotFoundException,
)
from crm.projects.interfaces.repositories import AbstractProjectRepository
from crm.projects.models import (
    Project,
    ProjectCreate,
    ProjectRead,
    ProjectReadWithDetails,
    ProjectStats,
    ProjectUpdate,
)

logger = logging.getLogger(__name__)


def _check_dates(start_date, end_date) -> None:
    if start_date and end_date and end_date < start_date:
        raise InvalidProjectDatesException()


class ProjectService:
    """Service applicatif pour les projets et leurs matériaux planifiés."""

    def __init__(self, repository: AbstractProjectRepository, material_repository: AbstractMaterialRepository):
        self.repository = repository
        self.material_repository = material_repository

    async def list_projects(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        priority: Optional[str] = None,
    ) -> Tuple[List[Project], int]:
        if status:
            status_machine.validate_status(status_machine.PROJECT, status)
        return await self.repository.list(
            offset=offset, limit=limit, search=search, status=status, client_id=client_id, priority=priority
        )

    async def get_project(self, project_id: int) -> Project:
        project = await self.repository.get_by_id(project_id)
        if not project:
            raise ProjectNotFoundException(project_id)
        return project

    async def get_project_details(self, project_id: int) -> ProjectReadWithDetails:
        project = await self.get_project(project_id)
        base = ProjectRead.model_validate(project).model_dump()
        return ProjectReadWithDetails(
            **base,
            quotes=[QuoteSummary.model_validate(q) for q in live_items(project.quotes)],
        )

    async def create_project(self, project_data: ProjectCreate) -> Project:
        logger.info(f"[ProjectService] Create project: {project_data.name} for client {project_data.client_id}")
        if not await self.repository.client_exists(project_data.client_id):
            raise ProjectClientNotFoundException(project_data.client_id)
        _check_dates(project_data.start_date, project_data.end_date)

        code = await self.repository.next_code()
        project = await self.repository.create(Project(code=code, **project_data.model_dump()))
        await self.repository.commit()
        logger.info(f"[ProjectService] Project ID {project.id} created with code {code}.")
        return await self.get_project(project.id)

    async def update_project(self, project_id: int, project_data: ProjectUpdate) -> Project:
        logger.info(f"[ProjectService] Update project ID: {project_id}")
        project = await self.get_project(project_id)
        changes = project_data.changes()

        if "client_id" in changes and not await self.repository.client_exists(changes["client_id"]):
            raise ProjectClientNotFoundException(changes["client_id"])
        if "status" in changes:
            status_machine.ensure_transition(status_machine.PROJECT, project.status, changes["status"])
        _check_dates(changes.get("start_date", project.start_date), changes.get("end_date", project.end_date))

        await self.repository.update(project, changes)
        await self.repository.commit()
        return await self.get_project(project_id)

    async def delete_project(self, project_id: int) -> None:
        logger.info(f"[ProjectService] Delete project ID: {project_id}")
        project = await self.get_project(project_id)
        await self.repository.delete(project)
        await self.repository.commit()

    async def list_project_materials(self, project_id: int) -> ProjectMaterialListResponse:
        project = await self.get_project(project_id)
        rows = await self.repository.list_materials(project_id)
        return ProjectMaterialListResponse(
            project=ProjectSummary.model_validate(project),
            materials=[ProjectMaterialRead.model_validate(r) for r in rows],
            total_cost=money(sum((r.total_cost for r in rows), 0)),
        )

    async def add_project_material(self, project_id: int, data: ProjectMaterialCreate) -> ProjectMaterial:
        """Planifie un matériau sur le projet; le prix du catalogue s'applique si aucun prix n'est fourni."""
        await self.get_project(project_id)
        material = await self.material_repository.get_by_id(data.material_id)
        if not material:
            raise MaterialNotFoundException(data.material_id)
        if not material.is_active:
            raise InactiveMaterialException(data.material_id)

        unit_price = money(data.unit_price if data.unit_price is not None else material.unit_price)
        project_material = ProjectMaterial(
            project_id=project_id,
            material_id=material.id,
            quantity_planned=data.quantity_planned,
            unit_price=unit_price,
            total_cost=line_total(data.quantity_planned, unit_price),
            status=data.status,
            delivery_date=data.delivery_date,
            notes=data.notes,
        )
        created = await self.repository.add_material(project_material)
        await self.repository.commit()
        logger.info(f"[ProjectService] Material {material.id} added to project {project_id}.")
        return created

    async def get_stats(self) -> ProjectStats:
        return ProjectStats.model_validate(await self.repository.stats())
