import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from crm.auth.dependencies import CurrentUserDep, get_current_active_user
from crm.core.dependencies import PaginationParams
from crm.core.exceptions import handle_service_errors
from crm.core.schemas import MessageResponse
from crm.core.utils import page_count, page_to_offset
from crm.materials.models import (
    ProjectMaterialCreate,
    ProjectMaterialListResponse,
    ProjectMaterialRead,
    ProjectMaterialResponse,
)
from crm.projects.dependencies import ProjectServiceDep
from crm.projects.models import (
    ProjectCreate,
    ProjectListResponse,
    ProjectRead,
    ProjectReadWithDetails,
    ProjectResponse,
    ProjectStats,
    ProjectUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_active_user)])


def handle_project_service_errors(e: Exception):
    handle_service_errors(e, "Project")


@router.get("", response_model=ProjectListResponse)
async def list_projects(
    service: ProjectServiceDep,
    pagination: PaginationParams,
    search: Optional[str] = Query(None, description="Recherche sur nom, description, code"),
    status_filter: Optional[str] = Query(None, alias="status"),
    client_id: Optional[int] = Query(None, ge=1),
    priority: Optional[str] = Query(None),
):
    page, limit = pagination
    try:
        projects, total = await service.list_projects(
            offset=page_to_offset(page, limit),
            limit=limit,
            search=search,
            status=status_filter,
            client_id=client_id,
            priority=priority,
        )
        return ProjectListResponse(
            projects=[ProjectRead.model_validate(p) for p in projects],
            total=total,
            page=page,
            limit=limit,
            pages=page_count(total, limit),
        )
    except Exception as e:
        handle_project_service_errors(e)


@router.get("/stats", response_model=ProjectStats)
async def get_project_stats(service: ProjectServiceDep):
    try:
        return await service.get_stats()
    except Exception as e:
        handle_project_service_errors(e)


@router.get("/{project_id}", response_model=ProjectReadWithDetails)
async def read_project(service: ProjectServiceDep, project_id: int = Path(..., ge=1)):
    try:
        return await service.get_project_details(project_id)
    except Exception as e:
        handle_project_service_errors(e)


@router.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(project: ProjectCreate, service: ProjectServiceDep, current_user: CurrentUserDep):
    logger.info(f"API create_project by {current_user.email}: name={project.name}")
    try:
        created = await service.create_project(project)
        return ProjectResponse(message="Projet créé avec succès", project=ProjectRead.model_validate(created))
    except Exception as e:
        handle_project_service_errors(e)


@router.put("/{project_id}", response_model=ProjectResponse)
async def update_project(
    project: ProjectUpdate,
    service: ProjectServiceDep,
    current_user: CurrentUserDep,
    project_id: int = Path(..., ge=1),
):
    logger.info(f"API update_project by {current_user.email}: ID={project_id}")
    try:
        updated = await service.update_project(project_id, project)
        return ProjectResponse(message="Projet mis à jour avec succès", project=ProjectRead.model_validate(updated))
    except Exception as e:
        handle_project_service_errors(e)


@router.delete("/{project_id}", response_model=MessageResponse)
async def delete_project(service: ProjectServiceDep, current_user: CurrentUserDep, project_id: int = Path(..., ge=1)):
    logger.info(f"API delete_project by {current_user.email}: ID={project_id}")
    try:
        await service.delete_project(project_id)
        return MessageResponse(message="Projet supprimé avec succès")
    except Exception as e:
        handle_project_service_errors(e)


@router.get("/{project_id}/materials", response_model=ProjectMaterialListResponse)
async def list_project_materials(service: ProjectServiceDep, project_id: int = Path(..., ge=1)):
    try:
        return await service.list_project_materials(project_id)
    except Exception as e:
        handle_project_service_errors(e)


@router.post("/{project_id}/materials", response_model=ProjectMaterialResponse, status_code=status.HTTP_201_CREATED)
async def add_project_material(
    data: ProjectMaterialCreate,
    service: ProjectServiceDep,
    current_user: CurrentUserDep,
    project_id: int = Path(..., ge=1),
):
    logger.info(f"API add_project_material by {current_user.email}: project={project_id} material={data.material_id}")
    try:
        created = await service.add_project_material(project_id, data)
        return ProjectMaterialResponse(
            message="Matériau ajouté au projet",
            project_material=ProjectMaterialRead.model_validate(created),
        )
    except Exception as e:
        handle_project_service_errors(e)
