from typing import Annotated

from fastapi import Depends

from crm.core.dependencies import SessionDep
from crm.materials.dependencies import MaterialRepositoryDep
from crm.projects.interfaces.repositories import AbstractProjectRepository
from crm.projects.repositories import SQLAlchemyProjectRepository
from crm.projects.service import ProjectService


def get_project_repository(session: SessionDep) -> AbstractProjectRepository:
    return SQLAlchemyProjectRepository(db_session=session)


ProjectRepositoryDep = Annotated[AbstractProjectRepository, Depends(get_project_repository)]


def get_project_service(
    repository: ProjectRepositoryDep,
    material_repository: MaterialRepositoryDep,
) -> ProjectService:
    return ProjectService(repository=repository, material_repository=material_repository)


ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
