from typing import Annotated

from fastapi import Depends

from crm.core.dependencies import SessionDep
from crm.materials.interfaces.repositories import AbstractMaterialRepository
from crm.materials.repositories import SQLAlchemyMaterialRepository
from crm.materials.service import MaterialService


def get_material_repository(session: SessionDep) -> AbstractMaterialRepository:
    return SQLAlchemyMaterialRepository(db_session=session)


MaterialRepositoryDep = Annotated[AbstractMaterialRepository, Depends(get_material_repository)]


def get_material_service(repository: MaterialRepositoryDep) -> MaterialService:
    return MaterialService(repository=repository)


MaterialServiceDep = Annotated[MaterialService, Depends(get_material_service)]
