from typing import Annotated

from fastapi import Depends

from crm.core.dependencies import SessionDep
from crm.users.interfaces.repositories import AbstractUserRepository
from crm.users.repositories import SQLAlchemyUserRepository
from crm.users.service import UserService


def get_user_repository(session: SessionDep) -> AbstractUserRepository:
    """Fournit une instance du repository utilisateur."""
    return SQLAlchemyUserRepository(db_session=session)


UserRepositoryDep = Annotated[AbstractUserRepository, Depends(get_user_repository)]


def get_user_service(repository: UserRepositoryDep) -> UserService:
    return UserService(repository=repository)


UserServiceDep = Annotated[UserService, Depends(get_user_service)]
