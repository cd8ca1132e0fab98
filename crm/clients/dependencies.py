import logging
from typing import Annotated

from fastapi import Depends

from crm.clients.interfaces.repositories import AbstractClientRepository
from crm.clients.repositories import SQLAlchemyClientRepository
from crm.clients.service import ClientService
from crm.core.dependencies import SessionDep

logger = logging.getLogger(__name__)


def get_client_repository(session: SessionDep) -> AbstractClientRepository:
    """Fournit une instance du repository de clients."""
    return SQLAlchemyClientRepository(db_session=session)


ClientRepositoryDep = Annotated[AbstractClientRepository, Depends(get_client_repository)]


def get_client_service(repository: ClientRepositoryDep) -> ClientService:
    """Fournit une instance du service de gestion des clients."""
    return ClientService(repository=repository)


ClientServiceDep = Annotated[ClientService, Depends(get_client_service)]
