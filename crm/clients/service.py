import logging
from typing import Optional, Tuple, List

from crm.clients.exceptions import (
    ClientHasActiveProjectsException,
    ClientNotFoundException,
    DuplicateClientEmailException,
)
from crm.clients.interfaces.repositories import AbstractClientRepository
from crm.clients.models import (
    Client,
    ClientCreate,
    ClientRead,
    ClientReadWithDetails,
    ClientStats,
    ClientUpdate,
)
from crm.core.repositories import live_items
from crm.core.schemas import ProjectSummary, QuoteSummary

logger = logging.getLogger(__name__)


class ClientService:
    """Service applicatif pour la gestion des clients via Repository."""

    def __init__(self, repository: AbstractClientRepository):
        self.repository = repository

    async def list_clients(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> Tuple[List[Client], int]:
        logger.debug(f"[ClientService] List clients: offset={offset}, limit={limit}")
        return await self.repository.list(offset=offset, limit=limit, search=search, active=active)

    async def get_client(self, client_id: int) -> Client:
        client = await self.repository.get_by_id(client_id)
        if not client:
            raise ClientNotFoundException(client_id)
        return client

    async def get_client_details(self, client_id: int) -> ClientReadWithDetails:
        """Client avec ses projets et devis non supprimés."""
        client = await self.get_client(client_id)
        base = ClientRead.model_validate(client).model_dump()
        return ClientReadWithDetails(
            **base,
            projects=[ProjectSummary.model_validate(p) for p in live_items(client.projects)],
            quotes=[QuoteSummary.model_validate(q) for q in live_items(client.quotes)],
        )

    async def create_client(self, client_data: ClientCreate) -> Client:
        logger.info(f"[ClientService] Create client: {client_data.name}")
        if client_data.email and await self.repository.email_exists(client_data.email):
            logger.warning(f"[ClientService] Email already used: {client_data.email}")
            raise DuplicateClientEmailException(client_data.email)

        client = await self.repository.create(client_data)
        await self.repository.commit()
        logger.info(f"[ClientService] Client ID {client.id} created.")
        return client

    async def update_client(self, client_id: int, client_data: ClientUpdate) -> Client:
        logger.info(f"[ClientService] Update client ID: {client_id}")
        client = await self.get_client(client_id)
        changes = client_data.changes()
        email = changes.get("email")
        if email and await self.repository.email_exists(email, exclude_id=client_id):
            logger.warning(f"[ClientService] Email already used by another client: {email}")
            raise DuplicateClientEmailException(email)

        client = await self.repository.update(client, changes)
        await self.repository.commit()
        logger.info(f"[ClientService] Client ID {client_id} updated.")
        return client

    async def delete_client(self, client_id: int) -> None:
        logger.info(f"[ClientService] Delete client ID: {client_id}")
        client = await self.get_client(client_id)
        active_projects = await self.repository.count_active_projects(client_id)
        if active_projects:
            logger.warning(f"[ClientService] Client {client_id} has {active_projects} active project(s), delete refused.")
            raise ClientHasActiveProjectsException(client_id, active_projects)

        await self.repository.delete(client)
        await self.repository.commit()
        logger.info(f"[ClientService] Client ID {client_id} deleted.")

    async def get_stats(self) -> ClientStats:
        return ClientStats.model_validate(await self.repository.stats())
