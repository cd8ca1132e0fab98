from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple

from crm.clients.models import Client, ClientCreate


class AbstractClientRepository(ABC):
    """Interface abstraite pour le repository des clients."""

    @abstractmethod
    async def get_by_id(self, client_id: int) -> Optional[Client]:
        """Récupère un client vivant avec ses projets et devis."""
        pass

    @abstractmethod
    async def list(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> Tuple[List[Client], int]:
        pass

    @abstractmethod
    async def create(self, client_data: ClientCreate) -> Client:
        pass

    @abstractmethod
    async def update(self, client: Client, changes: dict) -> Client:
        pass

    @abstractmethod
    async def delete(self, client: Client) -> None:
        """Suppression logique."""
        pass

    @abstractmethod
    async def email_exists(self, email: str, exclude_id: Optional[int] = None) -> bool:
        pass

    @abstractmethod
    async def count_active_projects(self, client_id: int) -> int:
        pass

    @abstractmethod
    async def stats(self) -> Dict:
        pass

    @abstractmethod
    async def commit(self) -> None:
        pass
