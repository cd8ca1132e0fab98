from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple

from crm.documents.schemas import DocumentItemCreate
from crm.projects.models import Project
from crm.quotes.models import Quote


class AbstractQuoteRepository(ABC):
    """Interface abstraite pour le repository des devis et de leurs lignes."""

    @abstractmethod
    async def get_by_id(self, quote_id: int) -> Optional[Quote]:
        pass

    @abstractmethod
    async def list(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
    ) -> Tuple[List[Quote], int]:
        pass

    @abstractmethod
    async def create(self, quote: Quote, items: Sequence[DocumentItemCreate]) -> Quote:
        pass

    @abstractmethod
    async def update(self, quote: Quote, changes: dict) -> Quote:
        pass

    @abstractmethod
    async def replace_items(self, quote: Quote, items: Sequence[DocumentItemCreate]) -> None:
        pass

    @abstractmethod
    async def delete(self, quote: Quote) -> None:
        """Suppression logique du devis, suppression physique des lignes."""
        pass

    @abstractmethod
    async def next_number(self) -> str:
        pass

    @abstractmethod
    async def client_exists(self, client_id: int) -> bool:
        pass

    @abstractmethod
    async def get_project(self, project_id: int) -> Optional[Project]:
        pass

    @abstractmethod
    async def stats(self) -> Dict:
        pass

    @abstractmethod
    async def commit(self) -> None:
        pass
