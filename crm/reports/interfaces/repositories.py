from abc import ABC, abstractmethod
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from crm.clients.models import Client
from crm.materials.models import Material
from crm.projects.models import Project
from crm.quotes.models import Quote


class AbstractReportRepository(ABC):
    """Lectures transverses (clients, projets, devis, matériaux, factures) pour les agrégations."""

    @abstractmethod
    async def list_clients(
        self, start: Optional[datetime] = None, end: Optional[datetime] = None, active: Optional[bool] = None
    ) -> List[Client]:
        """Clients créés dans [start, end[ avec projets et devis chargés."""
        pass

    @abstractmethod
    async def list_projects(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
    ) -> List[Project]:
        pass

    @abstractmethod
    async def list_quotes(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
    ) -> List[Quote]:
        pass

    @abstractmethod
    async def list_materials(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        category: Optional[str] = None,
        low_stock: bool = False,
    ) -> List[Material]:
        pass

    @abstractmethod
    async def count(self, model: Any, *criteria: Any) -> int:
        """Nombre de lignes vivantes de `model` satisfaisant `criteria`."""
        pass

    @abstractmethod
    async def total(self, model: Any, column: Any, *criteria: Any) -> Decimal:
        """Somme d'une colonne (ou expression) sur les lignes vivantes, 0 si vide."""
        pass

    @abstractmethod
    async def accepted_quote_entries(self, since: datetime) -> List[Tuple[datetime, Decimal]]:
        pass

    @abstractmethod
    async def recent_clients(self, limit: int) -> List[Client]:
        pass

    @abstractmethod
    async def recent_projects(self, limit: int) -> List[Project]:
        pass

    @abstractmethod
    async def recent_quotes(self, limit: int) -> List[Quote]:
        pass

    @abstractmethod
    async def low_stock_materials(self, limit: int) -> List[Material]:
        pass

    @abstractmethod
    async def project_status_counts(self) -> Dict[str, int]:
        pass

    @abstractmethod
    async def upcoming_deadlines(self, today: date, until: date) -> List[Project]:
        pass
