from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from crm.materials.models import Material, MaterialCreate, StockMovement


class AbstractMaterialRepository(ABC):
    """Interface abstraite pour le repository des matériaux et de leur stock."""

    @abstractmethod
    async def get_by_id(self, material_id: int) -> Optional[Material]:
        pass

    @abstractmethod
    async def list(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        category: Optional[str] = None,
        active: Optional[bool] = None,
        low_stock: Optional[bool] = None,
    ) -> Tuple[List[Material], int]:
        pass

    @abstractmethod
    async def create(self, material_data: MaterialCreate) -> Material:
        pass

    @abstractmethod
    async def update(self, material: Material, changes: dict) -> Material:
        pass

    @abstractmethod
    async def delete(self, material: Material) -> None:
        pass

    @abstractmethod
    async def sku_exists(self, sku: str, exclude_id: Optional[int] = None) -> bool:
        pass

    @abstractmethod
    async def is_referenced(self, material_id: int) -> bool:
        """Vrai si au moins un ProjectMaterial référence le matériau."""
        pass

    @abstractmethod
    async def adjust_stock(self, material_id: int, delta: Decimal) -> Optional[Decimal]:
        """Applique `delta` au stock en une seule instruction; None si refusé (absent ou stock insuffisant)."""
        pass

    @abstractmethod
    async def add_movement(self, movement: StockMovement) -> StockMovement:
        pass

    @abstractmethod
    async def list_movements(self, material_id: int, limit: int = 100) -> List[StockMovement]:
        pass

    @abstractmethod
    async def list_low_stock(self) -> List[Material]:
        pass

    @abstractmethod
    async def list_categories(self) -> List[str]:
        pass

    @abstractmethod
    async def stats(self) -> Dict:
        pass

    @abstractmethod
    async def commit(self) -> None:
        pass
