import logging
from typing import List, Optional, Tuple

from crm.documents.calculator import money
from crm.materials.constants import MOVEMENT_HISTORY_LIMIT, STOCK_MOVEMENT_OUT
from crm.materials.exceptions import (
    DuplicateMaterialSKUException,
    InsufficientStockException,
    MaterialInUseException,
    MaterialNotFoundException,
)
from crm.materials.interfaces.repositories import AbstractMaterialRepository
from crm.materials.models import (
    Material,
    MaterialCreate,
    MaterialStats,
    MaterialUpdate,
    StockAdjustment,
    StockMovement,
)

logger = logging.getLogger(__name__)


class MaterialService:
    """Service applicatif pour le catalogue de matériaux et les mouvements de stock."""

    def __init__(self, repository: AbstractMaterialRepository):
        self.repository = repository

    async def list_materials(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        category: Optional[str] = None,
        active: Optional[bool] = None,
        low_stock: Optional[bool] = None,
    ) -> Tuple[List[Material], int]:
        return await self.repository.list(
            offset=offset, limit=limit, search=search, category=category, active=active, low_stock=low_stock
        )

    async def get_material(self, material_id: int) -> Material:
        material = await self.repository.get_by_id(material_id)
        if not material:
            raise MaterialNotFoundException(material_id)
        return material

    async def create_material(self, material_data: MaterialCreate) -> Material:
        logger.info(f"[MaterialService] Create material: {material_data.name}")
        if material_data.sku and await self.repository.sku_exists(material_data.sku):
            raise DuplicateMaterialSKUException(material_data.sku)

        material = await self.repository.create(material_data)
        await self.repository.commit()
        logger.info(f"[MaterialService] Material ID {material.id} created.")
        return material

    async def update_material(self, material_id: int, material_data: MaterialUpdate) -> Material:
        logger.info(f"[MaterialService] Update material ID: {material_id}")
        material = await self.get_material(material_id)
        changes = material_data.changes()
        sku = changes.get("sku")
        if sku and await self.repository.sku_exists(sku, exclude_id=material_id):
            raise DuplicateMaterialSKUException(sku)

        material = await self.repository.update(material, changes)
        await self.repository.commit()
        return material

    async def delete_material(self, material_id: int) -> None:
        logger.info(f"[MaterialService] Delete material ID: {material_id}")
        material = await self.get_material(material_id)
        if await self.repository.is_referenced(material_id):
            logger.warning(f"[MaterialService] Material {material_id} is used by projects, delete refused.")
            raise MaterialInUseException(material_id)

        await self.repository.delete(material)
        await self.repository.commit()

    async def adjust_stock(self, material_id: int, adjustment: StockAdjustment, user_id: Optional[int] = None) -> Material:
        """Entrée ou sortie de stock, enregistrée dans l'historique des mouvements."""
        quantity = money(adjustment.quantity)
        delta = -quantity if adjustment.type == STOCK_MOVEMENT_OUT else quantity
        logger.info(f"[MaterialService] Stock {adjustment.type} {quantity} for material {material_id}")

        stock_after = await self.repository.adjust_stock(material_id, delta)
        if stock_after is None:
            material = await self.repository.get_by_id(material_id)
            if not material:
                raise MaterialNotFoundException(material_id)
            raise InsufficientStockException(material_id, quantity, material.stock)

        await self.repository.add_movement(
            StockMovement(
                material_id=material_id,
                movement_type=adjustment.type,
                quantity=quantity,
                reason=adjustment.reason,
                stock_after=stock_after,
                user_id=user_id,
            )
        )
        await self.repository.commit()
        return await self.get_material(material_id)

    async def list_movements(self, material_id: int) -> List[StockMovement]:
        await self.get_material(material_id)
        return await self.repository.list_movements(material_id, limit=MOVEMENT_HISTORY_LIMIT)

    async def list_low_stock(self) -> List[Material]:
        return await self.repository.list_low_stock()

    async def list_categories(self) -> List[str]:
        return await self.repository.list_categories()

    async def get_stats(self) -> MaterialStats:
        stats = await self.repository.stats()
        stats["total_value"] = money(stats["total_value"])
        return MaterialStats.model_validate(stats)
