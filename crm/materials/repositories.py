import logging
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func, select, update

from crm.core.repositories import SQLAlchemyRepository, search_clause
from crm.core.utils import utcnow
from crm.materials.interfaces.repositories import AbstractMaterialRepository
from crm.materials.models import Material, MaterialCreate, ProjectMaterial, StockMovement

logger = logging.getLogger(__name__)


def low_stock_clause():
    return (Material.stock <= Material.min_stock) & (Material.is_active == True)  # noqa: E712


class SQLAlchemyMaterialRepository(SQLAlchemyRepository[Material], AbstractMaterialRepository):
    """Implémentation SQLAlchemy du repository des matériaux."""

    model = Material

    async def get_by_id(self, material_id: int) -> Optional[Material]:
        logger.debug(f"[MaterialRepository] Getting material by ID: {material_id}")
        return await self.fetch(material_id)

    async def list(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        category: Optional[str] = None,
        active: Optional[bool] = None,
        low_stock: Optional[bool] = None,
    ) -> Tuple[List[Material], int]:
        logger.debug(f"[MaterialRepository] Listing materials: offset={offset}, limit={limit}, category={category}")
        stmt = self.live()
        if search:
            stmt = stmt.where(search_clause(search, (Material.name, Material.description)))
        if category:
            stmt = stmt.where(Material.category == category)
        if active is not None:
            stmt = stmt.where(Material.is_active == active)
        if low_stock:
            stmt = stmt.where(low_stock_clause())
        stmt = stmt.order_by(Material.name, Material.id)
        return await self.paginate(stmt, offset, limit)

    async def create(self, material_data: MaterialCreate) -> Material:
        logger.debug(f"[MaterialRepository] Creating material: {material_data.name}")
        return await self.add(Material(**material_data.model_dump()))

    async def update(self, material: Material, changes: dict) -> Material:
        return await self.apply(material, changes)

    async def delete(self, material: Material) -> None:
        await self.soft_delete(material)

    async def sku_exists(self, sku: str, exclude_id: Optional[int] = None) -> bool:
        return await self.exists(exclude_id=exclude_id, sku=sku)

    async def is_referenced(self, material_id: int) -> bool:
        count = await self.db.scalar(
            select(func.count()).select_from(ProjectMaterial).where(ProjectMaterial.material_id == material_id)
        )
        return bool(count)

    async def adjust_stock(self, material_id: int, delta: Decimal) -> Optional[Decimal]:
        stmt = (
            update(Material)
            .where(Material.id == material_id, Material.is_deleted == False)  # noqa: E712
            .values(stock=Material.stock + delta, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if delta < 0:
            # La garde et la décrémentation se font dans la même instruction
            stmt = stmt.where(Material.stock >= -delta)
        result = await self.db.execute(stmt)
        if result.rowcount == 0:
            logger.warning(f"[MaterialRepository] Stock update refused for material {material_id} (delta={delta})")
            return None
        return await self.db.scalar(select(Material.stock).where(Material.id == material_id))

    async def add_movement(self, movement: StockMovement) -> StockMovement:
        self.db.add(movement)
        await self.db.flush()
        return movement

    async def list_movements(self, material_id: int, limit: int = 100) -> List[StockMovement]:
        result = await self.db.execute(
            select(StockMovement)
            .where(StockMovement.material_id == material_id)
            .order_by(StockMovement.created_at.desc(), StockMovement.id.desc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def list_low_stock(self) -> List[Material]:
        return await self.all(self.live().where(low_stock_clause()).order_by(Material.name))

    async def list_categories(self) -> List[str]:
        result = await self.db.execute(
            select(Material.category)
            .where(Material.is_deleted == False, Material.is_active == True)  # noqa: E712
            .distinct()
            .order_by(Material.category)
        )
        return [category for category in result.scalars().all() if category]

    async def stats(self) -> Dict:
        live = Material.is_deleted == False  # noqa: E712
        total_value = await self.db.scalar(
            select(func.coalesce(func.sum(Material.stock * Material.unit_price), 0)).where(live)
        )
        low_stock = await self.db.scalar(select(func.count()).select_from(Material).where(live, low_stock_clause()))
        rows = await self.db.execute(
            select(Material.category, func.count())
            .where(live, Material.is_active == True)  # noqa: E712
            .group_by(Material.category)
            .order_by(Material.category)
        )
        return {
            "total_materials": await self.count(),
            "active_materials": await self.count(is_active=True),
            "low_stock_materials": low_stock or 0,
            "total_value": Decimal(str(total_value or 0)),
            "categories_stats": [{"category": cat, "count": n} for cat, n in rows.all()],
        }
