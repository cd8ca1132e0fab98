from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Literal, Optional

from pydantic import computed_field
from sqlmodel import Field, Relationship, SQLModel

from crm.core.models import UTC_DATETIME, SoftDeleteMixin, TimestampMixin
from crm.core.schemas import OrmBaseModel, PatchModel, ProjectSummary
from crm.core.utils import utcnow

if TYPE_CHECKING:
    from crm.projects.models import Project

MovementType = Literal["in", "out"]
ProjectMaterialStatus = Literal["planned", "ordered", "delivered", "used"]


# --- Material ---

class MaterialBase(SQLModel):
    name: str = Field(..., min_length=1, max_length=255, index=True)
    description: Optional[str] = Field(default=None)
    category: str = Field(..., min_length=1, max_length=100, index=True)
    unit: str = Field(..., min_length=1, max_length=20)
    unit_price: Decimal = Field(..., ge=0, max_digits=15, decimal_places=2)
    supplier: Optional[str] = Field(default=None, max_length=255)
    sku: Optional[str] = Field(default=None, max_length=100, index=True)
    stock: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    min_stock: Decimal = Field(default=Decimal("0"), ge=0, max_digits=12, decimal_places=2)
    is_active: bool = Field(default=True)
    notes: Optional[str] = Field(default=None)


class Material(MaterialBase, TimestampMixin, SoftDeleteMixin, table=True):
    __tablename__ = "materials"

    id: Optional[int] = Field(default=None, primary_key=True)

    project_materials: List["ProjectMaterial"] = Relationship(back_populates="material")
    movements: List["StockMovement"] = Relationship(back_populates="material")


class MaterialCreate(MaterialBase):
    pass


class MaterialUpdate(PatchModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    category: Optional[str] = Field(default=None, min_length=1, max_length=100)
    unit: Optional[str] = Field(default=None, min_length=1, max_length=20)
    unit_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=15, decimal_places=2)
    supplier: Optional[str] = Field(default=None, max_length=255)
    sku: Optional[str] = Field(default=None, max_length=100)
    stock: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    min_stock: Optional[Decimal] = Field(default=None, ge=0, max_digits=12, decimal_places=2)
    is_active: Optional[bool] = None
    notes: Optional[str] = None


class MaterialRead(MaterialBase):
    id: int
    created_at: datetime
    updated_at: datetime

    @computed_field
    @property
    def is_low_stock(self) -> bool:
        return self.is_active and self.stock <= self.min_stock


class MaterialResponse(SQLModel):
    message: str
    material: MaterialRead


class MaterialListResponse(SQLModel):
    materials: List[MaterialRead]
    total: int
    page: int
    limit: int
    pages: int


class LowStockResponse(SQLModel):
    materials: List[MaterialRead]
    count: int


class CategoryCount(SQLModel):
    category: str
    count: int


class MaterialStats(SQLModel):
    total_materials: int
    active_materials: int
    low_stock_materials: int
    total_value: Decimal
    categories_stats: List[CategoryCount]


# --- Mouvements de stock ---

class StockAdjustment(SQLModel):
    """Corps de PATCH /materials/{id}/stock."""
    quantity: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    type: MovementType
    reason: Optional[str] = Field(default=None, max_length=255)


class StockMovement(SQLModel, table=True):
    """Historique des entrées et sorties de stock d'un matériau."""
    __tablename__ = "stock_movements"

    id: Optional[int] = Field(default=None, primary_key=True)
    material_id: int = Field(foreign_key="materials.id", index=True)
    movement_type: str = Field(..., max_length=10)
    quantity: Decimal = Field(..., max_digits=12, decimal_places=2)
    reason: Optional[str] = Field(default=None, max_length=255)
    stock_after: Decimal = Field(..., max_digits=12, decimal_places=2)
    user_id: Optional[int] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=utcnow, nullable=False, index=True, sa_type=UTC_DATETIME)

    material: Optional[Material] = Relationship(back_populates="movements")


class StockMovementRead(OrmBaseModel):
    id: int
    material_id: int
    movement_type: str
    quantity: Decimal
    reason: Optional[str] = None
    stock_after: Decimal
    user_id: Optional[int] = None
    created_at: datetime


class StockMovementListResponse(SQLModel):
    material_id: int
    movements: List[StockMovementRead]


# --- Matériaux d'un projet ---

class ProjectMaterial(SQLModel, table=True):
    __tablename__ = "project_materials"

    id: Optional[int] = Field(default=None, primary_key=True)
    project_id: int = Field(foreign_key="projects.id", index=True)
    material_id: int = Field(foreign_key="materials.id", index=True)
    quantity_planned: Decimal = Field(..., max_digits=12, decimal_places=2)
    quantity_used: Decimal = Field(default=Decimal("0"), max_digits=12, decimal_places=2)
    unit_price: Decimal = Field(..., max_digits=15, decimal_places=2)
    total_cost: Decimal = Field(..., max_digits=15, decimal_places=2)
    status: str = Field(default="planned", max_length=20)
    delivery_date: Optional[date] = Field(default=None)
    notes: Optional[str] = Field(default=None)
    created_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=UTC_DATETIME)
    updated_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=UTC_DATETIME, sa_column_kwargs={"onupdate": utcnow})

    project: Optional["Project"] = Relationship(back_populates="project_materials")
    material: Optional[Material] = Relationship(back_populates="project_materials")


class ProjectMaterialCreate(SQLModel):
    material_id: int = Field(..., ge=1)
    quantity_planned: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    # Prix du catalogue utilisé si absent
    unit_price: Optional[Decimal] = Field(default=None, ge=0, max_digits=15, decimal_places=2)
    status: ProjectMaterialStatus = "planned"
    delivery_date: Optional[date] = None
    notes: Optional[str] = None


class MaterialSummary(OrmBaseModel):
    id: int
    name: str
    category: str
    unit: str
    unit_price: Decimal


class ProjectMaterialRead(OrmBaseModel):
    id: int
    project_id: int
    material_id: int
    quantity_planned: Decimal
    quantity_used: Decimal
    unit_price: Decimal
    total_cost: Decimal
    status: str
    delivery_date: Optional[date] = None
    notes: Optional[str] = None
    created_at: datetime
    material: Optional[MaterialSummary] = None


class ProjectMaterialResponse(SQLModel):
    message: str
    project_material: ProjectMaterialRead


class ProjectMaterialListResponse(SQLModel):
    project: ProjectSummary
    materials: List[ProjectMaterialRead]
    total_cost: Decimal
