from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Literal, Optional

from sqlmodel import Field, Relationship, SQLModel

from crm.core.models import SoftDeleteMixin, TimestampMixin
from crm.core.schemas import ClientSummary, PatchModel, QuoteSummary

if TYPE_CHECKING:
    from crm.clients.models import Client
    from crm.invoices.models import Invoice
    from crm.materials.models import ProjectMaterial
    from crm.quotes.models import Quote

ProjectStatus = Literal["planning", "in_progress", "completed", "cancelled", "on_hold"]
ProjectPriority = Literal["low", "medium", "high", "urgent"]
ProjectType = Literal["construction", "renovation", "maintenance"]


class ProjectBase(SQLModel):
    name: str = Field(..., min_length=1, max_length=255, index=True)
    description: Optional[str] = Field(default=None)
    client_id: int = Field(foreign_key="clients.id", index=True)
    status: str = Field(default="planning", max_length=20, index=True)
    priority: str = Field(default="medium", max_length=20)
    project_type: str = Field(default="construction", max_length=20)
    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    start_date: Optional[date] = Field(default=None)
    end_date: Optional[date] = Field(default=None, index=True)
    budget: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    estimated_cost: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    actual_cost: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    progress: int = Field(default=0, ge=0, le=100)
    notes: Optional[str] = Field(default=None)


class Project(ProjectBase, TimestampMixin, SoftDeleteMixin, table=True):
    __tablename__ = "projects"

    id: Optional[int] = Field(default=None, primary_key=True)
    code: str = Field(..., max_length=32, unique=True, index=True)

    client: Optional["Client"] = Relationship(back_populates="projects")
    quotes: List["Quote"] = Relationship(back_populates="project")
    invoices: List["Invoice"] = Relationship(back_populates="project")
    project_materials: List["ProjectMaterial"] = Relationship(back_populates="project")


class ProjectCreate(SQLModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    client_id: int = Field(..., ge=1)
    status: ProjectStatus = "planning"
    priority: ProjectPriority = "medium"
    project_type: ProjectType = "construction"
    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Decimal = Field(default=Decimal("0"), ge=0, max_digits=15, decimal_places=2)
    estimated_cost: Decimal = Field(default=Decimal("0"), ge=0, max_digits=15, decimal_places=2)
    notes: Optional[str] = None


class ProjectUpdate(PatchModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    client_id: Optional[int] = Field(default=None, ge=1)
    status: Optional[ProjectStatus] = None
    priority: Optional[ProjectPriority] = None
    project_type: Optional[ProjectType] = None
    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[Decimal] = Field(default=None, ge=0, max_digits=15, decimal_places=2)
    estimated_cost: Optional[Decimal] = Field(default=None, ge=0, max_digits=15, decimal_places=2)
    actual_cost: Optional[Decimal] = Field(default=None, ge=0, max_digits=15, decimal_places=2)
    progress: Optional[int] = Field(default=None, ge=0, le=100)
    notes: Optional[str] = None


class ProjectRead(ProjectBase):
    id: int
    code: str
    created_at: datetime
    updated_at: datetime
    client: Optional[ClientSummary] = None


class ProjectReadWithDetails(ProjectRead):
    quotes: List[QuoteSummary] = []


class ProjectResponse(SQLModel):
    message: str
    project: ProjectRead


class ProjectListResponse(SQLModel):
    projects: List[ProjectRead]
    total: int
    page: int
    limit: int
    pages: int


class PriorityCount(SQLModel):
    priority: str
    count: int


class TypeCount(SQLModel):
    project_type: str
    count: int


class ProjectStatsSummary(SQLModel):
    total_projects: int
    active_projects: int
    completed_projects: int
    planning_projects: int
    total_budget: Decimal
    total_actual_cost: Decimal
    average_progress: float


class ProjectStats(SQLModel):
    stats: ProjectStatsSummary
    status_count: dict
    priority_stats: List[PriorityCount]
    type_stats: List[TypeCount]
