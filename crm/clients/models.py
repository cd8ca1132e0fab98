from datetime import datetime
from typing import TYPE_CHECKING, List, Literal, Optional

from pydantic import EmailStr
from sqlmodel import Field, Relationship, SQLModel

from crm.core.models import SoftDeleteMixin, TimestampMixin
from crm.core.schemas import PatchModel, ProjectSummary, QuoteSummary

if TYPE_CHECKING:
    from crm.invoices.models import Invoice
    from crm.projects.models import Project
    from crm.quotes.models import Quote

ContactType = Literal["individual", "company"]


class ClientBase(SQLModel):
    name: str = Field(..., min_length=1, max_length=255, index=True)
    email: Optional[str] = Field(default=None, max_length=255, index=True)
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    company: Optional[str] = Field(default=None, max_length=255)
    tax_id: Optional[str] = Field(default=None, max_length=50)
    contact_type: str = Field(default="individual", max_length=20)
    notes: Optional[str] = Field(default=None)
    is_active: bool = Field(default=True)


class Client(ClientBase, TimestampMixin, SoftDeleteMixin, table=True):
    __tablename__ = "clients"

    id: Optional[int] = Field(default=None, primary_key=True)

    projects: List["Project"] = Relationship(back_populates="client")
    quotes: List["Quote"] = Relationship(back_populates="client")
    invoices: List["Invoice"] = Relationship(back_populates="client")


class ClientCreate(SQLModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    company: Optional[str] = Field(default=None, max_length=255)
    tax_id: Optional[str] = Field(default=None, max_length=50)
    contact_type: ContactType = "individual"
    notes: Optional[str] = None
    is_active: bool = True


class ClientUpdate(PatchModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(default=None, max_length=50)
    address: Optional[str] = Field(default=None, max_length=255)
    city: Optional[str] = Field(default=None, max_length=100)
    state: Optional[str] = Field(default=None, max_length=100)
    zip_code: Optional[str] = Field(default=None, max_length=20)
    company: Optional[str] = Field(default=None, max_length=255)
    tax_id: Optional[str] = Field(default=None, max_length=50)
    contact_type: Optional[ContactType] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class ClientRead(ClientBase):
    id: int
    created_at: datetime
    updated_at: datetime


class ClientReadWithDetails(ClientRead):
    projects: List[ProjectSummary] = []
    quotes: List[QuoteSummary] = []


class ClientResponse(SQLModel):
    message: str
    client: ClientRead


class ClientListResponse(SQLModel):
    clients: List[ClientRead]
    total: int
    page: int
    limit: int
    pages: int


class ContactTypeCount(SQLModel):
    contact_type: str
    count: int


class ClientStats(SQLModel):
    total_clients: int
    active_clients: int
    inactive_clients: int
    contact_types: List[ContactTypeCount]
    recent_clients: int
