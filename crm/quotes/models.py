from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Optional

from pydantic import computed_field
from sqlmodel import Field, Relationship, SQLModel

from crm.core.models import UTC_DATETIME, SoftDeleteMixin, TimestampMixin
from crm.core.schemas import ClientSummary, PatchModel, ProjectSummary
from crm.core.utils import utcnow
from crm.documents.schemas import DocumentItemBase, DocumentItemCreate, DocumentItemRead
from crm.documents.status import effective_quote_status

if TYPE_CHECKING:
    from crm.clients.models import Client
    from crm.projects.models import Project


# --- QuoteItem ---

class QuoteItem(DocumentItemBase, table=True):
    """Ligne de devis; supprimée physiquement avec son devis."""
    __tablename__ = "quote_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    quote_id: int = Field(foreign_key="quotes.id", index=True)
    position: int = Field(default=0)
    total: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    created_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=UTC_DATETIME)

    quote: Optional["Quote"] = Relationship(back_populates="items")


# --- Quote ---

class QuoteBase(SQLModel):
    client_id: int = Field(foreign_key="clients.id", index=True)
    project_id: Optional[int] = Field(default=None, foreign_key="projects.id", index=True)
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None)
    status: str = Field(default="draft", max_length=20, index=True)
    valid_until: Optional[date] = Field(default=None)
    subtotal: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    tax_rate: Decimal = Field(default=Decimal("0"), max_digits=5, decimal_places=2)
    tax_amount: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    discount: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    total: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    notes: Optional[str] = Field(default=None)
    terms: Optional[str] = Field(default=None)


class Quote(QuoteBase, TimestampMixin, SoftDeleteMixin, table=True):
    __tablename__ = "quotes"

    id: Optional[int] = Field(default=None, primary_key=True)
    quote_number: str = Field(..., max_length=32, unique=True, index=True)

    client: Optional["Client"] = Relationship(back_populates="quotes")
    project: Optional["Project"] = Relationship(back_populates="quotes")
    items: List[QuoteItem] = Relationship(
        back_populates="quote",
        sa_relationship_kwargs={"order_by": "QuoteItem.position"},
    )


class QuoteCreate(SQLModel):
    client_id: int = Field(..., ge=1)
    project_id: Optional[int] = Field(default=None, ge=1)
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    valid_until: Optional[date] = None
    tax_rate: Decimal = Field(default=Decimal("0"), ge=0, le=100, max_digits=5, decimal_places=2)
    discount: Decimal = Field(default=Decimal("0"), ge=0, max_digits=15, decimal_places=2)
    notes: Optional[str] = None
    terms: Optional[str] = None
    items: List[DocumentItemCreate] = Field(..., min_length=1)


class QuoteUpdate(PatchModel):
    """Mise à jour partielle; `items` remplace l'ensemble des lignes."""
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    project_id: Optional[int] = Field(default=None, ge=1)
    status: Optional[str] = Field(default=None, max_length=20)
    valid_until: Optional[date] = None
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100, max_digits=5, decimal_places=2)
    discount: Optional[Decimal] = Field(default=None, ge=0, max_digits=15, decimal_places=2)
    notes: Optional[str] = None
    terms: Optional[str] = None
    items: Optional[List[DocumentItemCreate]] = Field(default=None, min_length=1)


class QuoteRead(QuoteBase):
    id: int
    quote_number: str
    created_at: datetime
    updated_at: datetime
    client: Optional[ClientSummary] = None
    project: Optional[ProjectSummary] = None
    items: List[DocumentItemRead] = []

    @computed_field
    @property
    def effective_status(self) -> str:
        return effective_quote_status(self.status, self.valid_until, utcnow().date())


class QuoteResponse(SQLModel):
    message: str
    quote: QuoteRead


class QuoteListResponse(SQLModel):
    quotes: List[QuoteRead]
    total: int
    page: int
    limit: int
    pages: int


class QuoteStats(SQLModel):
    total_quotes: int
    draft_quotes: int
    sent_quotes: int
    accepted_quotes: int
    rejected_quotes: int
    expired_quotes: int
    total_value: Decimal
    accepted_value: Decimal
    this_month_quotes: int
    conversion_rate: float
