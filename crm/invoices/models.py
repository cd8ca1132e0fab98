from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING, List, Literal, Optional

from pydantic import computed_field
from sqlmodel import Field, Relationship, SQLModel

from crm.core.models import UTC_DATETIME, SoftDeleteMixin, TimestampMixin
from crm.core.schemas import ClientSummary, OrmBaseModel, PatchModel, ProjectSummary
from crm.core.utils import utcnow
from crm.documents.schemas import DocumentItemBase, DocumentItemCreate, DocumentItemRead
from crm.documents.status import effective_invoice_status

if TYPE_CHECKING:
    from crm.clients.models import Client
    from crm.projects.models import Project

PaymentMethod = Literal["bank_transfer", "check", "cash", "card", "other"]


class InvoiceItem(DocumentItemBase, table=True):
    """Ligne de facture; supprimée physiquement avec sa facture."""
    __tablename__ = "invoice_items"

    id: Optional[int] = Field(default=None, primary_key=True)
    invoice_id: int = Field(foreign_key="invoices.id", index=True)
    position: int = Field(default=0)
    total: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    created_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=UTC_DATETIME)

    invoice: Optional["Invoice"] = Relationship(back_populates="items")


class InvoicePayment(SQLModel, table=True):
    __tablename__ = "invoice_payments"

    id: Optional[int] = Field(default=None, primary_key=True)
    invoice_id: int = Field(foreign_key="invoices.id", index=True)
    amount: Decimal = Field(..., max_digits=15, decimal_places=2)
    payment_date: date = Field(...)
    method: str = Field(default="bank_transfer", max_length=20)
    reference: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = Field(default=None)
    user_id: Optional[int] = Field(default=None, foreign_key="users.id")
    created_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=UTC_DATETIME)

    invoice: Optional["Invoice"] = Relationship(back_populates="payments")


class InvoiceBase(SQLModel):
    client_id: int = Field(foreign_key="clients.id", index=True)
    project_id: Optional[int] = Field(default=None, foreign_key="projects.id", index=True)
    quote_id: Optional[int] = Field(default=None, foreign_key="quotes.id", index=True)
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(default=None)
    status: str = Field(default="draft", max_length=20, index=True)
    issue_date: date = Field(...)
    due_date: date = Field(..., index=True)
    paid_date: Optional[date] = Field(default=None)
    subtotal: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    tax_rate: Decimal = Field(default=Decimal("0"), max_digits=5, decimal_places=2)
    tax_amount: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    discount: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    total: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    paid_amount: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    balance: Decimal = Field(default=Decimal("0"), max_digits=15, decimal_places=2)
    notes: Optional[str] = Field(default=None)
    terms: Optional[str] = Field(default=None)


class Invoice(InvoiceBase, TimestampMixin, SoftDeleteMixin, table=True):
    __tablename__ = "invoices"

    id: Optional[int] = Field(default=None, primary_key=True)
    invoice_number: str = Field(..., max_length=32, unique=True, index=True)

    client: Optional["Client"] = Relationship(back_populates="invoices")
    project: Optional["Project"] = Relationship(back_populates="invoices")
    items: List[InvoiceItem] = Relationship(
        back_populates="invoice",
        sa_relationship_kwargs={"order_by": "InvoiceItem.position"},
    )
    payments: List[InvoicePayment] = Relationship(
        back_populates="invoice",
        sa_relationship_kwargs={"order_by": "InvoicePayment.id"},
    )


class InvoiceCreate(SQLModel):
    """Sans `items`, les lignes et les conditions sont reprises du devis accepté `quote_id`."""
    client_id: int = Field(..., ge=1)
    project_id: Optional[int] = Field(default=None, ge=1)
    quote_id: Optional[int] = Field(default=None, ge=1)
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100, max_digits=5, decimal_places=2)
    discount: Optional[Decimal] = Field(default=None, ge=0, max_digits=15, decimal_places=2)
    notes: Optional[str] = None
    terms: Optional[str] = None
    items: Optional[List[DocumentItemCreate]] = Field(default=None, min_length=1)


class InvoiceUpdate(PatchModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    project_id: Optional[int] = Field(default=None, ge=1)
    status: Optional[str] = Field(default=None, max_length=20)
    issue_date: Optional[date] = None
    due_date: Optional[date] = None
    tax_rate: Optional[Decimal] = Field(default=None, ge=0, le=100, max_digits=5, decimal_places=2)
    discount: Optional[Decimal] = Field(default=None, ge=0, max_digits=15, decimal_places=2)
    notes: Optional[str] = None
    terms: Optional[str] = None
    items: Optional[List[DocumentItemCreate]] = Field(default=None, min_length=1)


class PaymentCreate(SQLModel):
    amount: Decimal = Field(..., gt=0, max_digits=15, decimal_places=2)
    payment_date: Optional[date] = None
    method: PaymentMethod = "bank_transfer"
    reference: Optional[str] = Field(default=None, max_length=100)
    notes: Optional[str] = None


class PaymentRead(OrmBaseModel):
    id: int
    amount: Decimal
    payment_date: date
    method: str
    reference: Optional[str] = None
    notes: Optional[str] = None
    created_at: datetime


class InvoiceRead(InvoiceBase):
    id: int
    invoice_number: str
    created_at: datetime
    updated_at: datetime
    client: Optional[ClientSummary] = None
    project: Optional[ProjectSummary] = None
    items: List[DocumentItemRead] = []
    payments: List[PaymentRead] = []

    @computed_field
    @property
    def effective_status(self) -> str:
        return effective_invoice_status(self.status, self.due_date, utcnow().date())


class InvoiceResponse(SQLModel):
    message: str
    invoice: InvoiceRead


class InvoiceListResponse(SQLModel):
    invoices: List[InvoiceRead]
    total: int
    page: int
    limit: int
    pages: int


class InvoiceStats(SQLModel):
    total_invoices: int
    status_count: dict
    overdue_invoices: int
    total_invoiced: Decimal
    total_paid: Decimal
    total_outstanding: Decimal
    this_month_invoices: int
