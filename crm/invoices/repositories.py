import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select, update
from sqlalchemy.orm import selectinload

from crm.clients.models import Client
from crm.core.repositories import SQLAlchemyRepository, search_clause
from crm.core.utils import start_of_month, utcnow
from crm.documents.calculator import line_total
from crm.documents.numbering import generate_invoice_number
from crm.documents.schemas import DocumentItemCreate
from crm.invoices.constants import (
    INVOICE_OUTSTANDING_STATUSES,
    INVOICE_STATUS_CANCELLED,
    INVOICE_STATUS_SENT,
    INVOICE_STATUSES,
)
from crm.invoices.interfaces.repositories import AbstractInvoiceRepository
from crm.invoices.models import Invoice, InvoiceItem, InvoicePayment
from crm.projects.models import Project
from crm.quotes.models import Quote

logger = logging.getLogger(__name__)


class SQLAlchemyInvoiceRepository(SQLAlchemyRepository[Invoice], AbstractInvoiceRepository):
    """Implémentation SQLAlchemy du repository des factures."""

    model = Invoice
    load_options = (
        selectinload(Invoice.items),
        selectinload(Invoice.payments),
        selectinload(Invoice.client),
        selectinload(Invoice.project),
    )

    async def get_by_id(self, invoice_id: int) -> Optional[Invoice]:
        logger.debug(f"[InvoiceRepository] Getting invoice by ID: {invoice_id}")
        return await self.fetch(invoice_id)

    async def list(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        project_id: Optional[int] = None,
    ) -> Tuple[List[Invoice], int]:
        stmt = self.live()
        if search:
            stmt = stmt.where(search_clause(search, (Invoice.title, Invoice.invoice_number)))
        if status:
            stmt = stmt.where(Invoice.status == status)
        if client_id:
            stmt = stmt.where(Invoice.client_id == client_id)
        if project_id:
            stmt = stmt.where(Invoice.project_id == project_id)
        stmt = stmt.order_by(Invoice.created_at.desc(), Invoice.id.desc())
        return await self.paginate(stmt, offset, limit)

    def _build_items(self, invoice_id: int, items: Sequence[DocumentItemCreate]) -> List[InvoiceItem]:
        return [
            InvoiceItem(
                invoice_id=invoice_id,
                position=position,
                total=line_total(item.quantity, item.unit_price),
                **item.model_dump(),
            )
            for position, item in enumerate(items)
        ]

    async def create(self, invoice: Invoice, items: Sequence[DocumentItemCreate]) -> Invoice:
        logger.debug(f"[InvoiceRepository] Creating invoice {invoice.invoice_number} with {len(items)} item(s)")
        await self.add(invoice)
        self.db.add_all(self._build_items(invoice.id, items))
        await self.db.flush()
        return invoice

    async def update(self, invoice: Invoice, changes: dict) -> Invoice:
        return await self.apply(invoice, changes)

    async def replace_items(self, invoice: Invoice, items: Sequence[DocumentItemCreate]) -> None:
        await self.delete_children(invoice, "items", delete(InvoiceItem).where(InvoiceItem.invoice_id == invoice.id))
        self.db.add_all(self._build_items(invoice.id, items))
        await self.db.flush()

    async def delete(self, invoice: Invoice) -> None:
        await self.delete_children(invoice, "items", delete(InvoiceItem).where(InvoiceItem.invoice_id == invoice.id))
        await self.soft_delete(invoice)

    async def add_payment(self, payment: InvoicePayment) -> InvoicePayment:
        self.db.add(payment)
        await self.db.flush()
        return payment

    async def apply_payment(self, invoice_id: int, amount: Decimal) -> Optional[Tuple[Decimal, Decimal]]:
        stmt = (
            update(Invoice)
            .where(
                Invoice.id == invoice_id,
                Invoice.is_deleted == False,  # noqa: E712
                Invoice.status.in_(INVOICE_OUTSTANDING_STATUSES),
                Invoice.balance >= amount,
            )
            .values(paid_amount=Invoice.paid_amount + amount, balance=Invoice.balance - amount, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount == 0:
            logger.warning(f"[InvoiceRepository] Payment of {amount} refused for invoice {invoice_id}")
            return None
        row = (await self.db.execute(select(Invoice.paid_amount, Invoice.balance).where(Invoice.id == invoice_id))).one()
        return Decimal(str(row[0])), Decimal(str(row[1]))

    async def quote_invoiced(self, quote_id: int) -> bool:
        count = await self.db.scalar(
            select(func.count())
            .select_from(Invoice)
            .where(
                Invoice.quote_id == quote_id,
                Invoice.is_deleted == False,  # noqa: E712
                Invoice.status != INVOICE_STATUS_CANCELLED,
            )
        )
        return bool(count)

    async def next_number(self) -> str:
        return await generate_invoice_number(self.db)

    async def client_exists(self, client_id: int) -> bool:
        count = await self.db.scalar(
            select(func.count()).select_from(Client).where(Client.id == client_id, Client.is_deleted == False)  # noqa: E712
        )
        return bool(count)

    async def get_project(self, project_id: int) -> Optional[Project]:
        result = await self.db.execute(
            select(Project).where(Project.id == project_id, Project.is_deleted == False)  # noqa: E712
        )
        return result.scalars().first()

    async def get_quote(self, quote_id: int) -> Optional[Quote]:
        result = await self.db.execute(
            select(Quote)
            .where(Quote.id == quote_id, Quote.is_deleted == False)  # noqa: E712
            .options(selectinload(Quote.items))
        )
        return result.scalars().first()

    async def stats(self) -> Dict:
        live = Invoice.is_deleted == False  # noqa: E712
        rows = await self.db.execute(select(Invoice.status, func.count()).where(live).group_by(Invoice.status))
        status_count = {s: 0 for s in INVOICE_STATUSES}
        status_count.update({s: n for s, n in rows.all()})

        invoiced, paid = (
            await self.db.execute(
                select(
                    func.coalesce(func.sum(Invoice.total), 0),
                    func.coalesce(func.sum(Invoice.paid_amount), 0),
                ).where(live, Invoice.status != INVOICE_STATUS_CANCELLED)
            )
        ).one()
        outstanding = await self.db.scalar(
            select(func.coalesce(func.sum(Invoice.balance), 0)).where(live, Invoice.status.in_(INVOICE_OUTSTANDING_STATUSES))
        )
        late_sent = await self.db.scalar(
            select(func.count())
            .select_from(Invoice)
            .where(live, Invoice.status == INVOICE_STATUS_SENT, Invoice.due_date < utcnow().date())
        )
        return {
            "status_count": status_count,
            "late_sent": late_sent or 0,
            "total_invoiced": Decimal(str(invoiced)),
            "total_paid": Decimal(str(paid)),
            "total_outstanding": Decimal(str(outstanding or 0)),
            "this_month_invoices": await self.count(created_at__gte=start_of_month(utcnow())),
        }
