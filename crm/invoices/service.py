import logging
from datetime import date, timedelta
from typing import List, Optional, Tuple

from crm.core.utils import utcnow
from crm.documents import status as status_machine
from crm.documents.calculator import compute_balance, compute_totals, money, totals_from_subtotal
from crm.documents.exceptions import FinalizedDocumentException
from crm.documents.schemas import DocumentItemCreate
from crm.invoices.constants import (
    DEFAULT_PAYMENT_TERM_DAYS,
    INVOICE_OUTSTANDING_STATUSES,
    INVOICE_STATUS_OVERDUE,
    INVOICE_STATUS_PAID,
)
from crm.invoices.exceptions import (
    InvoiceClientNotFoundException,
    InvoiceDatesException,
    InvoiceItemsRequiredException,
    InvoiceNotFoundException,
    InvoiceReferenceException,
    InvoiceTotalBelowPaidException,
    PaymentExceedsBalanceException,
    PaymentNotAllowedException,
    QuoteAlreadyInvoicedException,
)
from crm.invoices.interfaces.repositories import AbstractInvoiceRepository
from crm.invoices.models import Invoice, InvoiceCreate, InvoicePayment, InvoiceStats, InvoiceUpdate, PaymentCreate
from crm.quotes.constants import QUOTE_STATUS_ACCEPTED

logger = logging.getLogger(__name__)

FINANCIAL_FIELDS = ("items", "tax_rate", "discount")


def _check_dates(issue_date: date, due_date: date) -> None:
    if due_date < issue_date:
        raise InvoiceDatesException()


class InvoiceService:
    """
    Service applicatif des factures.

    Le solde (`balance`) vaut toujours total - paid_amount. Un paiement qui
    solde la facture la fait passer au statut 'paid'.
    """

    def __init__(self, repository: AbstractInvoiceRepository):
        self.repository = repository

    async def list_invoices(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        project_id: Optional[int] = None,
    ) -> Tuple[List[Invoice], int]:
        if status:
            status_machine.validate_status(status_machine.INVOICE, status)
        return await self.repository.list(
            offset=offset, limit=limit, search=search, status=status, client_id=client_id, project_id=project_id
        )

    async def get_invoice(self, invoice_id: int) -> Invoice:
        invoice = await self.repository.get_by_id(invoice_id)
        if not invoice:
            raise InvoiceNotFoundException(invoice_id)
        return invoice

    async def _check_project(self, project_id: Optional[int], client_id: int) -> None:
        if project_id is None:
            return
        project = await self.repository.get_project(project_id)
        if not project or project.client_id != client_id:
            raise InvoiceReferenceException("Projet", project_id, client_id)

    async def create_invoice(self, invoice_data: InvoiceCreate) -> Invoice:
        logger.info(f"[InvoiceService] Create invoice '{invoice_data.title}' for client {invoice_data.client_id}")
        if not await self.repository.client_exists(invoice_data.client_id):
            raise InvoiceClientNotFoundException(invoice_data.client_id)

        items = invoice_data.items
        tax_rate = invoice_data.tax_rate
        discount = invoice_data.discount
        project_id = invoice_data.project_id

        if invoice_data.quote_id is not None:
            quote = await self.repository.get_quote(invoice_data.quote_id)
            if not quote or quote.client_id != invoice_data.client_id:
                raise InvoiceReferenceException("Devis", invoice_data.quote_id, invoice_data.client_id)
            if await self.repository.quote_invoiced(quote.id):
                logger.warning(f"[InvoiceService] Quote {quote.id} already has a live invoice")
                raise QuoteAlreadyInvoicedException(quote.id)
            if items is None:
                if quote.status != QUOTE_STATUS_ACCEPTED:
                    raise InvoiceItemsRequiredException()
                # Reprise des lignes et conditions du devis accepté
                items = [
                    DocumentItemCreate(
                        description=item.description,
                        quantity=item.quantity,
                        unit=item.unit,
                        unit_price=item.unit_price,
                        notes=item.notes,
                    )
                    for item in quote.items
                ]
                tax_rate = quote.tax_rate if tax_rate is None else tax_rate
                discount = quote.discount if discount is None else discount
                project_id = project_id or quote.project_id
        if not items:
            raise InvoiceItemsRequiredException()
        await self._check_project(project_id, invoice_data.client_id)

        issue_date = invoice_data.issue_date or utcnow().date()
        due_date = invoice_data.due_date or issue_date + timedelta(days=DEFAULT_PAYMENT_TERM_DAYS)
        _check_dates(issue_date, due_date)

        tax_rate = tax_rate if tax_rate is not None else 0
        discount = discount if discount is not None else 0
        totals = compute_totals(items, tax_rate, discount)
        invoice_number = await self.repository.next_number()
        invoice = Invoice(
            invoice_number=invoice_number,
            client_id=invoice_data.client_id,
            project_id=project_id,
            quote_id=invoice_data.quote_id,
            title=invoice_data.title,
            description=invoice_data.description,
            issue_date=issue_date,
            due_date=due_date,
            tax_rate=money(tax_rate),
            discount=money(discount),
            notes=invoice_data.notes,
            terms=invoice_data.terms,
            balance=compute_balance(totals.total, 0),
            **totals.model_dump(),
        )
        invoice = await self.repository.create(invoice, items)
        await self.repository.commit()
        logger.info(f"[InvoiceService] Invoice {invoice_number} (ID {invoice.id}) created, total={totals.total}")
        return await self.get_invoice(invoice.id)

    def _paid_changes(self, invoice: Invoice, paid_date: Optional[date] = None) -> dict:
        return {
            "status": INVOICE_STATUS_PAID,
            "paid_amount": invoice.total,
            "balance": compute_balance(invoice.total, invoice.total),
            "paid_date": paid_date or invoice.paid_date or utcnow().date(),
        }

    async def update_invoice(self, invoice_id: int, invoice_data: InvoiceUpdate) -> Invoice:
        logger.info(f"[InvoiceService] Update invoice ID: {invoice_id}")
        invoice = await self.get_invoice(invoice_id)
        changes = invoice_data.changes()
        if any(field in changes for field in FINANCIAL_FIELDS):
            status_machine.ensure_financial_edit_allowed(status_machine.INVOICE, invoice.status)
        if "project_id" in changes:
            await self._check_project(changes["project_id"], invoice.client_id)
        _check_dates(changes.get("issue_date", invoice.issue_date), changes.get("due_date", invoice.due_date))

        items = invoice_data.items if changes.pop("items", None) is not None else None
        tax_rate = changes.get("tax_rate", invoice.tax_rate)
        discount = changes.get("discount", invoice.discount)
        if items is not None:
            changes.update(compute_totals(items, tax_rate, discount).model_dump())
        elif "tax_rate" in changes or "discount" in changes:
            changes.update(totals_from_subtotal(invoice.subtotal, tax_rate, discount).model_dump())
        settled = False
        if "total" in changes:
            if changes["total"] < invoice.paid_amount:
                logger.warning(f"[InvoiceService] Invoice {invoice_id} total {changes['total']} below paid {invoice.paid_amount}")
                raise InvoiceTotalBelowPaidException(changes["total"], invoice.paid_amount)
            changes["balance"] = compute_balance(changes["total"], invoice.paid_amount)
            settled = invoice.paid_amount > 0 and changes["balance"] <= 0
        if items is not None:
            await self.repository.replace_items(invoice, items)

        new_status = changes.pop("status", None)
        await self.repository.update(invoice, changes)
        if new_status is not None:
            await self._apply_status(invoice, new_status)
        elif settled and invoice.status in INVOICE_OUTSTANDING_STATUSES:
            # Le nouveau total est entièrement couvert par les paiements reçus
            await self.repository.update(invoice, self._paid_changes(invoice))
        await self.repository.commit()
        return await self.get_invoice(invoice_id)

    async def _apply_status(self, invoice: Invoice, new_status: str) -> None:
        status_machine.ensure_transition(status_machine.INVOICE, invoice.status, new_status)
        changes = self._paid_changes(invoice) if new_status == INVOICE_STATUS_PAID else {"status": new_status}
        await self.repository.update(invoice, changes)

    async def change_status(self, invoice_id: int, new_status: str) -> Invoice:
        invoice = await self.get_invoice(invoice_id)
        logger.info(f"[InvoiceService] Invoice {invoice_id} status {invoice.status} -> {new_status}")
        await self._apply_status(invoice, new_status)
        await self.repository.commit()
        return await self.get_invoice(invoice_id)

    async def record_payment(self, invoice_id: int, payment_data: PaymentCreate, user_id: Optional[int] = None) -> Invoice:
        """Enregistre un paiement; la facture passe à 'paid' quand le solde atteint zéro."""
        invoice = await self.get_invoice(invoice_id)
        if invoice.status not in INVOICE_OUTSTANDING_STATUSES:
            logger.warning(f"[InvoiceService] Payment refused on invoice {invoice_id} ({invoice.status})")
            raise PaymentNotAllowedException(invoice_id, invoice.status)

        amount = money(payment_data.amount)
        if amount > invoice.balance:
            raise PaymentExceedsBalanceException(amount, invoice.balance)
        # Garde et incrément dans la même instruction UPDATE
        applied = await self.repository.apply_payment(invoice_id, amount)
        if applied is None:
            raise PaymentExceedsBalanceException(amount, invoice.balance)

        payment_date = payment_data.payment_date or utcnow().date()
        await self.repository.add_payment(
            InvoicePayment(
                invoice_id=invoice_id,
                amount=amount,
                payment_date=payment_date,
                method=payment_data.method,
                reference=payment_data.reference,
                notes=payment_data.notes,
                user_id=user_id,
            )
        )
        paid_amount, balance = money(applied[0]), money(applied[1])
        if balance <= 0:
            changes = self._paid_changes(invoice, paid_date=payment_date)
        else:
            changes = {"paid_amount": paid_amount, "balance": balance}
        await self.repository.update(invoice, changes)
        await self.repository.commit()
        logger.info(f"[InvoiceService] Payment {amount} recorded on invoice {invoice_id}, balance={changes['balance']}")
        return await self.get_invoice(invoice_id)

    async def delete_invoice(self, invoice_id: int) -> None:
        logger.info(f"[InvoiceService] Delete invoice ID: {invoice_id}")
        invoice = await self.get_invoice(invoice_id)
        if not status_machine.can_delete(status_machine.INVOICE, invoice.status):
            logger.warning(f"[InvoiceService] Invoice {invoice_id} is {invoice.status}, delete refused.")
            raise FinalizedDocumentException("la facture", invoice.status, "supprimer")
        await self.repository.delete(invoice)
        await self.repository.commit()

    async def get_stats(self) -> InvoiceStats:
        raw = await self.repository.stats()
        counts = raw["status_count"]
        return InvoiceStats(
            total_invoices=sum(counts.values()),
            status_count=counts,
            overdue_invoices=counts.get(INVOICE_STATUS_OVERDUE, 0) + raw["late_sent"],
            total_invoiced=money(raw["total_invoiced"]),
            total_paid=money(raw["total_paid"]),
            total_outstanding=money(raw["total_outstanding"]),
            this_month_invoices=raw["this_month_invoices"],
        )
