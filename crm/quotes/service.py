import logging
from decimal import Decimal
from typing import List, Optional, Tuple

from crm.documents import status as status_machine
from crm.documents.calculator import compute_totals, money, totals_from_subtotal
from crm.documents.exceptions import FinalizedDocumentException
from crm.quotes.constants import QUOTE_STATUS_ACCEPTED
from crm.quotes.exceptions import (
    QuoteClientNotFoundException,
    QuoteNotFoundException,
    QuoteProjectMismatchException,
)
from crm.quotes.interfaces.repositories import AbstractQuoteRepository
from crm.quotes.models import Quote, QuoteCreate, QuoteStats, QuoteUpdate

logger = logging.getLogger(__name__)

FINANCIAL_FIELDS = ("items", "tax_rate", "discount")


class QuoteService:
    """
    Service applicatif des devis.

    Les montants (sous-total, taxe, total) sont recalculés à la création et
    dès que les lignes, le taux de taxe ou la remise changent. Le statut suit
    la machine à états de `crm.documents.status`.
    """

    def __init__(self, repository: AbstractQuoteRepository):
        self.repository = repository

    async def list_quotes(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
    ) -> Tuple[List[Quote], int]:
        if status:
            status_machine.validate_status(status_machine.QUOTE, status)
        return await self.repository.list(offset=offset, limit=limit, search=search, status=status, client_id=client_id)

    async def get_quote(self, quote_id: int) -> Quote:
        quote = await self.repository.get_by_id(quote_id)
        if not quote:
            raise QuoteNotFoundException(quote_id)
        return quote

    async def _check_project(self, project_id: Optional[int], client_id: int) -> None:
        if project_id is None:
            return
        project = await self.repository.get_project(project_id)
        if not project or project.client_id != client_id:
            raise QuoteProjectMismatchException(project_id, client_id)

    async def create_quote(self, quote_data: QuoteCreate) -> Quote:
        logger.info(f"[QuoteService] Create quote '{quote_data.title}' for client {quote_data.client_id}")
        if not await self.repository.client_exists(quote_data.client_id):
            raise QuoteClientNotFoundException(quote_data.client_id)
        await self._check_project(quote_data.project_id, quote_data.client_id)

        totals = compute_totals(quote_data.items, quote_data.tax_rate, quote_data.discount)
        quote_number = await self.repository.next_number()
        quote = Quote(
            quote_number=quote_number,
            **quote_data.model_dump(exclude={"items"}),
            **totals.model_dump(),
        )
        quote = await self.repository.create(quote, quote_data.items)
        await self.repository.commit()
        logger.info(f"[QuoteService] Quote {quote_number} (ID {quote.id}) created, total={totals.total}")
        return await self.get_quote(quote.id)

    async def update_quote(self, quote_id: int, quote_data: QuoteUpdate) -> Quote:
        logger.info(f"[QuoteService] Update quote ID: {quote_id}")
        quote = await self.get_quote(quote_id)
        changes = quote_data.changes()
        if any(field in changes for field in FINANCIAL_FIELDS):
            status_machine.ensure_financial_edit_allowed(status_machine.QUOTE, quote.status)
        if "status" in changes:
            status_machine.ensure_transition(status_machine.QUOTE, quote.status, changes["status"])
        if "project_id" in changes:
            await self._check_project(changes["project_id"], quote.client_id)

        items = quote_data.items if changes.pop("items", None) is not None else None
        tax_rate = changes.get("tax_rate", quote.tax_rate)
        discount = changes.get("discount", quote.discount)
        if items is not None:
            await self.repository.replace_items(quote, items)
            changes.update(compute_totals(items, tax_rate, discount).model_dump())
        elif "tax_rate" in changes or "discount" in changes:
            changes.update(totals_from_subtotal(quote.subtotal, tax_rate, discount).model_dump())

        await self.repository.update(quote, changes)
        await self.repository.commit()
        return await self.get_quote(quote_id)

    async def change_status(self, quote_id: int, new_status: str) -> Quote:
        quote = await self.get_quote(quote_id)
        logger.info(f"[QuoteService] Quote {quote_id} status {quote.status} -> {new_status}")
        status_machine.ensure_transition(status_machine.QUOTE, quote.status, new_status)
        await self.repository.update(quote, {"status": new_status})
        await self.repository.commit()
        return await self.get_quote(quote_id)

    async def delete_quote(self, quote_id: int) -> None:
        logger.info(f"[QuoteService] Delete quote ID: {quote_id}")
        quote = await self.get_quote(quote_id)
        if not status_machine.can_delete(status_machine.QUOTE, quote.status):
            logger.warning(f"[QuoteService] Quote {quote_id} is {quote.status}, delete refused.")
            raise FinalizedDocumentException("le devis", quote.status, "supprimer")
        await self.repository.delete(quote)
        await self.repository.commit()

    async def get_stats(self) -> QuoteStats:
        raw = await self.repository.stats()
        counts, values = raw["status_count"], raw["status_value"]
        total_quotes = sum(counts.values())
        accepted = counts.get(QUOTE_STATUS_ACCEPTED, 0)
        return QuoteStats(
            total_quotes=total_quotes,
            draft_quotes=counts.get("draft", 0),
            sent_quotes=counts.get("sent", 0),
            accepted_quotes=accepted,
            rejected_quotes=counts.get("rejected", 0),
            expired_quotes=counts.get("expired", 0),
            total_value=money(sum(values.values(), Decimal("0"))),
            accepted_value=money(values.get(QUOTE_STATUS_ACCEPTED, 0)),
            this_month_quotes=raw["this_month_quotes"],
            conversion_rate=round(accepted / total_quotes * 100, 2) if total_quotes else 0.0,
        )
