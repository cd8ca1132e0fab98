import logging
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import delete, func, select
from sqlalchemy.orm import selectinload

from crm.clients.models import Client
from crm.core.repositories import SQLAlchemyRepository, search_clause
from crm.core.utils import start_of_month, utcnow
from crm.documents.calculator import line_total
from crm.documents.numbering import generate_quote_number
from crm.documents.schemas import DocumentItemCreate
from crm.projects.models import Project
from crm.quotes.constants import QUOTE_STATUSES
from crm.quotes.interfaces.repositories import AbstractQuoteRepository
from crm.quotes.models import Quote, QuoteItem

logger = logging.getLogger(__name__)


class SQLAlchemyQuoteRepository(SQLAlchemyRepository[Quote], AbstractQuoteRepository):
    """Implémentation SQLAlchemy du repository des devis."""

    model = Quote
    load_options = (
        selectinload(Quote.items),
        selectinload(Quote.client),
        selectinload(Quote.project),
    )

    async def get_by_id(self, quote_id: int) -> Optional[Quote]:
        logger.debug(f"[QuoteRepository] Getting quote by ID: {quote_id}")
        return await self.fetch(quote_id)

    async def list(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
    ) -> Tuple[List[Quote], int]:
        logger.debug(f"[QuoteRepository] Listing quotes: offset={offset}, limit={limit}, status={status}")
        stmt = self.live()
        if search:
            stmt = stmt.where(search_clause(search, (Quote.title, Quote.quote_number)))
        if status:
            stmt = stmt.where(Quote.status == status)
        if client_id:
            stmt = stmt.where(Quote.client_id == client_id)
        stmt = stmt.order_by(Quote.created_at.desc(), Quote.id.desc())
        return await self.paginate(stmt, offset, limit)

    def _build_items(self, quote_id: int, items: Sequence[DocumentItemCreate]) -> List[QuoteItem]:
        return [
            QuoteItem(
                quote_id=quote_id,
                position=position,
                total=line_total(item.quantity, item.unit_price),
                **item.model_dump(),
            )
            for position, item in enumerate(items)
        ]

    async def create(self, quote: Quote, items: Sequence[DocumentItemCreate]) -> Quote:
        logger.debug(f"[QuoteRepository] Creating quote {quote.quote_number} with {len(items)} item(s)")
        await self.add(quote)
        self.db.add_all(self._build_items(quote.id, items))
        await self.db.flush()
        return quote

    async def update(self, quote: Quote, changes: dict) -> Quote:
        return await self.apply(quote, changes)

    async def replace_items(self, quote: Quote, items: Sequence[DocumentItemCreate]) -> None:
        logger.debug(f"[QuoteRepository] Replacing items of quote {quote.id}")
        await self.delete_children(quote, "items", delete(QuoteItem).where(QuoteItem.quote_id == quote.id))
        self.db.add_all(self._build_items(quote.id, items))
        await self.db.flush()

    async def delete(self, quote: Quote) -> None:
        await self.delete_children(quote, "items", delete(QuoteItem).where(QuoteItem.quote_id == quote.id))
        await self.soft_delete(quote)

    async def next_number(self) -> str:
        return await generate_quote_number(self.db)

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

    async def stats(self) -> Dict:
        live = Quote.is_deleted == False  # noqa: E712
        rows = await self.db.execute(
            select(Quote.status, func.count(), func.coalesce(func.sum(Quote.total), 0)).where(live).group_by(Quote.status)
        )
        status_count = {s: 0 for s in QUOTE_STATUSES}
        status_value = {s: Decimal("0") for s in QUOTE_STATUSES}
        for status, count, value in rows.all():
            status_count[status] = count
            status_value[status] = Decimal(str(value))
        this_month = await self.count(created_at__gte=start_of_month(utcnow()))
        return {"status_count": status_count, "status_value": status_value, "this_month_quotes": this_month}
