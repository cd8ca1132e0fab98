from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, List, Optional, Sequence, Tuple

from crm.documents.schemas import DocumentItemCreate
from crm.invoices.models import Invoice, InvoicePayment
from crm.projects.models import Project
from crm.quotes.models import Quote


class AbstractInvoiceRepository(ABC):
    """Interface abstraite pour le repository des factures, lignes et paiements."""

    @abstractmethod
    async def get_by_id(self, invoice_id: int) -> Optional[Invoice]:
        pass

    @abstractmethod
    async def list(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
        project_id: Optional[int] = None,
    ) -> Tuple[List[Invoice], int]:
        pass

    @abstractmethod
    async def create(self, invoice: Invoice, items: Sequence[DocumentItemCreate]) -> Invoice:
        pass

    @abstractmethod
    async def update(self, invoice: Invoice, changes: dict) -> Invoice:
        pass

    @abstractmethod
    async def replace_items(self, invoice: Invoice, items: Sequence[DocumentItemCreate]) -> None:
        pass

    @abstractmethod
    async def delete(self, invoice: Invoice) -> None:
        pass

    @abstractmethod
    async def add_payment(self, payment: InvoicePayment) -> InvoicePayment:
        pass

    @abstractmethod
    async def apply_payment(self, invoice_id: int, amount: Decimal) -> Optional[Tuple[Decimal, Decimal]]:
        """Ajoute `amount` au montant payé si le solde le permet; retourne (paid_amount, balance) ou None."""
        pass

    @abstractmethod
    async def quote_invoiced(self, quote_id: int) -> bool:
        pass

    @abstractmethod
    async def next_number(self) -> str:
        pass

    @abstractmethod
    async def client_exists(self, client_id: int) -> bool:
        pass

    @abstractmethod
    async def get_project(self, project_id: int) -> Optional[Project]:
        pass

    @abstractmethod
    async def get_quote(self, quote_id: int) -> Optional[Quote]:
        """Devis vivant avec ses lignes."""
        pass

    @abstractmethod
    async def stats(self) -> Dict:
        pass

    @abstractmethod
    async def commit(self) -> None:
        pass
