from typing import Annotated

from fastapi import Depends

from crm.core.dependencies import SessionDep
from crm.invoices.interfaces.repositories import AbstractInvoiceRepository
from crm.invoices.repositories import SQLAlchemyInvoiceRepository
from crm.invoices.service import InvoiceService


def get_invoice_repository(session: SessionDep) -> AbstractInvoiceRepository:
    return SQLAlchemyInvoiceRepository(db_session=session)


InvoiceRepositoryDep = Annotated[AbstractInvoiceRepository, Depends(get_invoice_repository)]


def get_invoice_service(repository: InvoiceRepositoryDep) -> InvoiceService:
    return InvoiceService(repository=repository)


InvoiceServiceDep = Annotated[InvoiceService, Depends(get_invoice_service)]
