import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from crm.auth.dependencies import CurrentUserDep, get_current_active_user
from crm.core.dependencies import PaginationParams
from crm.core.exceptions import handle_service_errors
from crm.core.schemas import MessageResponse
from crm.core.utils import page_count, page_to_offset
from crm.documents.schemas import StatusChange
from crm.invoices.dependencies import InvoiceServiceDep
from crm.invoices.models import (
    InvoiceCreate,
    InvoiceListResponse,
    InvoiceRead,
    InvoiceResponse,
    InvoiceStats,
    InvoiceUpdate,
    PaymentCreate,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_active_user)])


def handle_invoice_service_errors(e: Exception):
    handle_service_errors(e, "Invoice")


@router.get("", response_model=InvoiceListResponse)
async def list_invoices(
    service: InvoiceServiceDep,
    pagination: PaginationParams,
    search: Optional[str] = Query(None, description="Recherche sur titre et numéro"),
    status_filter: Optional[str] = Query(None, alias="status"),
    client_id: Optional[int] = Query(None, ge=1),
    project_id: Optional[int] = Query(None, ge=1),
):
    page, limit = pagination
    try:
        invoices, total = await service.list_invoices(
            offset=page_to_offset(page, limit),
            limit=limit,
            search=search,
            status=status_filter,
            client_id=client_id,
            project_id=project_id,
        )
        return InvoiceListResponse(
            invoices=[InvoiceRead.model_validate(i) for i in invoices],
            total=total,
            page=page,
            limit=limit,
            pages=page_count(total, limit),
        )
    except Exception as e:
        handle_invoice_service_errors(e)


@router.get("/stats", response_model=InvoiceStats)
async def get_invoice_stats(service: InvoiceServiceDep):
    try:
        return await service.get_stats()
    except Exception as e:
        handle_invoice_service_errors(e)


@router.get("/{invoice_id}", response_model=InvoiceRead)
async def read_invoice(service: InvoiceServiceDep, invoice_id: int = Path(..., ge=1)):
    try:
        return InvoiceRead.model_validate(await service.get_invoice(invoice_id))
    except Exception as e:
        handle_invoice_service_errors(e)


@router.post("", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def create_invoice(invoice: InvoiceCreate, service: InvoiceServiceDep, current_user: CurrentUserDep):
    logger.info(f"API create_invoice by {current_user.email}: client={invoice.client_id} quote={invoice.quote_id}")
    try:
        created = await service.create_invoice(invoice)
        return InvoiceResponse(message="Facture créée avec succès", invoice=InvoiceRead.model_validate(created))
    except Exception as e:
        handle_invoice_service_errors(e)


@router.put("/{invoice_id}", response_model=InvoiceResponse)
async def update_invoice(
    invoice: InvoiceUpdate,
    service: InvoiceServiceDep,
    current_user: CurrentUserDep,
    invoice_id: int = Path(..., ge=1),
):
    logger.info(f"API update_invoice by {current_user.email}: ID={invoice_id}")
    try:
        updated = await service.update_invoice(invoice_id, invoice)
        return InvoiceResponse(message="Facture mise à jour avec succès", invoice=InvoiceRead.model_validate(updated))
    except Exception as e:
        handle_invoice_service_errors(e)


@router.patch("/{invoice_id}/status", response_model=InvoiceResponse)
async def change_invoice_status(
    body: StatusChange,
    service: InvoiceServiceDep,
    current_user: CurrentUserDep,
    invoice_id: int = Path(..., ge=1),
):
    logger.info(f"API change_invoice_status by {current_user.email}: ID={invoice_id} -> {body.status}")
    try:
        updated = await service.change_status(invoice_id, body.status)
        return InvoiceResponse(message="Statut de la facture mis à jour", invoice=InvoiceRead.model_validate(updated))
    except Exception as e:
        handle_invoice_service_errors(e)


@router.post("/{invoice_id}/payments", response_model=InvoiceResponse, status_code=status.HTTP_201_CREATED)
async def record_invoice_payment(
    payment: PaymentCreate,
    service: InvoiceServiceDep,
    current_user: CurrentUserDep,
    invoice_id: int = Path(..., ge=1),
):
    logger.info(f"API record_payment by {current_user.email}: invoice={invoice_id} amount={payment.amount}")
    try:
        updated = await service.record_payment(invoice_id, payment, user_id=current_user.id)
        return InvoiceResponse(message="Paiement enregistré", invoice=InvoiceRead.model_validate(updated))
    except Exception as e:
        handle_invoice_service_errors(e)


@router.delete("/{invoice_id}", response_model=MessageResponse)
async def delete_invoice(service: InvoiceServiceDep, current_user: CurrentUserDep, invoice_id: int = Path(..., ge=1)):
    logger.info(f"API delete_invoice by {current_user.email}: ID={invoice_id}")
    try:
        await service.delete_invoice(invoice_id)
        return MessageResponse(message="Facture supprimée avec succès")
    except Exception as e:
        handle_invoice_service_errors(e)
