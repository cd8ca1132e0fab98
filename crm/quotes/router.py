import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from crm.auth.dependencies import CurrentUserDep, get_current_active_user
from crm.core.dependencies import PaginationParams
from crm.core.exceptions import handle_service_errors
from crm.core.schemas import MessageResponse
from crm.core.utils import page_count, page_to_offset
from crm.documents.schemas import StatusChange
from crm.quotes.dependencies import QuoteServiceDep
from crm.quotes.models import (
    QuoteCreate,
    QuoteListResponse,
    QuoteRead,
    QuoteResponse,
    QuoteStats,
    QuoteUpdate,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_active_user)])


def handle_quote_service_errors(e: Exception):
    handle_service_errors(e, "Quote")


@router.get("", response_model=QuoteListResponse)
async def list_quotes(
    service: QuoteServiceDep,
    pagination: PaginationParams,
    search: Optional[str] = Query(None, description="Recherche sur titre et numéro"),
    status_filter: Optional[str] = Query(None, alias="status"),
    client_id: Optional[int] = Query(None, ge=1),
):
    page, limit = pagination
    try:
        quotes, total = await service.list_quotes(
            offset=page_to_offset(page, limit), limit=limit, search=search, status=status_filter, client_id=client_id
        )
        return QuoteListResponse(
            quotes=[QuoteRead.model_validate(q) for q in quotes],
            total=total,
            page=page,
            limit=limit,
            pages=page_count(total, limit),
        )
    except Exception as e:
        handle_quote_service_errors(e)


@router.get("/stats", response_model=QuoteStats)
async def get_quote_stats(service: QuoteServiceDep):
    try:
        return await service.get_stats()
    except Exception as e:
        handle_quote_service_errors(e)


@router.get("/{quote_id}", response_model=QuoteRead)
async def read_quote(service: QuoteServiceDep, quote_id: int = Path(..., ge=1)):
    try:
        return QuoteRead.model_validate(await service.get_quote(quote_id))
    except Exception as e:
        handle_quote_service_errors(e)


@router.post("", response_model=QuoteResponse, status_code=status.HTTP_201_CREATED)
async def create_quote(quote: QuoteCreate, service: QuoteServiceDep, current_user: CurrentUserDep):
    logger.info(f"API create_quote by {current_user.email}: client={quote.client_id} items={len(quote.items)}")
    try:
        created = await service.create_quote(quote)
        return QuoteResponse(message="Devis créé avec succès", quote=QuoteRead.model_validate(created))
    except Exception as e:
        handle_quote_service_errors(e)


@router.put("/{quote_id}", response_model=QuoteResponse)
async def update_quote(
    quote: QuoteUpdate,
    service: QuoteServiceDep,
    current_user: CurrentUserDep,
    quote_id: int = Path(..., ge=1),
):
    logger.info(f"API update_quote by {current_user.email}: ID={quote_id}")
    try:
        updated = await service.update_quote(quote_id, quote)
        return QuoteResponse(message="Devis mis à jour avec succès", quote=QuoteRead.model_validate(updated))
    except Exception as e:
        handle_quote_service_errors(e)


@router.patch("/{quote_id}/status", response_model=QuoteResponse)
async def change_quote_status(
    body: StatusChange,
    service: QuoteServiceDep,
    current_user: CurrentUserDep,
    quote_id: int = Path(..., ge=1),
):
    logger.info(f"API change_quote_status by {current_user.email}: ID={quote_id} -> {body.status}")
    try:
        updated = await service.change_status(quote_id, body.status)
        return QuoteResponse(message="Statut du devis mis à jour", quote=QuoteRead.model_validate(updated))
    except Exception as e:
        handle_quote_service_errors(e)


@router.delete("/{quote_id}", response_model=MessageResponse)
async def delete_quote(service: QuoteServiceDep, current_user: CurrentUserDep, quote_id: int = Path(..., ge=1)):
    logger.info(f"API delete_quote by {current_user.email}: ID={quote_id}")
    try:
        await service.delete_quote(quote_id)
        return MessageResponse(message="Devis supprimé avec succès")
    except Exception as e:
        handle_quote_service_errors(e)
