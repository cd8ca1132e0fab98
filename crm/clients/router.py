import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from crm.auth.dependencies import CurrentUserDep, get_current_active_user
from crm.clients.dependencies import ClientServiceDep
from crm.clients.models import (
    ClientCreate,
    ClientListResponse,
    ClientRead,
    ClientReadWithDetails,
    ClientResponse,
    ClientStats,
    ClientUpdate,
)
from crm.core.dependencies import PaginationParams
from crm.core.exceptions import handle_service_errors
from crm.core.schemas import MessageResponse
from crm.core.utils import page_count, page_to_offset

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_active_user)])


def handle_client_service_errors(e: Exception):
    handle_service_errors(e, "Client")


@router.get("", response_model=ClientListResponse)
async def list_clients(
    service: ClientServiceDep,
    pagination: PaginationParams,
    search: Optional[str] = Query(None, description="Recherche sur nom, email, entreprise"),
    active: Optional[bool] = Query(None, description="Filtrer sur is_active"),
):
    """Liste paginée des clients."""
    page, limit = pagination
    try:
        clients, total = await service.list_clients(
            offset=page_to_offset(page, limit), limit=limit, search=search, active=active
        )
        return ClientListResponse(
            clients=[ClientRead.model_validate(c) for c in clients],
            total=total,
            page=page,
            limit=limit,
            pages=page_count(total, limit),
        )
    except Exception as e:
        handle_client_service_errors(e)


@router.get("/stats", response_model=ClientStats)
async def get_client_stats(service: ClientServiceDep):
    try:
        return await service.get_stats()
    except Exception as e:
        handle_client_service_errors(e)


@router.get("/{client_id}", response_model=ClientReadWithDetails)
async def read_client(service: ClientServiceDep, client_id: int = Path(..., ge=1)):
    """Récupère un client avec ses projets et devis."""
    try:
        return await service.get_client_details(client_id)
    except Exception as e:
        handle_client_service_errors(e)


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(client: ClientCreate, service: ClientServiceDep, current_user: CurrentUserDep):
    logger.info(f"API create_client by {current_user.email}: name={client.name}")
    try:
        created = await service.create_client(client)
        return ClientResponse(message="Client créé avec succès", client=ClientRead.model_validate(created))
    except Exception as e:
        handle_client_service_errors(e)


@router.put("/{client_id}", response_model=ClientResponse)
async def update_client(
    client: ClientUpdate,
    service: ClientServiceDep,
    current_user: CurrentUserDep,
    client_id: int = Path(..., ge=1),
):
    logger.info(f"API update_client by {current_user.email}: ID={client_id}")
    try:
        updated = await service.update_client(client_id, client)
        return ClientResponse(message="Client mis à jour avec succès", client=ClientRead.model_validate(updated))
    except Exception as e:
        handle_client_service_errors(e)


@router.delete("/{client_id}", response_model=MessageResponse)
async def delete_client(service: ClientServiceDep, current_user: CurrentUserDep, client_id: int = Path(..., ge=1)):
    logger.info(f"API delete_client by {current_user.email}: ID={client_id}")
    try:
        await service.delete_client(client_id)
        return MessageResponse(message="Client supprimé avec succès")
    except Exception as e:
        handle_client_service_errors(e)
