import logging
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status

from crm.auth.dependencies import CurrentUserDep, get_current_active_user
from crm.core.dependencies import PaginationParams
from crm.core.exceptions import handle_service_errors
from crm.core.schemas import MessageResponse
from crm.core.utils import page_count, page_to_offset
from crm.materials.dependencies import MaterialServiceDep
from crm.materials.models import (
    LowStockResponse,
    MaterialCreate,
    MaterialListResponse,
    MaterialRead,
    MaterialResponse,
    MaterialStats,
    MaterialUpdate,
    StockAdjustment,
    StockMovementListResponse,
    StockMovementRead,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_active_user)])


def handle_material_service_errors(e: Exception):
    handle_service_errors(e, "Material")


@router.get("", response_model=MaterialListResponse)
async def list_materials(
    service: MaterialServiceDep,
    pagination: PaginationParams,
    search: Optional[str] = Query(None),
    category: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
    low_stock: Optional[bool] = Query(None),
):
    page, limit = pagination
    try:
        materials, total = await service.list_materials(
            offset=page_to_offset(page, limit),
            limit=limit,
            search=search,
            category=category,
            active=active,
            low_stock=low_stock,
        )
        return MaterialListResponse(
            materials=[MaterialRead.model_validate(m) for m in materials],
            total=total,
            page=page,
            limit=limit,
            pages=page_count(total, limit),
        )
    except Exception as e:
        handle_material_service_errors(e)


@router.get("/stats", response_model=MaterialStats)
async def get_material_stats(service: MaterialServiceDep):
    try:
        return await service.get_stats()
    except Exception as e:
        handle_material_service_errors(e)


@router.get("/low-stock", response_model=LowStockResponse)
async def list_low_stock_materials(service: MaterialServiceDep):
    """Matériaux actifs dont le stock est inférieur ou égal au seuil minimal."""
    try:
        materials = await service.list_low_stock()
        return LowStockResponse(materials=[MaterialRead.model_validate(m) for m in materials], count=len(materials))
    except Exception as e:
        handle_material_service_errors(e)


@router.get("/categories")
async def list_material_categories(service: MaterialServiceDep) -> dict:
    try:
        return {"categories": await service.list_categories()}
    except Exception as e:
        handle_material_service_errors(e)


@router.get("/{material_id}", response_model=MaterialRead)
async def read_material(service: MaterialServiceDep, material_id: int = Path(..., ge=1)):
    try:
        return MaterialRead.model_validate(await service.get_material(material_id))
    except Exception as e:
        handle_material_service_errors(e)


@router.post("", response_model=MaterialResponse, status_code=status.HTTP_201_CREATED)
async def create_material(material: MaterialCreate, service: MaterialServiceDep, current_user: CurrentUserDep):
    logger.info(f"API create_material by {current_user.email}: name={material.name}")
    try:
        created = await service.create_material(material)
        return MaterialResponse(message="Matériau créé avec succès", material=MaterialRead.model_validate(created))
    except Exception as e:
        handle_material_service_errors(e)


@router.put("/{material_id}", response_model=MaterialResponse)
async def update_material(
    material: MaterialUpdate,
    service: MaterialServiceDep,
    current_user: CurrentUserDep,
    material_id: int = Path(..., ge=1),
):
    logger.info(f"API update_material by {current_user.email}: ID={material_id}")
    try:
        updated = await service.update_material(material_id, material)
        return MaterialResponse(message="Matériau mis à jour avec succès", material=MaterialRead.model_validate(updated))
    except Exception as e:
        handle_material_service_errors(e)


@router.delete("/{material_id}", response_model=MessageResponse)
async def delete_material(service: MaterialServiceDep, current_user: CurrentUserDep, material_id: int = Path(..., ge=1)):
    logger.info(f"API delete_material by {current_user.email}: ID={material_id}")
    try:
        await service.delete_material(material_id)
        return MessageResponse(message="Matériau supprimé avec succès")
    except Exception as e:
        handle_material_service_errors(e)


@router.patch("/{material_id}/stock", response_model=MaterialResponse)
async def adjust_material_stock(
    adjustment: StockAdjustment,
    service: MaterialServiceDep,
    current_user: CurrentUserDep,
    material_id: int = Path(..., ge=1),
):
    """Entrée (`in`) ou sortie (`out`) de stock."""
    logger.info(f"API adjust_stock by {current_user.email}: ID={material_id} {adjustment.type} {adjustment.quantity}")
    try:
        material = await service.adjust_stock(material_id, adjustment, user_id=current_user.id)
        return MaterialResponse(message="Stock mis à jour avec succès", material=MaterialRead.model_validate(material))
    except Exception as e:
        handle_material_service_errors(e)


@router.get("/{material_id}/movements", response_model=StockMovementListResponse)
async def list_stock_movements(service: MaterialServiceDep, material_id: int = Path(..., ge=1)):
    try:
        movements = await service.list_movements(material_id)
        return StockMovementListResponse(
            material_id=material_id,
            movements=[StockMovementRead.model_validate(m) for m in movements],
        )
    except Exception as e:
        handle_material_service_errors(e)
