"""Routes d'administration (rôle admin requis): utilisateurs et état du système."""
import logging
import platform
from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy import func, select

from crm.auth.dependencies import AdminUserDep, get_current_admin_user
from crm.config import settings
from crm.core.dependencies import PaginationParams, SessionDep
from crm.core.exceptions import handle_service_errors
from crm.core.schemas import MessageResponse
from crm.core.utils import page_count, page_to_offset, utcnow
from crm.database import ping_database
from crm.users.dependencies import UserServiceDep
from crm.users.models import User, UserAdminUpdate, UserListResponse, UserRead, UserResponse

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(get_current_admin_user)])


def handle_admin_errors(e: Exception):
    handle_service_errors(e, "Admin")


# --- Utilisateurs ---

@router.get("/users", response_model=UserListResponse)
async def list_users(
    service: UserServiceDep,
    pagination: PaginationParams,
    search: Optional[str] = Query(None),
    role: Optional[str] = Query(None),
    active: Optional[bool] = Query(None),
):
    page, limit = pagination
    try:
        users, total = await service.list_users(
            offset=page_to_offset(page, limit), limit=limit, search=search, role=role, active=active
        )
        return UserListResponse(
            users=[UserRead.model_validate(u) for u in users],
            total=total,
            page=page,
            limit=limit,
            pages=page_count(total, limit),
        )
    except Exception as e:
        handle_admin_errors(e)


@router.get("/users/{user_id}", response_model=UserRead)
async def read_user(service: UserServiceDep, user_id: int = Path(..., ge=1)):
    try:
        return UserRead.model_validate(await service.get_user(user_id))
    except Exception as e:
        handle_admin_errors(e)


@router.put("/users/{user_id}", response_model=UserResponse)
async def update_user(
    data: UserAdminUpdate,
    service: UserServiceDep,
    admin: AdminUserDep,
    user_id: int = Path(..., ge=1),
):
    logger.info(f"API admin update_user by {admin.email}: ID={user_id}")
    try:
        user = await service.update_user(user_id, data, acting_user_id=admin.id)
        return UserResponse(message="Utilisateur mis à jour avec succès", user=UserRead.model_validate(user))
    except Exception as e:
        handle_admin_errors(e)


@router.delete("/users/{user_id}", response_model=MessageResponse)
async def delete_user(service: UserServiceDep, admin: AdminUserDep, user_id: int = Path(..., ge=1)):
    logger.info(f"API admin delete_user by {admin.email}: ID={user_id}")
    try:
        await service.delete_user(user_id, acting_user_id=admin.id)
        return MessageResponse(message="Utilisateur supprimé avec succès")
    except Exception as e:
        handle_admin_errors(e)


@router.patch("/users/{user_id}/activate", response_model=UserResponse)
async def activate_user(service: UserServiceDep, admin: AdminUserDep, user_id: int = Path(..., ge=1)):
    try:
        user = await service.set_active(user_id, True, acting_user_id=admin.id)
        return UserResponse(message="Utilisateur activé", user=UserRead.model_validate(user))
    except Exception as e:
        handle_admin_errors(e)


@router.patch("/users/{user_id}/deactivate", response_model=UserResponse)
async def deactivate_user(service: UserServiceDep, admin: AdminUserDep, user_id: int = Path(..., ge=1)):
    try:
        user = await service.set_active(user_id, False, acting_user_id=admin.id)
        return UserResponse(message="Utilisateur désactivé", user=UserRead.model_validate(user))
    except Exception as e:
        handle_admin_errors(e)


# --- Système ---

@router.get("/system/info")
async def system_info(session: SessionDep) -> dict:
    users = await session.scalar(select(func.count()).select_from(User).where(User.is_deleted == False))  # noqa: E712
    return {
        "app_name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "python_version": platform.python_version(),
        "database": session.get_bind().dialect.name,
        "api_prefix": settings.API_V1_PREFIX,
        "users": users or 0,
        "server_time": utcnow(),
    }


@router.get("/system/health")
async def system_health(session: SessionDep) -> dict:
    database_ok = await ping_database(session)
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": "connected" if database_ok else "unreachable",
        "timestamp": utcnow(),
    }
