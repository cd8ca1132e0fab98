import logging
from typing import List, Optional, Tuple

from crm.users.constants import ROLE_ADMIN
from crm.users.exceptions import (
    EmailAlreadyExistsException,
    LastAdminException,
    SelfModificationException,
    UserNotFoundException,
)
from crm.users.interfaces.repositories import AbstractUserRepository
from crm.users.models import User, UserAdminUpdate

logger = logging.getLogger(__name__)


class UserService:
    """Gestion des comptes utilisateurs par les administrateurs."""

    def __init__(self, repository: AbstractUserRepository):
        self.repository = repository

    async def list_users(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        role: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> Tuple[List[User], int]:
        return await self.repository.list(offset=offset, limit=limit, search=search, role=role, active=active)

    async def get_user(self, user_id: int) -> User:
        user = await self.repository.get_by_id(user_id)
        if not user:
            raise UserNotFoundException(user_id)
        return user

    async def _ensure_not_last_admin(self, user: User) -> None:
        if user.role == ROLE_ADMIN and user.is_active and await self.repository.count_active_admins() <= 1:
            logger.warning(f"[UserService] Refusing to remove last active admin ID {user.id}")
            raise LastAdminException()

    async def update_user(self, user_id: int, user_data: UserAdminUpdate, acting_user_id: int) -> User:
        logger.info(f"[UserService] Admin {acting_user_id} updates user {user_id}")
        user = await self.get_user(user_id)
        changes = user_data.changes()

        if "email" in changes and await self.repository.email_exists(changes["email"], exclude_id=user_id):
            raise EmailAlreadyExistsException(changes["email"])
        demoted = user.role == ROLE_ADMIN and changes.get("role", user.role) != ROLE_ADMIN
        deactivated = user.is_active and changes.get("is_active") is False
        if demoted or deactivated:
            if user_id == acting_user_id:
                raise SelfModificationException("rétrograder ou désactiver")
            await self._ensure_not_last_admin(user)

        user = await self.repository.update(user, changes)
        await self.repository.commit()
        return user

    async def set_active(self, user_id: int, active: bool, acting_user_id: int) -> User:
        return await self.update_user(user_id, UserAdminUpdate(is_active=active), acting_user_id)

    async def delete_user(self, user_id: int, acting_user_id: int) -> None:
        logger.info(f"[UserService] Admin {acting_user_id} deletes user {user_id}")
        user = await self.get_user(user_id)
        if user_id == acting_user_id:
            raise SelfModificationException("supprimer")
        await self._ensure_not_last_admin(user)
        await self.repository.delete(user)
        await self.repository.commit()
