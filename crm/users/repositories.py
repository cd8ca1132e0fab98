import logging
from typing import List, Optional, Tuple

from sqlalchemy import func

from crm.core.repositories import SQLAlchemyRepository, search_clause
from crm.users.constants import ROLE_ADMIN
from crm.users.interfaces.repositories import AbstractUserRepository
from crm.users.models import User

logger = logging.getLogger(__name__)


def normalize_email(email: str) -> str:
    return email.strip().lower()


class SQLAlchemyUserRepository(SQLAlchemyRepository[User], AbstractUserRepository):
    """Implémentation SQLAlchemy du repository des utilisateurs."""

    model = User

    async def get_by_id(self, user_id: int) -> Optional[User]:
        logger.debug(f"[UserRepository] Getting user by ID: {user_id}")
        return await self.fetch(user_id)

    async def get_by_email(self, email: str) -> Optional[User]:
        logger.debug(f"[UserRepository] Getting user by email: {email}")
        result = await self.db.execute(self.live().where(func.lower(User.email) == normalize_email(email)))
        return result.scalars().first()

    async def list(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        role: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> Tuple[List[User], int]:
        stmt = self.live()
        if search:
            stmt = stmt.where(search_clause(search, (User.email, User.first_name, User.last_name)))
        if role:
            stmt = stmt.where(User.role == role)
        if active is not None:
            stmt = stmt.where(User.is_active == active)
        stmt = stmt.order_by(User.created_at.desc(), User.id.desc())
        return await self.paginate(stmt, offset, limit)

    async def create(self, user: User) -> User:
        user.email = normalize_email(user.email)
        return await self.add(user)

    async def update(self, user: User, changes: dict) -> User:
        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
        return await self.apply(user, changes)

    async def delete(self, user: User) -> None:
        await self.soft_delete(user)

    async def email_exists(self, email: str, exclude_id: Optional[int] = None) -> bool:
        return await self.exists(exclude_id=exclude_id, email=normalize_email(email))

    async def count_active_admins(self) -> int:
        return await self.count(role=ROLE_ADMIN, is_active=True)
