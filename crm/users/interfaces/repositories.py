from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from crm.users.models import User


class AbstractUserRepository(ABC):
    """Interface abstraite pour le repository des utilisateurs."""

    @abstractmethod
    async def get_by_id(self, user_id: int) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def list(
        self,
        offset: int = 0,
        limit: int = 10,
        search: Optional[str] = None,
        role: Optional[str] = None,
        active: Optional[bool] = None,
    ) -> Tuple[List[User], int]:
        pass

    @abstractmethod
    async def create(self, user: User) -> User:
        pass

    @abstractmethod
    async def update(self, user: User, changes: dict) -> User:
        pass

    @abstractmethod
    async def delete(self, user: User) -> None:
        pass

    @abstractmethod
    async def email_exists(self, email: str, exclude_id: Optional[int] = None) -> bool:
        pass

    @abstractmethod
    async def count_active_admins(self) -> int:
        pass

    @abstractmethod
    async def commit(self) -> None:
        pass
