"""
Modèles SQLModel pour l'entité User.

- UserBase : champs communs.
- User : modèle de table (mot de passe stocké sous forme de hash bcrypt).
- UserRead, UserProfileUpdate, UserAdminUpdate : schémas de l'API.
"""
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import EmailStr
from sqlmodel import Field, SQLModel

from crm.core.models import UTC_DATETIME, SoftDeleteMixin, TimestampMixin
from crm.core.schemas import PatchModel

UserRole = Literal["admin", "user"]


class UserBase(SQLModel):
    email: str = Field(..., max_length=255, index=True)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    role: str = Field(default="user", max_length=20)
    is_active: bool = Field(default=True, nullable=False)


class User(UserBase, TimestampMixin, SoftDeleteMixin, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    password_hash: str = Field(nullable=False, max_length=255)
    last_login_at: Optional[datetime] = Field(default=None, sa_type=UTC_DATETIME)


class UserRead(UserBase):
    id: int
    created_at: datetime
    updated_at: datetime
    last_login_at: Optional[datetime] = None


class UserProfileUpdate(PatchModel):
    """Champs modifiables par l'utilisateur lui-même."""
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    email: Optional[EmailStr] = None


class UserAdminUpdate(UserProfileUpdate):
    role: Optional[UserRole] = None
    is_active: Optional[bool] = None


class UserResponse(SQLModel):
    message: str
    user: UserRead


class UserListResponse(SQLModel):
    users: List[UserRead]
    total: int
    page: int
    limit: int
    pages: int
