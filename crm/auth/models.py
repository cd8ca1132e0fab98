from typing import Optional

from pydantic import EmailStr
from sqlmodel import Field, SQLModel

from crm.auth.constants import TOKEN_TYPE
from crm.users.constants import PASSWORD_MIN_LENGTH
from crm.users.models import UserRead


class RegisterRequest(SQLModel):
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)


class LoginRequest(SQLModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(SQLModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=PASSWORD_MIN_LENGTH, max_length=128)


class AuthResponse(SQLModel):
    message: str
    access_token: str
    token_type: str = TOKEN_TYPE
    user: UserRead


class TokenVerification(SQLModel):
    valid: bool
    user_id: int
    email: str
    role: str
