"""
Service d'authentification: inscription, connexion, vérification de token,
profil et changement de mot de passe.
"""
import logging
from typing import Optional, Tuple

from crm.auth.exceptions import IncorrectPasswordException, InactiveAccountException, InvalidCredentialsException
from crm.auth.models import ChangePasswordRequest, RegisterRequest
from crm.auth.security import create_access_token, decode_access_token, get_password_hash, verify_password
from crm.core.utils import utcnow
from crm.users.constants import ROLE_ADMIN, ROLE_USER
from crm.users.exceptions import EmailAlreadyExistsException
from crm.users.interfaces.repositories import AbstractUserRepository
from crm.users.models import User, UserProfileUpdate

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, user_repository: AbstractUserRepository):
        self.user_repository = user_repository

    async def register(self, data: RegisterRequest) -> User:
        """Crée un compte standard; le rôle admin n'est jamais attribué à l'inscription."""
        logger.info(f"[AuthService] Register: {data.email}")
        if await self.user_repository.email_exists(data.email):
            logger.warning(f"[AuthService] Email already registered: {data.email}")
            raise EmailAlreadyExistsException(data.email)

        user = User(
            email=data.email,
            password_hash=get_password_hash(data.password),
            first_name=data.first_name,
            last_name=data.last_name,
            role=ROLE_USER,
            is_active=True,
        )
        user = await self.user_repository.create(user)
        await self.user_repository.commit()
        logger.info(f"[AuthService] User ID {user.id} registered.")
        return user

    async def login(self, email: str, password: str) -> Tuple[str, User]:
        """Retourne (token, utilisateur) ou lève InvalidCredentialsException."""
        user = await self.user_repository.get_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            logger.warning(f"[AuthService] Failed login for {email}")
            raise InvalidCredentialsException()
        if not user.is_active:
            logger.warning(f"[AuthService] Login refused for inactive user {user.id}")
            raise InactiveAccountException()

        user = await self.user_repository.update(user, {"last_login_at": utcnow()})
        await self.user_repository.commit()
        token = create_access_token(user_id=user.id, email=user.email, role=user.role)
        logger.info(f"[AuthService] Token issued for user ID {user.id}")
        return token, user

    async def get_user_from_token(self, token: str) -> Optional[User]:
        """Utilisateur actif correspondant au token, sinon None."""
        claims = decode_access_token(token)
        if claims is None:
            return None
        user = await self.user_repository.get_by_id(claims["user_id"])
        if user is None or not user.is_active:
            logger.warning(f"[AuthService] Token refers to missing or inactive user {claims['user_id']}")
            return None
        return user

    async def update_profile(self, user: User, data: UserProfileUpdate) -> User:
        changes = data.changes()
        if "email" in changes and await self.user_repository.email_exists(changes["email"], exclude_id=user.id):
            raise EmailAlreadyExistsException(changes["email"])
        user = await self.user_repository.update(user, changes)
        await self.user_repository.commit()
        logger.info(f"[AuthService] Profile updated for user ID {user.id}")
        return user

    async def change_password(self, user: User, data: ChangePasswordRequest) -> None:
        if not verify_password(data.current_password, user.password_hash):
            logger.warning(f"[AuthService] Wrong current password for user ID {user.id}")
            raise IncorrectPasswordException()
        await self.user_repository.update(user, {"password_hash": get_password_hash(data.new_password)})
        await self.user_repository.commit()
        logger.info(f"[AuthService] Password changed for user ID {user.id}")

    async def ensure_admin(self, email: str, password: str) -> Optional[User]:
        """Crée l'administrateur initial s'il n'existe pas encore."""
        if await self.user_repository.get_by_email(email):
            return None
        user = User(
            email=email,
            password_hash=get_password_hash(password),
            first_name="Admin",
            role=ROLE_ADMIN,
            is_active=True,
        )
        user = await self.user_repository.create(user)
        await self.user_repository.commit()
        logger.info(f"[AuthService] Initial admin {email} created (ID {user.id}).")
        return user
