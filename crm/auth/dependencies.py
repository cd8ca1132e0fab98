"""
Dépendances FastAPI pour l'authentification.

Fournit:
- Le service d'authentification (AuthService)
- L'utilisateur courant à partir du token JWT (Bearer)
- La vérification du rôle admin
"""
import logging
from typing import Annotated, Optional

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer

from crm.auth.constants import OAUTH2_TOKEN_URL
from crm.auth.exceptions import PermissionDeniedException, TokenInvalidException, TokenMissingException
from crm.auth.service import AuthService
from crm.users.constants import ROLE_ADMIN
from crm.users.dependencies import UserRepositoryDep
from crm.users.models import User

logger = logging.getLogger(__name__)

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=OAUTH2_TOKEN_URL, auto_error=False)


def get_auth_service(user_repository: UserRepositoryDep) -> AuthService:
    """Fournit une instance du service d'authentification."""
    return AuthService(user_repository=user_repository)


AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]


async def get_current_user(
    token: Annotated[Optional[str], Depends(oauth2_scheme)],
    auth_service: AuthServiceDep,
) -> User:
    """
    Vérifie le token JWT et retourne l'utilisateur courant.

    Raises:
        TokenMissingException: si l'en-tête Authorization est absent
        TokenInvalidException: token invalide/expiré, utilisateur supprimé ou inactif
    """
    if token is None:
        logger.warning("Token manquant dans la requête.")
        raise TokenMissingException()

    user = await auth_service.get_user_from_token(token)
    if user is None:
        raise TokenInvalidException()

    logger.debug(f"Utilisateur authentifié: ID {user.id}")
    return user


async def get_current_active_user(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    # L'inactivité est déjà vérifiée par get_user_from_token
    return current_user


async def get_current_admin_user(current_user: Annotated[User, Depends(get_current_active_user)]) -> User:
    if current_user.role != ROLE_ADMIN:
        logger.warning(f"Accès admin refusé pour l'utilisateur ID {current_user.id}")
        raise PermissionDeniedException()
    return current_user


CurrentUserDep = Annotated[User, Depends(get_current_active_user)]
AdminUserDep = Annotated[User, Depends(get_current_admin_user)]
