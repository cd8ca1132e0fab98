"""
Exceptions personnalisées pour le module d'authentification.

Les erreurs levées par les dépendances d'authentification sont des
HTTPException: elles interrompent la requête avant le routeur.
"""
from fastapi import HTTPException, status

from crm.auth.constants import (
    ERROR_CREDENTIALS_INVALID,
    ERROR_CURRENT_PASSWORD,
    ERROR_PERMISSION_DENIED,
    ERROR_TOKEN_INVALID,
    ERROR_TOKEN_MISSING,
    ERROR_USER_INACTIVE,
    HEADER_WWW_AUTHENTICATE,
    HEADER_WWW_AUTHENTICATE_VALUE,
)
from crm.core.exceptions import UnauthorizedException, ValidationException


class InvalidCredentialsException(UnauthorizedException):
    """Identifiants de connexion invalides."""
    def __init__(self):
        super().__init__(ERROR_CREDENTIALS_INVALID)


class InactiveAccountException(UnauthorizedException):
    def __init__(self):
        super().__init__(ERROR_USER_INACTIVE)


class IncorrectPasswordException(ValidationException):
    def __init__(self):
        super().__init__(ERROR_CURRENT_PASSWORD)


class TokenInvalidException(HTTPException):
    """Token JWT invalide, expiré, ou utilisateur introuvable/inactif."""
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=ERROR_TOKEN_INVALID,
            headers={HEADER_WWW_AUTHENTICATE: HEADER_WWW_AUTHENTICATE_VALUE},
        )


class TokenMissingException(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=ERROR_TOKEN_MISSING,
            headers={HEADER_WWW_AUTHENTICATE: HEADER_WWW_AUTHENTICATE_VALUE},
        )


class PermissionDeniedException(HTTPException):
    def __init__(self):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=ERROR_PERMISSION_DENIED,
        )
