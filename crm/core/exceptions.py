"""
Taxonomie des erreurs métier de l'API.

Chaque module définit ses propres exceptions en héritant de ces classes;
`crm.main` les convertit en réponse JSON `{"error": message}`.
"""
import logging

from fastapi import HTTPException, status

from crm.config import settings

logger = logging.getLogger(__name__)


class CRMException(Exception):
    """Classe de base pour les erreurs métier exposées à l'appelant."""
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationException(CRMException):
    """Entrée invalide ou incomplète."""
    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(CRMException):
    """Aucun enregistrement ne correspond."""
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, entity: str, entity_id=None):
        self.entity = entity
        self.entity_id = entity_id
        suffix = f" (ID: {entity_id})" if entity_id is not None else ""
        super().__init__(f"{entity} non trouvé(e){suffix}.")


class ConflictException(CRMException):
    """Violation d'unicité ou opération refusée à cause de l'état des références."""
    status_code = status.HTTP_400_BAD_REQUEST


class UnauthorizedException(CRMException):
    status_code = status.HTTP_401_UNAUTHORIZED


class ForbiddenException(CRMException):
    status_code = status.HTTP_403_FORBIDDEN


class InternalErrorException(CRMException):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


def handle_service_errors(e: Exception, scope: str):
    """Convertit une erreur de service en HTTPException pour les routeurs."""
    if isinstance(e, HTTPException):
        raise e
    if isinstance(e, CRMException):
        raise HTTPException(status_code=e.status_code, detail=e.message)
    logger.error(f"[{scope} API] Unexpected error: {e}", exc_info=True)
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=settings.INTERNAL_ERROR_MSG)
