"""Exceptions personnalisées pour le module utilisateurs."""
from crm.core.exceptions import ConflictException, NotFoundException, ValidationException


class UserNotFoundException(NotFoundException):
    def __init__(self, user_id: int = None):
        super().__init__("Utilisateur", user_id)


class EmailAlreadyExistsException(ConflictException):
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"L'email '{email}' est déjà enregistré.")


class LastAdminException(ValidationException):
    """Refus de retirer le dernier administrateur actif."""
    def __init__(self):
        super().__init__("Impossible de désactiver, rétrograder ou supprimer le dernier administrateur actif.")


class SelfModificationException(ValidationException):
    def __init__(self, operation: str):
        super().__init__(f"Un administrateur ne peut pas {operation} son propre compte.")
