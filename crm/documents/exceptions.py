"""Exceptions liées au cycle de vie des documents."""
from typing import Iterable

from crm.core.exceptions import ConflictException, ValidationException


class InvalidStatusException(ValidationException):
    """Statut inconnu pour le type de document."""
    def __init__(self, document: str, status: str, allowed: Iterable[str]):
        self.status = status
        self.allowed = tuple(allowed)
        super().__init__(f"Statut '{status}' invalide pour {document}. Valeurs acceptées: {', '.join(self.allowed)}.")


class InvalidStatusTransitionException(ConflictException):
    """Transition non autorisée par la machine à états."""
    def __init__(self, document: str, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Transition de statut interdite pour {document}: '{current}' -> '{target}'.")


class FinalizedDocumentException(ConflictException):
    """Opération destructive sur un document finalisé (devis accepté, facture payée)."""
    def __init__(self, document: str, status: str, operation: str):
        self.status = status
        self.operation = operation
        super().__init__(f"Impossible de {operation} {document} au statut '{status}'.")
