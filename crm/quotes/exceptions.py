"""Exceptions personnalisées pour le module devis."""
from crm.core.exceptions import NotFoundException, ValidationException


class QuoteNotFoundException(NotFoundException):
    def __init__(self, quote_id: int = None):
        super().__init__("Devis", quote_id)


class QuoteClientNotFoundException(ValidationException):
    def __init__(self, client_id: int):
        self.client_id = client_id
        super().__init__(f"Client {client_id} introuvable pour ce devis.")


class QuoteProjectMismatchException(ValidationException):
    """Le projet n'existe pas ou n'appartient pas au client du devis."""
    def __init__(self, project_id: int, client_id: int):
        self.project_id = project_id
        self.client_id = client_id
        super().__init__(f"Le projet {project_id} n'existe pas ou n'appartient pas au client {client_id}.")
