"""Exceptions personnalisées pour le module projets."""
from crm.core.exceptions import NotFoundException, ValidationException


class ProjectNotFoundException(NotFoundException):
    def __init__(self, project_id: int = None):
        super().__init__("Projet", project_id)


class ProjectClientNotFoundException(ValidationException):
    """Le client référencé par le projet n'existe pas ou a été supprimé."""
    def __init__(self, client_id: int):
        self.client_id = client_id
        super().__init__(f"Client {client_id} introuvable pour ce projet.")


class InvalidProjectDatesException(ValidationException):
    def __init__(self):
        super().__init__("La date de fin doit être postérieure ou égale à la date de début.")
