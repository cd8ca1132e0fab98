"""Exceptions personnalisées pour le module clients."""
from crm.core.exceptions import ConflictException, NotFoundException


class ClientNotFoundException(NotFoundException):
    def __init__(self, client_id: int = None):
        super().__init__("Client", client_id)


class DuplicateClientEmailException(ConflictException):
    """Un client vivant utilise déjà cet email."""
    def __init__(self, email: str):
        self.email = email
        super().__init__(f"Un client avec l'email '{email}' existe déjà.")


class ClientHasActiveProjectsException(ConflictException):
    """Suppression refusée tant que le client a des projets non terminés."""
    def __init__(self, client_id: int, active_projects: int):
        self.client_id = client_id
        self.active_projects = active_projects
        super().__init__(
            f"Impossible de supprimer le client {client_id}: {active_projects} projet(s) actif(s) associé(s)."
        )
