"""Constantes pour le module projets."""
from crm.documents.constants import PROJECT_ACTIVE_STATUSES, PROJECT_STATUSES  # noqa: F401
