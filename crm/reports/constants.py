"""Constantes des rapports et du tableau de bord."""
from crm.documents.constants import (  # noqa: F401
    PROJECT_STATUS_IN_PROGRESS,
    PROJECT_STATUS_PLANNING,
    QUOTE_PENDING_STATUSES,
    QUOTE_STATUS_ACCEPTED,
)

UNKNOWN_CLIENT_LABEL = "Client inconnu"

# Projets dont le budget compte comme valeur active et dont l'échéance est suivie
PROJECT_OPEN_STATUSES = (PROJECT_STATUS_PLANNING, PROJECT_STATUS_IN_PROGRESS)

DEADLINE_WINDOW_DAYS = 30
DEFAULT_ACTIVITY_LIMIT = 10
MAX_ACTIVITY_LIMIT = 50
