"""Constantes pour le module devis."""
from crm.documents.constants import (  # noqa: F401
    QUOTE_PENDING_STATUSES,
    QUOTE_STATUS_ACCEPTED,
    QUOTE_STATUS_DRAFT,
    QUOTE_STATUSES,
)
