"""Constantes pour le module factures."""
from crm.documents.constants import (  # noqa: F401
    INVOICE_OUTSTANDING_STATUSES,
    INVOICE_STATUS_CANCELLED,
    INVOICE_STATUS_DRAFT,
    INVOICE_STATUS_OVERDUE,
    INVOICE_STATUS_PAID,
    INVOICE_STATUS_SENT,
    INVOICE_STATUSES,
)

# Échéance par défaut à partir de la date d'émission
DEFAULT_PAYMENT_TERM_DAYS = 30
