"""Constantes des documents commerciaux (devis, factures) et des projets."""

# --- Préfixes de numérotation ---
PROJECT_CODE_PREFIX = "PRJ"
QUOTE_NUMBER_PREFIX = "COT"
INVOICE_NUMBER_PREFIX = "FAC"
SEQUENCE_WIDTH = 4
PROJECT_SUFFIX_MODULO = 10000

# --- Statuts des devis ---
QUOTE_STATUS_DRAFT = "draft"
QUOTE_STATUS_SENT = "sent"
QUOTE_STATUS_ACCEPTED = "accepted"
QUOTE_STATUS_REJECTED = "rejected"
QUOTE_STATUS_EXPIRED = "expired"
QUOTE_STATUSES = (
    QUOTE_STATUS_DRAFT,
    QUOTE_STATUS_SENT,
    QUOTE_STATUS_ACCEPTED,
    QUOTE_STATUS_REJECTED,
    QUOTE_STATUS_EXPIRED,
)
QUOTE_PENDING_STATUSES = (QUOTE_STATUS_DRAFT, QUOTE_STATUS_SENT)

# --- Statuts des projets ---
PROJECT_STATUS_PLANNING = "planning"
PROJECT_STATUS_IN_PROGRESS = "in_progress"
PROJECT_STATUS_COMPLETED = "completed"
PROJECT_STATUS_CANCELLED = "cancelled"
PROJECT_STATUS_ON_HOLD = "on_hold"
PROJECT_STATUSES = (
    PROJECT_STATUS_PLANNING,
    PROJECT_STATUS_IN_PROGRESS,
    PROJECT_STATUS_COMPLETED,
    PROJECT_STATUS_CANCELLED,
    PROJECT_STATUS_ON_HOLD,
)
# Statuts non terminaux: un client qui en possède ne peut pas être supprimé
PROJECT_ACTIVE_STATUSES = (PROJECT_STATUS_PLANNING, PROJECT_STATUS_IN_PROGRESS, PROJECT_STATUS_ON_HOLD)

# --- Statuts des factures ---
INVOICE_STATUS_DRAFT = "draft"
INVOICE_STATUS_SENT = "sent"
INVOICE_STATUS_PAID = "paid"
INVOICE_STATUS_OVERDUE = "overdue"
INVOICE_STATUS_CANCELLED = "cancelled"
INVOICE_STATUSES = (
    INVOICE_STATUS_DRAFT,
    INVOICE_STATUS_SENT,
    INVOICE_STATUS_PAID,
    INVOICE_STATUS_OVERDUE,
    INVOICE_STATUS_CANCELLED,
)
INVOICE_OUTSTANDING_STATUSES = (INVOICE_STATUS_SENT, INVOICE_STATUS_OVERDUE)

# --- Lignes de document ---
DEFAULT_ITEM_UNIT = "pcs"
