"""
Machine à états des devis, projets et factures.

Les transitions des devis et des factures sont contrôlées; les projets
acceptent n'importe quel statut connu. Les statuts 'expired' et 'overdue'
sont aussi déduits à la lecture à partir des dates d'échéance.
"""
from datetime import date, datetime
from typing import Dict, FrozenSet, Optional, Union

from crm.documents import constants as c
from crm.documents.exceptions import (
    FinalizedDocumentException,
    InvalidStatusException,
    InvalidStatusTransitionException,
)

QUOTE = "quote"
PROJECT = "project"
INVOICE = "invoice"

DOCUMENT_LABELS = {QUOTE: "le devis", PROJECT: "le projet", INVOICE: "la facture"}

STATUSES = {
    QUOTE: c.QUOTE_STATUSES,
    PROJECT: c.PROJECT_STATUSES,
    INVOICE: c.INVOICE_STATUSES,
}

QUOTE_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    c.QUOTE_STATUS_DRAFT: frozenset({c.QUOTE_STATUS_SENT}),
    c.QUOTE_STATUS_SENT: frozenset({c.QUOTE_STATUS_ACCEPTED, c.QUOTE_STATUS_REJECTED, c.QUOTE_STATUS_EXPIRED}),
    c.QUOTE_STATUS_REJECTED: frozenset({c.QUOTE_STATUS_DRAFT}),
    c.QUOTE_STATUS_EXPIRED: frozenset({c.QUOTE_STATUS_DRAFT}),
    c.QUOTE_STATUS_ACCEPTED: frozenset(),
}

INVOICE_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    c.INVOICE_STATUS_DRAFT: frozenset({c.INVOICE_STATUS_SENT, c.INVOICE_STATUS_CANCELLED}),
    c.INVOICE_STATUS_SENT: frozenset({c.INVOICE_STATUS_PAID, c.INVOICE_STATUS_OVERDUE, c.INVOICE_STATUS_CANCELLED}),
    c.INVOICE_STATUS_OVERDUE: frozenset({c.INVOICE_STATUS_PAID, c.INVOICE_STATUS_CANCELLED}),
    c.INVOICE_STATUS_PAID: frozenset(),
    c.INVOICE_STATUS_CANCELLED: frozenset(),
}

TRANSITIONS = {QUOTE: QUOTE_TRANSITIONS, INVOICE: INVOICE_TRANSITIONS}

# Statuts figeant le contenu financier du document et interdisant sa suppression
FINALIZED = {
    QUOTE: frozenset({c.QUOTE_STATUS_ACCEPTED}),
    PROJECT: frozenset(),
    INVOICE: frozenset({c.INVOICE_STATUS_PAID}),
}


def validate_status(document: str, status: str) -> str:
    """Vérifie que `status` appartient aux valeurs connues du type de document."""
    allowed = STATUSES[document]
    if status not in allowed:
        raise InvalidStatusException(DOCUMENT_LABELS[document], status, allowed)
    return status


def can_transition(document: str, current: str, target: str) -> bool:
    if target not in STATUSES[document]:
        return False
    graph = TRANSITIONS.get(document)
    if graph is None:
        return True
    return target in graph.get(current, frozenset())


def ensure_transition(document: str, current: str, target: str) -> str:
    validate_status(document, target)
    if not can_transition(document, current, target):
        raise InvalidStatusTransitionException(DOCUMENT_LABELS[document], current, target)
    return target


def is_finalized(document: str, status: str) -> bool:
    return status in FINALIZED[document]


def can_delete(document: str, status: str) -> bool:
    return not is_finalized(document, status)


def ensure_deletable(document: str, status: str) -> None:
    if not can_delete(document, status):
        raise FinalizedDocumentException(DOCUMENT_LABELS[document], status, "supprimer")


def ensure_financial_edit_allowed(document: str, status: str) -> None:
    if is_finalized(document, status):
        raise FinalizedDocumentException(DOCUMENT_LABELS[document], status, "modifier les montants de")


def _as_date(value: Union[date, datetime]) -> date:
    return value.date() if isinstance(value, datetime) else value


def effective_quote_status(status: str, valid_until: Optional[Union[date, datetime]], today: date) -> str:
    """Un devis envoyé dont la validité est dépassée est considéré comme expiré."""
    if status == c.QUOTE_STATUS_SENT and valid_until is not None and _as_date(valid_until) < today:
        return c.QUOTE_STATUS_EXPIRED
    return status


def effective_invoice_status(status: str, due_date: Optional[Union[date, datetime]], today: date) -> str:
    """Une facture envoyée dont l'échéance est dépassée est considérée en retard."""
    if status == c.INVOICE_STATUS_SENT and due_date is not None and _as_date(due_date) < today:
        return c.INVOICE_STATUS_OVERDUE
    return status
