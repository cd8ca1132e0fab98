from datetime import date

import pytest

from crm.documents import status as sm
from crm.documents.exceptions import (
    FinalizedDocumentException,
    InvalidStatusException,
    InvalidStatusTransitionException,
)


@pytest.mark.parametrize(
    "current,target",
    [("draft", "sent"), ("sent", "accepted"), ("sent", "rejected"), ("sent", "expired"), ("rejected", "draft")],
)
def test_allowed_quote_transitions(current, target):
    assert sm.can_transition(sm.QUOTE, current, target)
    assert sm.ensure_transition(sm.QUOTE, current, target) == target


@pytest.mark.parametrize("current,target", [("draft", "accepted"), ("accepted", "draft"), ("accepted", "sent")])
def test_forbidden_quote_transitions(current, target):
    assert not sm.can_transition(sm.QUOTE, current, target)
    with pytest.raises(InvalidStatusTransitionException):
        sm.ensure_transition(sm.QUOTE, current, target)


def test_unknown_status_is_rejected():
    with pytest.raises(InvalidStatusException):
        sm.ensure_transition(sm.QUOTE, "draft", "archived")
    with pytest.raises(InvalidStatusException):
        sm.validate_status(sm.PROJECT, "done")


def test_project_transitions_are_unrestricted_between_known_statuses():
    assert sm.can_transition(sm.PROJECT, "completed", "planning")
    assert sm.can_transition(sm.PROJECT, "planning", "cancelled")
    assert not sm.can_transition(sm.PROJECT, "planning", "unknown")


def test_invoice_transitions():
    assert sm.can_transition(sm.INVOICE, "draft", "sent")
    assert sm.can_transition(sm.INVOICE, "overdue", "paid")
    assert not sm.can_transition(sm.INVOICE, "paid", "cancelled")
    assert not sm.can_transition(sm.INVOICE, "draft", "paid")


def test_finalized_documents_cannot_be_deleted_or_repriced():
    assert sm.is_finalized(sm.QUOTE, "accepted")
    assert sm.is_finalized(sm.INVOICE, "paid")
    assert sm.can_delete(sm.QUOTE, "sent")
    with pytest.raises(FinalizedDocumentException):
        sm.ensure_deletable(sm.INVOICE, "paid")
    with pytest.raises(FinalizedDocumentException):
        sm.ensure_financial_edit_allowed(sm.QUOTE, "accepted")
    sm.ensure_financial_edit_allowed(sm.QUOTE, "draft")


def test_effective_status_uses_dates():
    today = date(2024, 6, 15)
    assert sm.effective_quote_status("sent", date(2024, 6, 14), today) == "expired"
    assert sm.effective_quote_status("sent", date(2024, 6, 15), today) == "sent"
    assert sm.effective_quote_status("accepted", date(2024, 1, 1), today) == "accepted"
    assert sm.effective_invoice_status("sent", date(2024, 6, 1), today) == "overdue"
    assert sm.effective_invoice_status("paid", date(2024, 6, 1), today) == "paid"
    assert sm.effective_invoice_status("sent", None, today) == "sent"
