from decimal import Decimal

from crm.documents.calculator import (
    compute_balance,
    compute_subtotal,
    compute_totals,
    line_total,
    money,
    totals_from_subtotal,
)
from crm.documents.schemas import DocumentItemCreate


def make_items(*lines):
    return [DocumentItemCreate(description=f"Ligne {i}", quantity=q, unit_price=p) for i, (q, p) in enumerate(lines)]


def test_money_rounds_half_up():
    assert money("2.345") == Decimal("2.35")
    assert money("2.344") == Decimal("2.34")
    assert money(0.1 + 0.2) == Decimal("0.30")


def test_line_total():
    assert line_total(Decimal("3"), Decimal("19.99")) == Decimal("59.97")


def test_compute_subtotal_sums_quantity_times_price():
    items = make_items(("2", "100.00"), ("1.5", "40.00"))
    assert compute_subtotal(items) == Decimal("260.00")


def test_compute_totals_applies_tax_then_discount():
    items = make_items(("2", "100.00"), ("1", "50.00"))
    totals = compute_totals(items, tax_rate=Decimal("20"), discount=Decimal("10"))

    assert totals.subtotal == Decimal("250.00")
    assert totals.tax_amount == Decimal("50.00")
    assert totals.total == Decimal("290.00")
    assert totals.total == totals.subtotal + totals.subtotal * Decimal("20") / 100 - Decimal("10")


def test_compute_totals_defaults_to_no_tax_no_discount():
    totals = compute_totals(make_items(("1", "99.99")))
    assert totals.subtotal == totals.total == Decimal("99.99")
    assert totals.tax_amount == Decimal("0.00")


def test_total_is_not_clamped_when_discount_exceeds_amount():
    totals = compute_totals(make_items(("1", "10.00")), tax_rate=0, discount=Decimal("25.00"))
    assert totals.total == Decimal("-15.00")


def test_totals_from_subtotal_recomputes_tax_and_total():
    totals = totals_from_subtotal(Decimal("1000.00"), tax_rate=Decimal("5.5"), discount=Decimal("0"))
    assert totals.tax_amount == Decimal("55.00")
    assert totals.total == Decimal("1055.00")


def test_compute_balance():
    assert compute_balance(Decimal("1055.00"), Decimal("55.00")) == Decimal("1000.00")
    assert compute_balance("100", "100") == Decimal("0.00")
