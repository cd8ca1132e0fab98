from datetime import date, datetime
from decimal import Decimal
from types import SimpleNamespace

from crm.reports import aggregation


def material(category, stock, unit_price, min_stock="0", is_active=True):
    return SimpleNamespace(
        category=category,
        stock=Decimal(stock),
        unit_price=Decimal(unit_price),
        min_stock=Decimal(min_stock),
        is_active=is_active,
    )


def test_count_by_keeps_known_keys_at_zero():
    counts = aggregation.count_by(["draft", "sent", "draft"], ("draft", "sent", "accepted"))
    assert counts == {"draft": 2, "sent": 1, "accepted": 0}


def test_sum_by():
    totals = aggregation.sum_by([("sent", "100.00"), ("sent", "50.50"), ("accepted", 20)], ("draft",))
    assert totals == {"draft": Decimal("0.00"), "sent": Decimal("150.50"), "accepted": Decimal("20.00")}


def test_conversion_rate():
    assert aggregation.conversion_rate(1, 4) == 25.0
    assert aggregation.conversion_rate(2, 3) == 66.67
    assert aggregation.conversion_rate(0, 0) == 0.0


def test_profit_and_margin():
    profit, margin = aggregation.profit_and_margin(Decimal("1000"), Decimal("750"))
    assert profit == Decimal("250.00")
    assert margin == 25.0
    assert aggregation.profit_and_margin(0, Decimal("100")) == (Decimal("-100.00"), 0.0)


def test_growth_percentage():
    assert aggregation.growth_percentage(Decimal("150"), Decimal("100")) == 50.0
    assert aggregation.growth_percentage(Decimal("150"), 0) == 0.0


def test_materials_cost_sums_planned_quantities():
    lines = [
        SimpleNamespace(quantity_planned=Decimal("10"), unit_price=Decimal("8.50")),
        SimpleNamespace(quantity_planned=Decimal("2.5"), unit_price=Decimal("100")),
    ]
    assert aggregation.materials_cost(lines) == Decimal("335.00")
    assert aggregation.materials_cost([]) == Decimal("0.00")


def test_inventory_and_category_stats():
    materials = [
        material("Maçonnerie", "10", "8.50", min_stock="12"),
        material("Maçonnerie", "4", "2.00"),
        material("Bois", "3", "30.00"),
    ]
    assert aggregation.inventory_value(materials) == Decimal("183.00")
    assert aggregation.is_low_stock(materials[0])

    stats = aggregation.category_stats(materials)
    assert stats["Maçonnerie"] == {"count": 2, "value": Decimal("93.00"), "stock": Decimal("14")}
    assert stats["Bois"]["value"] == Decimal("90.00")


def test_inactive_material_is_never_low_stock():
    assert aggregation.is_low_stock(material("Bois", "1", "30.00", min_stock="5"))
    assert not aggregation.is_low_stock(material("Bois", "1", "30.00", min_stock="5", is_active=False))


def test_month_starts_spans_twelve_months_across_year_boundary():
    starts = aggregation.month_starts(datetime(2024, 2, 10))
    assert len(starts) == 12
    assert starts[0] == datetime(2023, 3, 1)
    assert starts[-1] == datetime(2024, 2, 1)


def test_monthly_series_has_twelve_points_oldest_first():
    now = datetime(2024, 6, 15)
    entries = [
        (datetime(2024, 6, 1, 8), Decimal("100")),
        (datetime(2024, 6, 30, 23), Decimal("50")),
        (datetime(2023, 7, 3), Decimal("10")),
        (datetime(2023, 6, 30), Decimal("999")),  # hors fenêtre
    ]
    series = aggregation.monthly_series(entries, now)

    assert len(series) == 12
    assert series[0] == {"month": "2023-07", "revenue": Decimal("10.00")}
    assert series[-1] == {"month": "2024-06", "revenue": Decimal("150.00")}
    assert [p["month"] for p in series] == sorted(p["month"] for p in series)
    assert sum(p["revenue"] for p in series[1:-1]) == 0


def test_month_bounds_and_one_month_before():
    assert aggregation.month_bounds(datetime(2024, 1, 20), -1) == (datetime(2023, 12, 1), datetime(2024, 1, 1))
    assert aggregation.one_month_before(date(2024, 3, 31)) == date(2024, 2, 29)
    assert aggregation.one_month_before(date(2024, 1, 15)) == date(2023, 12, 15)


def test_days_left_never_negative():
    today = date(2024, 6, 15)
    assert aggregation.days_left(date(2024, 6, 25), today) == 10
    assert aggregation.days_left(date(2024, 6, 1), today) == 0
    assert aggregation.days_left(None, today) == 0


def test_merge_activities_sorts_and_truncates():
    assert aggregation.per_source_limit(10) == 3
    assert aggregation.per_source_limit(3) == 1

    clients = [{"id": 1, "created_at": datetime(2024, 1, 3)}, {"id": 2, "created_at": datetime(2024, 1, 1)}]
    quotes = [{"id": 3, "created_at": datetime(2024, 1, 4)}, {"id": 4, "created_at": datetime(2024, 1, 2)}]
    merged = aggregation.merge_activities([clients, quotes], limit=3)
    assert [a["id"] for a in merged] == [3, 1, 4]
