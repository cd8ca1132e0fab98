"""
Agrégations utilisées par les rapports et le tableau de bord.

Fonctions pures travaillant sur des objets déjà chargés (modèles ORM ou
simples tuples). Aucun accès base de données ici, ce qui permet de les
tester sans session.
"""
import calendar
from collections import Counter
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from crm.core.utils import shift_month, start_of_month
from crm.documents.calculator import HUNDRED, money, to_decimal

MONTHS_IN_SERIES = 12
ACTIVITY_SOURCES = 4

ZERO = Decimal("0")


def count_by(values: Iterable[str], keys: Sequence[str] = ()) -> Dict[str, int]:
    """Compte les occurrences; les clés connues apparaissent même à zéro."""
    counts = {key: 0 for key in keys}
    for value, n in Counter(values).items():
        counts[value] = counts.get(value, 0) + n
    return counts


def sum_by(pairs: Iterable[Tuple[str, Any]], keys: Sequence[str] = ()) -> Dict[str, Decimal]:
    totals = {key: ZERO for key in keys}
    for key, amount in pairs:
        totals[key] = totals.get(key, ZERO) + to_decimal(amount or 0)
    return {key: money(value) for key, value in totals.items()}


def total_of(amounts: Iterable[Any]) -> Decimal:
    return money(sum((to_decimal(a or 0) for a in amounts), ZERO))


def percentage(part: Any, whole: Any) -> float:
    """part / whole × 100, arrondi à deux décimales; 0 quand whole est nul."""
    whole = to_decimal(whole or 0)
    if whole == 0:
        return 0.0
    return round(float(to_decimal(part or 0) / whole * HUNDRED), 2)


def conversion_rate(accepted: int, total: int) -> float:
    return percentage(accepted, total)


def profit_and_margin(revenue: Any, costs: Any) -> Tuple[Decimal, float]:
    """Bénéfice (revenu − coûts) et marge en % du revenu."""
    profit = money(to_decimal(revenue or 0) - to_decimal(costs or 0))
    return profit, percentage(profit, revenue)


def growth_percentage(current: Any, previous: Any) -> float:
    previous = to_decimal(previous or 0)
    if previous <= 0:
        return 0.0
    return percentage(to_decimal(current or 0) - previous, previous)


def materials_cost(project_materials: Iterable[Any]) -> Decimal:
    """Coût prévu des matériaux d'un projet: Σ quantité prévue × prix unitaire."""
    return total_of(
        to_decimal(pm.quantity_planned) * to_decimal(pm.unit_price)
        for pm in project_materials
    )


def stock_value(material: Any) -> Decimal:
    return money(to_decimal(material.stock) * to_decimal(material.unit_price))


def is_low_stock(material: Any) -> bool:
    """Même règle que `low_stock_clause`: seuls les matériaux actifs sont en alerte."""
    return bool(material.is_active) and to_decimal(material.stock) <= to_decimal(material.min_stock)


def inventory_value(materials: Iterable[Any]) -> Decimal:
    return total_of(stock_value(m) for m in materials)


def category_stats(materials: Iterable[Any]) -> Dict[str, Dict[str, Any]]:
    """Nombre, valeur et stock cumulés par catégorie."""
    stats: Dict[str, Dict[str, Any]] = {}
    for material in materials:
        entry = stats.setdefault(material.category, {"count": 0, "value": ZERO, "stock": ZERO})
        entry["count"] += 1
        entry["value"] = money(entry["value"] + stock_value(material))
        entry["stock"] += to_decimal(material.stock)
    return stats


# --- Séries temporelles ---

def month_starts(now: datetime, months: int = MONTHS_IN_SERIES) -> List[datetime]:
    """Premiers jours des `months` derniers mois calendaires, du plus ancien au mois courant."""
    return [shift_month(now, -offset) for offset in range(months - 1, -1, -1)]


def monthly_series(
    entries: Iterable[Tuple[datetime, Any]],
    now: datetime,
    months: int = MONTHS_IN_SERIES,
) -> List[Dict[str, Any]]:
    """
    Répartit des montants horodatés par mois calendaire.

    Retourne exactement `months` points `{"month": "YYYY-MM", "revenue": Decimal}`,
    du plus ancien au plus récent. Les entrées hors fenêtre sont ignorées.
    """
    buckets = {start.strftime("%Y-%m"): ZERO for start in month_starts(now, months)}
    for created_at, amount in entries:
        key = created_at.strftime("%Y-%m")
        if key in buckets:
            buckets[key] += to_decimal(amount or 0)
    return [{"month": month, "revenue": money(value)} for month, value in buckets.items()]


def month_bounds(now: datetime, offset: int = 0) -> Tuple[datetime, datetime]:
    """Bornes [début, fin[ du mois décalé de `offset` par rapport à `now`."""
    start = shift_month(start_of_month(now), offset)
    return start, shift_month(start, 1)


def one_month_before(day: date) -> date:
    """Même jour le mois précédent, ramené au dernier jour si ce mois est plus court."""
    year, month = (day.year, day.month - 1) if day.month > 1 else (day.year - 1, 12)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def days_left(end_date: Optional[date], today: date) -> int:
    if end_date is None:
        return 0
    return max((end_date - today).days, 0)


# --- Activité récente ---

def per_source_limit(limit: int) -> int:
    """Nombre d'éléments lus par source avant fusion."""
    return limit // ACTIVITY_SOURCES + 1


def merge_activities(sources: Iterable[Iterable[Dict[str, Any]]], limit: int) -> List[Dict[str, Any]]:
    """Fusionne les flux d'activité, trie par date décroissante et tronque à `limit`."""
    merged = [activity for source in sources for activity in source]
    merged.sort(key=lambda activity: activity["created_at"], reverse=True)
    return merged[:limit]
