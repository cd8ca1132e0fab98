"""Fonctions utilitaires partagées (dates, pagination)."""
import math
from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple


def utcnow() -> datetime:
    """Horodatage UTC naïf, format de stockage de toutes les colonnes datetime."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def start_of_month(moment: datetime) -> datetime:
    return datetime(moment.year, moment.month, 1)


def shift_month(moment: datetime, months: int) -> datetime:
    """Premier jour du mois décalé de `months` mois par rapport à `moment`."""
    index = moment.year * 12 + (moment.month - 1) + months
    return datetime(index // 12, index % 12 + 1, 1)


def day_range(start_date: Optional[date], end_date: Optional[date]) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Convertit un intervalle de jours inclusif en bornes [début, fin[ sur des datetimes."""
    start = datetime.combine(start_date, time.min) if start_date else None
    end = datetime.combine(end_date, time.min) + timedelta(days=1) if end_date else None
    return start, end


def page_count(total: int, limit: int) -> int:
    if limit <= 0:
        return 0
    return math.ceil(total / limit)


def page_to_offset(page: int, limit: int) -> int:
    return (max(page, 1) - 1) * limit
