"""
Génération des identifiants métier des documents.

- Projets: PRJ-YYYYMMDD-NNNN (NNNN = timestamp Unix modulo 10000, incrémenté en cas de collision)
- Devis: COT-YYYYMM-NNNN (séquence mensuelle)
- Factures: FAC-YYYYMM-NNNN (séquence mensuelle)

Les séquences mensuelles sont stockées dans la table `document_sequences`.
La ligne du mois est initialisée avec le nombre de documents déjà créés ce
mois-là, puis incrémentée par un UPDATE atomique dans la transaction de
l'appelant: deux créations concurrentes n'obtiennent jamais le même numéro.
"""
import calendar
import logging
from datetime import datetime
from typing import Optional, Type

from sqlalchemy import func, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from crm.core.exceptions import InternalErrorException
from crm.core.utils import shift_month, start_of_month, utcnow
from crm.documents.constants import (
    INVOICE_NUMBER_PREFIX,
    PROJECT_CODE_PREFIX,
    PROJECT_SUFFIX_MODULO,
    QUOTE_NUMBER_PREFIX,
    SEQUENCE_WIDTH,
)
from crm.documents.models import DocumentSequence

logger = logging.getLogger(__name__)


def format_project_code(moment: datetime, suffix: int) -> str:
    return f"{PROJECT_CODE_PREFIX}-{moment:%Y%m%d}-{suffix % PROJECT_SUFFIX_MODULO:0{SEQUENCE_WIDTH}d}"


def format_monthly_number(prefix: str, moment: datetime, value: int) -> str:
    return f"{prefix}-{moment:%Y%m}-{value:0{SEQUENCE_WIDTH}d}"


def sequence_key(prefix: str, moment: datetime) -> str:
    return f"{prefix}-{moment:%Y%m}"


async def generate_project_code(db: AsyncSession, now: Optional[datetime] = None) -> str:
    """Code projet unique basé sur la date et le timestamp courant."""
    from crm.projects.models import Project

    now = now or utcnow()
    suffix = calendar.timegm(now.utctimetuple()) % PROJECT_SUFFIX_MODULO
    for _ in range(PROJECT_SUFFIX_MODULO):
        code = format_project_code(now, suffix)
        # La contrainte d'unicité couvre aussi les projets supprimés logiquement
        taken = await db.scalar(select(func.count()).select_from(Project).where(Project.code == code))
        if not taken:
            return code
        logger.debug(f"[Numbering] Code projet {code} déjà utilisé, incrément du suffixe.")
        suffix = (suffix + 1) % PROJECT_SUFFIX_MODULO
    raise InternalErrorException(f"Aucun code projet disponible pour le {now:%Y-%m-%d}.")


def _insert_ignore(db: AsyncSession):
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        return postgresql.insert(DocumentSequence)
    if dialect == "sqlite":
        return sqlite.insert(DocumentSequence)
    raise NotImplementedError(f"Dialecte non supporté pour la numérotation: {dialect}")


async def next_monthly_value(db: AsyncSession, prefix: str, model: Type[SQLModel], now: datetime) -> int:
    """Incrémente et retourne la séquence du mois pour `prefix`."""
    key = sequence_key(prefix, now)
    month_start = start_of_month(now)
    month_end = shift_month(now, 1)

    # Amorçage: nombre de documents du mois, y compris ceux supprimés logiquement
    existing = await db.scalar(
        select(func.count())
        .select_from(model)
        .where(model.created_at >= month_start, model.created_at < month_end)
    )
    seed = _insert_ignore(db).values(key=key, last_value=existing or 0)
    await db.execute(seed.on_conflict_do_nothing(index_elements=["key"]))

    # L'UPDATE pose un verrou sur la ligne jusqu'à la fin de la transaction
    await db.execute(
        update(DocumentSequence)
        .where(DocumentSequence.key == key)
        .values(last_value=DocumentSequence.last_value + 1)
    )
    value = await db.scalar(select(DocumentSequence.last_value).where(DocumentSequence.key == key))
    logger.debug(f"[Numbering] Séquence {key} -> {value}")
    return value


async def generate_quote_number(db: AsyncSession, now: Optional[datetime] = None) -> str:
    from crm.quotes.models import Quote

    now = now or utcnow()
    value = await next_monthly_value(db, QUOTE_NUMBER_PREFIX, Quote, now)
    return format_monthly_number(QUOTE_NUMBER_PREFIX, now, value)


async def generate_invoice_number(db: AsyncSession, now: Optional[datetime] = None) -> str:
    from crm.invoices.models import Invoice

    now = now or utcnow()
    value = await next_monthly_value(db, INVOICE_NUMBER_PREFIX, Invoice, now)
    return format_monthly_number(INVOICE_NUMBER_PREFIX, now, value)
