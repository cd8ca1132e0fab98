"""Champs communs aux modèles de table (horodatage et suppression logique)."""
from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel

from crm.core.utils import utcnow

# Colonnes datetime en UTC naïf, type SQL déclaré explicitement
UTC_DATETIME = DateTime(timezone=False)


class TimestampMixin(SQLModel):
    created_at: datetime = Field(default_factory=utcnow, nullable=False, index=True, sa_type=UTC_DATETIME)
    updated_at: datetime = Field(
        default_factory=utcnow,
        nullable=False,
        sa_type=UTC_DATETIME,
        sa_column_kwargs={"onupdate": utcnow},
    )


class SoftDeleteMixin(SQLModel):
    # Noms de colonnes attendus par FastCRUD pour la suppression logique
    is_deleted: bool = Field(default=False, nullable=False, index=True)
    deleted_at: Optional[datetime] = Field(default=None, sa_type=UTC_DATETIME)
