"""Schémas partagés par les lignes de devis et de facture."""
from decimal import Decimal
from typing import Optional

from pydantic import ConfigDict
from sqlmodel import Field, SQLModel

from crm.documents.constants import DEFAULT_ITEM_UNIT


class DocumentItemBase(SQLModel):
    description: str = Field(..., min_length=1, max_length=500)
    quantity: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)
    unit: str = Field(default=DEFAULT_ITEM_UNIT, max_length=20)
    unit_price: Decimal = Field(..., ge=0, max_digits=15, decimal_places=2)
    notes: Optional[str] = Field(default=None)


class DocumentItemCreate(DocumentItemBase):
    model_config = ConfigDict(extra="forbid")


class DocumentItemRead(DocumentItemBase):
    id: int
    position: int
    total: Decimal


class StatusChange(SQLModel):
    """Corps de PATCH /{id}/status."""
    model_config = ConfigDict(extra="forbid")

    status: str = Field(..., min_length=1, max_length=20)
