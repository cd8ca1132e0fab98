from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlmodel import SQLModel


# Configuration commune pour activer le mode ORM (from_attributes)
class OrmBaseModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class PatchModel(SQLModel):
    """Base des schémas de mise à jour partielle: les champs inconnus sont refusés."""
    model_config = ConfigDict(extra="forbid")

    def changes(self) -> dict:
        """Champs fournis et non nuls, seuls appliqués lors d'une mise à jour."""
        return self.model_dump(exclude_unset=True, exclude_none=True)


class MessageResponse(SQLModel):
    message: str


class ClientSummary(OrmBaseModel):
    id: int
    name: str
    email: Optional[str] = None
    company: Optional[str] = None


class ProjectSummary(OrmBaseModel):
    id: int
    code: str
    name: str
    status: str


class QuoteSummary(OrmBaseModel):
    id: int
    quote_number: str
    title: str
    status: str
    total: Decimal
