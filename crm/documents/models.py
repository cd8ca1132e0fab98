from sqlmodel import Field, SQLModel


class DocumentSequence(SQLModel, table=True):
    """Compteur de numérotation par préfixe et par mois (ex: clé 'COT-202403')."""
    __tablename__ = "document_sequences"

    key: str = Field(primary_key=True, max_length=32)
    last_value: int = Field(default=0, nullable=False)
