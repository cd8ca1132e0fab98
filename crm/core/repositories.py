"""
Briques communes aux repositories SQLAlchemy.

Chaque repository d'entité hérite de `SQLAlchemyRepository` et de son
interface abstraite. Les lignes supprimées logiquement (`is_deleted`) sont
exclues de toutes les lectures.
"""
import logging
from typing import Any, Generic, Iterable, List, Optional, Sequence, Tuple, Type, TypeVar

from fastcrud import FastCRUD
from sqlalchemy import Select, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from crm.core.utils import utcnow

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=SQLModel)


class SQLAlchemyRepository(Generic[ModelT]):
    model: Type[ModelT]
    # Options de chargement (selectinload) appliquées aux lectures unitaires et listes
    load_options: Sequence[Any] = ()

    def __init__(self, db_session: AsyncSession):
        self.db = db_session
        self.crud = FastCRUD(self.model)

    def live(self) -> Select:
        return select(self.model).where(self.model.is_deleted == False)  # noqa: E712

    async def fetch(self, entity_id: int, with_relations: bool = True) -> Optional[ModelT]:
        stmt = self.live().where(self.model.id == entity_id).execution_options(populate_existing=True)
        if with_relations and self.load_options:
            stmt = stmt.options(*self.load_options)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def paginate(self, stmt: Select, offset: int, limit: int) -> Tuple[List[ModelT], int]:
        total = await self.db.scalar(select(func.count()).select_from(stmt.order_by(None).subquery()))
        page_stmt = stmt.offset(offset).limit(limit).execution_options(populate_existing=True)
        if self.load_options:
            page_stmt = page_stmt.options(*self.load_options)
        result = await self.db.execute(page_stmt)
        return list(result.scalars().unique().all()), total or 0

    async def all(self, stmt: Select) -> List[ModelT]:
        if self.load_options:
            stmt = stmt.options(*self.load_options)
        result = await self.db.execute(stmt.execution_options(populate_existing=True))
        return list(result.scalars().unique().all())

    async def exists(self, exclude_id: Optional[int] = None, **filters: Any) -> bool:
        """Recherche parmi les lignes vivantes, en excluant éventuellement un ID."""
        if exclude_id is not None:
            filters["id__ne"] = exclude_id
        return await self.crud.exists(self.db, is_deleted=False, **filters)

    async def count(self, **filters: Any) -> int:
        return await self.crud.count(self.db, is_deleted=False, **filters)

    async def add(self, entity: ModelT) -> ModelT:
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def apply(self, entity: ModelT, changes: dict) -> ModelT:
        for field, value in changes.items():
            setattr(entity, field, value)
        entity.updated_at = utcnow()
        self.db.add(entity)
        await self.db.flush()
        return entity

    async def soft_delete(self, entity: ModelT) -> None:
        entity.is_deleted = True
        entity.deleted_at = utcnow()
        self.db.add(entity)
        await self.db.flush()

    async def delete_children(self, entity: ModelT, relation: str, stmt: Any) -> None:
        """Suppression physique des lignes filles; la collection chargée est expirée avant."""
        self.db.expire(entity, [relation])
        await self.db.execute(stmt)

    async def commit(self) -> None:
        await self.db.commit()


def search_clause(term: str, columns: Iterable[Any]):
    """Recherche insensible à la casse d'une sous-chaîne sur plusieurs colonnes."""
    pattern = f"%{term.strip()}%"
    return or_(*(column.ilike(pattern) for column in columns))


def live_items(items: Optional[Iterable[ModelT]]) -> List[ModelT]:
    """Filtre les relations chargées pour écarter les lignes supprimées logiquement."""
    return [item for item in items or [] if not getattr(item, "is_deleted", False)]
