from typing import Annotated, Tuple

from fastapi import Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from crm.config import settings
from crm.database import get_db_session

# Dependency for DB Session
SessionDep = Annotated[AsyncSession, Depends(get_db_session)]


def get_pagination_params(
    page: int = Query(1, ge=1, description="Numéro de page (commence à 1)"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Éléments par page"),
) -> Tuple[int, int]:
    return page, limit


PaginationParams = Annotated[Tuple[int, int], Depends(get_pagination_params)]
