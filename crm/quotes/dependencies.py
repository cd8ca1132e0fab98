from typing import Annotated

from fastapi import Depends

from crm.core.dependencies import SessionDep
from crm.quotes.interfaces.repositories import AbstractQuoteRepository
from crm.quotes.repositories import SQLAlchemyQuoteRepository
from crm.quotes.service import QuoteService


def get_quote_repository(session: SessionDep) -> AbstractQuoteRepository:
    return SQLAlchemyQuoteRepository(db_session=session)


QuoteRepositoryDep = Annotated[AbstractQuoteRepository, Depends(get_quote_repository)]


def get_quote_service(repository: QuoteRepositoryDep) -> QuoteService:
    return QuoteService(repository=repository)


QuoteServiceDep = Annotated[QuoteService, Depends(get_quote_service)]
