from typing import Annotated

from fastapi import Depends

from crm.core.dependencies import SessionDep
from crm.reports.interfaces.repositories import AbstractReportRepository
from crm.reports.repositories import SQLAlchemyReportRepository
from crm.reports.service import ReportService


def get_report_repository(session: SessionDep) -> AbstractReportRepository:
    return SQLAlchemyReportRepository(db_session=session)


ReportRepositoryDep = Annotated[AbstractReportRepository, Depends(get_report_repository)]


def get_report_service(repository: ReportRepositoryDep) -> ReportService:
    """Fournit une instance du service de rapports."""
    return ReportService(repository=repository)


ReportServiceDep = Annotated[ReportService, Depends(get_report_service)]
