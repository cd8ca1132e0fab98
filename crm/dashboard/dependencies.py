from typing import Annotated

from fastapi import Depends

from crm.dashboard.service import DashboardService
from crm.reports.dependencies import ReportRepositoryDep


def get_dashboard_service(repository: ReportRepositoryDep) -> DashboardService:
    """Fournit une instance du service du tableau de bord."""
    return DashboardService(repository=repository)


DashboardServiceDep = Annotated[DashboardService, Depends(get_dashboard_service)]
