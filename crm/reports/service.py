import logging
from datetime import date
from typing import Optional

from crm.clients.constants import CONTACT_TYPES
from crm.core.repositories import live_items
from crm.core.utils import day_range, utcnow
from crm.documents.calculator import money
from crm.documents.constants import (
    INVOICE_OUTSTANDING_STATUSES,
    INVOICE_STATUS_CANCELLED,
    PROJECT_STATUSES,
    QUOTE_STATUS_ACCEPTED,
    QUOTE_STATUSES,
)
from crm.invoices.models import Invoice
from crm.materials.models import Material
from crm.projects.models import Project
from crm.quotes.models import Quote
from crm.reports import aggregation
from crm.reports.constants import PROJECT_OPEN_STATUSES, QUOTE_PENDING_STATUSES, UNKNOWN_CLIENT_LABEL
from crm.reports.exceptions import InvalidReportPeriodException
from crm.reports.interfaces.repositories import AbstractReportRepository
from crm.reports.models import (
    AssetsSection,
    CategoryStat,
    ClientReport,
    ClientReportRow,
    ClientReportSummary,
    CostsSection,
    FinancialReport,
    InvoicingSection,
    MaterialReport,
    MaterialReportRow,
    MaterialReportSummary,
    ProfitSection,
    ProjectReport,
    ProjectReportRow,
    ProjectReportSummary,
    QuoteReport,
    QuoteReportRow,
    QuoteReportSummary,
    ReportPeriod,
    RevenueSection,
)
from crm.reports.repositories import in_range

logger = logging.getLogger(__name__)


def check_period(start_date: Optional[date], end_date: Optional[date]) -> None:
    if start_date and end_date and end_date < start_date:
        raise InvalidReportPeriodException(start_date, end_date)


def client_label(entity) -> str:
    client = getattr(entity, "client", None)
    if client is None or client.is_deleted:
        return UNKNOWN_CLIENT_LABEL
    return client.name


class ReportService:
    """
    Rapports consolidés.

    Chaque rapport accepte un intervalle de jours inclusif sur `created_at`
    et retourne un résumé accompagné des lignes détaillées.
    """

    def __init__(self, repository: AbstractReportRepository):
        self.repository = repository

    async def clients_report(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None, active: Optional[bool] = None
    ) -> ClientReport:
        logger.info(f"[ReportService] Clients report: {start_date} -> {end_date}, active={active}")
        check_period(start_date, end_date)
        start, end = day_range(start_date, end_date)
        clients = await self.repository.list_clients(start, end, active)

        rows = []
        for client in clients:
            quotes = live_items(client.quotes)
            rows.append(
                ClientReportRow(
                    id=client.id,
                    name=client.name,
                    email=client.email,
                    company=client.company,
                    contact_type=client.contact_type,
                    is_active=client.is_active,
                    created_at=client.created_at,
                    projects=len(live_items(client.projects)),
                    quotes=len(quotes),
                    quote_value=aggregation.total_of(q.total for q in quotes),
                )
            )

        active_count = sum(1 for row in rows if row.is_active)
        summary = ClientReportSummary(
            total_clients=len(rows),
            active_clients=active_count,
            inactive_clients=len(rows) - active_count,
            total_projects=sum(row.projects for row in rows),
            total_quotes=sum(row.quotes for row in rows),
            total_value=aggregation.total_of(row.quote_value for row in rows),
            contact_type_count=aggregation.count_by((row.contact_type for row in rows), CONTACT_TYPES),
        )
        return ClientReport(summary=summary, clients=rows)

    async def projects_report(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
    ) -> ProjectReport:
        logger.info(f"[ReportService] Projects report: {start_date} -> {end_date}, status={status}")
        check_period(start_date, end_date)
        start, end = day_range(start_date, end_date)
        projects = await self.repository.list_projects(start, end, status, client_id)

        rows = [
            ProjectReportRow(
                id=project.id,
                code=project.code,
                name=project.name,
                client=client_label(project),
                status=project.status,
                priority=project.priority,
                project_type=project.project_type,
                budget=project.budget,
                cost=project.actual_cost,
                materials_cost=aggregation.materials_cost(project.project_materials or []),
                progress=project.progress,
                start_date=project.start_date,
                end_date=project.end_date,
                created_at=project.created_at,
            )
            for project in projects
        ]
        total_budget = aggregation.total_of(row.budget for row in rows)
        total_cost = aggregation.total_of(row.cost for row in rows)
        summary = ProjectReportSummary(
            total_projects=len(rows),
            status_count=aggregation.count_by((row.status for row in rows), PROJECT_STATUSES),
            total_budget=total_budget,
            total_cost=total_cost,
            profit_margin=aggregation.profit_and_margin(total_budget, total_cost)[0],
        )
        return ProjectReport(summary=summary, projects=rows)

    async def quotes_report(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        status: Optional[str] = None,
        client_id: Optional[int] = None,
    ) -> QuoteReport:
        logger.info(f"[ReportService] Quotes report: {start_date} -> {end_date}, status={status}")
        check_period(start_date, end_date)
        start, end = day_range(start_date, end_date)
        quotes = await self.repository.list_quotes(start, end, status, client_id)

        rows = [
            QuoteReportRow(
                id=quote.id,
                quote_number=quote.quote_number,
                title=quote.title,
                client=client_label(quote),
                project=quote.project.name if quote.project and not quote.project.is_deleted else "",
                status=quote.status,
                subtotal=quote.subtotal,
                tax_rate=quote.tax_rate,
                tax_amount=quote.tax_amount,
                discount=quote.discount,
                total=quote.total,
                valid_until=quote.valid_until,
                created_at=quote.created_at,
                items_count=len(quote.items or []),
            )
            for quote in quotes
        ]
        status_count = aggregation.count_by((row.status for row in rows), QUOTE_STATUSES)
        summary = QuoteReportSummary(
            total_quotes=len(rows),
            status_count=status_count,
            status_value=aggregation.sum_by(((row.status, row.total) for row in rows), QUOTE_STATUSES),
            total_value=aggregation.total_of(row.total for row in rows),
            conversion_rate=aggregation.conversion_rate(status_count[QUOTE_STATUS_ACCEPTED], len(rows)),
        )
        return QuoteReport(summary=summary, quotes=rows)

    async def materials_report(
        self,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        category: Optional[str] = None,
        low_stock: bool = False,
    ) -> MaterialReport:
        logger.info(f"[ReportService] Materials report: category={category}, low_stock={low_stock}")
        check_period(start_date, end_date)
        start, end = day_range(start_date, end_date)
        materials = await self.repository.list_materials(start, end, category, low_stock)

        rows = [
            MaterialReportRow(
                id=material.id,
                name=material.name,
                category=material.category,
                unit=material.unit,
                unit_price=material.unit_price,
                stock=material.stock,
                min_stock=material.min_stock,
                value=aggregation.stock_value(material),
                supplier=material.supplier,
                sku=material.sku,
                is_active=material.is_active,
                low_stock=aggregation.is_low_stock(material),
                created_at=material.created_at,
            )
            for material in materials
        ]
        summary = MaterialReportSummary(
            total_materials=len(rows),
            total_value=aggregation.inventory_value(materials),
            total_stock=sum((m.stock for m in materials), aggregation.ZERO),
            low_stock_count=sum(1 for row in rows if row.low_stock),
            category_stats={
                category: CategoryStat(**stats) for category, stats in aggregation.category_stats(materials).items()
            },
        )
        return MaterialReport(summary=summary, materials=rows)

    async def financial_report(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> FinancialReport:
        """Synthèse financière; la période par défaut couvre le dernier mois jusqu'à aujourd'hui."""
        end_date = end_date or utcnow().date()
        start_date = start_date or aggregation.one_month_before(end_date)
        check_period(start_date, end_date)
        logger.info(f"[ReportService] Financial report: {start_date} -> {end_date}")
        start, end = day_range(start_date, end_date)
        repo = self.repository

        revenue = await repo.total(
            Quote, Quote.total, Quote.status == QUOTE_STATUS_ACCEPTED, *in_range(Quote.created_at, start, end)
        )
        pending = await repo.total(
            Quote, Quote.total, Quote.status.in_(QUOTE_PENDING_STATUSES), *in_range(Quote.created_at, start, end)
        )
        active_value = await repo.total(
            Project, Project.budget, Project.status.in_(PROJECT_OPEN_STATUSES), *in_range(Project.created_at, start, end)
        )
        project_costs = await repo.total(Project, Project.actual_cost, *in_range(Project.created_at, start, end))
        inventory = await repo.total(Material, Material.stock * Material.unit_price)

        invoice_period = (Invoice.status != INVOICE_STATUS_CANCELLED, *in_range(Invoice.created_at, start, end))
        invoiced = await repo.total(Invoice, Invoice.total, *invoice_period)
        paid = await repo.total(Invoice, Invoice.paid_amount, *invoice_period)
        outstanding = await repo.total(
            Invoice, Invoice.balance, Invoice.status.in_(INVOICE_OUTSTANDING_STATUSES), *in_range(Invoice.created_at, start, end)
        )

        profit, margin = aggregation.profit_and_margin(revenue, project_costs)
        return FinancialReport(
            period=ReportPeriod(start_date=start_date, end_date=end_date),
            revenue=RevenueSection(
                total=money(revenue),
                pending=money(pending),
                active_value=money(active_value),
            ),
            costs=CostsSection(projects=money(project_costs)),
            profit=ProfitSection(amount=profit, margin=margin),
            assets=AssetsSection(inventory_value=money(inventory)),
            invoicing=InvoicingSection(
                invoiced=money(invoiced),
                paid=money(paid),
                outstanding=money(outstanding),
            ),
        )
