from datetime import date, datetime
from decimal import Decimal
from typing import Dict, List, Optional

from sqlmodel import SQLModel


# --- Rapport clients ---

class ClientReportRow(SQLModel):
    id: int
    name: str
    email: Optional[str] = None
    company: Optional[str] = None
    contact_type: str
    is_active: bool
    created_at: datetime
    projects: int
    quotes: int
    quote_value: Decimal


class ClientReportSummary(SQLModel):
    total_clients: int
    active_clients: int
    inactive_clients: int
    total_projects: int
    total_quotes: int
    total_value: Decimal
    contact_type_count: Dict[str, int]


class ClientReport(SQLModel):
    summary: ClientReportSummary
    clients: List[ClientReportRow]


# --- Rapport projets ---

class ProjectReportRow(SQLModel):
    id: int
    code: str
    name: str
    client: str
    status: str
    priority: str
    project_type: str
    budget: Decimal
    cost: Decimal
    materials_cost: Decimal
    progress: int
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    created_at: datetime


class ProjectReportSummary(SQLModel):
    total_projects: int
    status_count: Dict[str, int]
    total_budget: Decimal
    total_cost: Decimal
    profit_margin: Decimal


class ProjectReport(SQLModel):
    summary: ProjectReportSummary
    projects: List[ProjectReportRow]


# --- Rapport devis ---

class QuoteReportRow(SQLModel):
    id: int
    quote_number: str
    title: str
    client: str
    project: str
    status: str
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    discount: Decimal
    total: Decimal
    valid_until: Optional[date] = None
    created_at: datetime
    items_count: int


class QuoteReportSummary(SQLModel):
    total_quotes: int
    status_count: Dict[str, int]
    status_value: Dict[str, Decimal]
    total_value: Decimal
    conversion_rate: float


class QuoteReport(SQLModel):
    summary: QuoteReportSummary
    quotes: List[QuoteReportRow]


# --- Rapport matériaux ---

class MaterialReportRow(SQLModel):
    id: int
    name: str
    category: str
    unit: str
    unit_price: Decimal
    stock: Decimal
    min_stock: Decimal
    value: Decimal
    supplier: Optional[str] = None
    sku: Optional[str] = None
    is_active: bool
    low_stock: bool
    created_at: datetime


class CategoryStat(SQLModel):
    count: int
    value: Decimal
    stock: Decimal


class MaterialReportSummary(SQLModel):
    total_materials: int
    total_value: Decimal
    total_stock: Decimal
    low_stock_count: int
    category_stats: Dict[str, CategoryStat]


class MaterialReport(SQLModel):
    summary: MaterialReportSummary
    materials: List[MaterialReportRow]


# --- Rapport financier ---

class ReportPeriod(SQLModel):
    start_date: date
    end_date: date


class RevenueSection(SQLModel):
    total: Decimal
    pending: Decimal
    active_value: Decimal


class CostsSection(SQLModel):
    projects: Decimal


class ProfitSection(SQLModel):
    amount: Decimal
    margin: float


class AssetsSection(SQLModel):
    inventory_value: Decimal


class InvoicingSection(SQLModel):
    invoiced: Decimal
    paid: Decimal
    outstanding: Decimal


class FinancialReport(SQLModel):
    period: ReportPeriod
    revenue: RevenueSection
    costs: CostsSection
    profit: ProfitSection
    assets: AssetsSection
    invoicing: InvoicingSection
