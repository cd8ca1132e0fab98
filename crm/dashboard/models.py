from datetime import date, datetime
from decimal import Decimal
from typing import List

from sqlmodel import SQLModel


class ClientCounters(SQLModel):
    total: int
    active: int


class ProjectCounters(SQLModel):
    total: int
    active: int
    completed: int


class QuoteCounters(SQLModel):
    total: int
    pending: int
    accepted: int
    total_value: Decimal
    accepted_value: Decimal


class MaterialCounters(SQLModel):
    total: int
    low_stock: int
    inventory_value: Decimal


class MonthlyCounters(SQLModel):
    clients: int
    projects: int
    quotes: int


class DashboardStats(SQLModel):
    clients: ClientCounters
    projects: ProjectCounters
    quotes: QuoteCounters
    materials: MaterialCounters
    monthly: MonthlyCounters


class ActivityItem(SQLModel):
    id: int
    type: str
    action: str
    description: str
    created_at: datetime


class RecentActivity(SQLModel):
    activities: List[ActivityItem]
    count: int


class StatusCount(SQLModel):
    status: str
    count: int


class ProjectsByStatus(SQLModel):
    data: List[StatusCount]


class MonthlyRevenuePoint(SQLModel):
    month: str
    revenue: Decimal


class MonthlyRevenue(SQLModel):
    data: List[MonthlyRevenuePoint]


class DeadlineItem(SQLModel):
    id: int
    code: str
    name: str
    client: str
    end_date: date
    days_left: int
    status: str
    progress: int


class UpcomingDeadlines(SQLModel):
    projects: List[DeadlineItem]
    count: int


class FinancialSummary(SQLModel):
    current_month_revenue: Decimal
    last_month_revenue: Decimal
    growth_percentage: float
    pending_quotes_value: Decimal
    inventory_value: Decimal
