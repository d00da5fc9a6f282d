# erp_otica/modules/reports/models.py
from pydantic import BaseModel

class MonthlyRevenuePoint(BaseModel):
    month: str # 'Mar/2025'
    revenue: float

class NameValue(BaseModel):
    """Fatia de gráfico de pizza."""
    name: str
    value: int

class TopClient(BaseModel):
    name: str
    total_spent: float

class CashFlowPoint(BaseModel):
    month: str # 'Mar/25'
    amount_due: float

class YearlyComparisonRow(BaseModel):
    month: str # 'Jan'..'Dez'
    current_year: float
    previous_year: float

class DashboardSummary(BaseModel):
    clients_count: int
    month_sales_count: int
    month_revenue: float
    open_receivables: float
    overdue_boletos: int
    appointments_today: int
    month_cash_balance: float
