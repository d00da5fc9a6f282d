# erp_otica/modules/reports/services.py
from datetime import datetime, timedelta
from typing import List, Optional

from loguru import logger

from erp_otica.modules.appointments.repository import AppointmentRepository
from erp_otica.modules.boletos.repository import BoletoRepository
from erp_otica.modules.cash.repository import CashRepository
from erp_otica.modules.clients.repository import ClientRepository
from erp_otica.modules.sales.repository import SaleRepository
from erp_otica.utils.dates import MONTH_LABELS, add_months, month_label, start_of_day, start_of_month
from . import pipelines
from .models import (
    CashFlowPoint, DashboardSummary, MonthlyRevenuePoint, NameValue, TopClient, YearlyComparisonRow,
)

OUTCOME_ORDER = ("attended", "missed", "open")

class ReportService:
    """Relatórios dos painéis. `now` é injetável para testes; padrão é o horário UTC atual."""

    async def monthly_revenue(self, sale_repo: SaleRepository) -> List[MonthlyRevenuePoint]:
        rows = await sale_repo.aggregate(pipelines.monthly_revenue())
        rows.reverse() # volta para ordem cronológica
        return [
            MonthlyRevenuePoint(
                month=month_label(row["_id"]["year"], row["_id"]["month"]),
                revenue=round(row["revenue"], 2),
            )
            for row in rows
        ]

    async def sales_by_payment_method(self, sale_repo: SaleRepository) -> List[NameValue]:
        rows = await sale_repo.aggregate(pipelines.sales_by_payment_method())
        return [NameValue(name=row["_id"], value=row["value"]) for row in rows if row["_id"]]

    async def top_clients(self, sale_repo: SaleRepository, client_repo: ClientRepository) -> List[TopClient]:
        rows = await sale_repo.aggregate(pipelines.top_clients(client_repo.collection_name))
        return [
            TopClient(name=row["client"]["full_name"], total_spent=round(row["total_spent"], 2))
            for row in rows
        ]

    async def appointment_efficiency(self, appointment_repo: AppointmentRepository) -> List[NameValue]:
        rows = await appointment_repo.aggregate(pipelines.appointment_efficiency())
        counts = {row["_id"]: row["value"] for row in rows}
        return [NameValue(name=outcome, value=counts[outcome]) for outcome in OUTCOME_ORDER if counts.get(outcome)]

    async def future_cash_flow(self, boleto_repo: BoletoRepository, now: Optional[datetime] = None) -> List[CashFlowPoint]:
        today = start_of_day(now or datetime.utcnow())
        rows = await boleto_repo.aggregate(pipelines.future_cash_flow(today))
        return [
            CashFlowPoint(
                month=month_label(row["_id"]["year"], row["_id"]["month"], short_year=True),
                amount_due=round(row["amount_due"], 2),
            )
            for row in rows
        ]

    async def yearly_comparison(
        self, sale_repo: SaleRepository, year: Optional[int] = None, now: Optional[datetime] = None
    ) -> List[YearlyComparisonRow]:
        """Sempre 12 linhas (Jan..Dez), com zero nos meses sem vendas."""
        year = year or (now or datetime.utcnow()).year
        rows = await sale_repo.aggregate(pipelines.yearly_comparison(year))
        totals = {(row["_id"]["year"], row["_id"]["month"]): row["total"] for row in rows}
        return [
            YearlyComparisonRow(
                month=label,
                current_year=round(totals.get((year, month), 0.0), 2),
                previous_year=round(totals.get((year - 1, month), 0.0), 2),
            )
            for month, label in enumerate(MONTH_LABELS, start=1)
        ]

    async def dashboard(
        self,
        client_repo: ClientRepository,
        sale_repo: SaleRepository,
        boleto_repo: BoletoRepository,
        appointment_repo: AppointmentRepository,
        cash_repo: CashRepository,
        now: Optional[datetime] = None,
    ) -> DashboardSummary:
        now = now or datetime.utcnow()
        month_start = start_of_month(now)
        next_month = add_months(month_start, 1)
        today = start_of_day(now)
        log = logger.bind(service="ReportService", month=month_start.strftime("%Y-%m"))

        month_sales = await sale_repo.aggregate([
            {"$match": {"status": "completed", "sale_date": {"$gte": month_start, "$lt": next_month}}},
            {"$group": {"_id": None, "count": {"$sum": 1}, "revenue": {"$sum": "$total_amount"}}},
        ])
        receivables = await boleto_repo.aggregate([
            {"$match": {"status": {"$in": ["open", "overdue"]}}},
            {"$group": {"_id": None, "total": {"$sum": "$installment_value"}}},
        ])
        cash = await cash_repo.totals_by_type(month_start, next_month - timedelta(microseconds=1))

        summary = DashboardSummary(
            clients_count=await client_repo.count(),
            month_sales_count=month_sales[0]["count"] if month_sales else 0,
            month_revenue=round(month_sales[0]["revenue"], 2) if month_sales else 0.0,
            open_receivables=round(receivables[0]["total"], 2) if receivables else 0.0,
            overdue_boletos=await boleto_repo.count({"status": "overdue"}),
            appointments_today=await appointment_repo.count(
                {"scheduled_at": {"$gte": today, "$lt": today + timedelta(days=1)}}
            ),
            month_cash_balance=round(cash.get("income", 0.0) - cash.get("expense", 0.0), 2),
        )
        log.debug(f"Dashboard summary: {summary.model_dump()}")
        return summary

async def get_report_service() -> ReportService:
    return ReportService()
