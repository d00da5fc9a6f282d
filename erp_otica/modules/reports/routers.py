# erp_otica/modules/reports/routers.py
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger

from erp_otica.core.security import CurrentUser
from erp_otica.modules.appointments.repository import AppointmentRepository, get_appointment_repository
from erp_otica.modules.boletos.repository import BoletoRepository, get_boleto_repository
from erp_otica.modules.cash.repository import CashRepository, get_cash_repository
from erp_otica.modules.clients.repository import ClientRepository, get_client_repository
from erp_otica.modules.sales.repository import SaleRepository, get_sale_repository
from .models import CashFlowPoint, DashboardSummary, MonthlyRevenuePoint, NameValue, TopClient, YearlyComparisonRow
from .services import ReportService, get_report_service

router = APIRouter(tags=["Reports"])

ReportServiceDep = Annotated[ReportService, Depends(get_report_service)]
SaleRepoDep = Annotated[SaleRepository, Depends(get_sale_repository)]

def _report_failed(name: str, e: Exception) -> HTTPException:
    logger.bind(report=name).exception(f"Error building report: {e}")
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Erro ao gerar relatório: {name}")

@router.get("/monthly-revenue", response_model=List[MonthlyRevenuePoint])
async def monthly_revenue(current_user: CurrentUser, report_service: ReportServiceDep, sale_repo: SaleRepoDep):
    """Faturamento dos últimos 12 meses com vendas concluídas."""
    try:
        return await report_service.monthly_revenue(sale_repo)
    except RuntimeError as e:
        raise _report_failed("monthly-revenue", e)

@router.get("/sales-by-payment-method", response_model=List[NameValue])
async def sales_by_payment_method(current_user: CurrentUser, report_service: ReportServiceDep, sale_repo: SaleRepoDep):
    try:
        return await report_service.sales_by_payment_method(sale_repo)
    except RuntimeError as e:
        raise _report_failed("sales-by-payment-method", e)

@router.get("/top-clients", response_model=List[TopClient])
async def top_clients(
    current_user: CurrentUser,
    report_service: ReportServiceDep,
    sale_repo: SaleRepoDep,
    client_repo: Annotated[ClientRepository, Depends(get_client_repository)],
):
    try:
        return await report_service.top_clients(sale_repo, client_repo)
    except RuntimeError as e:
        raise _report_failed("top-clients", e)

@router.get("/appointment-efficiency", response_model=List[NameValue])
async def appointment_efficiency(
    current_user: CurrentUser,
    report_service: ReportServiceDep,
    appointment_repo: Annotated[AppointmentRepository, Depends(get_appointment_repository)],
):
    try:
        return await report_service.appointment_efficiency(appointment_repo)
    except RuntimeError as e:
        raise _report_failed("appointment-efficiency", e)

@router.get("/future-cash-flow", response_model=List[CashFlowPoint])
async def future_cash_flow(
    current_user: CurrentUser,
    report_service: ReportServiceDep,
    boleto_repo: Annotated[BoletoRepository, Depends(get_boleto_repository)],
):
    """Boletos em aberto a vencer, somados por mês."""
    try:
        return await report_service.future_cash_flow(boleto_repo)
    except RuntimeError as e:
        raise _report_failed("future-cash-flow", e)

@router.get("/yearly-comparison", response_model=List[YearlyComparisonRow])
async def yearly_comparison(
    current_user: CurrentUser,
    report_service: ReportServiceDep,
    sale_repo: SaleRepoDep,
    year: Optional[int] = Query(None, ge=2000, le=2100),
):
    try:
        return await report_service.yearly_comparison(sale_repo, year=year)
    except RuntimeError as e:
        raise _report_failed("yearly-comparison", e)

@router.get("/dashboard", response_model=DashboardSummary)
async def dashboard(
    current_user: CurrentUser,
    report_service: ReportServiceDep,
    sale_repo: SaleRepoDep,
    client_repo: Annotated[ClientRepository, Depends(get_client_repository)],
    boleto_repo: Annotated[BoletoRepository, Depends(get_boleto_repository)],
    appointment_repo: Annotated[AppointmentRepository, Depends(get_appointment_repository)],
    cash_repo: Annotated[CashRepository, Depends(get_cash_repository)],
):
    try:
        return await report_service.dashboard(client_repo, sale_repo, boleto_repo, appointment_repo, cash_repo)
    except RuntimeError as e:
        raise _report_failed("dashboard", e)
