# erp_otica/modules/cash/services.py
from datetime import datetime
from typing import Optional

from bson import ObjectId
from fastapi import HTTPException, status
from loguru import logger

from erp_otica.utils.formatters import format_brl
from .models import CashEntryInDB, CashEntryCreateAPI, CashSummaryAPI
from .repository import CashRepository

class CashService:
    """Livro caixa: lançamentos manuais e os gerados por vendas e boletos."""

    async def create_manual_entry(self, entry_in: CashEntryCreateAPI, cash_repo: CashRepository) -> CashEntryInDB:
        data = entry_in.model_dump()
        data["entry_date"] = data.get("entry_date") or datetime.utcnow()
        data["origin"] = "manual"
        entry = await cash_repo.create(data)
        logger.bind(service="CashService", entry_type=entry.entry_type).success(
            f"Manual cash entry created: {format_brl(entry.amount)} (ID: {entry.id})"
        )
        return entry

    async def record_sale_down_payment(
        self,
        sale_id: ObjectId,
        sale_ref: str,
        amount: float,
        entry_date: datetime,
        payment_method: Optional[str],
        cash_repo: CashRepository,
    ) -> Optional[CashEntryInDB]:
        """Lança a entrada da venda no caixa. Entrada zero não gera lançamento."""
        if amount <= 0:
            return None
        return await cash_repo.create({
            "entry_type": "income",
            "amount": round(amount, 2),
            "description": f"Entrada da venda {sale_ref}",
            "category": "Vendas",
            "entry_date": entry_date,
            "payment_method": payment_method,
            "origin": "sale",
            "sale_id": sale_id,
        })

    async def record_boleto_payment(
        self,
        boleto_id: ObjectId,
        sale_id: Optional[ObjectId],
        description: str,
        amount: float,
        paid_at: datetime,
        cash_repo: CashRepository,
    ) -> CashEntryInDB:
        return await cash_repo.create({
            "entry_type": "income",
            "amount": round(amount, 2),
            "description": description,
            "category": "Boletos",
            "entry_date": paid_at,
            "payment_method": "boleto",
            "origin": "boleto",
            "sale_id": sale_id,
            "boleto_id": boleto_id,
        })

    async def delete_entry(self, entry_id: str, cash_repo: CashRepository) -> bool:
        entry = await cash_repo.get_by_id(entry_id)
        if not entry:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cash entry not found")
        if entry.origin != "manual":
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Only manual entries can be deleted (origin: {entry.origin}).",
            )
        return await cash_repo.delete(entry.id)

    async def summary(
        self, cash_repo: CashRepository, start: Optional[datetime] = None, end: Optional[datetime] = None
    ) -> CashSummaryAPI:
        totals = await cash_repo.totals_by_type(start, end)
        income = totals.get("income", 0.0)
        expense = totals.get("expense", 0.0)
        return CashSummaryAPI(
            start=start,
            end=end,
            total_income=income,
            total_expense=expense,
            balance=round(income - expense, 2),
        )

async def get_cash_service() -> CashService:
    return CashService()
