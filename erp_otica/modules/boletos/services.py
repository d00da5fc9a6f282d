# erp_otica/modules/boletos/services.py
from datetime import datetime
from typing import List, Optional

from bson import ObjectId
from fastapi import HTTPException, status
from loguru import logger

from erp_otica.modules.cash.repository import CashRepository
from erp_otica.modules.cash.services import CashService
from erp_otica.modules.clients.models import ClientSummaryAPI
from erp_otica.modules.clients.repository import ClientRepository
from erp_otica.utils.dates import add_months, start_of_day
from erp_otica.utils.formatters import format_brl
from .models import BoletoAPI, BoletoCreateAPI, BoletoInDB, BoletoPayAPI, PAYABLE_STATUSES
from .repository import BoletoRepository

def split_installments(amount: float, count: int) -> List[float]:
    """
    Divide `amount` em `count` parcelas, trabalhando em centavos.
    A última parcela absorve a sobra: 100.00 / 3 -> [33.33, 33.33, 33.34].
    Toda parcela vale ao menos 1 centavo.
    """
    if count < 1:
        raise ValueError("Installment count must be at least 1.")
    cents = int(round(amount * 100))
    if cents < count:
        raise ValueError(f"Cannot split {cents} cent(s) into {count} installments.")
    base = cents // count
    values = [base] * count
    values[-1] += cents - base * count
    return [v / 100 for v in values]

def build_installment_schedule(
    client_id: ObjectId,
    sale_id: Optional[ObjectId],
    amount: float,
    count: int,
    first_reference: datetime,
) -> List[dict]:
    """Documentos dos boletos: vencimentos mensais a partir da data de referência."""
    return [
        {
            "client_id": client_id,
            "sale_id": sale_id,
            "installment_number": number,
            "total_installments": count,
            "installment_value": value,
            "due_date": add_months(first_reference, number),
            "status": "open",
        }
        for number, value in enumerate(split_installments(amount, count), start=1)
    ]

class BoletoService:

    async def generate_for_sale(self, sale, boleto_repo: BoletoRepository) -> int:
        """Gera os boletos do saldo de uma venda a prazo. Retorna quantos foram criados."""
        payment = sale.payment
        if payment.condition != "installments" or payment.remaining_amount <= 0:
            return 0
        documents = build_installment_schedule(
            client_id=sale.client_id,
            sale_id=sale.id,
            amount=payment.remaining_amount,
            count=payment.installments or 1,
            first_reference=sale.sale_date,
        )
        created = await boleto_repo.insert_many(documents)
        logger.bind(service="BoletoService", sale_ref=sale.ref).success(f"{created} boleto(s) generated.")
        return created

    async def to_api(self, boletos: List[BoletoInDB], client_repo: ClientRepository) -> List[BoletoAPI]:
        """Converte para o modelo da API com o cliente resumido."""
        clients = await client_repo.get_many([b.client_id for b in boletos])
        result = []
        for boleto in boletos:
            api = BoletoAPI.model_validate(boleto)
            client = clients.get(str(boleto.client_id))
            if client:
                api.client = ClientSummaryAPI.model_validate(client)
            result.append(api)
        return result

    async def _get_or_404(self, boleto_id: str, boleto_repo: BoletoRepository) -> BoletoInDB:
        boleto = await boleto_repo.get_by_id(boleto_id)
        if not boleto:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Boleto not found")
        return boleto

    async def create_boleto(
        self, boleto_in: BoletoCreateAPI, boleto_repo: BoletoRepository, client_repo: ClientRepository
    ) -> BoletoInDB:
        if not await client_repo.get_by_id(boleto_in.client_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
        if boleto_in.installment_number > boleto_in.total_installments:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="installment_number cannot exceed total_installments.",
            )
        data = boleto_in.model_dump()
        data["client_id"] = ObjectId(boleto_in.client_id)
        data["sale_id"] = ObjectId(boleto_in.sale_id) if boleto_in.sale_id else None
        data["status"] = "open"
        boleto = await boleto_repo.create(data)
        logger.bind(service="BoletoService", client_id=boleto_in.client_id).success(f"Boleto created (ID: {boleto.id})")
        return boleto

    async def pay_boleto(
        self,
        boleto_id: str,
        pay_in: BoletoPayAPI,
        boleto_repo: BoletoRepository,
        cash_repo: CashRepository,
        cash_service: CashService,
    ) -> BoletoInDB:
        log = logger.bind(service="BoletoService", boleto_id=boleto_id)
        boleto = await self._get_or_404(boleto_id, boleto_repo)
        if boleto.status not in PAYABLE_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot pay a boleto with status '{boleto.status}'.",
            )
        paid_amount = round(pay_in.paid_amount or boleto.installment_value, 2)
        paid_at = pay_in.paid_at or datetime.utcnow()
        updated = await boleto_repo.mark_paid(boleto.id, paid_at=paid_at, paid_amount=paid_amount)
        if updated is None:
            log.warning("Boleto changed status while being paid; no cash entry recorded.")
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Boleto was already paid or cancelled.")
        await cash_service.record_boleto_payment(
            boleto_id=boleto.id,
            sale_id=boleto.sale_id,
            description=f"Boleto {boleto.installment_number}/{boleto.total_installments}",
            amount=paid_amount,
            paid_at=paid_at,
            cash_repo=cash_repo,
        )
        log.success(f"Boleto paid: {format_brl(paid_amount)}")
        return updated

    async def cancel_boleto(self, boleto_id: str, boleto_repo: BoletoRepository) -> BoletoInDB:
        boleto = await self._get_or_404(boleto_id, boleto_repo)
        if boleto.status not in PAYABLE_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Cannot cancel a boleto with status '{boleto.status}'.",
            )
        updated = await boleto_repo.update(boleto.id, {"status": "cancelled"})
        logger.bind(service="BoletoService", boleto_id=boleto_id).success("Boleto cancelled.")
        return updated

    async def delete_boleto(self, boleto_id: str, boleto_repo: BoletoRepository) -> bool:
        boleto = await self._get_or_404(boleto_id, boleto_repo)
        if boleto.status == "paid":
            raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Paid boletos cannot be deleted.")
        return await boleto_repo.delete(boleto.id)

    async def mark_overdue(self, boleto_repo: BoletoRepository, now: Optional[datetime] = None) -> int:
        """Vencidos até ontem viram 'overdue'. Vencimento hoje ainda está em aberto."""
        today = start_of_day(now or datetime.utcnow())
        return await boleto_repo.mark_overdue(today)

async def get_boleto_service() -> BoletoService:
    return BoletoService()
