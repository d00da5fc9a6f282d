# erp_otica/modules/sales/services.py
from datetime import datetime
from typing import Dict, List, Optional

from bson import ObjectId
from fastapi import Depends, HTTPException, status
from loguru import logger

from erp_otica.core.counters import CounterService
from erp_otica.modules.boletos.repository import BoletoRepository
from erp_otica.modules.boletos.services import BoletoService, get_boleto_service
from erp_otica.modules.cash.repository import CashRepository
from erp_otica.modules.cash.services import CashService, get_cash_service
from erp_otica.modules.clients.models import ClientSummaryAPI
from erp_otica.modules.clients.repository import ClientRepository
from erp_otica.modules.people.models import UserInDB
from erp_otica.modules.products.repository import ProductRepository
from erp_otica.utils.formatters import format_brl
from .models import SaleAPI, SaleCreateAPI, SaleInDB, SaleItem, compute_total
from .repository import SaleRepository

SALE_REF_PREFIX = "VND"

# Transições permitidas de status. 'cancelled' é final.
ALLOWED_TRANSITIONS: Dict[str, set] = {
    "pending": {"completed", "cancelled"},
    "completed": {"cancelled"},
    "cancelled": set(),
}

class SaleService:
    """
    Vendas e seus efeitos colaterais: estoque, entrada no caixa e boletos.

    Toda operação que altera uma venda mantém os três consistentes com ela.
    Vendas com boleto pago não podem ser editadas, canceladas nem excluídas.
    """

    def __init__(self, cash_service: CashService, boleto_service: BoletoService):
        self.cash_service = cash_service
        self.boleto_service = boleto_service

    # --- Helpers ---

    async def _get_or_404(self, sale_id: str, sale_repo: SaleRepository) -> SaleInDB:
        sale = await sale_repo.get_by_id(sale_id)
        if not sale:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")
        return sale

    async def _ensure_client(self, client_id: str, client_repo: ClientRepository):
        client = await client_repo.get_by_id(client_id)
        if not client:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Client {client_id} not found")
        return client

    async def _build_items(self, sale_in: SaleCreateAPI, product_repo: ProductRepository) -> List[SaleItem]:
        """Valida os produtos e congela o nome de cada um no item."""
        items = []
        for item_in in sale_in.items:
            product = await product_repo.get_by_id(item_in.product_id)
            if not product:
                raise HTTPException(
                    status_code=status.HTTP_404_NOT_FOUND, detail=f"Product {item_in.product_id} not found"
                )
            if product.stock_quantity < item_in.quantity:
                logger.bind(product_id=str(product.id)).warning(
                    f"Stock for '{product.name}' will go negative "
                    f"({product.stock_quantity} in stock, {item_in.quantity} sold)."
                )
            items.append(SaleItem(
                product_id=product.id,
                product_name=product.name,
                quantity=item_in.quantity,
                unit_price=round(item_in.unit_price, 2),
            ))
        return items

    @staticmethod
    def _build_payment(sale_in: SaleCreateAPI, total: float) -> dict:
        payment = sale_in.payment
        installments = payment.installments if payment.condition == "installments" else None
        return {
            "down_payment": payment.down_payment,
            "remaining_amount": round(total - payment.down_payment, 2),
            "method": payment.method,
            "condition": payment.condition,
            "installments": installments,
        }

    async def _move_stock(self, items: List[SaleItem], product_repo: ProductRepository, sign: int):
        """sign=-1 baixa o estoque (venda), sign=+1 devolve (cancelamento/edição)."""
        for item in items:
            await product_repo.adjust_stock(item.product_id, sign * item.quantity)

    async def _ensure_no_paid_boletos(self, sale: SaleInDB, boleto_repo: BoletoRepository, action: str):
        if await boleto_repo.has_paid_for_sale(sale.id):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Cannot {action} sale {sale.ref}: it has paid boletos.",
            )

    async def _record_financials(self, sale: SaleInDB, boleto_repo: BoletoRepository, cash_repo: CashRepository):
        await self.cash_service.record_sale_down_payment(
            sale_id=sale.id,
            sale_ref=sale.ref,
            amount=sale.payment.down_payment,
            entry_date=sale.sale_date,
            payment_method=sale.payment.method,
            cash_repo=cash_repo,
        )
        await self.boleto_service.generate_for_sale(sale, boleto_repo)

    # --- Leitura ---

    async def to_api(self, sales: List[SaleInDB], client_repo: ClientRepository) -> List[SaleAPI]:
        """Monta a resposta com subtotais e o cliente resumido."""
        clients = await client_repo.get_many([s.client_id for s in sales])
        result = []
        for sale in sales:
            data = sale.model_dump()
            data["items"] = [
                {**item, "subtotal": round(item["quantity"] * item["unit_price"], 2)} for item in data["items"]
            ]
            client = clients.get(str(sale.client_id))
            data["client"] = ClientSummaryAPI.model_validate(client) if client else None
            result.append(SaleAPI.model_validate(data))
        return result

    async def get_sale(self, sale_id: str, sale_repo: SaleRepository) -> SaleInDB:
        return await self._get_or_404(sale_id, sale_repo)

    async def list_sales(
        self,
        sale_repo: SaleRepository,
        client_repo: ClientRepository,
        search: Optional[str] = None,
        status_filter: Optional[str] = None,
        client_id: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[SaleInDB]:
        """Mais recentes primeiro. `search` procura pelo nome (ou CPF) do cliente."""
        client_ids: Optional[List[ObjectId]] = None
        if search and search.strip():
            client_ids = [c.id for c in await client_repo.search(search, limit=0)]
        if client_id:
            wanted = ObjectId(client_id)
            client_ids = [wanted] if client_ids is None or wanted in client_ids else []
        return await sale_repo.list_filtered(
            status=status_filter, client_ids=client_ids, start=start, end=end, skip=skip, limit=limit
        )

    # --- Escrita ---

    async def create_sale(
        self,
        sale_in: SaleCreateAPI,
        seller: UserInDB,
        sale_repo: SaleRepository,
        client_repo: ClientRepository,
        product_repo: ProductRepository,
        boleto_repo: BoletoRepository,
        cash_repo: CashRepository,
        counter_service: CounterService,
    ) -> SaleInDB:
        log = logger.bind(service="SaleService", client_id=sale_in.client_id, seller_id=str(seller.id))
        log.info("Creating sale...")

        client = await self._ensure_client(sale_in.client_id, client_repo)
        items = await self._build_items(sale_in, product_repo)
        total = compute_total(items)
        sale_date = sale_in.sale_date or datetime.utcnow()

        try:
            ref = await counter_service.generate_reference(SALE_REF_PREFIX, year=sale_date.year)
        except RuntimeError as e:
            log.error(f"Could not generate sale reference: {e}")
            raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Could not generate sale reference.")

        sale = await sale_repo.create({
            "ref": ref,
            "client_id": client.id,
            "seller_id": seller.id,
            "sale_date": sale_date,
            "items": [item.model_dump() for item in items],
            "total_amount": total,
            "payment": self._build_payment(sale_in, total),
            "status": "pending",
            "notes": sale_in.notes,
        })
        await self._move_stock(sale.items, product_repo, sign=-1)
        await self._record_financials(sale, boleto_repo, cash_repo)

        log.success(f"Sale {sale.ref} created: total {format_brl(sale.total_amount)} (ID: {sale.id})")
        return sale

    async def update_sale(
        self,
        sale_id: str,
        sale_in: SaleCreateAPI,
        sale_repo: SaleRepository,
        client_repo: ClientRepository,
        product_repo: ProductRepository,
        boleto_repo: BoletoRepository,
        cash_repo: CashRepository,
    ) -> SaleInDB:
        """Substitui itens e pagamento. Estoque, caixa e boletos são refeitos."""
        current = await self._get_or_404(sale_id, sale_repo)
        log = logger.bind(service="SaleService", sale_ref=current.ref)
        if current.status == "cancelled":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cancelled sales cannot be edited.")
        await self._ensure_no_paid_boletos(current, boleto_repo, "edit")

        client = await self._ensure_client(sale_in.client_id, client_repo)
        items = await self._build_items(sale_in, product_repo)
        total = compute_total(items)

        await self._move_stock(current.items, product_repo, sign=+1)
        await cash_repo.delete_for_sale(current.id)
        await boleto_repo.delete_unpaid_for_sale(current.id)

        updated = await sale_repo.update(current.id, {
            "client_id": client.id,
            "sale_date": sale_in.sale_date or current.sale_date,
            "items": [item.model_dump() for item in items],
            "total_amount": total,
            "payment": self._build_payment(sale_in, total),
            "notes": sale_in.notes,
        })
        await self._move_stock(updated.items, product_repo, sign=-1)
        await self._record_financials(updated, boleto_repo, cash_repo)

        log.success(f"Sale updated: total {format_brl(updated.total_amount)}")
        return updated

    async def _release(self, sale: SaleInDB, product_repo: ProductRepository, boleto_repo: BoletoRepository, cash_repo: CashRepository):
        """Desfaz os efeitos de uma venda ativa: devolve estoque, cancela boletos e remove a entrada."""
        await self._move_stock(sale.items, product_repo, sign=+1)
        cancelled = await boleto_repo.cancel_unpaid_for_sale(sale.id)
        removed = await cash_repo.delete_for_sale(sale.id)
        logger.bind(sale_ref=sale.ref).debug(f"Sale released: {cancelled} boleto(s) cancelled, {removed} cash entry(ies) removed.")

    async def change_status(
        self,
        sale_id: str,
        new_status: str,
        sale_repo: SaleRepository,
        product_repo: ProductRepository,
        boleto_repo: BoletoRepository,
        cash_repo: CashRepository,
    ) -> SaleInDB:
        sale = await self._get_or_404(sale_id, sale_repo)
        log = logger.bind(service="SaleService", sale_ref=sale.ref, new_status=new_status)

        if sale.status == "cancelled":
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Sale is cancelled; status cannot change.")
        if new_status == sale.status:
            log.info("Status already set. Nothing to do.")
            return sale
        if new_status not in ALLOWED_TRANSITIONS[sale.status]:
            msg = f"Cannot change sale status from '{sale.status}' to '{new_status}'."
            log.warning(msg)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=msg)

        update: dict = {"status": new_status}
        if new_status == "cancelled":
            await self._ensure_no_paid_boletos(sale, boleto_repo, "cancel")
            await self._release(sale, product_repo, boleto_repo, cash_repo)
            update["cancelled_at"] = datetime.utcnow()
        elif new_status == "completed":
            update["completed_at"] = datetime.utcnow()

        updated = await sale_repo.update(sale.id, update)
        log.success(f"Sale status changed: {sale.status} -> {new_status}")
        return updated

    async def delete_sale(
        self,
        sale_id: str,
        sale_repo: SaleRepository,
        product_repo: ProductRepository,
        boleto_repo: BoletoRepository,
        cash_repo: CashRepository,
    ) -> bool:
        sale = await self._get_or_404(sale_id, sale_repo)
        await self._ensure_no_paid_boletos(sale, boleto_repo, "delete")
        if sale.status != "cancelled":
            await self._release(sale, product_repo, boleto_repo, cash_repo)
        await boleto_repo.delete_unpaid_for_sale(sale.id)
        deleted = await sale_repo.delete(sale.id)
        logger.bind(service="SaleService", sale_ref=sale.ref).success("Sale deleted.")
        return deleted

async def get_sale_service(
    cash_service: CashService = Depends(get_cash_service),
    boleto_service: BoletoService = Depends(get_boleto_service),
) -> SaleService:
    return SaleService(cash_service, boleto_service)
