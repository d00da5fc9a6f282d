# erp_otica/modules/service_orders/services.py
from datetime import datetime
from typing import List

from bson import ObjectId
from fastapi import HTTPException, status
from loguru import logger

from erp_otica.core.counters import CounterService
from erp_otica.modules.clients.models import ClientSummaryAPI
from erp_otica.modules.clients.repository import ClientRepository
from erp_otica.modules.sales.repository import SaleRepository
from .models import (
    DELETABLE_STATUSES, SERVICE_ORDER_TRANSITIONS,
    ServiceOrderAPI, ServiceOrderCreateAPI, ServiceOrderInDB, ServiceOrderUpdateAPI,
)
from .repository import ServiceOrderRepository

SERVICE_ORDER_REF_PREFIX = "OS"

class ServiceOrderService:
    """Ordens de serviço enviadas ao laboratório."""

    async def _get_or_404(self, order_id: str, order_repo: ServiceOrderRepository) -> ServiceOrderInDB:
        order = await order_repo.get_by_id(order_id)
        if not order:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service order not found")
        return order

    async def to_api(self, orders: List[ServiceOrderInDB], client_repo: ClientRepository) -> List[ServiceOrderAPI]:
        clients = await client_repo.get_many([o.client_id for o in orders])
        result = []
        for order in orders:
            api = ServiceOrderAPI.model_validate(order)
            client = clients.get(str(order.client_id))
            if client:
                api.client = ClientSummaryAPI.model_validate(client)
            result.append(api)
        return result

    async def create_order(
        self,
        order_in: ServiceOrderCreateAPI,
        order_repo: ServiceOrderRepository,
        client_repo: ClientRepository,
        sale_repo: SaleRepository,
        counter_service: CounterService,
    ) -> ServiceOrderInDB:
        log = logger.bind(service="ServiceOrderService", client_id=order_in.client_id)
        client = await client_repo.get_by_id(order_in.client_id)
        if not client:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Client {order_in.client_id} not found")

        sale_id = None
        if order_in.sale_id:
            sale = await sale_repo.get_by_id(order_in.sale_id)
            if not sale:
                raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Sale {order_in.sale_id} not found")
            if sale.client_id != client.id:
                raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Sale belongs to another client.")
            sale_id = sale.id

        try:
            ref = await counter_service.generate_reference(SERVICE_ORDER_REF_PREFIX)
        except RuntimeError as e:
            log.error(f"Could not generate service order reference: {e}")
            raise HTTPException(status_code=500, detail="Could not generate service order reference.")

        # Sem receita no payload, vale a receita atual do cadastro do cliente
        prescription = order_in.prescription or client.prescription
        order = await order_repo.create({
            "ref": ref,
            "client_id": client.id,
            "sale_id": sale_id,
            "description": order_in.description,
            "lab": order_in.lab,
            "prescription": prescription.model_dump(),
            "expected_date": order_in.expected_date,
            "status": "open",
        })
        log.success(f"Service order {order.ref} created (ID: {order.id})")
        return order

    async def get_order(self, order_id: str, order_repo: ServiceOrderRepository) -> ServiceOrderInDB:
        return await self._get_or_404(order_id, order_repo)

    async def update_order(
        self, order_id: str, order_in: ServiceOrderUpdateAPI, order_repo: ServiceOrderRepository
    ) -> ServiceOrderInDB:
        current = await self._get_or_404(order_id, order_repo)
        if not SERVICE_ORDER_TRANSITIONS[current.status]:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail=f"Service order is '{current.status}' and cannot be edited.",
            )
        return await order_repo.update(current.id, order_in)

    async def change_status(self, order_id: str, new_status: str, order_repo: ServiceOrderRepository) -> ServiceOrderInDB:
        current = await self._get_or_404(order_id, order_repo)
        log = logger.bind(service="ServiceOrderService", ref=current.ref, new_status=new_status)
        if new_status not in SERVICE_ORDER_TRANSITIONS[current.status]:
            msg = f"Cannot change service order status from '{current.status}' to '{new_status}'."
            log.warning(msg)
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=msg)

        update: dict = {"status": new_status}
        if new_status == "delivered":
            update["delivered_at"] = datetime.utcnow()
        updated = await order_repo.update(current.id, update)
        log.success(f"Service order status changed: {current.status} -> {new_status}")
        return updated

    async def delete_order(self, order_id: str, order_repo: ServiceOrderRepository) -> bool:
        current = await self._get_or_404(order_id, order_repo)
        if current.status not in DELETABLE_STATUSES:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Only open or cancelled service orders can be deleted (status: {current.status}).",
            )
        return await order_repo.delete(current.id)

async def get_service_order_service() -> ServiceOrderService:
    return ServiceOrderService()
