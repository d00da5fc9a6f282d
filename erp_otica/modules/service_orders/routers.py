# erp_otica/modules/service_orders/routers.py
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from erp_otica.core.counters import CounterService, get_counter_service
from erp_otica.core.security import CurrentUser
from erp_otica.models.api_common import NOT_FOUND_RESPONSE, CONFLICT_RESPONSE, ObjectIdStr, StatusResponse
from erp_otica.modules.clients.repository import ClientRepository, get_client_repository
from erp_otica.modules.sales.repository import SaleRepository, get_sale_repository
from .models import (
    ServiceOrderAPI, ServiceOrderCreateAPI, ServiceOrderStatusUpdateAPI, ServiceOrderUpdateAPI, SERVICE_ORDER_STATUSES,
)
from .repository import ServiceOrderRepository, get_service_order_repository
from .services import ServiceOrderService, get_service_order_service

router = APIRouter()

OrderServiceDep = Annotated[ServiceOrderService, Depends(get_service_order_service)]
OrderRepoDep = Annotated[ServiceOrderRepository, Depends(get_service_order_repository)]
ClientRepoDep = Annotated[ClientRepository, Depends(get_client_repository)]

@router.post(
    "/",
    response_model=ServiceOrderAPI,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND_RESPONSE,
    tags=["Service Orders"],
)
async def create_service_order(
    order_in: ServiceOrderCreateAPI,
    current_user: CurrentUser,
    order_service: OrderServiceDep,
    order_repo: OrderRepoDep,
    client_repo: ClientRepoDep,
    sale_repo: Annotated[SaleRepository, Depends(get_sale_repository)],
    counter_service: Annotated[CounterService, Depends(get_counter_service)],
):
    """Abre uma OS. Sem receita no payload, copia a receita do cliente."""
    order = await order_service.create_order(order_in, order_repo, client_repo, sale_repo, counter_service)
    return (await order_service.to_api([order], client_repo))[0]

@router.get("/", response_model=List[ServiceOrderAPI], tags=["Service Orders"])
async def list_service_orders(
    current_user: CurrentUser,
    order_service: OrderServiceDep,
    order_repo: OrderRepoDep,
    client_repo: ClientRepoDep,
    status_filter: Optional[SERVICE_ORDER_STATUSES] = Query(None, alias="status"),
    client_id: Optional[ObjectIdStr] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
):
    orders = await order_repo.list_filtered(
        status=status_filter, client_id=order_repo._to_objectid(client_id), skip=skip, limit=limit
    )
    return await order_service.to_api(orders, client_repo)

@router.get("/{order_id}", response_model=ServiceOrderAPI, responses=NOT_FOUND_RESPONSE, tags=["Service Orders"])
async def get_service_order(
    order_id: str,
    current_user: CurrentUser,
    order_service: OrderServiceDep,
    order_repo: OrderRepoDep,
    client_repo: ClientRepoDep,
):
    order = await order_service.get_order(order_id, order_repo)
    return (await order_service.to_api([order], client_repo))[0]

@router.put("/{order_id}", response_model=ServiceOrderAPI, responses=NOT_FOUND_RESPONSE, tags=["Service Orders"])
async def update_service_order(
    order_id: str,
    order_in: ServiceOrderUpdateAPI,
    current_user: CurrentUser,
    order_service: OrderServiceDep,
    order_repo: OrderRepoDep,
    client_repo: ClientRepoDep,
):
    order = await order_service.update_order(order_id, order_in, order_repo)
    return (await order_service.to_api([order], client_repo))[0]

@router.patch("/{order_id}/status", response_model=ServiceOrderAPI, responses=NOT_FOUND_RESPONSE, tags=["Service Orders"])
async def update_service_order_status(
    order_id: str,
    status_in: ServiceOrderStatusUpdateAPI,
    current_user: CurrentUser,
    order_service: OrderServiceDep,
    order_repo: OrderRepoDep,
    client_repo: ClientRepoDep,
):
    order = await order_service.change_status(order_id, status_in.status, order_repo)
    return (await order_service.to_api([order], client_repo))[0]

@router.delete(
    "/{order_id}",
    response_model=StatusResponse,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE},
    tags=["Service Orders"],
)
async def delete_service_order(
    order_id: str,
    current_user: CurrentUser,
    order_service: OrderServiceDep,
    order_repo: OrderRepoDep,
):
    if not await order_service.delete_order(order_id, order_repo):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Service order not found")
    return StatusResponse(status="deleted")
