# erp_otica/modules/sales/routers.py
from datetime import datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger

from erp_otica.core.counters import CounterService, get_counter_service
from erp_otica.core.security import CurrentUser, require_role
from erp_otica.models.api_common import NOT_FOUND_RESPONSE, CONFLICT_RESPONSE, ObjectIdStr, StatusResponse
from erp_otica.modules.boletos.repository import BoletoRepository, get_boleto_repository
from erp_otica.modules.cash.repository import CashRepository, get_cash_repository
from erp_otica.modules.clients.repository import ClientRepository, get_client_repository
from erp_otica.modules.people.models import UserInDB
from erp_otica.modules.products.repository import ProductRepository, get_product_repository
from .models import SaleAPI, SaleCreateAPI, SaleStatusUpdateAPI, SALE_STATUSES
from .repository import SaleRepository, get_sale_repository
from .services import SaleService, get_sale_service

router = APIRouter()

SaleServiceDep = Annotated[SaleService, Depends(get_sale_service)]
SaleRepoDep = Annotated[SaleRepository, Depends(get_sale_repository)]
ClientRepoDep = Annotated[ClientRepository, Depends(get_client_repository)]
ProductRepoDep = Annotated[ProductRepository, Depends(get_product_repository)]
BoletoRepoDep = Annotated[BoletoRepository, Depends(get_boleto_repository)]
CashRepoDep = Annotated[CashRepository, Depends(get_cash_repository)]

@router.post(
    "/",
    response_model=SaleAPI,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND_RESPONSE,
    tags=["Sales"],
)
async def create_sale(
    sale_in: SaleCreateAPI,
    current_user: CurrentUser,
    sale_service: SaleServiceDep,
    sale_repo: SaleRepoDep,
    client_repo: ClientRepoDep,
    product_repo: ProductRepoDep,
    boleto_repo: BoletoRepoDep,
    cash_repo: CashRepoDep,
    counter_service: Annotated[CounterService, Depends(get_counter_service)],
):
    """
    Registra uma venda. Calcula o total, baixa o estoque, lança a entrada no
    caixa e, para vendas a prazo, gera os boletos do saldo.
    """
    log = logger.bind(user_id=str(current_user.id))
    try:
        sale = await sale_service.create_sale(
            sale_in=sale_in,
            seller=current_user,
            sale_repo=sale_repo,
            client_repo=client_repo,
            product_repo=product_repo,
            boleto_repo=boleto_repo,
            cash_repo=cash_repo,
            counter_service=counter_service,
        )
    except HTTPException as http_exc:
        log.warning(f"Failed to create sale: {http_exc.detail} (Status: {http_exc.status_code})")
        raise
    except Exception as e:
        log.exception(f"Unexpected error creating sale: {e}")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal server error creating sale.")
    return (await sale_service.to_api([sale], client_repo))[0]

@router.get("/", response_model=List[SaleAPI], tags=["Sales"])
async def list_sales(
    current_user: CurrentUser,
    sale_service: SaleServiceDep,
    sale_repo: SaleRepoDep,
    client_repo: ClientRepoDep,
    search: Optional[str] = Query(None, description="Nome ou CPF do cliente"),
    status_filter: Optional[SALE_STATUSES] = Query(None, alias="status"),
    client_id: Optional[ObjectIdStr] = None,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
):
    sales = await sale_service.list_sales(
        sale_repo, client_repo,
        search=search, status_filter=status_filter, client_id=client_id,
        start=start, end=end, skip=skip, limit=limit,
    )
    return await sale_service.to_api(sales, client_repo)

@router.get("/{sale_id}", response_model=SaleAPI, responses=NOT_FOUND_RESPONSE, tags=["Sales"])
async def get_sale(
    sale_id: str,
    current_user: CurrentUser,
    sale_service: SaleServiceDep,
    sale_repo: SaleRepoDep,
    client_repo: ClientRepoDep,
):
    sale = await sale_service.get_sale(sale_id, sale_repo)
    return (await sale_service.to_api([sale], client_repo))[0]

@router.put(
    "/{sale_id}",
    response_model=SaleAPI,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE},
    tags=["Sales"],
)
async def update_sale(
    sale_id: str,
    sale_in: SaleCreateAPI,
    current_user: CurrentUser,
    sale_service: SaleServiceDep,
    sale_repo: SaleRepoDep,
    client_repo: ClientRepoDep,
    product_repo: ProductRepoDep,
    boleto_repo: BoletoRepoDep,
    cash_repo: CashRepoDep,
):
    sale = await sale_service.update_sale(sale_id, sale_in, sale_repo, client_repo, product_repo, boleto_repo, cash_repo)
    return (await sale_service.to_api([sale], client_repo))[0]

@router.patch(
    "/{sale_id}/status",
    response_model=SaleAPI,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE},
    tags=["Sales"],
)
async def update_sale_status(
    sale_id: str,
    status_in: SaleStatusUpdateAPI,
    current_user: CurrentUser,
    sale_service: SaleServiceDep,
    sale_repo: SaleRepoDep,
    client_repo: ClientRepoDep,
    product_repo: ProductRepoDep,
    boleto_repo: BoletoRepoDep,
    cash_repo: CashRepoDep,
):
    """pending -> completed, pending/completed -> cancelled."""
    sale = await sale_service.change_status(sale_id, status_in.status, sale_repo, product_repo, boleto_repo, cash_repo)
    return (await sale_service.to_api([sale], client_repo))[0]

@router.delete(
    "/{sale_id}",
    response_model=StatusResponse,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE},
    tags=["Sales"],
)
async def delete_sale(
    sale_id: str,
    current_user: Annotated[UserInDB, Depends(require_role(["admin"]))],
    sale_service: SaleServiceDep,
    sale_repo: SaleRepoDep,
    product_repo: ProductRepoDep,
    boleto_repo: BoletoRepoDep,
    cash_repo: CashRepoDep,
):
    if not await sale_service.delete_sale(sale_id, sale_repo, product_repo, boleto_repo, cash_repo):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Sale not found")
    return StatusResponse(status="deleted")
