# erp_otica/modules/boletos/routers.py
from datetime import datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status

from erp_otica.core.security import CurrentUser, require_role
from erp_otica.models.api_common import NOT_FOUND_RESPONSE, CONFLICT_RESPONSE, ObjectIdStr, StatusResponse
from erp_otica.modules.cash.repository import CashRepository, get_cash_repository
from erp_otica.modules.cash.services import CashService, get_cash_service
from erp_otica.modules.clients.repository import ClientRepository, get_client_repository
from erp_otica.modules.people.models import UserInDB
from .models import BoletoAPI, BoletoCreateAPI, BoletoPayAPI, OverdueResultAPI, BOLETO_STATUSES
from .repository import BoletoRepository, get_boleto_repository
from .services import BoletoService, get_boleto_service

router = APIRouter()

@router.post(
    "/",
    response_model=BoletoAPI,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND_RESPONSE,
    tags=["Boletos"],
)
async def create_boleto(
    boleto_in: BoletoCreateAPI,
    current_user: CurrentUser,
    boleto_service: Annotated[BoletoService, Depends(get_boleto_service)],
    boleto_repo: Annotated[BoletoRepository, Depends(get_boleto_repository)],
    client_repo: Annotated[ClientRepository, Depends(get_client_repository)],
):
    """Cria um boleto avulso (fora do parcelamento automático de vendas)."""
    boleto = await boleto_service.create_boleto(boleto_in, boleto_repo, client_repo)
    return (await boleto_service.to_api([boleto], client_repo))[0]

@router.get("/", response_model=List[BoletoAPI], tags=["Boletos"])
async def list_boletos(
    current_user: CurrentUser,
    boleto_service: Annotated[BoletoService, Depends(get_boleto_service)],
    boleto_repo: Annotated[BoletoRepository, Depends(get_boleto_repository)],
    client_repo: Annotated[ClientRepository, Depends(get_client_repository)],
    status_filter: Optional[BOLETO_STATUSES] = Query(None, alias="status"),
    client_id: Optional[ObjectIdStr] = None,
    sale_id: Optional[ObjectIdStr] = None,
    due_from: Optional[datetime] = None,
    due_to: Optional[datetime] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
):
    boletos = await boleto_repo.list_filtered(
        status=status_filter,
        client_id=boleto_repo._to_objectid(client_id),
        sale_id=boleto_repo._to_objectid(sale_id),
        due_from=due_from,
        due_to=due_to,
        skip=skip,
        limit=limit,
    )
    return await boleto_service.to_api(boletos, client_repo)

@router.post("/mark-overdue", response_model=OverdueResultAPI, tags=["Boletos"])
async def mark_overdue_boletos(
    current_user: Annotated[UserInDB, Depends(require_role(["admin"]))],
    boleto_service: Annotated[BoletoService, Depends(get_boleto_service)],
    boleto_repo: Annotated[BoletoRepository, Depends(get_boleto_repository)],
):
    """Dispara manualmente a rotina diária de vencimento."""
    count = await boleto_service.mark_overdue(boleto_repo)
    return OverdueResultAPI(marked_overdue=count)

@router.get("/{boleto_id}", response_model=BoletoAPI, responses=NOT_FOUND_RESPONSE, tags=["Boletos"])
async def get_boleto(
    boleto_id: str,
    current_user: CurrentUser,
    boleto_service: Annotated[BoletoService, Depends(get_boleto_service)],
    boleto_repo: Annotated[BoletoRepository, Depends(get_boleto_repository)],
    client_repo: Annotated[ClientRepository, Depends(get_client_repository)],
):
    boleto = await boleto_repo.get_by_id(boleto_id)
    if not boleto:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Boleto not found")
    return (await boleto_service.to_api([boleto], client_repo))[0]

@router.post("/{boleto_id}/pay", response_model=BoletoAPI, responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE}, tags=["Boletos"])
async def pay_boleto(
    boleto_id: str,
    current_user: CurrentUser,
    boleto_service: Annotated[BoletoService, Depends(get_boleto_service)],
    boleto_repo: Annotated[BoletoRepository, Depends(get_boleto_repository)],
    client_repo: Annotated[ClientRepository, Depends(get_client_repository)],
    cash_repo: Annotated[CashRepository, Depends(get_cash_repository)],
    cash_service: Annotated[CashService, Depends(get_cash_service)],
    pay_in: Optional[BoletoPayAPI] = Body(None),
):
    """Baixa o boleto e lança o valor recebido no caixa."""
    boleto = await boleto_service.pay_boleto(boleto_id, pay_in or BoletoPayAPI(), boleto_repo, cash_repo, cash_service)
    return (await boleto_service.to_api([boleto], client_repo))[0]

@router.post("/{boleto_id}/cancel", response_model=BoletoAPI, responses=NOT_FOUND_RESPONSE, tags=["Boletos"])
async def cancel_boleto(
    boleto_id: str,
    current_user: CurrentUser,
    boleto_service: Annotated[BoletoService, Depends(get_boleto_service)],
    boleto_repo: Annotated[BoletoRepository, Depends(get_boleto_repository)],
    client_repo: Annotated[ClientRepository, Depends(get_client_repository)],
):
    boleto = await boleto_service.cancel_boleto(boleto_id, boleto_repo)
    return (await boleto_service.to_api([boleto], client_repo))[0]

@router.delete(
    "/{boleto_id}",
    response_model=StatusResponse,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE},
    tags=["Boletos"],
)
async def delete_boleto(
    boleto_id: str,
    current_user: CurrentUser,
    boleto_service: Annotated[BoletoService, Depends(get_boleto_service)],
    boleto_repo: Annotated[BoletoRepository, Depends(get_boleto_repository)],
):
    if not await boleto_service.delete_boleto(boleto_id, boleto_repo):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Boleto not found")
    return StatusResponse(status="deleted")
