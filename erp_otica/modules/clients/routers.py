# erp_otica/modules/clients/routers.py
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from erp_otica.core.security import CurrentUser, require_role
from erp_otica.models.api_common import NOT_FOUND_RESPONSE, CONFLICT_RESPONSE, StatusResponse
from erp_otica.modules.people.models import UserInDB
from erp_otica.modules.sales.repository import SaleRepository, get_sale_repository
from .models import ClientAPI, ClientCreateAPI, ClientUpdateAPI
from .repository import ClientRepository, get_client_repository
from .services import ClientService, get_client_service

router = APIRouter()

@router.post(
    "/",
    response_model=ClientAPI,
    status_code=status.HTTP_201_CREATED,
    responses=CONFLICT_RESPONSE,
    tags=["Clients"],
)
async def create_client(
    client_in: ClientCreateAPI,
    current_user: CurrentUser,
    client_service: Annotated[ClientService, Depends(get_client_service)],
    client_repo: Annotated[ClientRepository, Depends(get_client_repository)],
):
    client = await client_service.create_client(client_in, client_repo)
    return ClientAPI.model_validate(client)

@router.get("/", response_model=List[ClientAPI], tags=["Clients"])
async def list_clients(
    current_user: CurrentUser,
    client_service: Annotated[ClientService, Depends(get_client_service)],
    client_repo: Annotated[ClientRepository, Depends(get_client_repository)],
    search: Optional[str] = Query(None, description="Nome (contém) ou CPF"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    """Lista clientes em ordem alfabética, com busca opcional por nome ou CPF."""
    clients = await client_service.list_clients(client_repo, search=search, skip=skip, limit=limit)
    return [ClientAPI.model_validate(c) for c in clients]

@router.get("/{client_id}", response_model=ClientAPI, responses=NOT_FOUND_RESPONSE, tags=["Clients"])
async def get_client(
    client_id: str,
    current_user: CurrentUser,
    client_service: Annotated[ClientService, Depends(get_client_service)],
    client_repo: Annotated[ClientRepository, Depends(get_client_repository)],
):
    return ClientAPI.model_validate(await client_service.get_client(client_id, client_repo))

@router.put(
    "/{client_id}",
    response_model=ClientAPI,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE},
    tags=["Clients"],
)
async def update_client(
    client_id: str,
    client_in: ClientUpdateAPI,
    current_user: CurrentUser,
    client_service: Annotated[ClientService, Depends(get_client_service)],
    client_repo: Annotated[ClientRepository, Depends(get_client_repository)],
):
    client = await client_service.update_client(client_id, client_in, client_repo)
    return ClientAPI.model_validate(client)

@router.delete(
    "/{client_id}",
    response_model=StatusResponse,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE},
    tags=["Clients"],
)
async def delete_client(
    client_id: str,
    current_user: Annotated[UserInDB, Depends(require_role(["admin"]))],
    client_service: Annotated[ClientService, Depends(get_client_service)],
    client_repo: Annotated[ClientRepository, Depends(get_client_repository)],
    sale_repo: Annotated[SaleRepository, Depends(get_sale_repository)],
):
    if not await client_service.delete_client(client_id, client_repo, sale_repo):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Client not found")
    return StatusResponse(status="deleted")
