# erp_otica/modules/cash/routers.py
from datetime import datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from erp_otica.core.security import CurrentUser
from erp_otica.models.api_common import NOT_FOUND_RESPONSE, CONFLICT_RESPONSE, StatusResponse
from .models import CashEntryAPI, CashEntryCreateAPI, CashSummaryAPI, CASH_ENTRY_TYPES
from .repository import CashRepository, get_cash_repository
from .services import CashService, get_cash_service

router = APIRouter()

@router.post("/", response_model=CashEntryAPI, status_code=status.HTTP_201_CREATED, tags=["Cash Book"])
async def create_cash_entry(
    entry_in: CashEntryCreateAPI,
    current_user: CurrentUser,
    cash_service: Annotated[CashService, Depends(get_cash_service)],
    cash_repo: Annotated[CashRepository, Depends(get_cash_repository)],
):
    """Lançamento manual de entrada ou saída."""
    entry = await cash_service.create_manual_entry(entry_in, cash_repo)
    return CashEntryAPI.model_validate(entry)

@router.get("/", response_model=List[CashEntryAPI], tags=["Cash Book"])
async def list_cash_entries(
    current_user: CurrentUser,
    cash_repo: Annotated[CashRepository, Depends(get_cash_repository)],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    entry_type: Optional[CASH_ENTRY_TYPES] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
):
    entries = await cash_repo.list_filtered(start=start, end=end, entry_type=entry_type, skip=skip, limit=limit)
    return [CashEntryAPI.model_validate(e) for e in entries]

@router.get("/summary", response_model=CashSummaryAPI, tags=["Cash Book"])
async def cash_summary(
    current_user: CurrentUser,
    cash_service: Annotated[CashService, Depends(get_cash_service)],
    cash_repo: Annotated[CashRepository, Depends(get_cash_repository)],
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
):
    """Totais de entradas, saídas e saldo no período."""
    return await cash_service.summary(cash_repo, start=start, end=end)

@router.delete(
    "/{entry_id}",
    response_model=StatusResponse,
    responses={**NOT_FOUND_RESPONSE, **CONFLICT_RESPONSE},
    tags=["Cash Book"],
)
async def delete_cash_entry(
    entry_id: str,
    current_user: CurrentUser,
    cash_service: Annotated[CashService, Depends(get_cash_service)],
    cash_repo: Annotated[CashRepository, Depends(get_cash_repository)],
):
    deleted = await cash_service.delete_entry(entry_id, cash_repo)
    if not deleted:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cash entry not found")
    return StatusResponse(status="deleted")
