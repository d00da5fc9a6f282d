# erp_otica/modules/appointments/routers.py
from datetime import datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from erp_otica.core.security import CurrentUser
from erp_otica.models.api_common import NOT_FOUND_RESPONSE, ObjectIdStr, StatusResponse
from erp_otica.modules.clients.repository import ClientRepository, get_client_repository
from .models import AppointmentAPI, AppointmentCreateAPI, AppointmentUpdateAPI, AttendanceUpdateAPI
from .repository import AppointmentRepository, get_appointment_repository
from .services import AppointmentService, get_appointment_service

router = APIRouter()

AppointmentServiceDep = Annotated[AppointmentService, Depends(get_appointment_service)]
AppointmentRepoDep = Annotated[AppointmentRepository, Depends(get_appointment_repository)]
ClientRepoDep = Annotated[ClientRepository, Depends(get_client_repository)]

@router.post(
    "/",
    response_model=AppointmentAPI,
    status_code=status.HTTP_201_CREATED,
    responses=NOT_FOUND_RESPONSE,
    tags=["Appointments"],
)
async def create_appointment(
    appointment_in: AppointmentCreateAPI,
    current_user: CurrentUser,
    appointment_service: AppointmentServiceDep,
    appointment_repo: AppointmentRepoDep,
    client_repo: ClientRepoDep,
):
    appointment = await appointment_service.create_appointment(appointment_in, appointment_repo, client_repo)
    return (await appointment_service.to_api([appointment], client_repo))[0]

@router.get("/", response_model=List[AppointmentAPI], tags=["Appointments"])
async def list_appointments(
    current_user: CurrentUser,
    appointment_service: AppointmentServiceDep,
    appointment_repo: AppointmentRepoDep,
    client_repo: ClientRepoDep,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    client_id: Optional[ObjectIdStr] = None,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
):
    """Agenda em ordem cronológica."""
    appointments = await appointment_repo.list_filtered(
        start=start, end=end, client_id=appointment_repo._to_objectid(client_id), skip=skip, limit=limit
    )
    return await appointment_service.to_api(appointments, client_repo)

@router.get("/{appointment_id}", response_model=AppointmentAPI, responses=NOT_FOUND_RESPONSE, tags=["Appointments"])
async def get_appointment(
    appointment_id: str,
    current_user: CurrentUser,
    appointment_service: AppointmentServiceDep,
    appointment_repo: AppointmentRepoDep,
    client_repo: ClientRepoDep,
):
    appointment = await appointment_service.get_appointment(appointment_id, appointment_repo)
    return (await appointment_service.to_api([appointment], client_repo))[0]

@router.put("/{appointment_id}", response_model=AppointmentAPI, responses=NOT_FOUND_RESPONSE, tags=["Appointments"])
async def update_appointment(
    appointment_id: str,
    appointment_in: AppointmentUpdateAPI,
    current_user: CurrentUser,
    appointment_service: AppointmentServiceDep,
    appointment_repo: AppointmentRepoDep,
    client_repo: ClientRepoDep,
):
    appointment = await appointment_service.update_appointment(appointment_id, appointment_in, appointment_repo, client_repo)
    return (await appointment_service.to_api([appointment], client_repo))[0]

@router.patch(
    "/{appointment_id}/attendance",
    response_model=AppointmentAPI,
    responses=NOT_FOUND_RESPONSE,
    tags=["Appointments"],
)
async def set_attendance(
    appointment_id: str,
    attendance_in: AttendanceUpdateAPI,
    current_user: CurrentUser,
    appointment_service: AppointmentServiceDep,
    appointment_repo: AppointmentRepoDep,
    client_repo: ClientRepoDep,
):
    """Marca comparecimento, falta ou volta o agendamento para em aberto."""
    appointment = await appointment_service.set_attendance(appointment_id, attendance_in.outcome, appointment_repo)
    return (await appointment_service.to_api([appointment], client_repo))[0]

@router.delete("/{appointment_id}", response_model=StatusResponse, responses=NOT_FOUND_RESPONSE, tags=["Appointments"])
async def delete_appointment(
    appointment_id: str,
    current_user: CurrentUser,
    appointment_service: AppointmentServiceDep,
    appointment_repo: AppointmentRepoDep,
):
    if not await appointment_service.delete_appointment(appointment_id, appointment_repo):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
    return StatusResponse(status="deleted")
