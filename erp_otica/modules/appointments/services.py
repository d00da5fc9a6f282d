# erp_otica/modules/appointments/services.py
from typing import List

from bson import ObjectId
from fastapi import HTTPException, status
from loguru import logger

from erp_otica.modules.clients.models import ClientSummaryAPI
from erp_otica.modules.clients.repository import ClientRepository
from .models import (
    AppointmentAPI, AppointmentCreateAPI, AppointmentInDB, AppointmentUpdateAPI, flags_for, outcome_of,
)
from .repository import AppointmentRepository

class AppointmentService:

    async def _get_or_404(self, appointment_id: str, appointment_repo: AppointmentRepository) -> AppointmentInDB:
        appointment = await appointment_repo.get_by_id(appointment_id)
        if not appointment:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
        return appointment

    async def _ensure_client(self, client_id: str, client_repo: ClientRepository):
        if not await client_repo.get_by_id(client_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Client {client_id} not found")

    async def to_api(self, appointments: List[AppointmentInDB], client_repo: ClientRepository) -> List[AppointmentAPI]:
        clients = await client_repo.get_many([a.client_id for a in appointments])
        result = []
        for appointment in appointments:
            api = AppointmentAPI.model_validate(appointment)
            api.outcome = outcome_of(appointment.attended, appointment.missed)
            client = clients.get(str(appointment.client_id))
            if client:
                api.client = ClientSummaryAPI.model_validate(client)
            result.append(api)
        return result

    async def create_appointment(
        self, appointment_in: AppointmentCreateAPI, appointment_repo: AppointmentRepository, client_repo: ClientRepository
    ) -> AppointmentInDB:
        await self._ensure_client(appointment_in.client_id, client_repo)
        data = appointment_in.model_dump()
        data["client_id"] = ObjectId(appointment_in.client_id)
        appointment = await appointment_repo.create(data)
        logger.bind(service="AppointmentService", client_id=appointment_in.client_id).success(
            f"Appointment scheduled for {appointment.scheduled_at.isoformat()} (ID: {appointment.id})"
        )
        return appointment

    async def get_appointment(self, appointment_id: str, appointment_repo: AppointmentRepository) -> AppointmentInDB:
        return await self._get_or_404(appointment_id, appointment_repo)

    async def update_appointment(
        self,
        appointment_id: str,
        appointment_in: AppointmentUpdateAPI,
        appointment_repo: AppointmentRepository,
        client_repo: ClientRepository,
    ) -> AppointmentInDB:
        current = await self._get_or_404(appointment_id, appointment_repo)
        data = appointment_in.model_dump(exclude_unset=True)
        if data.get("client_id"):
            await self._ensure_client(data["client_id"], client_repo)
            data["client_id"] = ObjectId(data["client_id"])

        # Marcar um flag limpa o outro quando o payload não diz nada sobre ele
        if data.get("attended") and "missed" not in data:
            data["missed"] = False
        if data.get("missed") and "attended" not in data:
            data["attended"] = False
        attended = data.get("attended", current.attended)
        missed = data.get("missed", current.missed)
        if attended and missed:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Um agendamento não pode estar comparecido e faltoso ao mesmo tempo.",
            )

        updated = await appointment_repo.update(current.id, data)
        if not updated:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Appointment not found")
        return updated

    async def set_attendance(
        self, appointment_id: str, outcome: str, appointment_repo: AppointmentRepository
    ) -> AppointmentInDB:
        current = await self._get_or_404(appointment_id, appointment_repo)
        updated = await appointment_repo.update(current.id, flags_for(outcome))
        logger.bind(service="AppointmentService", appointment_id=appointment_id).success(f"Attendance set: {outcome}")
        return updated

    async def delete_appointment(self, appointment_id: str, appointment_repo: AppointmentRepository) -> bool:
        current = await self._get_or_404(appointment_id, appointment_repo)
        return await appointment_repo.delete(current.id)

async def get_appointment_service() -> AppointmentService:
    return AppointmentService()
