# erp_otica/modules/appointments/repository.py
from datetime import datetime
from typing import List, Optional

from bson import ObjectId
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from erp_otica.core.database import get_database
from erp_otica.core.repository import BaseRepository, date_range_query
from .models import AppointmentInDB

class AppointmentRepository(BaseRepository[AppointmentInDB, AppointmentInDB, AppointmentInDB]):
    model = AppointmentInDB
    collection_name = "appointments"

    async def create_indexes(self):
        await self.collection.create_index([("scheduled_at", 1)])
        await self.collection.create_index("client_id")

    async def list_filtered(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        client_id: Optional[ObjectId] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[AppointmentInDB]:
        query = date_range_query("scheduled_at", start, end)
        if client_id:
            query["client_id"] = client_id
        return await self.list_by(query=query, skip=skip, limit=limit, sort=[("scheduled_at", 1)])

async def get_appointment_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> AppointmentRepository:
    return AppointmentRepository(db)
