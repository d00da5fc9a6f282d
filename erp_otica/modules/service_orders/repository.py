# erp_otica/modules/service_orders/repository.py
from typing import List, Optional

from bson import ObjectId
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from erp_otica.core.database import get_database
from erp_otica.core.repository import BaseRepository
from .models import ServiceOrderInDB

class ServiceOrderRepository(BaseRepository[ServiceOrderInDB, ServiceOrderInDB, ServiceOrderInDB]):
    model = ServiceOrderInDB
    collection_name = "service_orders"

    async def create_indexes(self):
        await self.collection.create_index("ref", unique=True)
        await self.collection.create_index([("status", 1), ("created_at", -1)])

    async def list_filtered(
        self,
        status: Optional[str] = None,
        client_id: Optional[ObjectId] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[ServiceOrderInDB]:
        query: dict = {}
        if status: query["status"] = status
        if client_id: query["client_id"] = client_id
        return await self.list_by(query=query, skip=skip, limit=limit, sort=[("created_at", -1), ("_id", -1)])

async def get_service_order_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> ServiceOrderRepository:
    return ServiceOrderRepository(db)
