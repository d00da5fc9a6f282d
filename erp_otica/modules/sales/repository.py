# erp_otica/modules/sales/repository.py
from datetime import datetime
from typing import List, Optional

from bson import ObjectId
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from erp_otica.core.database import get_database
from erp_otica.core.repository import BaseRepository, date_range_query
from .models import SaleInDB

class SaleRepository(BaseRepository[SaleInDB, SaleInDB, SaleInDB]):
    model = SaleInDB
    collection_name = "sales"

    async def create_indexes(self):
        await self.collection.create_index("ref", unique=True)
        await self.collection.create_index([("status", 1), ("sale_date", -1)])
        await self.collection.create_index("client_id")

    async def list_filtered(
        self,
        status: Optional[str] = None,
        client_ids: Optional[List[ObjectId]] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[SaleInDB]:
        query = date_range_query("sale_date", start, end)
        if status:
            query["status"] = status
        if client_ids is not None:
            query["client_id"] = {"$in": client_ids}
        return await self.list_by(query=query, skip=skip, limit=limit, sort=[("sale_date", -1), ("_id", -1)])

    async def exists_for_client(self, client_id: ObjectId) -> bool:
        return await self.count({"client_id": client_id}) > 0

    async def exists_for_product(self, product_id: ObjectId) -> bool:
        return await self.count({"items.product_id": product_id}) > 0

async def get_sale_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> SaleRepository:
    return SaleRepository(db)
