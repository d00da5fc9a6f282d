# erp_otica/modules/cash/repository.py
from datetime import datetime
from typing import Dict, List, Optional

from bson import ObjectId
from fastapi import Depends
from motor.motor_asyncio import AsyncIOMotorDatabase

from erp_otica.core.database import get_database
from erp_otica.core.repository import BaseRepository, date_range_query
from .models import CashEntryInDB

class CashRepository(BaseRepository[CashEntryInDB, CashEntryInDB, CashEntryInDB]):
    model = CashEntryInDB
    collection_name = "cash_entries"

    async def create_indexes(self):
        await self.collection.create_index([("entry_date", -1)])
        await self.collection.create_index("sale_id")

    async def list_filtered(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        entry_type: Optional[str] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[CashEntryInDB]:
        query = date_range_query("entry_date", start, end)
        if entry_type:
            query["entry_type"] = entry_type
        return await self.list_by(query=query, skip=skip, limit=limit, sort=[("entry_date", -1), ("_id", -1)])

    async def totals_by_type(self, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Dict[str, float]:
        """{'income': x, 'expense': y} no intervalo."""
        pipeline = []
        match = date_range_query("entry_date", start, end)
        if match:
            pipeline.append({"$match": match})
        pipeline.append({"$group": {"_id": "$entry_type", "total": {"$sum": "$amount"}}})
        rows = await self.aggregate(pipeline)
        return {row["_id"]: round(row["total"], 2) for row in rows}

    async def delete_for_sale(self, sale_id: ObjectId) -> int:
        """Remove a entrada registrada na criação da venda."""
        try:
            result = await self.collection.delete_many({"sale_id": sale_id, "origin": "sale"})
        except Exception as e:
            self._handle_db_exception(e, "delete_for_sale", sale_id)
        return result.deleted_count

async def get_cash_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> CashRepository:
    return CashRepository(db)
