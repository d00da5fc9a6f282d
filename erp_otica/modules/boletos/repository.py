# erp_otica/modules/boletos/repository.py
from datetime import datetime
from typing import List, Optional

from bson import ObjectId
from fastapi import Depends
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument

from erp_otica.core.database import get_database
from erp_otica.core.repository import BaseRepository, date_range_query
from .models import BoletoInDB, PAYABLE_STATUSES

class BoletoRepository(BaseRepository[BoletoInDB, BoletoInDB, BoletoInDB]):
    model = BoletoInDB
    collection_name = "boletos"

    async def create_indexes(self):
        await self.collection.create_index([("status", 1), ("due_date", 1)])
        await self.collection.create_index("sale_id")
        await self.collection.create_index("client_id")

    async def list_filtered(
        self,
        status: Optional[str] = None,
        client_id: Optional[ObjectId] = None,
        sale_id: Optional[ObjectId] = None,
        due_from: Optional[datetime] = None,
        due_to: Optional[datetime] = None,
        skip: int = 0,
        limit: int = 100,
    ) -> List[BoletoInDB]:
        query = date_range_query("due_date", due_from, due_to)
        if status: query["status"] = status
        if client_id: query["client_id"] = client_id
        if sale_id: query["sale_id"] = sale_id
        return await self.list_by(query=query, skip=skip, limit=limit, sort=[("due_date", 1), ("installment_number", 1)])

    async def list_for_sale(self, sale_id: ObjectId) -> List[BoletoInDB]:
        return await self.list_by({"sale_id": sale_id}, limit=0, sort=[("installment_number", 1)])

    async def has_paid_for_sale(self, sale_id: ObjectId) -> bool:
        return await self.count({"sale_id": sale_id, "status": "paid"}) > 0

    async def insert_many(self, documents: List[dict]) -> int:
        if not documents:
            return 0
        now = datetime.utcnow()
        for doc in documents:
            doc.setdefault("created_at", now)
            doc.setdefault("updated_at", now)
        try:
            result = await self.collection.insert_many(documents)
        except Exception as e:
            self._handle_db_exception(e, "insert_many")
        return len(result.inserted_ids)

    async def cancel_unpaid_for_sale(self, sale_id: ObjectId) -> int:
        try:
            result = await self.collection.update_many(
                {"sale_id": sale_id, "status": {"$in": list(PAYABLE_STATUSES)}},
                {"$set": {"status": "cancelled", "updated_at": datetime.utcnow()}},
            )
        except Exception as e:
            self._handle_db_exception(e, "cancel_unpaid_for_sale", sale_id)
        return result.modified_count

    async def delete_unpaid_for_sale(self, sale_id: ObjectId) -> int:
        try:
            result = await self.collection.delete_many({"sale_id": sale_id, "status": {"$ne": "paid"}})
        except Exception as e:
            self._handle_db_exception(e, "delete_unpaid_for_sale", sale_id)
        return result.deleted_count

    async def mark_paid(self, boleto_id: ObjectId, paid_at: datetime, paid_amount: float) -> Optional[BoletoInDB]:
        """
        Baixa condicional: só muda boletos ainda pagáveis. None quando outro
        pagamento (ou cancelamento) chegou antes.
        """
        with self._guard("mark_paid", boleto_id):
            document = await self.collection.find_one_and_update(
                {"_id": boleto_id, "status": {"$in": list(PAYABLE_STATUSES)}},
                {"$set": {"status": "paid", "paid_at": paid_at, "paid_amount": paid_amount, "updated_at": datetime.utcnow()}},
                return_document=ReturnDocument.AFTER,
            )
        return self._to_model(document)

    async def mark_overdue(self, today: datetime) -> int:
        """Boletos em aberto com vencimento antes de `today` passam a 'overdue'."""
        try:
            result = await self.collection.update_many(
                {"status": "open", "due_date": {"$lt": today}},
                {"$set": {"status": "overdue", "updated_at": datetime.utcnow()}},
            )
        except Exception as e:
            self._handle_db_exception(e, "mark_overdue")
        logger.bind(today=today.isoformat()).info(f"{result.modified_count} boleto(s) marked overdue.")
        return result.modified_count

async def get_boleto_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> BoletoRepository:
    return BoletoRepository(db)
