# erp_otica/core/counters.py

from datetime import datetime
from typing import Optional

from fastapi import Depends
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from erp_otica.core.database import get_database

COUNTERS_COLLECTION = "counters"
SEQUENCE_DIGITS = 5

class CounterService:
    """
    Referências legíveis por ano: VND-2026-00001 (vendas), OS-2026-00001
    (ordens de serviço). Um documento por prefixo/ano em `counters`.
    """

    def __init__(self, db: AsyncIOMotorDatabase):
        self.collection = db[COUNTERS_COLLECTION]

    async def next_value(self, key: str) -> int:
        # $inc com upsert é atômico, duas vendas simultâneas nunca repetem número
        try:
            doc = await self.collection.find_one_and_update(
                {"_id": key},
                {"$inc": {"seq": 1}, "$setOnInsert": {"created_at": datetime.utcnow()}},
                upsert=True,
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.bind(counter=key).exception("Counter increment failed")
            raise RuntimeError(f"Database error accessing counter '{key}'") from e
        return int(doc["seq"])

    async def generate_reference(self, prefix: str, year: Optional[int] = None) -> str:
        if not (isinstance(prefix, str) and prefix.isalnum()):
            raise ValueError("Prefix must be a non-empty alphanumeric string.")
        prefix = prefix.upper()
        year = year or datetime.utcnow().year
        seq = await self.next_value(f"{prefix}:{year}")
        reference = f"{prefix}-{year}-{seq:0{SEQUENCE_DIGITS}d}"
        logger.debug(f"Reference generated: {reference}")
        return reference

async def get_counter_service(db: AsyncIOMotorDatabase = Depends(get_database)) -> CounterService:
    return CounterService(db)
