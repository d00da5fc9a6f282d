# erp_otica/modules/products/repository.py
import re
from datetime import datetime
from typing import List, Optional

from bson import ObjectId
from fastapi import Depends
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo.results import UpdateResult

from erp_otica.core.database import get_database
from erp_otica.core.repository import BaseRepository
from .models import ProductInDB, ProductCreateAPI, ProductUpdateAPI

class ProductRepository(BaseRepository[ProductInDB, ProductCreateAPI, ProductUpdateAPI]):
    model = ProductInDB
    collection_name = "products"

    async def create_indexes(self):
        await self.collection.create_index(
            "sku", unique=True, partialFilterExpression={"sku": {"$type": "string"}}
        )
        await self.collection.create_index("name")

    async def get_by_sku(self, sku: str) -> Optional[ProductInDB]:
        return await self.get_by({"sku": sku})

    async def search(
        self,
        term: Optional[str] = None,
        category: Optional[str] = None,
        active_only: bool = False,
        skip: int = 0,
        limit: int = 50,
    ) -> List[ProductInDB]:
        """Busca por nome, SKU ou marca (contém, sem diferenciar maiúsculas)."""
        query: dict = {}
        term = (term or "").strip()
        if term:
            pattern = {"$regex": re.escape(term), "$options": "i"}
            query["$or"] = [{"name": pattern}, {"sku": pattern}, {"brand": pattern}]
        if category:
            query["category"] = category
        if active_only:
            query["is_active"] = True
        return await self.list_by(query=query, skip=skip, limit=limit, sort=[("name", 1)])

    async def adjust_stock(self, product_id: ObjectId, delta: int) -> bool:
        """Soma `delta` ao estoque ($inc atômico). Negativo baixa o estoque."""
        log = logger.bind(product_id=str(product_id), delta=delta)
        try:
            result: UpdateResult = await self.collection.update_one(
                {"_id": product_id},
                {"$inc": {"stock_quantity": delta}, "$set": {"updated_at": datetime.utcnow()}},
            )
        except Exception as e:
            self._handle_db_exception(e, "adjust_stock", product_id)
        if result.matched_count == 0:
            log.warning("Stock adjustment skipped: product not found.")
            return False
        log.debug("Stock adjusted.")
        return True

async def get_product_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> ProductRepository:
    return ProductRepository(db)
