# erp_otica/modules/clients/repository.py
import re
from typing import List, Optional

from bson import ObjectId
from fastapi import Depends
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase

from erp_otica.core.database import get_database
from erp_otica.core.repository import BaseRepository
from erp_otica.utils.formatters import format_cpf, only_digits
from .models import ClientInDB, ClientCreateAPI, ClientUpdateAPI

_CPF_LIKE = re.compile(r"[\d.\-\s]+")

def build_search_query(term: Optional[str]) -> dict:
    """
    Monta o filtro da busca por nome ou CPF.

    Com 11+ dígitos o termo é tratado como CPF completo (match exato no valor
    mascarado). Só dígitos/máscara com menos de 11 dígitos vira prefixo de CPF.
    Qualquer outra coisa busca no nome, sem diferenciar maiúsculas.
    """
    term = (term or "").strip()
    if not term:
        return {}
    digits = only_digits(term)
    if len(digits) >= 11:
        return {"cpf": format_cpf(digits)}
    if digits and _CPF_LIKE.fullmatch(term):
        return {"cpf": {"$regex": f"^{re.escape(format_cpf(digits))}"}}
    return {"full_name": {"$regex": re.escape(term), "$options": "i"}}

class ClientRepository(BaseRepository[ClientInDB, ClientCreateAPI, ClientUpdateAPI]):
    model = ClientInDB
    collection_name = "clients"

    async def create_indexes(self):
        await self.collection.create_index(
            "cpf", unique=True, partialFilterExpression={"cpf": {"$type": "string"}}
        )
        await self.collection.create_index("full_name")

    async def get_by_cpf(self, cpf: str) -> Optional[ClientInDB]:
        return await self.get_by({"cpf": format_cpf(cpf)})

    async def search(self, term: Optional[str], skip: int = 0, limit: int = 50) -> List[ClientInDB]:
        query = build_search_query(term)
        logger.bind(search=term).debug(f"Client search query: {query}")
        return await self.list_by(query=query, skip=skip, limit=limit, sort=[("full_name", 1)])

    async def get_many(self, ids: List[ObjectId]) -> dict:
        """Mapa str(id) -> cliente, para popular outras coleções."""
        if not ids:
            return {}
        clients = await self.list_by({"_id": {"$in": list(set(ids))}}, limit=0)
        return {str(c.id): c for c in clients}

async def get_client_repository(db: AsyncIOMotorDatabase = Depends(get_database)) -> ClientRepository:
    return ClientRepository(db)
