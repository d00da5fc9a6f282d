# erp_otica/core/repository.py

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Dict, Generic, Iterator, List, Optional, Tuple, Type, TypeVar

from bson import ObjectId
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorCollection, AsyncIOMotorDatabase
from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError, PyMongoError

ModelType = TypeVar("ModelType", bound=BaseModel) # documento como está no banco (ex: SaleInDB)
CreateSchemaType = TypeVar("CreateSchemaType", bound=BaseModel)
UpdateSchemaType = TypeVar("UpdateSchemaType", bound=BaseModel)

SortSpec = List[Tuple[str, int]]

class DuplicateDocumentError(ValueError):
    """Violação de índice único (CPF, SKU, email)."""

# Campos que o chamador nunca grava diretamente
_PROTECTED_ON_CREATE = ("_id", "id")
_PROTECTED_ON_UPDATE = ("_id", "id", "created_at")

class BaseRepository(Generic[ModelType, CreateSchemaType, UpdateSchemaType]):
    """
    CRUD genérico sobre uma coleção Motor.

    Subclasses definem `model` e `collection_name` e acrescentam as consultas
    do domínio. Erros do driver viram `DuplicateDocumentError` (chave duplicada) ou
    `RuntimeError` (o resto), que os services traduzem para HTTP.
    """

    model: Type[ModelType]
    collection_name: str

    def __init__(self, db: AsyncIOMotorDatabase):
        if not getattr(self, "collection_name", None):
            raise AttributeError(f"{type(self).__name__} must define 'collection_name'")
        if not (isinstance(getattr(self, "model", None), type) and issubclass(self.model, BaseModel)):
            raise AttributeError(f"{type(self).__name__} must define a pydantic 'model'")
        self.db = db
        self.collection: AsyncIOMotorCollection = db[self.collection_name]

    @staticmethod
    def _to_objectid(value: Any) -> Optional[ObjectId]:
        """ObjectId ou string hex válida -> ObjectId; qualquer outra coisa -> None."""
        if isinstance(value, ObjectId):
            return value
        if isinstance(value, str) and ObjectId.is_valid(value):
            return ObjectId(value)
        return None

    def _handle_db_exception(self, e: Exception, operation: str, doc_id: Any = None, query: Optional[Dict] = None):
        log = logger.bind(collection=self.collection_name, operation=operation, doc_id=str(doc_id) if doc_id else None)
        if isinstance(e, DuplicateKeyError):
            fields = list((e.details or {}).get("keyValue", {}).keys())
            log.warning(f"Duplicate key on {fields}")
            raise DuplicateDocumentError(f"Duplicate key error: Field(s) {fields} must be unique.") from e
        log.opt(exception=e).error(f"Mongo operation failed. query={str(query)[:100] if query else '-'}")
        raise RuntimeError(f"Database error during operation: {operation}") from e

    @contextmanager
    def _guard(self, operation: str, doc_id: Any = None, query: Optional[Dict] = None) -> Iterator[None]:
        try:
            yield
        except PyMongoError as e:
            self._handle_db_exception(e, operation, doc_id, query)

    def _prepare_data_for_db(self, data: Dict) -> Dict:
        """Gancho para subclasses normalizarem campos antes de gravar."""
        return dict(data)

    def _to_model(self, document: Optional[Dict]) -> Optional[ModelType]:
        return self.model.model_validate(document) if document else None

    @staticmethod
    def _as_dict(data: BaseModel | Dict, partial: bool) -> Dict:
        if isinstance(data, BaseModel):
            return data.model_dump(exclude_unset=partial)
        return dict(data)

    async def get_by_id(self, id: str | ObjectId) -> Optional[ModelType]:
        obj_id = self._to_objectid(id)
        if obj_id is None:
            return None
        with self._guard("get_by_id", obj_id):
            document = await self.collection.find_one({"_id": obj_id})
        return self._to_model(document)

    async def get_by(self, query: Dict[str, Any]) -> Optional[ModelType]:
        """Primeiro documento que casa com `query`."""
        with self._guard("get_by", query=query):
            document = await self.collection.find_one(query)
        return self._to_model(document)

    async def list_by(
        self,
        query: Optional[Dict[str, Any]] = None,
        skip: int = 0,
        limit: int = 100,
        sort: Optional[SortSpec] = None,
    ) -> List[ModelType]:
        """limit=0 devolve tudo."""
        query = query or {}
        with self._guard("list_by", query=query):
            cursor = self.collection.find(query, sort=sort or None, skip=max(0, skip), limit=max(0, limit))
            documents = await cursor.to_list(length=None)
        return [self.model.model_validate(doc) for doc in documents]

    async def create(self, data_in: CreateSchemaType | Dict) -> ModelType:
        document = self._prepare_data_for_db(self._as_dict(data_in, partial=False))
        for field in _PROTECTED_ON_CREATE:
            document.pop(field, None)
        now = datetime.utcnow()
        document.setdefault("created_at", now)
        document.setdefault("updated_at", now)

        with self._guard("create"):
            result = await self.collection.insert_one(document)

        created = await self.get_by_id(result.inserted_id)
        if created is None:
            logger.bind(collection=self.collection_name).critical(f"Inserted document {result.inserted_id} could not be read back")
            raise RuntimeError("Failed to retrieve document after creation.")
        return created

    async def update(self, id: str | ObjectId, data_in: UpdateSchemaType | Dict) -> Optional[ModelType]:
        """$set apenas dos campos informados; None se o documento não existe."""
        obj_id = self._to_objectid(id)
        if obj_id is None:
            return None

        changes = self._prepare_data_for_db(self._as_dict(data_in, partial=True))
        for field in _PROTECTED_ON_UPDATE:
            changes.pop(field, None)
        if not changes:
            return await self.get_by_id(obj_id)
        changes["updated_at"] = datetime.utcnow()

        with self._guard("update", obj_id):
            result = await self.collection.update_one({"_id": obj_id}, {"$set": changes})
        if result.matched_count == 0:
            logger.bind(collection=self.collection_name).warning(f"Update target {obj_id} not found")
            return None
        return await self.get_by_id(obj_id)

    async def delete(self, id: str | ObjectId) -> bool:
        obj_id = self._to_objectid(id)
        if obj_id is None:
            return False
        with self._guard("delete", obj_id):
            result = await self.collection.delete_one({"_id": obj_id})
        deleted = result.deleted_count > 0
        logger.bind(collection=self.collection_name).log("INFO" if deleted else "WARNING", f"Delete {obj_id}: {'ok' if deleted else 'not found'}")
        return deleted

    async def count(self, query: Optional[Dict[str, Any]] = None) -> int:
        with self._guard("count", query=query):
            return await self.collection.count_documents(query or {})

    async def aggregate(self, pipeline: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Documentos crus do pipeline (os relatórios montam seus próprios formatos)."""
        with self._guard("aggregate"):
            return await self.collection.aggregate(pipeline).to_list(length=None)

def date_range_query(field: str, start: Optional[datetime] = None, end: Optional[datetime] = None) -> Dict[str, Any]:
    """{field: {$gte: start, $lte: end}}, omitindo o limite ausente; {} sem nenhum."""
    bounds = {op: value for op, value in (("$gte", start), ("$lte", end)) if value}
    return {field: bounds} if bounds else {}
