# erp_otica/core/database.py

from contextlib import AbstractAsyncContextManager
from typing import Optional

import redis.asyncio as redis
from fastapi import HTTPException, status
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from erp_otica.core.config import settings

def db_name_from_uri(uri: str, default: str) -> str:
    """`mongodb://host:27017/erp_otica?authSource=admin` -> `erp_otica`."""
    _, _, rest = uri.partition("://")
    _, slash, path = rest.partition("/")
    name = path.split("?", 1)[0] if slash else ""
    if not name or "@" in name or len(name) > 63:
        return default
    return name

class MongoDbContext(AbstractAsyncContextManager):
    """
    Conexão Motor da API e do worker.

    A API abre uma vez no lifespan; o Celery usa `async with MongoDbContext()`
    a cada execução de tarefa, já que cada `asyncio.run` cria um loop novo.
    """

    def __init__(self, uri: Optional[str] = None, db_name: Optional[str] = None):
        self.uri = uri or settings.MONGODB_URI
        self.db_name = db_name or db_name_from_uri(self.uri, settings.MONGODB_DEFAULT_DB)
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()

    async def connect(self):
        log = logger.bind(component="mongodb", database=self.db_name)
        if self.db is not None:
            log.debug("Already connected.")
            return
        log.info("Connecting to MongoDB...")
        client = AsyncIOMotorClient(self.uri, uuidRepresentation="standard", serverSelectionTimeoutMS=5000)
        try:
            await client.admin.command("ping")
        except Exception as e:
            client.close()
            log.critical(f"FATAL: MongoDB unreachable: {e}")
            raise ConnectionError(f"MongoDB connection failed: {e}") from e
        self.client, self.db = client, client[self.db_name]
        log.success("MongoDB connected.")

    async def disconnect(self):
        if self.client is None:
            return
        self.client.close()
        self.client, self.db = None, None
        logger.bind(component="mongodb").info("MongoDB connection closed.")

    def get_db(self) -> AsyncIOMotorDatabase:
        if self.db is None:
            raise RuntimeError("MongoDB database is not connected.")
        return self.db

class RedisContext(AbstractAsyncContextManager):
    """Redis é opcional: sem ele o status reporta 'unavailable' e o resto segue."""

    def __init__(self, url: Optional[str] = None):
        self.url = url or settings.REDIS_URL
        self.client: Optional[redis.Redis] = None

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.disconnect()

    async def connect(self):
        log = logger.bind(component="redis")
        if self.client is not None:
            return
        client = redis.Redis.from_url(self.url, decode_responses=True, socket_connect_timeout=5)
        try:
            await client.ping()
        except redis.RedisError as e:
            await client.aclose()
            log.error(f"Redis unavailable, continuing without it: {e}")
            return
        self.client = client
        log.success("Redis connected.")

    async def disconnect(self):
        if self.client is None:
            return
        try:
            await self.client.aclose()
        except redis.RedisError as e:
            logger.bind(component="redis").error(f"Error closing Redis: {e}")
        finally:
            self.client = None

mongo_manager = MongoDbContext()
redis_manager = RedisContext()

def get_mongo_db_instance() -> AsyncIOMotorDatabase:
    return mongo_manager.get_db()

# --- Dependências FastAPI ---

async def get_database() -> AsyncIOMotorDatabase:
    """Banco da requisição; 503 se o Mongo não estiver conectado."""
    try:
        return get_mongo_db_instance()
    except RuntimeError as e:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=f"Database connection not available: {e}")

async def get_redis_client() -> Optional[redis.Redis]:
    return redis_manager.client
