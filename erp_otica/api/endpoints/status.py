# erp_otica/api/endpoints/status.py
import time
from datetime import datetime, timezone
from typing import Awaitable, Callable, Dict, Literal, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from loguru import logger
from motor.motor_asyncio import AsyncIOMotorDatabase
from pydantic import BaseModel, Field
from redis.asyncio import Redis

from erp_otica.core.config import settings
from erp_otica.core.database import get_mongo_db_instance, get_redis_client

STARTED_AT = time.monotonic()

class ComponentStatus(BaseModel):
    status: Literal["ok", "error", "unavailable"] = "ok"
    message: Optional[str] = None

class HealthCheckResponse(BaseModel):
    service: str = settings.PROJECT_NAME
    overall_status: Literal["ok", "error"] = "ok"
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    uptime_seconds: float
    components: Dict[str, ComponentStatus]

router = APIRouter()

async def get_database_or_none() -> Optional[AsyncIOMotorDatabase]:
    """Como get_database, mas sem 503: o healthcheck reporta a falha no corpo."""
    try:
        return get_mongo_db_instance()
    except RuntimeError:
        return None

async def _ping_component(name: str, ping: Optional[Callable[[], Awaitable]]) -> ComponentStatus:
    if ping is None:
        return ComponentStatus(status="unavailable", message=f"{name} client not available")
    try:
        await ping()
    except Exception as e: # qualquer erro do driver conta como fora do ar
        logger.bind(component=name).warning(f"{name} ping failed: {e}")
        return ComponentStatus(status="error", message=str(e))
    return ComponentStatus()

@router.get("/healthcheck", response_model=HealthCheckResponse, tags=["Status & Health"])
async def healthcheck(
    db: Optional[AsyncIOMotorDatabase] = Depends(get_database_or_none),
    redis: Optional[Redis] = Depends(get_redis_client),
):
    """
    MongoDB é crítico (503 quando fora). Redis só aparece no relatório: atende
    o Celery e o rate limit, que cai para memória sem ele.
    """
    mongo = await _ping_component("MongoDB", (lambda: db.command("ping")) if db is not None else None)
    if mongo.status == "unavailable":
        mongo.status = "error"
    cache = await _ping_component("Redis", redis.ping if redis is not None else None)

    healthy = mongo.status == "ok"
    payload = HealthCheckResponse(
        overall_status="ok" if healthy else "error",
        uptime_seconds=round(time.monotonic() - STARTED_AT, 3),
        components={"database_mongodb": mongo, "cache_redis": cache},
    )
    if not healthy:
        logger.error(f"Healthcheck failed: MongoDB {mongo.status} ({mongo.message})")
    return JSONResponse(status_code=200 if healthy else 503, content=payload.model_dump(mode="json", exclude_none=True))
