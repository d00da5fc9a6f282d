# erp_otica/main.py

import asyncio
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware

from erp_otica.api.v1 import api_router
from erp_otica.core.config import settings
from erp_otica.core.database import mongo_manager, redis_manager
from erp_otica.core.logging_config import add_trace_id_middleware, setup_logging, trace_id_var
from erp_otica.core.rate_limit import limiter, rate_limit_exceeded_handler
from erp_otica.models.api_common import ErrorDetail, ValidationErrorResponse
from erp_otica.modules.appointments.repository import AppointmentRepository
from erp_otica.modules.boletos.repository import BoletoRepository
from erp_otica.modules.cash.repository import CashRepository
from erp_otica.modules.clients.repository import ClientRepository
from erp_otica.modules.people.repository import UserRepository
from erp_otica.modules.products.repository import ProductRepository
from erp_otica.modules.sales.repository import SaleRepository
from erp_otica.modules.service_orders.repository import ServiceOrderRepository

INDEXED_REPOSITORIES = (
    UserRepository, ClientRepository, ProductRepository, SaleRepository,
    BoletoRepository, AppointmentRepository, ServiceOrderRepository, CashRepository,
)

async def create_indexes(db):
    for repo_cls in INDEXED_REPOSITORIES:
        await repo_cls(db).create_indexes()
    logger.info(f"Indexes ensured for {len(INDEXED_REPOSITORIES)} collections.")

async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        ErrorDetail(field=".".join(str(part) for part in err.get("loc", ())[1:]) or None, message=err.get("msg", ""))
        for err in exc.errors()
    ]
    logger.bind(trace_id=trace_id_var.get()).warning(f"Validation Error on {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ValidationErrorResponse(errors=errors).model_dump(),
    )

async def generic_exception_handler(request: Request, exc: Exception):
    logger.bind(trace_id=trace_id_var.get()).exception(f"Unhandled Exception: {exc}")
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content={"detail": "Internal server error"})

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {settings.PROJECT_NAME}...")
    await asyncio.gather(mongo_manager.connect(), redis_manager.connect())
    await create_indexes(mongo_manager.get_db())
    yield
    logger.info("Shutting down...")
    await asyncio.gather(mongo_manager.disconnect(), redis_manager.disconnect())

def create_app() -> FastAPI:
    setup_logging()
    app = FastAPI(
        title=settings.PROJECT_NAME,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        lifespan=lifespan,
        exception_handlers={
            RequestValidationError: validation_exception_handler,
            RateLimitExceeded: rate_limit_exceeded_handler,
            Exception: generic_exception_handler,
        },
    )
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)

    app.middleware("http")(add_trace_id_middleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.FRONTEND_ORIGIN.split(",")],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router, prefix=settings.API_V1_STR)
    return app

app = create_app()
