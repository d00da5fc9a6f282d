# erp_otica/core/rate_limit.py

from fastapi import Request, status
from fastapi.responses import JSONResponse
from loguru import logger
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from erp_otica.core.config import settings

LOGIN_RATE_LIMIT_MESSAGE = (
    "Muitas tentativas de login a partir deste IP. "
    "Por favor, tente novamente após 15 minutos."
)
LOGIN_RATE_LIMIT = f"{settings.LOGIN_RATE_LIMIT_ATTEMPTS} per {settings.LOGIN_RATE_LIMIT_WINDOW_MINUTES} minutes"

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[settings.DEFAULT_RATE_LIMIT],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    in_memory_fallback_enabled=True, # Redis fora do ar não derruba o login
)

async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    logger.bind(client_ip=get_remote_address(request)).warning(
        f"Rate limit exceeded on {request.url.path}: {exc.detail}"
    )
    return JSONResponse(status_code=status.HTTP_429_TOO_MANY_REQUESTS, content={"detail": exc.detail})
