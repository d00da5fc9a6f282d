# erp_otica/core/logging_config.py

import contextvars
import logging
import sys
import time
import uuid

from fastapi import Request
from loguru import logger

from erp_otica.core.config import settings

trace_id_var: contextvars.ContextVar[str] = contextvars.ContextVar("trace_id", default="unset")

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}:{function}:{line}</cyan> | "
    "<magenta>TID:{extra[trace_id]: >12.12}</magenta> | "
    "<level>{message}</level>"
)
# Bibliotecas que falam demais em INFO/DEBUG
QUIET_LOGGERS = ("pymongo", "motor", "httpx", "passlib", "uvicorn.access")

class InterceptHandler(logging.Handler):
    """Redireciona o logging padrão (uvicorn, celery, pymongo) para o loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame, depth = frame.f_back, depth + 1
        logger.opt(depth=depth, exception=record.exc_info).bind(trace_id=trace_id_var.get()).log(level, record.getMessage())

def setup_logging() -> None:
    level = settings.LOG_LEVEL
    logger.remove()
    logger.configure(extra={"trace_id": "unset"})
    if settings.LOG_JSON:
        logger.add(sys.stdout, level=level, serialize=True, enqueue=True, backtrace=False, diagnose=False)
    else:
        # diagnose mostra valores de variáveis: só em DEBUG
        logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, enqueue=True, backtrace=True, diagnose=level == "DEBUG", colorize=True)

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    logger.success(f"Logging ready (level={level}, json={settings.LOG_JSON})")

async def add_trace_id_middleware(request: Request, call_next):
    """Um trace id por requisição: vem do X-Request-ID ou é gerado, e volta em X-Trace-ID."""
    trace_id = request.headers.get("X-Request-ID") or f"req_{uuid.uuid4().hex[:12]}"
    token = trace_id_var.set(trace_id)
    started = time.perf_counter()
    route = f"{request.method} {request.url.path}"
    try:
        with logger.contextualize(trace_id=trace_id):
            logger.debug(f"--> {route} from {request.client.host if request.client else '-'}")
            try:
                response = await call_next(request)
            except Exception:
                logger.exception(f"<-- {route} crashed after {(time.perf_counter() - started) * 1000:.1f}ms")
                raise
            logger.info(f"<-- {route} {response.status_code} in {(time.perf_counter() - started) * 1000:.1f}ms")
    finally:
        trace_id_var.reset(token)
    response.headers["X-Trace-ID"] = trace_id
    return response
