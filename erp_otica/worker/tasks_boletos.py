# erp_otica/worker/tasks_boletos.py
import asyncio
import uuid
from datetime import datetime
from typing import Optional

from loguru import logger

from erp_otica.core.database import MongoDbContext
from erp_otica.core.logging_config import trace_id_var
from erp_otica.modules.boletos.repository import BoletoRepository
from erp_otica.modules.boletos.services import BoletoService
from erp_otica.worker.celery_app import celery_app

async def mark_overdue_boletos(db, now: Optional[datetime] = None) -> int:
    """Núcleo assíncrono da tarefa, separado para rodar com qualquer banco."""
    return await BoletoService().mark_overdue(BoletoRepository(db), now=now)

async def _run_mark_overdue() -> int:
    async with MongoDbContext() as mongo:
        return await mark_overdue_boletos(mongo.get_db())

@celery_app.task(bind=True, name="boletos.mark_overdue", max_retries=3, acks_late=True)
def mark_overdue_task(self, trace_id: Optional[str] = None):
    """Marca como vencidos os boletos em aberto com vencimento anterior a hoje."""
    trace_id = trace_id or f"celery_{uuid.uuid4().hex[:12]}"
    token = trace_id_var.set(trace_id)
    log = logger.bind(trace_id=trace_id, task="boletos.mark_overdue")
    try:
        count = asyncio.run(_run_mark_overdue())
        log.success(f"{count} boleto(s) marked overdue.")
        return {"marked_overdue": count}
    except (ConnectionError, RuntimeError) as e:
        log.error(f"Database unavailable, retrying: {e}")
        raise self.retry(exc=e, countdown=300)
    finally:
        trace_id_var.reset(token)
