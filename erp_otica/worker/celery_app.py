# erp_otica/worker/celery_app.py
from celery import Celery, signals
from celery.schedules import crontab

from erp_otica.core.config import settings
from erp_otica.core.logging_config import setup_logging

celery_app = Celery("erp_otica_worker", broker=settings.CELERY_BROKER_URL, backend=settings.CELERY_RESULT_BACKEND)
celery_app.conf.include = ["erp_otica.worker.tasks_boletos"]

celery_app.conf.task_serializer = "json"
celery_app.conf.result_serializer = "json"
celery_app.conf.accept_content = ["json"]
celery_app.conf.enable_utc = True
celery_app.conf.timezone = "UTC"
# ack só ao terminar; mark_overdue é idempotente
celery_app.conf.task_acks_late = True
celery_app.conf.worker_prefetch_multiplier = 1
celery_app.conf.result_expires = 60 * 60 * 24

celery_app.conf.beat_schedule = {
    "boletos-mark-overdue-daily": {
        "task": "boletos.mark_overdue",
        "schedule": crontab(hour=0, minute=5),
    },
}

@signals.setup_logging.connect
def _use_loguru(**kwargs):
    # Conectar o sinal impede o Celery de instalar os próprios handlers
    setup_logging()
