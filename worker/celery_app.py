from celery import Celery
from app.settings import settings

celery_app = Celery(
    "lecture-pipeline",
    broker=str(settings.CELERY_BROKER_URL),
    backend=str(settings.CELERY_RESULT_BACKEND),
)

celery_app.conf.update(
    task_track_started=True,
    # at-least-once: a task lost with its worker is redelivered,
    # the status claims in worker.status make the rerun a no-op
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_ignore_result=True,
    broker_connection_retry_on_startup=True,
    worker_prefetch_multiplier=1,
    timezone="UTC",
    enable_utc=True,
    include=["worker.tasks"],
)
