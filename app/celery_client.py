# app/celery_client.py
from celery import Celery
from app.settings import settings

celery_app = Celery(
    "lecture-pipeline",
    broker=str(settings.CELERY_BROKER_URL),
    backend=str(settings.CELERY_RESULT_BACKEND),
)

# Client-side config: the API only enqueues trigger tasks, it never runs them
celery_app.conf.update(
    broker_connection_retry_on_startup=True,
    task_ignore_result=True,
    timezone="UTC",
    enable_utc=True,
)
