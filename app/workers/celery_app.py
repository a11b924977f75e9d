from celery import Celery

from app.core.config import get_settings

MAINTENANCE_QUEUE = "q_maintenance"

settings = get_settings()

celery_app = Celery(
    "spot_engine",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=["app.workers.tasks.moderation_maintenance"],
)

celery_app.conf.update(
    task_default_queue=MAINTENANCE_QUEUE,
    task_routes={"app.workers.tasks.moderation_maintenance.*": {"queue": MAINTENANCE_QUEUE}},
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    # A batch that overruns its beat interval is cut off and picked up by the next run.
    task_soft_time_limit=240,
    task_time_limit=300,
    result_expires=3600,
    task_serializer="json",
    result_serializer="json",
    accept_content=["json"],
    timezone="UTC",
    enable_utc=True,
)
