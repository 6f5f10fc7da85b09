from celery import Celery
from app.core.config import settings

celery = Celery(
    "tour-admin-worker",
    broker=settings.rabbitmq_url,
    backend=settings.redis_url,
    include=["worker.tasks"],
)

celery.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_default_queue="default",
    task_routes={
        "worker.tasks.sweep_orphaned_assets": {"queue": "maintenance"},
    },
    beat_schedule={
        "sweep-orphaned-assets": {
            "task": "worker.tasks.sweep_orphaned_assets",
            "schedule": settings.orphan_sweep_interval_seconds,
        },
    },
)
