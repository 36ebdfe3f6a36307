from celery import Celery
from designhub.core.config import settings

celery = Celery(
    "designhub-worker",
    broker=settings.rabbitmq_url,
    backend=settings.redis_url,
    include=["designhub_worker.tasks"],
)

celery.conf.update(
    task_acks_late=True,
    worker_prefetch_multiplier=1,
    task_default_queue="default",
    task_routes={
        "designhub_worker.tasks.propagate_design": {"queue": "cascade"},
    },
)
