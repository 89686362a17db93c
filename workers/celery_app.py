"""
Celery application configuration.

Configures Celery with:
- Redis as broker and result backend
- Task routing to the curation and staleness queues
- Late acknowledgement so interrupted passes are retried
"""

from celery import Celery
from celery.signals import worker_process_init
from kombu import Exchange, Queue

from repoverse.config import get_settings
from workers.schedules import apply_beat_schedule

settings = get_settings()

celery_app = Celery(
    "repoverse",
    broker=settings.celery_broker_url,
    backend=settings.celery_result_backend,
    include=[
        "workers.tasks.curation_tasks",
        "workers.tasks.staleness_tasks",
    ],
)

# =============================================================================
# Queue Configuration
# =============================================================================

default_exchange = Exchange("default", type="direct")
curation_exchange = Exchange("curation", type="direct")
staleness_exchange = Exchange("staleness", type="direct")

celery_app.conf.task_queues = (
    Queue(
        "default",
        default_exchange,
        routing_key="default",
        queue_arguments={"x-max-priority": 10},
    ),
    Queue(
        "curation",
        curation_exchange,
        routing_key="curation",
        queue_arguments={"x-max-priority": 10},
    ),
    Queue(
        "staleness",
        staleness_exchange,
        routing_key="staleness",
        queue_arguments={"x-max-priority": 10},
    ),
)

celery_app.conf.task_default_queue = "default"
celery_app.conf.task_default_exchange = "default"
celery_app.conf.task_default_routing_key = "default"
celery_app.conf.task_default_priority = 5

# =============================================================================
# Task Routing
# =============================================================================

celery_app.conf.task_routes = {
    # One curation pass at a time per worker; GitHub quota is shared
    "workers.tasks.curation_tasks.*": {
        "queue": "curation",
        "routing_key": "curation",
        "priority": 5,
    },
    "workers.tasks.staleness_tasks.*": {
        "queue": "staleness",
        "routing_key": "staleness",
        "priority": 8,
    },
}

# celery -A workers worker -Q curation -c 1 --prefetch-multiplier=1
# celery -A workers worker -Q staleness -c 1 --prefetch-multiplier=1

# =============================================================================
# Serialization, limits and acknowledgement
# =============================================================================

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    worker_prefetch_multiplier=1,
    broker_connection_retry_on_startup=True,
    result_expires=86400,
    # The job enforces its own deadline; the hard limit is a backstop
    task_soft_time_limit=settings.curation_job_timeout_seconds + 60,
    task_time_limit=settings.curation_job_timeout_seconds + 300,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    worker_hijack_root_logger=False,
    task_send_sent_event=True,
)


@worker_process_init.connect
def setup_worker_logging(**kwargs):
    """Configure structured logging and the database when a worker starts."""
    from repoverse.db import db
    from repoverse.logging import configure_celery_logging, configure_logging

    configure_logging(level="INFO", role="worker")
    configure_celery_logging()
    db.initialize()
    db.create_all_tables()


apply_beat_schedule(celery_app)
