"""
Celery Beat schedule configuration.

Defines periodic tasks for:
- Daily staleness sweep
- Daily full curation (after the sweep)
"""

from celery.schedules import crontab

from repoverse.config import get_settings

settings = get_settings()


def get_beat_schedule():
    """
    Get the Celery Beat schedule configuration.

    Hours come from SCHEDULER_SWEEP_HOUR and SCHEDULER_CURATION_HOUR (UTC).

    Returns:
        Dictionary of scheduled tasks
    """
    return {
        "sweep-stale-repos-daily": {
            "task": "workers.tasks.staleness_tasks.sweep_stale",
            "schedule": crontab(hour=settings.scheduler_sweep_hour, minute=0),
            "args": [],
            "kwargs": {},
            "options": {"queue": "staleness"},
        },
        "curate-all-daily": {
            "task": "workers.tasks.curation_tasks.curate_all",
            "schedule": crontab(hour=settings.scheduler_curation_hour, minute=0),
            "args": [],
            "kwargs": {"include_facets": True},
            "options": {"queue": "curation"},
        },
    }


def apply_beat_schedule(celery_app):
    """
    Apply the beat schedule to a Celery app.

    Args:
        celery_app: Celery application instance
    """
    if settings.enable_scheduler:
        celery_app.conf.beat_schedule = get_beat_schedule()
        celery_app.conf.beat_schedule_filename = "celerybeat-schedule"
