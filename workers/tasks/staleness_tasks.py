"""
Staleness sweep task.

Removes repositories whose last push falls outside the staleness horizon.
"""

from celery import shared_task

from repoverse.logging import get_logger

logger = get_logger("worker.staleness")


@shared_task(
    bind=True,
    name="workers.tasks.staleness_tasks.sweep_stale",
    max_retries=3,
    default_retry_delay=60,
)
def sweep_stale_task(self, horizon_days: int | None = None) -> dict:
    """
    Delete stale repositories and refresh cluster counts.

    Args:
        horizon_days: Optional override of STALENESS_HORIZON_DAYS

    Returns:
        Dict with the number of removed repositories
    """
    from repoverse.curation import sweep_stale

    logger.info("sweep_task_started", horizon_days=horizon_days)

    try:
        result = sweep_stale(horizon_days)
    except Exception as e:
        logger.error("sweep_task_failed", error=str(e))
        raise self.retry(exc=e)

    logger.info("sweep_task_complete", removed=result["removed"])
    return result
