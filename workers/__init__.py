"""
Celery Background Workers.

Runs the offline curation job and the staleness sweep.

Usage:
    celery -A workers worker --loglevel=info
    celery -A workers worker -Q curation --loglevel=info
    celery -A workers beat --loglevel=info
"""

from workers.celery_app import celery_app

__all__ = ["celery_app"]
