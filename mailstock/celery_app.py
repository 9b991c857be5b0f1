"""Celery application configuration."""

from celery import Celery

from mailstock.config import get_settings

settings = get_settings()

app = Celery(
    "mailstock",
    broker=settings.redis_url,
    backend=settings.redis_url,
    include=["mailstock.tasks.ledger"],
)

# Celery configuration
app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=300,  # 5 minutes max per task
    task_soft_time_limit=240,  # 4 minutes soft limit
    beat_schedule={
        # Periodic reconciliation: keeps the current week in step with the ledger
        "recompute-current-week": {
            "task": "mailstock.tasks.ledger.recompute_current_week",
            "schedule": float(settings.recompute_interval_seconds),
        },
    },
)
