"""
Celery configuration for the Mercado backend.

Background work is limited to redelivering notifications whose
first dispatch attempt failed after the business transaction committed.
"""

import os

from celery import Celery


os.environ.setdefault("DJANGO_SETTINGS_MODULE", "mercadoBackend.settings")

app = Celery("mercadoBackend")

# Read every CELERY_* key from the Django settings module.
app.config_from_object("django.conf:settings", namespace="CELERY")

app.autodiscover_tasks()

app.conf.beat_schedule = {
    "retry-failed-notifications": {
        "task": "marketplace.tasks.retry_failed_notifications_task",
        "schedule": 5.0 * 60.0,  # every 5 minutes
        "options": {"expires": 4.0 * 60.0, "queue": "notification_tasks"},
    },
}

app.conf.update(
    task_routes={
        "marketplace.tasks.*": {"queue": "notification_tasks"},
    },
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    result_expires=60 * 60 * 24,
    worker_max_tasks_per_child=1000,
    task_acks_late=True,
    task_reject_on_worker_lost=True,
    task_time_limit=10 * 60,
    task_soft_time_limit=8 * 60,
)
