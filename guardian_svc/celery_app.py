"""
Celery application for background sync pushes.

Run a worker next to the API:
    celery -A celery_app worker --loglevel=info -Q sync

Redis is both the broker and the result backend. Push results are small
and only kept long enough to inspect a failed dispatch.
"""
from celery import Celery

from core.config import (
    CELERY_ACCEPT_CONTENT,
    CELERY_BROKER_URL,
    CELERY_ENABLE_UTC,
    CELERY_RESULT_BACKEND,
    CELERY_RESULT_SERIALIZER,
    CELERY_TASK_SERIALIZER,
    CELERY_TIMEZONE,
)

SYNC_QUEUE = "sync"

celery_app = Celery(
    "guardian_svc",
    broker=CELERY_BROKER_URL,
    backend=CELERY_RESULT_BACKEND,
    include=["tasks.sync_tasks"],
)

celery_app.conf.update(
    task_serializer=CELERY_TASK_SERIALIZER,
    result_serializer=CELERY_RESULT_SERIALIZER,
    accept_content=CELERY_ACCEPT_CONTENT,
    timezone=CELERY_TIMEZONE,
    enable_utc=CELERY_ENABLE_UTC,
    task_routes={"tasks.sync_tasks.*": {"queue": SYNC_QUEUE}},
    task_time_limit=60,
    result_expires=3600,
)
