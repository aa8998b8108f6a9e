"""
Celery tasks for bundle sync.

Note: Celery tasks run outside the FastAPI request context, so they cannot
use FastAPI's Depends() mechanism. The publisher is created directly.

Retry policy:
    A failed publish is retried after a fixed delay
    (GUARDIAN_SYNC_RETRY_DELAY seconds) at most GUARDIAN_SYNC_MAX_RETRIES
    times. After that the payload is dropped; the next export or manual
    push sends a fresh snapshot anyway.
"""
import logging
from typing import Any, Dict, Optional

from celery import shared_task

from core.config import settings
from core.exceptions import SyncUnavailableError
from services.sync_service import RedisPublisher

logger = logging.getLogger(__name__)

MAX_RETRIES = settings.guardian_sync_max_retries
RETRY_DELAY = settings.guardian_sync_retry_delay


def _record_task_metrics(success: bool) -> None:
    """Record task completion in the in-process metrics collector."""
    try:
        from core.middleware import get_metrics_collector
        get_metrics_collector().record_sync_push(success=success)
    except Exception as e:
        logger.warning(f"Failed to record task metrics: {e}")


def publish_payload(topic: str, payload: str, publisher: Optional[RedisPublisher] = None) -> None:
    """
    Publish a payload once.

    Raises:
        SyncUnavailableError: If the broker did not accept the payload.
    """
    publisher = publisher or RedisPublisher()
    if not publisher.publish(topic, payload, retained=True):
        raise SyncUnavailableError(f"Broker rejected payload for topic {topic}", topic=topic)


@shared_task(bind=True, max_retries=MAX_RETRIES)
def push_bundle(self, topic: str, payload: str) -> Dict[str, Any]:
    """
    Publish a serialized bundle on its sync topic.

    Args:
        self: Celery task instance (bound task).
        topic: Sync topic id.
        payload: Compact FHIR JSON of the bundle.

    Returns:
        dict: Topic, payload size and attempt count.

    Raises:
        Retry: While attempts remain, after a fixed delay.
    """
    try:
        publish_payload(topic, payload)
    except SyncUnavailableError as exc:
        if self.request.retries >= MAX_RETRIES:
            logger.error(
                "Max retries exhausted publishing sync payload",
                extra={"task_id": self.request.id, "topic": topic, "retries": self.request.retries}
            )
            _record_task_metrics(success=False)
        else:
            logger.warning(
                "Retrying sync publish",
                extra={"task_id": self.request.id, "topic": topic, "retry_count": self.request.retries + 1}
            )
        raise self.retry(exc=exc, countdown=RETRY_DELAY)

    logger.info(
        "Published sync payload",
        extra={"task_id": self.request.id, "topic": topic, "bytes": len(payload)}
    )
    _record_task_metrics(success=True)
    return {
        "topic": topic,
        "bytes": len(payload),
        "attempts": self.request.retries + 1,
    }
