"""
Best-effort bundle sync to a shared topic.

Architecture:
    ExportService / sync router → SyncService.push()
        → dispatcher (default: Celery task tasks.sync_tasks.push_bundle)
            → RedisPublisher.publish()

The service only builds and hands off payloads. Retrying a failed publish
is the Celery task's job; nothing here waits or retries.

A clinician follows the patient by opening the viewer page with the topic
id; the last published payload is retained so a viewer that connects late
still gets the latest bundle.
"""
import json
import logging
import secrets
import string
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional
from urllib.parse import urljoin

import redis

from core.config import REDIS_URL, settings
from core.exceptions import IncompletePatientError, SyncUnavailableError
from core.datetime_utils import to_utc
from models.reading import ReadingKind
from repositories.base import KeyValueStore
from repositories.patient_repository import PatientRepository
from repositories.reading_repository import ReadingRepository
from schemas.fhir import Bundle
from services.bundle_assembler import assemble_bundle

logger = logging.getLogger(__name__)

TOPIC_KEY = "cig_sync_topic"
TOPIC_SUFFIX_LENGTH = 8
TOPIC_ALPHABET = string.ascii_lowercase + string.digits
RETAINED_KEY_PREFIX = "retained:"
VIEWER_PAGE = "doctor_view.html"

Dispatcher = Callable[[str, str], Optional[str]]


# =============================================================================
# TRANSPORT
# =============================================================================

class RedisPublisher:
    """
    Publish payloads on Redis pub/sub channels.

    ``retained`` also stores the payload under ``retained:<topic>`` so it
    can be fetched after the fact.
    """

    def __init__(self, redis_url: str = REDIS_URL, client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self._client = client

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.from_url(self.redis_url, socket_timeout=5, decode_responses=True)
        return self._client

    def publish(self, topic: str, payload: str, retained: bool = True) -> bool:
        """
        Publish a payload.

        Returns:
            True if the broker accepted it, False on connection errors.
        """
        try:
            if retained:
                self.client.set(f"{RETAINED_KEY_PREFIX}{topic}", payload)
            receivers = self.client.publish(topic, payload)
        except redis.RedisError as e:
            logger.warning(f"Failed to publish sync payload: {e}", extra={"topic": topic})
            return False
        logger.info(
            "Published sync payload",
            extra={"topic": topic, "bytes": len(payload), "receivers": receivers}
        )
        return True

    def fetch_retained(self, topic: str) -> Optional[str]:
        """Last retained payload of a topic, None when absent or unreachable."""
        try:
            return self.client.get(f"{RETAINED_KEY_PREFIX}{topic}")
        except redis.RedisError as e:
            logger.warning(f"Failed to fetch retained payload: {e}", extra={"topic": topic})
            return None


def enqueue_push(topic: str, payload: str) -> Optional[str]:
    """Default dispatcher: queue the Celery push task, return its id."""
    from tasks.sync_tasks import push_bundle

    task = push_bundle.delay(topic=topic, payload=payload)
    return task.id


# =============================================================================
# SERVICE
# =============================================================================

@dataclass(frozen=True)
class SyncDispatch:
    """Outcome of handing a bundle to the dispatcher."""

    topic: str
    bundle_id: str
    dispatched: bool
    task_id: Optional[str] = None


class SyncService:
    """Builds sync snapshots and hands them to the transport."""

    def __init__(
        self,
        store: KeyValueStore,
        patient_repository: PatientRepository,
        reading_repositories: Dict[ReadingKind, ReadingRepository],
        dispatcher: Optional[Dispatcher] = None,
        snapshot_size: int = settings.guardian_sync_snapshot_size,
        topic_prefix: str = settings.guardian_sync_topic_prefix,
        viewer_base_url: str = settings.guardian_viewer_base_url,
        enabled: bool = settings.guardian_sync_enabled,
    ):
        """
        Initialize the service.

        Args:
            store: Key-value store holding the topic id.
            patient_repository: Source of the patient identity.
            reading_repositories: One repository per reading kind.
            dispatcher: Callable taking (topic, payload). Queues the Celery
                task by default.
            snapshot_size: Number of most recent readings in a snapshot.
            topic_prefix: Prefix of generated topic ids.
            viewer_base_url: URL of the patient page the viewer sits next to.
            enabled: Whether exports push their bundle automatically.
        """
        self._store = store
        self.patient_repository = patient_repository
        self.reading_repositories = reading_repositories
        self.dispatcher = dispatcher or enqueue_push
        self.snapshot_size = snapshot_size
        self.topic_prefix = topic_prefix
        self.viewer_base_url = viewer_base_url
        self.enabled = enabled
        self._topic: Optional[str] = None

    @property
    def topic(self) -> str:
        """The sync topic id, created once and persisted."""
        if self._topic is None:
            stored = self._store.load(TOPIC_KEY)
            if isinstance(stored, str) and stored:
                self._topic = stored
            else:
                suffix = "".join(secrets.choice(TOPIC_ALPHABET) for _ in range(TOPIC_SUFFIX_LENGTH))
                self._topic = f"{self.topic_prefix}{suffix}"
                if not self._store.save(TOPIC_KEY, self._topic):
                    logger.error("Failed to persist sync topic, it will change on restart")
                logger.info("Created sync topic", extra={"topic": self._topic})
        return self._topic

    def viewer_url(self, base_url: Optional[str] = None) -> str:
        """
        Link a clinician opens to follow the topic.

        The viewer page lives next to the patient page: ``.../index.html``
        becomes ``.../doctor_view.html?topic=<id>``.
        """
        base = (base_url or self.viewer_base_url).split("?")[0].split("#")[0]
        return f"{urljoin(base, VIEWER_PAGE)}?topic={self.topic}"

    def build_snapshot(self, kind: ReadingKind, now: Optional[datetime] = None) -> Optional[Bundle]:
        """
        Bundle the most recent readings of a kind.

        Returns:
            Bundle, or None when the patient is incomplete or nothing is
            recorded yet.
        """
        patient = self.patient_repository.get()
        if not patient.is_complete():
            logger.debug("Patient incomplete, no sync snapshot")
            return None

        readings = self.reading_repositories[kind].list()
        if not readings:
            return None

        recent = sorted(readings, key=lambda r: to_utc(r.timestamp))[-self.snapshot_size:]
        return assemble_bundle(patient, recent, kind, now=now)

    def push(self, bundle: Bundle) -> SyncDispatch:
        """
        Hand a bundle to the dispatcher.

        A dispatcher failure is logged and reported, never raised.
        """
        topic = self.topic
        payload = json.dumps(bundle.to_fhir_json(), ensure_ascii=False, separators=(",", ":"))
        try:
            task_id = self.dispatcher(topic, payload)
        except Exception as e:
            logger.error(
                f"Failed to dispatch sync payload: {e}",
                extra={"topic": topic, "bundle_id": bundle.id},
                exc_info=True
            )
            return SyncDispatch(topic=topic, bundle_id=bundle.id, dispatched=False)

        logger.info("Dispatched sync payload", extra={"topic": topic, "bundle_id": bundle.id, "task_id": task_id})
        return SyncDispatch(topic=topic, bundle_id=bundle.id, dispatched=True, task_id=task_id)

    def push_latest(self, kind: ReadingKind, now: Optional[datetime] = None) -> SyncDispatch:
        """
        Build the snapshot of a kind and push it.

        Raises:
            IncompletePatientError: If the patient identity is not filled in.
            SyncUnavailableError: If there is no reading to sync.
        """
        patient = self.patient_repository.get()
        if not patient.is_complete():
            raise IncompletePatientError(missing=patient.missing_fields())

        bundle = self.build_snapshot(kind, now=now)
        if bundle is None:
            raise SyncUnavailableError(f"No {kind.value} readings to sync", kind=kind.value)
        return self.push(bundle)

    def status(self) -> Dict[str, Any]:
        return {
            "topic": self.topic,
            "viewer_url": self.viewer_url(),
            "snapshot_size": self.snapshot_size,
            "enabled": self.enabled,
        }
