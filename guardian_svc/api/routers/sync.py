"""
Sync router - live sharing of recent readings with a clinician's viewer.

Architecture:
    HTTP Request → Router (this file) → SyncService → Celery push task → Redis

A clinician opens the viewer URL; the viewer subscribes to the topic and
reads the retained payload for the latest snapshot.
"""
import json
import logging
from dataclasses import asdict
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends

from core.dependencies import get_sync_publisher, get_sync_service
from models.reading import ReadingKind
from schemas import SyncDispatchResponse, SyncStatusResponse
from services.sync_service import RedisPublisher, SyncService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/sync", tags=["Sync"])


@router.get(
    "",
    response_model=SyncStatusResponse,
    summary="Sync status",
    description="The sync topic, the viewer link for the clinician and whether exports push automatically."
)
async def sync_status(sync_service: SyncService = Depends(get_sync_service)):
    """
    Get the sync topic and viewer link.

    The topic is created on first use and stays the same across restarts.
    """
    return SyncStatusResponse(**sync_service.status())


@router.post(
    "/{kind}/push",
    response_model=SyncDispatchResponse,
    status_code=202,
    summary="Push the latest snapshot",
    description="Bundle the most recent readings of a kind and queue them for publishing to the sync topic."
)
async def push_snapshot(
    kind: ReadingKind,
    sync_service: SyncService = Depends(get_sync_service)
):
    """
    Push the latest snapshot of a kind.

    ``dispatched`` is false when the task could not be queued; the request
    still succeeds.

    Raises:
    - 400 Bad Request: If the patient is incomplete (IncompletePatientError)
    - 503 Service Unavailable: If there is no reading of this kind (SyncUnavailableError)
    """
    return SyncDispatchResponse(**asdict(sync_service.push_latest(kind)))


@router.get(
    "/retained",
    summary="Retained snapshot",
    description="The last payload published to the sync topic, as the viewer would receive it."
)
async def retained_snapshot(
    sync_service: SyncService = Depends(get_sync_service),
    publisher: RedisPublisher = Depends(get_sync_publisher)
) -> Optional[Dict[str, Any]]:
    payload = publisher.fetch_retained(sync_service.topic)
    return json.loads(payload) if payload else None
