"""
Repository for medication events.
"""
import logging
from typing import List, Optional

from models.medication import MedicationEvent
from repositories.base import KeyValueStore

logger = logging.getLogger(__name__)

MEDICATION_KEY = "medRecords"


class MedicationRepository:
    """Medication events in insertion order, written through to the store."""

    def __init__(self, store: KeyValueStore):
        self._store = store
        self._events: List[MedicationEvent] = self._load()

    def _load(self) -> List[MedicationEvent]:
        raw = self._store.load(MEDICATION_KEY)
        if not raw:
            return []
        if not isinstance(raw, list):
            logger.error(f"Stored {MEDICATION_KEY} is not a list, starting empty")
            return []

        events = []
        for item in raw:
            try:
                events.append(MedicationEvent.from_dict(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning(f"Skipping unreadable medication record {item!r}: {e}")
        return events

    def _persist(self) -> None:
        if not self._store.save(MEDICATION_KEY, [event.to_dict() for event in self._events]):
            logger.error(f"Failed to persist {MEDICATION_KEY}, keeping in-memory state")

    def list(self) -> List[MedicationEvent]:
        return list(self._events)

    def get(self, event_id: str) -> Optional[MedicationEvent]:
        for event in self._events:
            if event.id == event_id:
                return event
        return None

    def append(self, event: MedicationEvent) -> None:
        self._events.append(event)
        self._persist()

    def delete(self, event_id: str) -> bool:
        """
        Delete an event by id.

        Returns:
            True if an event was removed.
        """
        remaining = [event for event in self._events if event.id != event_id]
        if len(remaining) == len(self._events):
            return False
        self._events = remaining
        self._persist()
        return True
