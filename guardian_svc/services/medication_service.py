"""
Service layer for medication events and the drug catalog.

Events are correlated with readings by time only; nothing here changes a
reading or its classification.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from core.datetime_utils import to_utc, utc_now
from core.exceptions import InvalidReadingError, MedicationNotFoundError
from core.reading_registry import find_drug, interaction_warning, list_drug_categories, list_drugs
from models.medication import Drug, MedicationEvent
from repositories import MedicationRepository

logger = logging.getLogger(__name__)

UNKNOWN_CATEGORY = "other"
UNKNOWN_NOTE = "No special notes"
RECENT_LIMIT = 5


@dataclass(frozen=True)
class DrugInfo:
    """A catalog drug with its interaction warning, if any."""

    drug: Drug
    warning: Optional[str]


class MedicationService:
    """Records medication events and answers catalog lookups."""

    def __init__(self, medication_repository: MedicationRepository):
        self._repo = medication_repository

    def catalog(self, category: Optional[str] = None) -> List[Drug]:
        return list_drugs(category)

    def categories(self) -> List[str]:
        return list_drug_categories()

    def drug_info(self, name: str) -> Optional[DrugInfo]:
        """Catalog entry and interaction warning of a drug name."""
        drug = find_drug(name)
        if drug is None:
            return None
        return DrugInfo(drug=drug, warning=interaction_warning(drug))

    def add_event(self, drug_name: str, timestamp: Optional[datetime] = None) -> MedicationEvent:
        """
        Record a dose.

        Category and note come from the catalog; unknown drugs are filed
        under ``other``.

        Raises:
            InvalidReadingError: If the drug name is empty.
        """
        name = (drug_name or "").strip()
        if not name:
            raise InvalidReadingError("Drug name is required", field="drug_name")

        drug = find_drug(name)
        event = MedicationEvent(
            id=uuid.uuid4().hex,
            drug_name=drug.name if drug else name,
            timestamp=to_utc(timestamp) if timestamp else utc_now(),
            category=drug.category if drug else UNKNOWN_CATEGORY,
            note=drug.side_effect if drug else UNKNOWN_NOTE,
        )
        self._repo.append(event)
        logger.info(f"Recorded medication event {event.id} ({event.category})")
        return event

    def delete_event(self, event_id: str) -> None:
        """
        Delete a medication event.

        Raises:
            MedicationNotFoundError: If no event has that id.
        """
        if not self._repo.delete(event_id):
            raise MedicationNotFoundError(event_id=event_id)
        logger.info(f"Deleted medication event {event_id}")

    def list_events(self) -> List[MedicationEvent]:
        """All events, oldest first."""
        return sorted(self._repo.list(), key=lambda e: to_utc(e.timestamp))

    def list_recent(self, limit: int = RECENT_LIMIT) -> List[MedicationEvent]:
        """The most recent events, newest first."""
        return sorted(self._repo.list(), key=lambda e: to_utc(e.timestamp), reverse=True)[:limit]
