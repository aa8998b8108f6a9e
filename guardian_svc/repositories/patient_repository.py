"""
Repository for the patient identity.

The identity is one JSON document. On first run the sentinel identity is
created and persisted.
"""
import logging

from models.patient import PatientIdentity
from repositories.base import KeyValueStore

logger = logging.getLogger(__name__)

PATIENT_KEY = "patient"


class PatientRepository:
    """Holds the current patient identity, written through to the store."""

    def __init__(self, store: KeyValueStore):
        """
        Initialize the repository and load the stored identity.

        Args:
            store: Key-value store. Injected via core.dependencies.
        """
        self._store = store
        self._patient = self._load()

    def _load(self) -> PatientIdentity:
        raw = self._store.load(PATIENT_KEY)
        if raw:
            try:
                return PatientIdentity.from_dict(raw)
            except (AttributeError, TypeError, ValueError) as e:
                logger.warning(f"Stored patient is unreadable, starting from defaults: {e}")

        patient = PatientIdentity.unset()
        if not self._store.save(PATIENT_KEY, patient.to_dict()):
            logger.error("Failed to persist default patient, keeping in-memory state")
        return patient

    def get(self) -> PatientIdentity:
        return self._patient

    def replace(self, patient: PatientIdentity) -> None:
        """Replace the identity as a whole and persist it."""
        self._patient = patient
        if not self._store.save(PATIENT_KEY, patient.to_dict()):
            logger.error("Failed to persist patient, keeping in-memory state")
