"""
Service layer for the patient identity.

Architecture:
    API Layer (routers) → PatientService → PatientRepository → KeyValueStore

Changing the identity starts a new log: every stored blood pressure and
glucose reading is cleared so readings never get attributed to the wrong
person. Medication events are kept.
"""
import logging
from typing import Dict

from core.exceptions import IncompletePatientError
from models.patient import Gender, PatientIdentity
from models.reading import ReadingKind
from repositories import PatientRepository, ReadingRepository

logger = logging.getLogger(__name__)


class PatientService:
    """Reads and replaces the patient identity."""

    def __init__(
        self,
        patient_repository: PatientRepository,
        reading_repositories: Dict[ReadingKind, ReadingRepository],
    ):
        """
        Initialize the patient service.

        Args:
            patient_repository: Holder of the identity.
                               Injected via core.dependencies.get_patient_service().
            reading_repositories: Repositories cleared when the identity changes.
        """
        self._repo = patient_repository
        self._reading_repos = reading_repositories

    def get_patient(self) -> PatientIdentity:
        return self._repo.get()

    def update_patient(
        self,
        patient_id: str,
        display_name: str,
        gender: Gender,
        birth_year: int,
    ) -> PatientIdentity:
        """
        Replace the patient identity and clear all readings.

        Raises:
            IncompletePatientError: If any field still holds a placeholder value.
        """
        patient = PatientIdentity(
            id=patient_id.strip(),
            display_name=display_name.strip(),
            gender=gender,
            birth_year=birth_year,
        )
        missing = patient.missing_fields()
        if missing:
            raise IncompletePatientError(missing=missing)

        self._repo.replace(patient)
        for repo in self._reading_repos.values():
            repo.replace_all([])
        logger.info("Patient identity replaced, readings cleared", extra={"patient_id": patient.id})
        return patient
