"""
Service layer for exporting readings to a clinician.

Architecture:
    exports router → ExportService
        → ReadingService.select()          (selection by storage index)
        → assemble_bundle()                (clinical document)
        → render_text() / build_qr_share() (share formats)
        → SyncService.push()               (optional, best effort)

Every export produces a new bundle with a fresh id.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Iterable, Optional

from core.exceptions import IncompletePatientError
from models.reading import ReadingKind
from repositories import PatientRepository
from schemas.fhir import Bundle
from services.bundle_assembler import assemble_bundle, assemble_medication_bundle
from services.medication_service import MedicationService
from services.qr_payload import QrShare, build_qr_share
from services.reading_service import ReadingService
from services.sync_service import SyncDispatch, SyncService
from services.text_renderer import build_mailto, render_text

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExportResult:
    """One export in every share format."""

    kind: ReadingKind
    bundle: Bundle
    text: str
    qr: QrShare
    mailto: Optional[str] = None
    sync: Optional[SyncDispatch] = None


class ExportService:
    """Turns a selection of readings into a shareable clinical document."""

    def __init__(
        self,
        patient_repository: PatientRepository,
        reading_service: ReadingService,
        medication_service: MedicationService,
        sync_service: Optional[SyncService] = None,
        display_tz: Optional[tzinfo] = None,
    ):
        """
        Initialize the export service.

        Args:
            patient_repository: Source of the patient identity.
            reading_service: Resolves selected indices to readings.
            medication_service: Source of medication events.
            sync_service: Pushes each export when its sync is enabled.
            display_tz: Timezone of the rendered report.
        """
        self._patients = patient_repository
        self._readings = reading_service
        self._medications = medication_service
        self._sync = sync_service
        self.display_tz = display_tz

    def _complete_patient(self):
        patient = self._patients.get()
        missing = patient.missing_fields()
        if missing:
            raise IncompletePatientError(missing=missing)
        return patient

    def export(
        self,
        kind: ReadingKind,
        indices: Iterable[int],
        recipient: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ExportResult:
        """
        Export selected readings.

        Args:
            kind: Reading kind of the selection.
            indices: Storage indices of the selected readings.
            recipient: Email address for the mailto link (optional).
            now: Creation instant of the bundle (defaults to now).

        Returns:
            ExportResult: Bundle, text report, QR share and optional mailto/sync.

        Raises:
            IncompletePatientError: If the patient identity is not filled in.
            EmptySelectionError: If no reading is selected.
        """
        patient = self._complete_patient()
        readings = self._readings.select(kind, indices)

        bundle = assemble_bundle(patient, readings, kind, now=now)
        text = render_text(bundle, kind, self.display_tz)
        qr = build_qr_share(bundle)
        mailto = build_mailto(recipient, kind, text) if recipient else None

        sync = None
        if self._sync is not None and self._sync.enabled:
            sync = self._sync.push(bundle)

        logger.info(
            "Exported readings",
            extra={
                "bundle_id": bundle.id,
                "kind": kind.value,
                "readings": len(readings),
                "qr_partial": qr.partial,
                "synced": bool(sync and sync.dispatched),
                "recipient": recipient,
            }
        )
        return ExportResult(kind=kind, bundle=bundle, text=text, qr=qr, mailto=mailto, sync=sync)

    def export_medications(self, now: Optional[datetime] = None) -> Bundle:
        """
        Export every medication event as MedicationStatement resources.

        Raises:
            IncompletePatientError: If the patient identity is not filled in.
        """
        patient = self._complete_patient()
        return assemble_medication_bundle(patient, self._medications.list_events(), now=now)
