"""
Service layer for business logic.

This module contains the application services that orchestrate
repositories and the pure clinical components (classifier, trend
analyzer, bundle assembler, renderer, projector).

Note: Some services are not re-exported here to avoid circular imports.
Import them directly from their modules:
- from services.sync_service import SyncService, RedisPublisher
- from services.recognition_service import RecognitionService
- from services.graph import TrendChartService
"""
from services.export_service import ExportService
from services.medication_service import MedicationService
from services.patient_service import PatientService
from services.reading_service import ReadingService

__all__ = [
    "ExportService",
    "MedicationService",
    "PatientService",
    "ReadingService",
]
