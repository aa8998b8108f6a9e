"""
Pydantic schemas for API request/response validation and the exported
FHIR bundle.
"""
from schemas.export import (
    ExportRequest,
    ExportResponse,
    QrShareResponse,
    SyncDispatchResponse,
    SyncStatusResponse,
)
from schemas.fhir import Bundle
from schemas.medication import DrugResponse, MedicationCreate, MedicationEventResponse
from schemas.patient import PatientResponse, PatientUpdate
from schemas.reading import (
    AnalysisResponse,
    BloodPressureCreate,
    FindingResponse,
    GlucoseCreate,
    ReadingResponse,
    TierStatusResponse,
)

__all__ = [
    # Export and sync schemas
    "ExportRequest",
    "ExportResponse",
    "QrShareResponse",
    "SyncDispatchResponse",
    "SyncStatusResponse",
    # FHIR document
    "Bundle",
    # Medication schemas
    "DrugResponse",
    "MedicationCreate",
    "MedicationEventResponse",
    # Patient schemas
    "PatientResponse",
    "PatientUpdate",
    # Reading schemas
    "AnalysisResponse",
    "BloodPressureCreate",
    "FindingResponse",
    "GlucoseCreate",
    "ReadingResponse",
    "TierStatusResponse",
]
