"""
Domain models for the guardian service.

Plain dataclasses and enums shared by repositories and services.
"""
from models.analysis import Finding, FindingSeverity, SeverityTier, TierStatus
from models.medication import Drug, MedicationEvent
from models.patient import Gender, PatientIdentity
from models.reading import (
    BloodPressureReading,
    GlucoseReading,
    GlucoseTiming,
    Reading,
    ReadingKind,
    kind_of,
    reading_from_dict,
)

__all__ = [
    "Finding",
    "FindingSeverity",
    "SeverityTier",
    "TierStatus",
    "Drug",
    "MedicationEvent",
    "Gender",
    "PatientIdentity",
    "BloodPressureReading",
    "GlucoseReading",
    "GlucoseTiming",
    "Reading",
    "ReadingKind",
    "kind_of",
    "reading_from_dict",
]
