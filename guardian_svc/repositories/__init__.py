"""
Repository layer for persistence.

Repositories keep the session state in memory and write it through to a
key-value store. All storage access is encapsulated here.
"""
from repositories.base import Database, InMemoryStore, KeyValueStore
from repositories.medication_repository import MedicationRepository
from repositories.patient_repository import PatientRepository
from repositories.reading_repository import ReadingRepository

__all__ = [
    "Database",
    "InMemoryStore",
    "KeyValueStore",
    "MedicationRepository",
    "PatientRepository",
    "ReadingRepository",
]
