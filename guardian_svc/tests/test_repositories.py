"""
Tests for the key-value store and the write-through repositories.
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from models.medication import MedicationEvent
from models.patient import PatientIdentity
from models.reading import BloodPressureReading, GlucoseReading, GlucoseTiming, ReadingKind
from repositories import InMemoryStore, MedicationRepository, PatientRepository, ReadingRepository
from repositories.patient_repository import PATIENT_KEY
from repositories.reading_repository import STORE_KEYS

T0 = datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)


# =============================================================================
# DATABASE
# =============================================================================

def test_database_round_trip(temp_db):
    assert temp_db.load("missing") is None
    assert temp_db.save("key", {"a": [1, 2], "b": "中文"}) is True
    assert temp_db.load("key") == {"a": [1, 2], "b": "中文"}


def test_database_overwrites(temp_db):
    temp_db.save("key", 1)
    temp_db.save("key", 2)
    assert temp_db.load("key") == 2


def test_database_rejects_unserializable(temp_db):
    assert temp_db.save("key", object()) is False
    assert temp_db.load("key") is None


def test_corrupt_value_reads_as_absent(temp_db):
    conn = temp_db.get_connection()
    conn.execute("INSERT INTO kv_store (key, value, updated_at) VALUES ('bad', '{oops', 'now')")
    conn.commit()
    conn.close()

    assert temp_db.load("bad") is None


# =============================================================================
# PATIENT
# =============================================================================

def test_first_run_stores_placeholder():
    store = InMemoryStore()
    repo = PatientRepository(store)

    assert repo.get() == PatientIdentity.unset()
    assert store.load(PATIENT_KEY)["id"] == "UNSET-1"
    assert repo.get().missing_fields() == ["id", "display_name", "gender", "birth_year"]


def test_patient_survives_reload(temp_db, complete_patient):
    PatientRepository(temp_db).replace(complete_patient)
    assert PatientRepository(temp_db).get() == complete_patient


# =============================================================================
# READINGS
# =============================================================================

def test_append_returns_storage_index(temp_db):
    repo = ReadingRepository(temp_db, ReadingKind.BLOOD_PRESSURE)

    first = repo.append(BloodPressureReading(timestamp=T0, systolic=120, diastolic=80, pulse=70))
    second = repo.append(BloodPressureReading(timestamp=T0, systolic=125, diastolic=82, pulse=71))

    assert (first, second) == (0, 1)
    assert len(ReadingRepository(temp_db, ReadingKind.BLOOD_PRESSURE).list()) == 2


def test_append_rejects_other_kind(temp_db):
    repo = ReadingRepository(temp_db, ReadingKind.BLOOD_PRESSURE)
    with pytest.raises(TypeError):
        repo.append(GlucoseReading(timestamp=T0, value=100, timing=GlucoseTiming.FASTING))


def test_replace_all_clears(temp_db):
    repo = ReadingRepository(temp_db, ReadingKind.GLUCOSE)
    repo.append(GlucoseReading(timestamp=T0, value=100, timing=GlucoseTiming.FASTING))
    repo.replace_all([])

    assert repo.list() == []
    assert temp_db.load(STORE_KEYS[ReadingKind.GLUCOSE]) == []


def test_stored_shape():
    store = InMemoryStore()
    ReadingRepository(store, ReadingKind.GLUCOSE).append(
        GlucoseReading(timestamp=T0, value=110, timing=GlucoseTiming.POST_PRANDIAL, medication_taken=True)
    )
    assert store.load("bsRecords") == [{
        "date": "2025-01-01T08:00:00Z",
        "value": 110,
        "unit": "mg/dL",
        "timing": "post-prandial",
        "medication": True,
    }]


def test_unreadable_records_are_skipped():
    store = InMemoryStore({"bpRecords": [
        {"date": "2025-01-01T08:00:00Z", "systolic": 120, "diastolic": 80, "pulse": 70},
        {"date": "not a date"},
    ]})
    assert len(ReadingRepository(store, ReadingKind.BLOOD_PRESSURE).list()) == 1


def test_failed_write_keeps_memory_state():
    store = MagicMock()
    store.load.return_value = None
    store.save.return_value = False
    repo = ReadingRepository(store, ReadingKind.BLOOD_PRESSURE)

    repo.append(BloodPressureReading(timestamp=T0, systolic=120, diastolic=80, pulse=70))
    assert len(repo.list()) == 1


# =============================================================================
# MEDICATIONS
# =============================================================================

def test_medication_append_and_delete(temp_db):
    repo = MedicationRepository(temp_db)
    repo.append(MedicationEvent(id="e1", drug_name="Metformin", timestamp=T0, category="diabetes", note=""))

    assert MedicationRepository(temp_db).get("e1").drug_name == "Metformin"
    assert repo.delete("e1") is True
    assert repo.delete("e1") is False
    assert MedicationRepository(temp_db).list() == []


def test_legacy_glucose_keys_are_read():
    store = InMemoryStore({"bsRecords": [
        {"dateTime": "2025-01-01T08:00:00Z", "value": 95, "measurementTime": "fasting", "medicationTaken": True},
    ]})
    reading = ReadingRepository(store, ReadingKind.GLUCOSE).list()[0]

    assert reading.timing == GlucoseTiming.FASTING
    assert reading.medication_taken is True
