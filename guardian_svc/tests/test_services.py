"""
Tests for the patient, reading, medication and export services.
"""
from datetime import datetime, timedelta, timezone

import pytest

from core.exceptions import (
    EmptySelectionError,
    IncompletePatientError,
    InvalidReadingError,
    MedicationNotFoundError,
)
from models.analysis import FindingSeverity, SeverityTier
from models.patient import Gender
from models.reading import GlucoseTiming, ReadingKind
from services.medication_service import UNKNOWN_CATEGORY, UNKNOWN_NOTE

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def add_high_bp(reading_service):
    for days, (systolic, diastolic) in zip((3, 2, 1), ((150, 95), (145, 92), (148, 93))):
        reading_service.add_blood_pressure(systolic, diastolic, 70, timestamp=NOW - timedelta(days=days))


# =============================================================================
# PATIENT SERVICE
# =============================================================================

class TestPatientService:

    def test_update_clears_readings(self, patient_service, reading_service):
        reading_service.add_blood_pressure(120, 80, 70, timestamp=NOW)
        reading_service.add_glucose(100, timestamp=NOW)

        patient = patient_service.update_patient(" B987 ", " John Roe ", Gender.MALE, 1960)

        assert patient.id == "B987"
        assert patient.display_name == "John Roe"
        assert patient_service.get_patient() == patient
        assert reading_service.all_readings(ReadingKind.BLOOD_PRESSURE) == []
        assert reading_service.all_readings(ReadingKind.GLUCOSE) == []

    def test_update_keeps_medications(self, patient_service, medication_service):
        medication_service.add_event("Metformin", timestamp=NOW)
        patient_service.update_patient("B987", "John Roe", Gender.MALE, 1960)
        assert len(medication_service.list_events()) == 1

    def test_incomplete_update_is_rejected(self, patient_service, reading_service):
        reading_service.add_blood_pressure(120, 80, 70, timestamp=NOW)

        with pytest.raises(IncompletePatientError) as exc_info:
            patient_service.update_patient("B987", "   ", Gender.UNKNOWN, 1960)

        assert exc_info.value.context["missing"] == ["display_name", "gender"]
        assert len(reading_service.all_readings(ReadingKind.BLOOD_PRESSURE)) == 1


# =============================================================================
# READING SERVICE
# =============================================================================

class TestReadingService:

    def test_add_blood_pressure(self, reading_service):
        created = reading_service.add_blood_pressure(142, 91, 70, timestamp=NOW)

        assert created.index == 0
        assert created.status.tier == SeverityTier.HIGH
        assert created.reading.timestamp == NOW

    def test_naive_timestamp_is_utc(self, reading_service):
        created = reading_service.add_glucose(100, timestamp=datetime(2025, 1, 1, 8, 0))
        assert created.reading.timestamp == datetime(2025, 1, 1, 8, 0, tzinfo=timezone.utc)

    def test_integral_glucose_is_int(self, reading_service):
        created = reading_service.add_glucose(105.0, GlucoseTiming.FASTING, timestamp=NOW)
        assert created.reading.value == 105
        assert isinstance(created.reading.value, int)

    @pytest.mark.parametrize("value", [0, -5, float("nan"), float("inf"), True, "120"])
    def test_invalid_glucose(self, reading_service, value):
        with pytest.raises(InvalidReadingError):
            reading_service.add_glucose(value)

    def test_invalid_blood_pressure(self, reading_service):
        with pytest.raises(InvalidReadingError) as exc_info:
            reading_service.add_blood_pressure(120, 0, 70)
        assert exc_info.value.context["field"] == "diastolic"

    def test_list_newest_first_with_storage_index(self, reading_service):
        reading_service.add_blood_pressure(120, 80, 70, timestamp=NOW)
        reading_service.add_blood_pressure(130, 85, 70, timestamp=NOW - timedelta(days=1))

        listed = reading_service.list_readings(ReadingKind.BLOOD_PRESSURE)
        assert [item.index for item in listed] == [0, 1]
        assert reading_service.list_readings(ReadingKind.BLOOD_PRESSURE, limit=1)[0].index == 0
        assert reading_service.latest(ReadingKind.BLOOD_PRESSURE).reading.systolic == 120

    def test_latest_empty(self, reading_service):
        assert reading_service.latest(ReadingKind.GLUCOSE) is None

    def test_select_storage_order(self, reading_service):
        for systolic in (120, 130, 140):
            reading_service.add_blood_pressure(systolic, 80, 70, timestamp=NOW)

        selected = reading_service.select(ReadingKind.BLOOD_PRESSURE, [2, 0, 2, 99])
        assert [r.systolic for r in selected] == [120, 140]

    def test_empty_selection(self, reading_service):
        reading_service.add_blood_pressure(120, 80, 70, timestamp=NOW)
        with pytest.raises(EmptySelectionError):
            reading_service.select(ReadingKind.BLOOD_PRESSURE, [])
        with pytest.raises(EmptySelectionError):
            reading_service.select(ReadingKind.BLOOD_PRESSURE, [5])

    def test_recommendations_glucose_first(self, reading_service):
        add_high_bp(reading_service)
        reading_service.add_glucose(130, GlucoseTiming.FASTING, timestamp=NOW - timedelta(days=1))

        findings = reading_service.recommendations(now=NOW)
        assert [f.title for f in findings] == ["Fasting glucose too high", "Blood pressure high"]
        assert all(f.severity == FindingSeverity.DANGER for f in findings)

    def test_recommendations_empty(self, reading_service):
        assert reading_service.recommendations(now=NOW) == []


# =============================================================================
# MEDICATION SERVICE
# =============================================================================

class TestMedicationService:

    def test_catalog_drug(self, medication_service):
        event = medication_service.add_event("  metformin ", timestamp=NOW)

        assert event.drug_name == "Metformin"
        assert event.category == "diabetes"
        assert "stomach upset" in event.note

    def test_unknown_drug(self, medication_service):
        event = medication_service.add_event("Herbal tea", timestamp=NOW)
        assert event.category == UNKNOWN_CATEGORY
        assert event.note == UNKNOWN_NOTE

    def test_blank_name(self, medication_service):
        with pytest.raises(InvalidReadingError):
            medication_service.add_event("  ")

    def test_ordering(self, medication_service):
        for hours in (3, 1, 2):
            medication_service.add_event(f"Drug {hours}", timestamp=NOW - timedelta(hours=hours))

        assert [e.drug_name for e in medication_service.list_events()] == ["Drug 3", "Drug 2", "Drug 1"]
        assert [e.drug_name for e in medication_service.list_recent(2)] == ["Drug 1", "Drug 2"]

    def test_delete(self, medication_service):
        event = medication_service.add_event("Cozaar", timestamp=NOW)
        medication_service.delete_event(event.id)

        assert medication_service.list_events() == []
        with pytest.raises(MedicationNotFoundError):
            medication_service.delete_event(event.id)

    def test_catalog_filter(self, medication_service):
        names = [drug.name for drug in medication_service.catalog("hypertension")]
        assert names == ["Amlodipine", "Cozaar"]
        assert len(medication_service.catalog()) == 8

    def test_drug_info(self, medication_service):
        info = medication_service.drug_info("Cymbalta")
        assert info.drug.category == "depression"
        assert info.warning == "This drug may interact with blood-pressure medication."
        assert medication_service.drug_info("Januvia").warning is None
        assert medication_service.drug_info("unknown") is None


# =============================================================================
# EXPORT SERVICE
# =============================================================================

class TestExportService:

    def test_export_requires_complete_patient(self, export_service, reading_service):
        reading_service.add_blood_pressure(120, 80, 70, timestamp=NOW)
        with pytest.raises(IncompletePatientError):
            export_service.export(ReadingKind.BLOOD_PRESSURE, [0], now=NOW)

    def test_export_requires_selection(self, export_service, registered_patient):
        with pytest.raises(EmptySelectionError):
            export_service.export(ReadingKind.BLOOD_PRESSURE, [], now=NOW)

    def test_high_blood_pressure_export(self, export_service, reading_service, registered_patient):
        add_high_bp(reading_service)

        result = export_service.export(ReadingKind.BLOOD_PRESSURE, [0, 1, 2], now=NOW)

        assert len(result.bundle.observations) == 3
        assert "[DANGER]" in result.text
        assert "147" in result.text
        assert result.qr.partial is False
        assert result.mailto is None
        assert result.sync is None

    def test_export_with_recipient(self, export_service, reading_service, registered_patient):
        reading_service.add_glucose(100, timestamp=NOW)
        result = export_service.export(ReadingKind.GLUCOSE, [0], recipient="doctor@example.com", now=NOW)
        assert result.mailto.startswith("mailto:doctor@example.com?subject=")

    def test_each_export_is_a_new_bundle(self, export_service, reading_service, registered_patient):
        reading_service.add_glucose(100, timestamp=NOW)
        first = export_service.export(ReadingKind.GLUCOSE, [0], now=NOW)
        second = export_service.export(ReadingKind.GLUCOSE, [0], now=NOW)
        assert first.bundle.id != second.bundle.id

    def test_export_pushes_when_sync_enabled(self, export_service, sync_service, dispatcher,
                                             reading_service, registered_patient):
        sync_service.enabled = True
        reading_service.add_glucose(100, timestamp=NOW)

        result = export_service.export(ReadingKind.GLUCOSE, [0], now=NOW)

        assert result.sync.dispatched is True
        assert result.sync.task_id == "task-123"
        dispatcher.assert_called_once()

    def test_sync_failure_does_not_fail_export(self, export_service, sync_service, dispatcher,
                                               reading_service, registered_patient):
        sync_service.enabled = True
        dispatcher.side_effect = ConnectionError("broker down")
        reading_service.add_glucose(100, timestamp=NOW)

        result = export_service.export(ReadingKind.GLUCOSE, [0], now=NOW)
        assert result.sync.dispatched is False

    def test_medication_export(self, export_service, medication_service, registered_patient):
        medication_service.add_event("Metformin", timestamp=NOW)
        bundle = export_service.export_medications(now=NOW)
        assert len(bundle.medication_statements) == 1
