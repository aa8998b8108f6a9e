"""
Tests for the FHIR bundle assembler.
"""
from datetime import datetime, timedelta, timezone

import pytest

from models.medication import MedicationEvent
from models.reading import BloodPressureReading, GlucoseReading, GlucoseTiming, ReadingKind
from schemas.fhir import Bundle, DiagnosticReportResource, ObservationResource, PatientResource
from services.bundle_assembler import (
    MEDICATION_NOTE,
    assemble_bundle,
    assemble_medication_bundle,
    has_medication_note,
    observation_kind,
    observation_timing,
    patient_full_url,
    readings_from_bundle,
)

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def test_entry_layout(complete_patient, high_bp_readings):
    """Patient first, observations in time order, report last."""
    bundle = assemble_bundle(complete_patient, list(reversed(high_bp_readings)), ReadingKind.BLOOD_PRESSURE, now=NOW)

    resources = [entry.resource for entry in bundle.entry]
    assert isinstance(resources[0], PatientResource)
    assert all(isinstance(r, ObservationResource) for r in resources[1:-1])
    assert isinstance(resources[-1], DiagnosticReportResource)

    times = [obs.effective_date_time for obs in bundle.observations]
    assert times == sorted(times)
    assert bundle.type == "collection"
    assert bundle.created_at == NOW


def test_report_references_every_observation(complete_patient, high_bp_readings):
    bundle = assemble_bundle(complete_patient, high_bp_readings, ReadingKind.BLOOD_PRESSURE, now=NOW)

    urls = [entry.full_url for entry in bundle.observation_entries]
    assert [ref.reference for ref in bundle.report.result] == urls
    for observation in bundle.observations:
        assert observation.subject.reference == patient_full_url(complete_patient.id)


def test_conclusion_from_trend(complete_patient, high_bp_readings):
    bundle = assemble_bundle(complete_patient, high_bp_readings, ReadingKind.BLOOD_PRESSURE, now=NOW)
    assert bundle.conclusion.startswith("[DANGER] Blood pressure high")
    assert "147.7/93.3" in bundle.conclusion


def test_stable_conclusion_when_too_few_readings(complete_patient, high_bp_readings):
    bundle = assemble_bundle(complete_patient, high_bp_readings[:2], ReadingKind.BLOOD_PRESSURE, now=NOW)
    assert bundle.conclusion == "Stable"


def test_patient_is_copied(complete_patient, high_bp_readings):
    bundle = assemble_bundle(complete_patient, high_bp_readings, ReadingKind.BLOOD_PRESSURE, now=NOW)

    patient = bundle.patient
    assert patient.id == "A123456789"
    assert patient.name[0].text == "Jane Doe"
    assert patient.gender == "female"
    assert patient.birth_date == "1958-01-01"


def test_bp_components(complete_patient, high_bp_readings):
    bundle = assemble_bundle(complete_patient, high_bp_readings[:1], ReadingKind.BLOOD_PRESSURE, now=NOW)
    observation = bundle.observations[0]

    assert observation.has_code("85354-9")
    assert observation.component_value("8480-6") == 150
    assert observation.component_value("8462-4") == 95
    assert observation.component_value("8867-4") == 72


def test_glucose_observation_notes(complete_patient, glucose_readings):
    bundle = assemble_bundle(complete_patient, glucose_readings, ReadingKind.GLUCOSE, now=NOW)
    fasting, post_meal = bundle.observations

    assert fasting.has_code("1585-8")
    assert observation_timing(fasting) == GlucoseTiming.FASTING
    assert not has_medication_note(fasting)

    assert post_meal.value_quantity.value == 156.5
    assert post_meal.value_quantity.unit == "mg/dL"
    assert has_medication_note(post_meal)
    assert any(note.text == MEDICATION_NOTE for note in post_meal.note)


def test_resource_ids_are_deterministic(complete_patient, high_bp_readings):
    first = assemble_bundle(complete_patient, high_bp_readings, ReadingKind.BLOOD_PRESSURE, now=NOW)
    second = assemble_bundle(complete_patient, high_bp_readings, ReadingKind.BLOOD_PRESSURE, now=NOW)

    assert first.id != second.id
    assert [o.id for o in first.observations] == [o.id for o in second.observations]
    assert first.report.id == second.report.id


def test_assemblies_differ_only_in_id_and_creation_time(complete_patient, high_bp_readings):
    first = assemble_bundle(complete_patient, high_bp_readings, ReadingKind.BLOOD_PRESSURE, now=NOW).to_fhir_json()
    second = assemble_bundle(
        complete_patient, high_bp_readings, ReadingKind.BLOOD_PRESSURE, now=NOW + timedelta(minutes=5)
    ).to_fhir_json()

    assert first["id"] != second["id"]
    assert first["meta"]["lastUpdated"] != second["meta"]["lastUpdated"]
    for data in (first, second):
        del data["id"]
        del data["meta"]["lastUpdated"]
        del data["entry"][-1]["resource"]["effectiveDateTime"]
    assert first == second


def test_explicit_bundle_id(complete_patient, high_bp_readings):
    bundle = assemble_bundle(complete_patient, high_bp_readings, ReadingKind.BLOOD_PRESSURE, now=NOW, bundle_id="b-1")
    assert bundle.id == "b-1"


def test_wrong_kind_is_rejected(complete_patient, high_bp_readings):
    with pytest.raises(TypeError):
        assemble_bundle(complete_patient, high_bp_readings, ReadingKind.GLUCOSE, now=NOW)


def test_wire_form_uses_camel_case(complete_patient, glucose_readings):
    data = assemble_bundle(complete_patient, glucose_readings, ReadingKind.GLUCOSE, now=NOW).to_fhir_json()

    assert data["resourceType"] == "Bundle"
    assert data["entry"][0]["fullUrl"].startswith("urn:uuid:")
    observation = data["entry"][1]["resource"]
    assert observation["resourceType"] == "Observation"
    assert "effectiveDateTime" in observation
    assert "valueQuantity" in observation
    assert "component" not in observation


def test_bundle_decodes_back_to_readings(complete_patient, glucose_readings):
    bundle = assemble_bundle(complete_patient, glucose_readings, ReadingKind.GLUCOSE, now=NOW)
    parsed = Bundle.model_validate(bundle.to_fhir_json())

    assert readings_from_bundle(parsed, ReadingKind.GLUCOSE) == glucose_readings
    assert observation_kind(parsed.observations[0]) == ReadingKind.GLUCOSE


def test_medication_bundle(complete_patient):
    events = [
        MedicationEvent(id="e2", drug_name="Metformin", timestamp=NOW - timedelta(hours=1),
                        category="diabetes", note=""),
        MedicationEvent(id="e1", drug_name="Cozaar", timestamp=NOW - timedelta(days=1),
                        category="hypertension", note=""),
    ]
    bundle = assemble_medication_bundle(complete_patient, events, now=NOW)

    statements = bundle.medication_statements
    assert [s.medication_codeable_concept.text for s in statements] == ["Cozaar", "Metformin"]
    assert statements[0].date_asserted == NOW
    assert bundle.report is None


def test_inputs_are_not_mutated(complete_patient, high_bp_readings):
    readings = list(reversed(high_bp_readings))
    snapshot = list(readings)
    assemble_bundle(complete_patient, readings, ReadingKind.BLOOD_PRESSURE, now=NOW)
    assert readings == snapshot


def test_bp_decode_round_trip(complete_patient):
    reading = BloodPressureReading(timestamp=NOW, systolic=128, diastolic=82, pulse=71, medication_taken=True)
    bundle = assemble_bundle(complete_patient, [reading], ReadingKind.BLOOD_PRESSURE, now=NOW)
    assert readings_from_bundle(bundle, ReadingKind.BLOOD_PRESSURE) == [reading]


def test_glucose_value_keeps_integer(complete_patient):
    reading = GlucoseReading(timestamp=NOW, value=105, timing=GlucoseTiming.OTHER)
    bundle = assemble_bundle(complete_patient, [reading], ReadingKind.GLUCOSE, now=NOW)
    assert bundle.to_fhir_json()["entry"][1]["resource"]["valueQuantity"]["value"] == 105
