"""
Document assembler - builds the exported clinical bundle.

Architecture:
    ExportService → assemble_bundle() → trend_analyzer (conclusion)

assemble_bundle() is a pure construction: it never reads storage and never
mutates its inputs. The patient is copied into the bundle, so later edits of
the identity do not alter bundles already handed out.

Observation and report ids are UUIDv5 values derived from the patient id,
the position and the reading content. Two assemblies of the same input
therefore differ only in the bundle id and the creation instant.
"""
import logging
import uuid
from datetime import datetime
from typing import List, Optional, Sequence

from core.datetime_utils import to_utc, utc_now
from core.reading_registry import (
    get_bp_component,
    get_bp_panel,
    get_glucose_component,
    glucose_loinc,
    glucose_loinc_codes,
)
from models.medication import MedicationEvent
from models.patient import PatientIdentity
from models.reading import (
    BloodPressureReading,
    GlucoseReading,
    GlucoseTiming,
    Reading,
    ReadingKind,
    kind_of,
)
from schemas.fhir import (
    IDENTIFIER_TYPE_SYSTEM,
    LOINC_SYSTEM,
    OBSERVATION_CATEGORY_SYSTEM,
    RXNORM_SYSTEM,
    Annotation,
    Bundle,
    BundleEntry,
    CodeableConcept,
    Coding,
    DiagnosticReportResource,
    HumanName,
    Identifier,
    MedicationStatementResource,
    Meta,
    ObservationComponent,
    ObservationResource,
    PatientResource,
    Quantity,
    Reference,
)
from services.trend_analyzer import analyze_trend, format_conclusion

logger = logging.getLogger(__name__)

MEDICATION_NOTE = "Medication taken"
TIMING_NOTE_PREFIX = "Timing: "
PATIENT_IDENTIFIER_SYSTEM = "urn:oid:1.2.36.1.4.1.30008.2.1.1.1"

# Fixed namespace for the deterministic resource ids of a bundle.
RESOURCE_NAMESPACE = uuid.UUID("6f4c2a4e-2d0b-5d8e-9a1c-3c7b8e5f0a11")

REPORT_TITLES = {
    ReadingKind.BLOOD_PRESSURE: "Blood pressure monitoring report",
    ReadingKind.GLUCOSE: "Blood glucose monitoring report",
}


def _urn(resource_id: str) -> str:
    return f"urn:uuid:{resource_id}"


def patient_full_url(patient_id: str) -> str:
    """Stable bundle-local URL of a patient."""
    return _urn(str(uuid.uuid5(RESOURCE_NAMESPACE, f"patient|{patient_id}")))


def _observation_id(patient_id: str, index: int, reading: Reading) -> str:
    fingerprint = "|".join(f"{k}={v}" for k, v in sorted(reading.to_dict().items()))
    return str(uuid.uuid5(RESOURCE_NAMESPACE, f"observation|{patient_id}|{index}|{fingerprint}"))


# =============================================================================
# RESOURCE BUILDERS
# =============================================================================

def build_patient_resource(patient: PatientIdentity) -> PatientResource:
    """Copy the identity into a FHIR Patient resource."""
    return PatientResource(
        id=patient.id,
        identifier=[
            Identifier(
                type=CodeableConcept(coding=[
                    Coding(system=IDENTIFIER_TYPE_SYSTEM, code="MR", display="Medical Record Number"),
                ]),
                system=PATIENT_IDENTIFIER_SYSTEM,
                value=patient.id,
            )
        ],
        name=[HumanName(text=patient.display_name)],
        gender=patient.gender.value,
        birth_date=f"{patient.birth_year:04d}-01-01",
    )


def _notes(reading: Reading) -> List[Annotation]:
    notes = []
    if isinstance(reading, GlucoseReading):
        notes.append(Annotation(text=f"{TIMING_NOTE_PREFIX}{reading.timing.value}"))
    if reading.medication_taken:
        notes.append(Annotation(text=MEDICATION_NOTE))
    return notes


def _bp_component(name: str, value: int) -> ObservationComponent:
    definition = get_bp_component(name)
    return ObservationComponent(
        code=CodeableConcept(coding=[Coding(system=LOINC_SYSTEM, code=definition.loinc, display=definition.display)]),
        value_quantity=Quantity(value=value, unit=definition.unit, code=definition.ucum),
    )


def build_bp_observation(
    reading: BloodPressureReading,
    observation_id: str,
    subject: str,
) -> ObservationResource:
    panel_code, panel_display = get_bp_panel()
    return ObservationResource(
        id=observation_id,
        category=[CodeableConcept(coding=[Coding(system=OBSERVATION_CATEGORY_SYSTEM, code="vital-signs")])],
        code=CodeableConcept(coding=[Coding(system=LOINC_SYSTEM, code=panel_code, display=panel_display)]),
        subject=Reference(reference=subject),
        effective_date_time=to_utc(reading.timestamp),
        component=[
            _bp_component("systolic", reading.systolic),
            _bp_component("diastolic", reading.diastolic),
            _bp_component("pulse", reading.pulse),
        ],
        note=_notes(reading),
    )


def build_glucose_observation(
    reading: GlucoseReading,
    observation_id: str,
    subject: str,
) -> ObservationResource:
    glucose = get_glucose_component()
    return ObservationResource(
        id=observation_id,
        category=[CodeableConcept(coding=[Coding(system=OBSERVATION_CATEGORY_SYSTEM, code="laboratory")])],
        code=CodeableConcept(coding=[Coding(system=LOINC_SYSTEM, code=glucose_loinc(reading.timing))]),
        subject=Reference(reference=subject),
        effective_date_time=to_utc(reading.timestamp),
        value_quantity=Quantity(value=reading.value, unit=glucose.unit, code=glucose.ucum),
        note=_notes(reading),
    )


def build_observation(reading: Reading, observation_id: str, subject: str) -> ObservationResource:
    """Build the Observation of any reading variant."""
    if isinstance(reading, BloodPressureReading):
        return build_bp_observation(reading, observation_id, subject)
    if isinstance(reading, GlucoseReading):
        return build_glucose_observation(reading, observation_id, subject)
    raise TypeError(f"Unsupported reading type: {type(reading).__name__}")


# =============================================================================
# ASSEMBLY
# =============================================================================

def assemble_bundle(
    patient: PatientIdentity,
    readings: Sequence[Reading],
    kind: ReadingKind,
    now: Optional[datetime] = None,
    bundle_id: Optional[str] = None,
) -> Bundle:
    """
    Assemble a clinical bundle from a patient and readings of one kind.

    The caller guarantees a complete patient identity and a non-empty
    selection; readings of another kind are a programming error.

    Args:
        patient: Identity to embed (copied).
        readings: Selected readings in any order; embedded oldest first.
        kind: Reading kind of every element of readings.
        now: Creation instant, also the end of the trend window. Defaults to now.
        bundle_id: Bundle id. A fresh UUID4 by default.

    Returns:
        Bundle: Patient, one Observation per reading, DiagnosticReport.

    Raises:
        TypeError: If a reading is not of the requested kind.
    """
    for reading in readings:
        if kind_of(reading) != kind:
            raise TypeError(f"Expected only {kind.value} readings, got {kind_of(reading).value}")

    created_at = to_utc(now) if now is not None else utc_now()
    ordered = sorted(readings, key=lambda r: to_utc(r.timestamp))
    subject = patient_full_url(patient.id)

    entries = [BundleEntry(full_url=subject, resource=build_patient_resource(patient))]
    references = []
    for index, reading in enumerate(ordered):
        observation_id = _observation_id(patient.id, index, reading)
        observation = build_observation(reading, observation_id, subject)
        entries.append(BundleEntry(full_url=_urn(observation_id), resource=observation))
        references.append(Reference(reference=_urn(observation_id)))

    conclusion = format_conclusion(analyze_trend(ordered, kind, created_at))

    report_id = str(uuid.uuid5(
        RESOURCE_NAMESPACE,
        "report|" + patient.id + "|" + ",".join(ref.reference for ref in references),
    ))
    report = DiagnosticReportResource(
        id=report_id,
        code=CodeableConcept(text=REPORT_TITLES[kind]),
        subject=Reference(reference=subject),
        effective_date_time=created_at,
        result=references,
        conclusion=conclusion,
    )
    entries.append(BundleEntry(full_url=_urn(report_id), resource=report))

    bundle = Bundle(
        id=bundle_id or str(uuid.uuid4()),
        meta=Meta(last_updated=created_at),
        entry=entries,
    )
    logger.info(
        "Assembled clinical bundle",
        extra={"bundle_id": bundle.id, "kind": kind.value, "observations": len(references)}
    )
    return bundle


# =============================================================================
# DECODING
# =============================================================================

def has_medication_note(observation: ObservationResource) -> bool:
    """True when the observation carries the medication note."""
    return any(note.text == MEDICATION_NOTE for note in observation.note)


def observation_timing(observation: ObservationResource) -> GlucoseTiming:
    """Glucose timing recorded in the notes, ``other`` when absent."""
    for note in observation.note:
        if note.text.startswith(TIMING_NOTE_PREFIX):
            try:
                return GlucoseTiming(note.text[len(TIMING_NOTE_PREFIX):])
            except ValueError:
                break
    return GlucoseTiming.OTHER


def observation_to_reading(observation: ObservationResource, kind: ReadingKind) -> Reading:
    """
    Decode an Observation built by this module back into a reading.

    Raises:
        ValueError: If the observation lacks the values of the kind.
    """
    if kind == ReadingKind.BLOOD_PRESSURE:
        values = {
            name: observation.component_value(get_bp_component(name).loinc)
            for name in ("systolic", "diastolic", "pulse")
        }
        missing = [name for name, value in values.items() if value is None]
        if missing:
            raise ValueError(f"Observation {observation.id} is missing {', '.join(missing)}")
        return BloodPressureReading(
            timestamp=to_utc(observation.effective_date_time),
            systolic=int(values["systolic"]),
            diastolic=int(values["diastolic"]),
            pulse=int(values["pulse"]),
            medication_taken=has_medication_note(observation),
        )
    if kind == ReadingKind.GLUCOSE:
        if observation.value_quantity is None:
            raise ValueError(f"Observation {observation.id} has no glucose value")
        return GlucoseReading(
            timestamp=to_utc(observation.effective_date_time),
            value=observation.value_quantity.value,
            timing=observation_timing(observation),
            medication_taken=has_medication_note(observation),
        )
    raise ValueError(f"Unsupported reading kind: {kind!r}")


def observation_kind(observation: ObservationResource) -> ReadingKind:
    """Infer the reading kind of an Observation from its code."""
    panel_code, _ = get_bp_panel()
    if observation.has_code(panel_code):
        return ReadingKind.BLOOD_PRESSURE
    if any(observation.has_code(code) for code in glucose_loinc_codes()):
        return ReadingKind.GLUCOSE
    raise ValueError(f"Observation {observation.id} has no known reading code")


def readings_from_bundle(bundle: Bundle, kind: ReadingKind) -> List[Reading]:
    """Decode every Observation of a bundle, in bundle order."""
    return [observation_to_reading(observation, kind) for observation in bundle.observations]


# =============================================================================
# MEDICATION STATEMENTS
# =============================================================================

def build_medication_statement(
    event: MedicationEvent,
    subject: str,
    asserted_at: datetime,
) -> MedicationStatementResource:
    statement_id = str(uuid.uuid5(RESOURCE_NAMESPACE, f"medication|{event.id}"))
    return MedicationStatementResource(
        id=statement_id,
        medication_codeable_concept=CodeableConcept(
            coding=[Coding(system=RXNORM_SYSTEM, code="medication", display=event.drug_name)],
            text=event.drug_name,
        ),
        subject=Reference(reference=subject),
        effective_date_time=to_utc(event.timestamp),
        date_asserted=asserted_at,
        information_source=Reference(reference=subject),
        note=[Annotation(text=f"Drug category: {event.category or 'general'}")],
    )


def assemble_medication_bundle(
    patient: PatientIdentity,
    events: Sequence[MedicationEvent],
    now: Optional[datetime] = None,
) -> Bundle:
    """
    Assemble a collection of the patient and their medication statements.

    Statements are ordered oldest first.
    """
    created_at = to_utc(now) if now is not None else utc_now()
    subject = patient_full_url(patient.id)
    entries = [BundleEntry(full_url=subject, resource=build_patient_resource(patient))]
    for event in sorted(events, key=lambda e: to_utc(e.timestamp)):
        statement = build_medication_statement(event, subject, created_at)
        entries.append(BundleEntry(full_url=_urn(statement.id), resource=statement))
    return Bundle(
        id=str(uuid.uuid4()),
        meta=Meta(last_updated=created_at),
        entry=entries,
    )
