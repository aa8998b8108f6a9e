"""
Text renderer - human-readable form of an exported bundle.

Everything printed is read from the bundle itself (patient included), so a
rendered report always matches the document it was rendered from. Output
uses a single ``\\n`` line ending; email bodies are converted separately.
"""
from datetime import timezone, tzinfo
from typing import List, Optional, Union
from urllib.parse import quote

from core.datetime_utils import format_for_display
from core.reading_registry import get_bp_component, timing_label
from models.reading import ReadingKind
from schemas.fhir import Bundle, ObservationResource
from services.bundle_assembler import has_medication_note, observation_timing

RULE = "=" * 30
SEPARATOR = "-" * 30
NO_OBSERVATIONS = "No observations recorded."
MEDICATION_SUFFIX = " (medication taken)"

REPORT_NAMES = {
    ReadingKind.BLOOD_PRESSURE: "Blood Pressure",
    ReadingKind.GLUCOSE: "Blood Glucose",
}


def format_number(value: Union[int, float, None]) -> str:
    """
    Print a number without losing or inventing precision.

    Examples:
        >>> format_number(120.0)
        '120'
        >>> format_number(98.6)
        '98.6'
    """
    if value is None:
        return "?"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value) if isinstance(value, float) else str(value)


def _bp_line(observation: ObservationResource) -> str:
    systolic = observation.component_value(get_bp_component("systolic").loinc)
    diastolic = observation.component_value(get_bp_component("diastolic").loinc)
    pulse = observation.component_value(get_bp_component("pulse").loinc)
    return f"BP: {format_number(systolic)}/{format_number(diastolic)} mmHg, P: {format_number(pulse)}"


def _glucose_line(observation: ObservationResource) -> str:
    value = observation.value_quantity.value if observation.value_quantity else None
    label = timing_label(observation_timing(observation))
    return f"BS: {format_number(value)} mg/dL ({label})"


def render_text(bundle: Bundle, kind: ReadingKind, tz: Optional[tzinfo] = None) -> str:
    """
    Render a bundle as a plain-text report.

    Args:
        bundle: Bundle to render.
        kind: Reading kind of the bundle's observations.
        tz: Timezone of the printed timestamps (default UTC).

    Returns:
        str: The report, lines joined with ``\\n``.
    """
    tz = tz or timezone.utc
    lines: List[str] = [RULE, f"   FHIR R4 {REPORT_NAMES[kind]} Report", RULE]

    patient = bundle.patient
    if patient is not None:
        name = patient.name[0].text if patient.name else ""
        identifier = patient.identifier[0].value if patient.identifier else patient.id
        lines.extend([f"Patient: {name} | ID: {identifier}", RULE])

    observations = bundle.observations
    if not observations:
        lines.append(NO_OBSERVATIONS)
        return "\n".join(lines)

    for index, observation in enumerate(observations, start=1):
        when = format_for_display(observation.effective_date_time, tz)
        body = _bp_line(observation) if kind == ReadingKind.BLOOD_PRESSURE else _glucose_line(observation)
        suffix = MEDICATION_SUFFIX if has_medication_note(observation) else ""
        lines.append(f"[{index}] {when} | {body}{suffix}")

    if bundle.conclusion:
        lines.extend([SEPARATOR, f"Analysis: {bundle.conclusion}"])
    return "\n".join(lines)


def to_email_body(text: str) -> str:
    """Convert a rendered report to an email body (pipes to dashes, CRLF)."""
    return text.replace("|", "-").replace("\n", "\r\n")


def build_mailto(recipient: str, kind: ReadingKind, text: str) -> str:
    """Build the mailto: link that opens a draft carrying the report."""
    subject = f"Chronic condition report ({kind.value})"
    return (
        f"mailto:{recipient}"
        f"?subject={quote(subject, safe='')}"
        f"&body={quote(to_email_body(text), safe='')}"
    )
