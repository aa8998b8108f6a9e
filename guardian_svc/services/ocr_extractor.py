"""
Recognition value extraction.

Turns the raw text an OCR engine read off a device display into reading
values. Extraction never raises: every problem is reported as an outcome
so callers can tell the person what went wrong.

Outcomes:
    success        all required values found
    partial_fail   right kind of device, but a required value is missing
    mismatch       the text belongs to the other kind of device
    fail           no plausible value at all
"""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from models.reading import ReadingKind

BP_PAIR_PATTERN = re.compile(r"(\d{2,3})\s*[/\-]\s*(\d{2,3})")
BP_SLASH_PATTERN = re.compile(r"\d{2,3}\s*/\s*\d{2,3}")
PULSE_PATTERN = re.compile(r"(pulse|bpm|hr|心率|脈搏)\D*(\d{2,3})")
GLUCOSE_UNIT_PATTERN = re.compile(r"(\d{2,3})\s*(mg|glu|blo)")
NUMBER_PATTERN = re.compile(r"\d{2,3}")

# Exclusive plausibility bounds of bare numbers.
BP_NUMBER_RANGE = (40, 220)
GLUCOSE_NUMBER_RANGE = (20, 600)

GLUCOSE_MARKERS = ("mg/dl", "glucose")
BP_MARKERS = ("mmhg",)


class ExtractionOutcome(str, Enum):
    SUCCESS = "success"
    FAIL = "fail"
    MISMATCH = "mismatch"
    PARTIAL_FAIL = "partial_fail"


@dataclass(frozen=True)
class ExtractionResult:
    outcome: ExtractionOutcome
    values: Dict[str, int] = field(default_factory=dict)
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.outcome == ExtractionOutcome.SUCCESS


def _numbers_in_range(text: str, bounds) -> List[int]:
    low, high = bounds
    return [n for n in (int(m) for m in NUMBER_PATTERN.findall(text)) if low < n < high]


def extract_blood_pressure(text: str) -> ExtractionResult:
    """
    Extract systolic, diastolic and (optionally) pulse.

    A ``120/80`` or ``120-80`` pair wins; otherwise the distinct plausible
    numbers are taken largest first. The fallback pulse is kept only when it
    is below the systolic value.
    """
    if any(marker in text for marker in GLUCOSE_MARKERS):
        return ExtractionResult(
            ExtractionOutcome.MISMATCH,
            message="This looks like a glucose meter photo",
        )

    systolic: Optional[int] = None
    diastolic: Optional[int] = None
    pulse: Optional[int] = None

    pair = BP_PAIR_PATTERN.search(text)
    if pair:
        systolic, diastolic = int(pair.group(1)), int(pair.group(2))

    pulse_match = PULSE_PATTERN.search(text)
    if pulse_match:
        pulse = int(pulse_match.group(2))

    if not systolic or not diastolic:
        candidates = sorted(set(_numbers_in_range(text, BP_NUMBER_RANGE)), reverse=True)
        if len(candidates) >= 2:
            systolic, diastolic = candidates[0], candidates[1]
            if pulse is None and len(candidates) >= 3 and candidates[2] < systolic:
                pulse = candidates[2]
        elif len(candidates) == 1 and not systolic:
            systolic = candidates[0]

    if systolic and diastolic:
        if systolic < diastolic:
            systolic, diastolic = diastolic, systolic
        values = {"systolic": systolic, "diastolic": diastolic}
        if pulse:
            values["pulse"] = pulse
        return ExtractionResult(
            ExtractionOutcome.SUCCESS,
            values=values,
            message=f"Read {systolic}/{diastolic} mmHg",
        )

    if systolic:
        return ExtractionResult(
            ExtractionOutcome.PARTIAL_FAIL,
            values={"systolic": systolic},
            message="Diastolic value not found",
        )
    return ExtractionResult(ExtractionOutcome.FAIL, message="Could not recognise blood pressure values")


def extract_glucose(text: str) -> ExtractionResult:
    """
    Extract a glucose value.

    A number followed by a unit-like word wins; otherwise the first
    plausible number is used.
    """
    if BP_SLASH_PATTERN.search(text) or any(marker in text for marker in BP_MARKERS):
        return ExtractionResult(
            ExtractionOutcome.MISMATCH,
            message="This looks like a blood pressure monitor photo",
        )

    value: Optional[int] = None
    unit_match = GLUCOSE_UNIT_PATTERN.search(text)
    if unit_match:
        value = int(unit_match.group(1))

    if not value:
        candidates = _numbers_in_range(text, GLUCOSE_NUMBER_RANGE)
        if candidates:
            value = candidates[0]

    if value:
        return ExtractionResult(
            ExtractionOutcome.SUCCESS,
            values={"value": value},
            message=f"Read glucose {value}",
        )
    return ExtractionResult(ExtractionOutcome.FAIL, message="No glucose value found")


def extract_reading_values(raw_text: str, expected_kind: ReadingKind) -> ExtractionResult:
    """
    Extract the values of the expected reading kind from OCR text.

    Matching is case-insensitive.

    Examples:
        >>> extract_reading_values("SYS 128 / 82 PULSE 71", ReadingKind.BLOOD_PRESSURE).values
        {'systolic': 128, 'diastolic': 82, 'pulse': 71}
    """
    text = (raw_text or "").lower()
    if expected_kind == ReadingKind.BLOOD_PRESSURE:
        return extract_blood_pressure(text)
    if expected_kind == ReadingKind.GLUCOSE:
        return extract_glucose(text)
    raise ValueError(f"Unsupported reading kind: {expected_kind!r}")
