"""
Domain models for health readings.

A reading is either a BloodPressureReading or a GlucoseReading. Code that
needs to branch on the variant goes through kind_of(), which fails loudly on
anything else.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Union

from core.datetime_utils import format_iso, parse_datetime


class ReadingKind(str, Enum):
    """The two reading kinds the log records."""

    BLOOD_PRESSURE = "bp"
    GLUCOSE = "glucose"


class GlucoseTiming(str, Enum):
    """Meal-relative context of a glucose reading."""

    FASTING = "fasting"
    BEFORE_MEAL = "before-meal"
    POST_PRANDIAL = "post-prandial"
    BEFORE_SLEEP = "before-sleep"
    OTHER = "other"


@dataclass(frozen=True)
class BloodPressureReading:
    """A single cuff measurement."""

    timestamp: datetime
    systolic: int
    diastolic: int
    pulse: int
    medication_taken: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted JSON shape."""
        return {
            "date": format_iso(self.timestamp),
            "systolic": self.systolic,
            "diastolic": self.diastolic,
            "pulse": self.pulse,
            "medication": self.medication_taken,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'BloodPressureReading':
        """
        Create a reading from its persisted JSON shape.

        Older stores used ``dateTime`` and ``medicationTaken``; both are
        still accepted.
        """
        return cls(
            timestamp=parse_datetime(data.get("dateTime") or data["date"]),
            systolic=int(data["systolic"]),
            diastolic=int(data["diastolic"]),
            pulse=int(data["pulse"]),
            medication_taken=bool(data.get("medicationTaken") or data.get("medication") or False),
        )


@dataclass(frozen=True)
class GlucoseReading:
    """A single glucose meter measurement in mg/dL."""

    timestamp: datetime
    value: Union[int, float]
    timing: GlucoseTiming
    medication_taken: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the persisted JSON shape."""
        return {
            "date": format_iso(self.timestamp),
            "value": self.value,
            "unit": "mg/dL",
            "timing": self.timing.value,
            "medication": self.medication_taken,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'GlucoseReading':
        """
        Create a reading from its persisted JSON shape.

        Older stores used ``dateTime``, ``measurementTime`` and
        ``medicationTaken``; all are still accepted. Unknown timings map to
        ``other``.
        """
        timing = data.get("measurementTime") or data.get("timing") or GlucoseTiming.OTHER.value
        try:
            parsed_timing = GlucoseTiming(timing)
        except ValueError:
            parsed_timing = GlucoseTiming.OTHER
        return cls(
            timestamp=parse_datetime(data.get("dateTime") or data["date"]),
            value=data["value"],
            timing=parsed_timing,
            medication_taken=bool(data.get("medicationTaken") or data.get("medication") or False),
        )


Reading = Union[BloodPressureReading, GlucoseReading]

READING_TYPES = {
    ReadingKind.BLOOD_PRESSURE: BloodPressureReading,
    ReadingKind.GLUCOSE: GlucoseReading,
}


def kind_of(reading: Reading) -> ReadingKind:
    """
    Get the kind tag of a reading.

    Raises:
        TypeError: If the object is not one of the reading variants.
    """
    if isinstance(reading, BloodPressureReading):
        return ReadingKind.BLOOD_PRESSURE
    if isinstance(reading, GlucoseReading):
        return ReadingKind.GLUCOSE
    raise TypeError(f"Unsupported reading type: {type(reading).__name__}")


def reading_from_dict(kind: ReadingKind, data: Dict[str, Any]) -> Reading:
    """Decode a persisted reading of the given kind."""
    return READING_TYPES[kind].from_dict(data)
