"""
Range classifier - maps a single reading to a severity tier.

Pure, total functions. Callers reject negative or non-finite values before
classification; nothing here raises on numeric input.

Blood pressure rules are evaluated in a fixed order and the first match
wins, so boundary values never land in two tiers:

    1. systolic < 90  or diastolic < 60  -> low
    2. systolic >= 140 or diastolic >= 90 -> high
    3. systolic >= 130 or diastolic >= 80 -> elevated
    4. systolic >= 120                    -> elevated
    5. otherwise                          -> normal

Glucose (mg/dL): anything below 70 is low whatever the timing, then the
(critical, elevated) thresholds of the timing apply.
"""
from typing import Dict, Tuple, Union

from core.reading_registry import get_tier_status
from models.analysis import SeverityTier, TierStatus
from models.reading import (
    BloodPressureReading,
    GlucoseReading,
    GlucoseTiming,
    Reading,
    ReadingKind,
)

BP_LOW_SYSTOLIC = 90
BP_LOW_DIASTOLIC = 60
BP_HIGH_SYSTOLIC = 140
BP_HIGH_DIASTOLIC = 90
BP_STAGE1_SYSTOLIC = 130
BP_STAGE1_DIASTOLIC = 80
BP_ELEVATED_SYSTOLIC = 120

GLUCOSE_LOW = 70

# timing -> (critical at or above, elevated at or above)
GLUCOSE_THRESHOLDS: Dict[GlucoseTiming, Tuple[float, float]] = {
    GlucoseTiming.FASTING: (126, 100),
    GlucoseTiming.POST_PRANDIAL: (200, 140),
}
GLUCOSE_DEFAULT_THRESHOLDS: Tuple[float, float] = (200, 180)


def classify_blood_pressure(systolic: int, diastolic: int) -> SeverityTier:
    """
    Classify a blood pressure pair.

    An inverted pair (systolic below diastolic) is swapped first.

    Examples:
        >>> classify_blood_pressure(85, 100)
        <SeverityTier.LOW: 'low'>
        >>> classify_blood_pressure(140, 89)
        <SeverityTier.HIGH: 'high'>
    """
    if systolic < diastolic:
        systolic, diastolic = diastolic, systolic

    if systolic < BP_LOW_SYSTOLIC or diastolic < BP_LOW_DIASTOLIC:
        return SeverityTier.LOW
    if systolic >= BP_HIGH_SYSTOLIC or diastolic >= BP_HIGH_DIASTOLIC:
        return SeverityTier.HIGH
    if systolic >= BP_STAGE1_SYSTOLIC or diastolic >= BP_STAGE1_DIASTOLIC:
        return SeverityTier.ELEVATED
    if systolic >= BP_ELEVATED_SYSTOLIC:
        return SeverityTier.ELEVATED
    return SeverityTier.NORMAL


def glucose_thresholds(timing: GlucoseTiming) -> Tuple[float, float]:
    """(critical, elevated) thresholds for a timing."""
    return GLUCOSE_THRESHOLDS.get(timing, GLUCOSE_DEFAULT_THRESHOLDS)


def classify_glucose(value: Union[int, float], timing: GlucoseTiming) -> SeverityTier:
    """
    Classify a glucose value taken at the given timing.

    Examples:
        >>> classify_glucose(65, GlucoseTiming.FASTING)
        <SeverityTier.LOW: 'low'>
        >>> classify_glucose(126, GlucoseTiming.FASTING)
        <SeverityTier.CRITICAL: 'critical'>
    """
    if value < GLUCOSE_LOW:
        return SeverityTier.LOW

    critical, elevated = glucose_thresholds(timing)
    if value >= critical:
        return SeverityTier.CRITICAL
    if value >= elevated:
        return SeverityTier.ELEVATED
    return SeverityTier.NORMAL


def classify_reading(reading: Reading) -> SeverityTier:
    """Classify any reading variant."""
    if isinstance(reading, BloodPressureReading):
        return classify_blood_pressure(reading.systolic, reading.diastolic)
    if isinstance(reading, GlucoseReading):
        return classify_glucose(reading.value, reading.timing)
    raise TypeError(f"Unsupported reading type: {type(reading).__name__}")


def blood_pressure_status(systolic: int, diastolic: int) -> TierStatus:
    return get_tier_status(ReadingKind.BLOOD_PRESSURE, classify_blood_pressure(systolic, diastolic))


def glucose_status(value: Union[int, float], timing: GlucoseTiming) -> TierStatus:
    return get_tier_status(ReadingKind.GLUCOSE, classify_glucose(value, timing))


def reading_status(reading: Reading) -> TierStatus:
    """Tier plus display hints for any reading variant."""
    if isinstance(reading, BloodPressureReading):
        return blood_pressure_status(reading.systolic, reading.diastolic)
    if isinstance(reading, GlucoseReading):
        return glucose_status(reading.value, reading.timing)
    raise TypeError(f"Unsupported reading type: {type(reading).__name__}")
