"""
Tests for the range classifier.
"""
from datetime import datetime, timezone

import pytest

from models.analysis import SeverityTier
from models.reading import BloodPressureReading, GlucoseReading, GlucoseTiming
from services.classifier import (
    classify_blood_pressure,
    classify_glucose,
    classify_reading,
    reading_status,
)

T0 = datetime(2025, 1, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize("systolic,diastolic,expected", [
    (115, 75, SeverityTier.NORMAL),
    (120, 75, SeverityTier.ELEVATED),
    (125, 80, SeverityTier.ELEVATED),
    (129, 79, SeverityTier.ELEVATED),
    (119, 79, SeverityTier.NORMAL),
    (130, 70, SeverityTier.ELEVATED),
    (140, 89, SeverityTier.HIGH),
    (118, 90, SeverityTier.HIGH),
    (89, 70, SeverityTier.LOW),
    (110, 59, SeverityTier.LOW),
])
def test_blood_pressure_tiers(systolic, diastolic, expected):
    assert classify_blood_pressure(systolic, diastolic) == expected


def test_low_rule_wins_over_high():
    """A low diastolic is reported even when systolic is high."""
    assert classify_blood_pressure(150, 55) == SeverityTier.LOW


def test_inverted_pair_is_swapped():
    assert classify_blood_pressure(85, 100) == classify_blood_pressure(100, 85)
    assert classify_blood_pressure(85, 100) == SeverityTier.LOW


@pytest.mark.parametrize("value,timing,expected", [
    (65, GlucoseTiming.FASTING, SeverityTier.LOW),
    (69.9, GlucoseTiming.POST_PRANDIAL, SeverityTier.LOW),
    (99, GlucoseTiming.FASTING, SeverityTier.NORMAL),
    (100, GlucoseTiming.FASTING, SeverityTier.ELEVATED),
    (125, GlucoseTiming.FASTING, SeverityTier.ELEVATED),
    (126, GlucoseTiming.FASTING, SeverityTier.CRITICAL),
    (139, GlucoseTiming.POST_PRANDIAL, SeverityTier.NORMAL),
    (140, GlucoseTiming.POST_PRANDIAL, SeverityTier.ELEVATED),
    (200, GlucoseTiming.POST_PRANDIAL, SeverityTier.CRITICAL),
    (179, GlucoseTiming.BEFORE_MEAL, SeverityTier.NORMAL),
    (180, GlucoseTiming.BEFORE_SLEEP, SeverityTier.ELEVATED),
    (200, GlucoseTiming.OTHER, SeverityTier.CRITICAL),
])
def test_glucose_tiers(value, timing, expected):
    assert classify_glucose(value, timing) == expected


def test_classify_reading_dispatches_on_variant():
    bp = BloodPressureReading(timestamp=T0, systolic=142, diastolic=88, pulse=70)
    glucose = GlucoseReading(timestamp=T0, value=130, timing=GlucoseTiming.FASTING)

    assert classify_reading(bp) == SeverityTier.HIGH
    assert classify_reading(glucose) == SeverityTier.CRITICAL


def test_classify_reading_rejects_unknown_type():
    with pytest.raises(TypeError):
        classify_reading({"systolic": 120})


def test_reading_status_carries_display_hints():
    status = reading_status(GlucoseReading(timestamp=T0, value=250, timing=GlucoseTiming.OTHER))

    assert status.tier == SeverityTier.CRITICAL
    assert status.label == "Too high"
    assert status.css_class == "danger"
    assert status.icon


def test_bp_status_labels():
    status = reading_status(BloodPressureReading(timestamp=T0, systolic=110, diastolic=70, pulse=60))
    assert status.tier == SeverityTier.NORMAL
    assert status.label == "Normal"
