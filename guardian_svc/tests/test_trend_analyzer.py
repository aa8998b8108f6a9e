"""
Tests for the seven-day trend analyzer.
"""
from datetime import datetime, timedelta, timezone

import pytest

from models.analysis import FindingSeverity
from models.reading import BloodPressureReading, GlucoseReading, GlucoseTiming, ReadingKind
from services.trend_analyzer import (
    STABLE_CONCLUSION,
    analyze_bp_trend,
    analyze_glucose_trend,
    analyze_trend,
    format_conclusion,
)

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def bp(days_ago, systolic, diastolic, pulse=70):
    return BloodPressureReading(
        timestamp=NOW - timedelta(days=days_ago),
        systolic=systolic,
        diastolic=diastolic,
        pulse=pulse,
    )


def glucose(days_ago, value, timing=GlucoseTiming.FASTING):
    return GlucoseReading(timestamp=NOW - timedelta(days=days_ago), value=value, timing=timing)


# =============================================================================
# BLOOD PRESSURE
# =============================================================================

def test_bp_high_average(high_bp_readings):
    findings = analyze_bp_trend(high_bp_readings, NOW)

    assert len(findings) == 1
    assert findings[0].severity == FindingSeverity.DANGER
    assert findings[0].title == "Blood pressure high"
    assert "147.7/93.3" in findings[0].message


def test_bp_needs_three_readings():
    assert analyze_bp_trend([bp(1, 180, 110), bp(2, 175, 105)], NOW) == []


def test_bp_elevated_average():
    findings = analyze_bp_trend([bp(1, 132, 78), bp(2, 128, 79), bp(3, 131, 76)], NOW)
    assert [f.severity for f in findings] == [FindingSeverity.WARNING]


def test_bp_normal_average_is_silent():
    assert analyze_bp_trend([bp(1, 118, 76), bp(2, 115, 74), bp(3, 119, 75)], NOW) == []


def test_window_lower_bound_is_inclusive():
    """A reading exactly seven days old still counts."""
    readings = [bp(7, 150, 95), bp(2, 150, 95), bp(1, 150, 95)]
    assert len(analyze_bp_trend(readings, NOW)) == 1


def test_old_readings_are_ignored():
    readings = [bp(8, 150, 95), bp(2, 150, 95), bp(1, 150, 95)]
    assert analyze_bp_trend(readings, NOW) == []


def test_future_readings_are_kept():
    readings = [bp(-1, 150, 95), bp(2, 150, 95), bp(1, 150, 95)]
    assert len(analyze_bp_trend(readings, NOW)) == 1


# =============================================================================
# GLUCOSE
# =============================================================================

def test_single_fasting_reading_is_enough():
    findings = analyze_glucose_trend([glucose(1, 130)], NOW)

    assert len(findings) == 1
    assert findings[0].severity == FindingSeverity.DANGER
    assert "130.0 mg/dL" in findings[0].message


def test_fasting_and_non_fasting_are_separate():
    readings = [
        glucose(1, 110),
        glucose(1, 190, GlucoseTiming.POST_PRANDIAL),
        glucose(2, 186, GlucoseTiming.BEFORE_SLEEP),
    ]
    findings = analyze_glucose_trend(readings, NOW)

    assert [f.severity for f in findings] == [FindingSeverity.WARNING, FindingSeverity.WARNING]
    assert findings[0].title.startswith("Fasting")
    assert findings[1].title.startswith("Non-fasting")


def test_non_fasting_danger():
    findings = analyze_glucose_trend([glucose(1, 210, GlucoseTiming.OTHER)], NOW)
    assert findings[0].severity == FindingSeverity.DANGER


def test_normal_glucose_is_silent():
    assert analyze_glucose_trend([glucose(1, 92), glucose(2, 120, GlucoseTiming.POST_PRANDIAL)], NOW) == []


# =============================================================================
# DISPATCH AND CONCLUSION
# =============================================================================

def test_analyze_trend_dispatch(high_bp_readings):
    assert analyze_trend(high_bp_readings, ReadingKind.BLOOD_PRESSURE, NOW)
    assert analyze_trend([], ReadingKind.GLUCOSE, NOW) == []


def test_analyze_trend_rejects_unknown_kind():
    with pytest.raises(ValueError):
        analyze_trend([], "weight", NOW)


def test_format_conclusion_stable():
    assert format_conclusion([]) == STABLE_CONCLUSION


def test_format_conclusion_markers(high_bp_readings):
    conclusion = format_conclusion(analyze_bp_trend(high_bp_readings, NOW))
    assert conclusion.startswith("[DANGER] Blood pressure high: ")
