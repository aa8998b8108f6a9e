"""
Trend analyzer - turns a window of readings into advisory findings.

Only readings taken within the trailing seven days of ``now`` count; the
lower bound is inclusive. Readings stamped after ``now`` are kept.

Blood pressure needs at least three readings in the window before anything
is said; glucose has no minimum because a single fasting value is already
meaningful.
"""
import logging
from datetime import datetime, timedelta
from statistics import fmean
from typing import List, Sequence

from core.datetime_utils import to_utc
from models.analysis import Finding, FindingSeverity
from models.reading import (
    BloodPressureReading,
    GlucoseReading,
    GlucoseTiming,
    Reading,
    ReadingKind,
)

logger = logging.getLogger(__name__)

TREND_WINDOW = timedelta(days=7)
BP_MIN_READINGS = 3

FASTING_DANGER = 126
FASTING_WARNING = 100
NON_FASTING_DANGER = 200
NON_FASTING_WARNING = 180

BP_DANGER_SYSTOLIC = 140
BP_DANGER_DIASTOLIC = 90
BP_WARNING_SYSTOLIC = 130
BP_WARNING_DIASTOLIC = 80

STABLE_CONCLUSION = "Stable"

SEVERITY_MARKERS = {
    FindingSeverity.INFO: "[INFO]",
    FindingSeverity.WARNING: "[WARNING]",
    FindingSeverity.DANGER: "[DANGER]",
}


def _in_window(readings: Sequence[Reading], now: datetime) -> List[Reading]:
    start = to_utc(now) - TREND_WINDOW
    return [r for r in readings if to_utc(r.timestamp) >= start]


def _glucose_finding(
    values: List[float],
    danger: float,
    warning: float,
    label: str,
) -> List[Finding]:
    if not values:
        return []
    avg = fmean(values)
    message = f"7-day {label.lower()} average {avg:.1f} mg/dL"
    if avg >= danger:
        return [Finding(FindingSeverity.DANGER, f"{label} too high", message)]
    if avg >= warning:
        return [Finding(FindingSeverity.WARNING, f"{label} elevated", message)]
    return []


def analyze_glucose_trend(readings: Sequence[GlucoseReading], now: datetime) -> List[Finding]:
    """
    Analyze glucose readings of the last seven days.

    Fasting and non-fasting readings are averaged separately, so both a
    fasting and a non-fasting finding may be returned.

    Args:
        readings: Glucose readings in any order.
        now: End of the analysis window.

    Returns:
        Findings, fasting first.
    """
    recent = _in_window(readings, now)
    fasting = [float(r.value) for r in recent if r.timing == GlucoseTiming.FASTING]
    non_fasting = [float(r.value) for r in recent if r.timing != GlucoseTiming.FASTING]

    findings = _glucose_finding(fasting, FASTING_DANGER, FASTING_WARNING, "Fasting glucose")
    findings += _glucose_finding(non_fasting, NON_FASTING_DANGER, NON_FASTING_WARNING, "Non-fasting glucose")
    return findings


def analyze_bp_trend(readings: Sequence[BloodPressureReading], now: datetime) -> List[Finding]:
    """
    Analyze blood pressure readings of the last seven days.

    Fewer than three readings in the window yields no finding at all.

    Args:
        readings: Blood pressure readings in any order.
        now: End of the analysis window.

    Returns:
        At most one finding.
    """
    recent = _in_window(readings, now)
    if len(recent) < BP_MIN_READINGS:
        logger.debug(f"Only {len(recent)} blood pressure readings in window, skipping trend")
        return []

    avg_sys = fmean(r.systolic for r in recent)
    avg_dia = fmean(r.diastolic for r in recent)
    message = f"7-day average {avg_sys:.1f}/{avg_dia:.1f} mmHg over {len(recent)} readings"

    if avg_sys >= BP_DANGER_SYSTOLIC or avg_dia >= BP_DANGER_DIASTOLIC:
        return [Finding(FindingSeverity.DANGER, "Blood pressure high", message)]
    if avg_sys >= BP_WARNING_SYSTOLIC or avg_dia >= BP_WARNING_DIASTOLIC:
        return [Finding(FindingSeverity.WARNING, "Blood pressure elevated", message)]
    return []


def analyze_trend(readings: Sequence[Reading], kind: ReadingKind, now: datetime) -> List[Finding]:
    """Dispatch to the analyzer of the reading kind."""
    if kind == ReadingKind.BLOOD_PRESSURE:
        return analyze_bp_trend(readings, now)
    if kind == ReadingKind.GLUCOSE:
        return analyze_glucose_trend(readings, now)
    raise ValueError(f"Unsupported reading kind: {kind!r}")


def format_conclusion(findings: Sequence[Finding]) -> str:
    """
    Collapse findings into one conclusion line.

    Returns:
        "[DANGER] title: message; [WARNING] ..." or "Stable" when empty.
    """
    if not findings:
        return STABLE_CONCLUSION
    return "; ".join(
        f"{SEVERITY_MARKERS[finding.severity]} {finding.title}: {finding.message}"
        for finding in findings
    )
