"""
Tests for the Plotly trend chart service.
"""
from datetime import datetime, timedelta, timezone

import pytest

from models.medication import MedicationEvent
from models.reading import BloodPressureReading, GlucoseReading, GlucoseTiming, ReadingKind
from services.graph.trend_chart import EMPTY_CHART_CEILING

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def test_bp_figure_traces(chart_service, high_bp_readings):
    fig = chart_service.build_figure(ReadingKind.BLOOD_PRESSURE, high_bp_readings)
    names = [trace.name for trace in fig.data]

    assert names == ["Systolic", "Diastolic"]
    assert all(len(trace.y) == 3 for trace in fig.data)
    assert list(fig.data[0].y) == [150, 145, 148]


def test_glucose_figure(chart_service, glucose_readings):
    fig = chart_service.build_figure(ReadingKind.GLUCOSE, list(reversed(glucose_readings)))
    assert list(fig.data[0].y) == [98, 156.5]


def test_medication_markers_sit_above_readings(chart_service, high_bp_readings):
    events = [MedicationEvent(id="e1", drug_name="Cozaar", timestamp=NOW, category="hypertension", note="")]
    fig = chart_service.build_figure(ReadingKind.BLOOD_PRESSURE, high_bp_readings, medication_events=events)

    marker = fig.data[-1]
    assert marker.name == "Medication"
    assert marker.y[0] == pytest.approx(150 * 1.05)
    assert list(marker.text) == ["Cozaar"]


def test_marker_height_without_readings(chart_service):
    assert chart_service.medication_marker_height(ReadingKind.GLUCOSE, []) == EMPTY_CHART_CEILING


def test_marker_height_glucose():
    readings = [GlucoseReading(timestamp=NOW - timedelta(hours=i), value=v, timing=GlucoseTiming.OTHER)
                for i, v in enumerate((100, 200))]
    from services.graph import TrendChartService
    assert TrendChartService.medication_marker_height(ReadingKind.GLUCOSE, readings) == pytest.approx(210)


def test_generate_html(chart_service, high_bp_readings):
    html = chart_service.generate_html(ReadingKind.BLOOD_PRESSURE, high_bp_readings, patient_name="Jane Doe")
    assert 'id="trend-chart"' in html
    assert "Jane Doe" in html


def test_unknown_kind(chart_service):
    with pytest.raises(ValueError):
        chart_service.build_figure("weight", [])


def test_empty_history(chart_service):
    fig = chart_service.build_figure(ReadingKind.BLOOD_PRESSURE, [])
    assert all(len(trace.y or ()) == 0 for trace in fig.data)


def test_bp_reading_order(chart_service):
    readings = [
        BloodPressureReading(timestamp=NOW, systolic=130, diastolic=85, pulse=70),
        BloodPressureReading(timestamp=NOW - timedelta(days=1), systolic=120, diastolic=80, pulse=68),
    ]
    fig = chart_service.build_figure(ReadingKind.BLOOD_PRESSURE, readings)
    assert list(fig.data[0].y) == [120, 130]
