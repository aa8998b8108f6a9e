"""
Plotly trend chart of readings with medication markers.

The chart shows one kind of reading over time:
- Blood pressure: systolic and diastolic lines
- Glucose: one line
Medication events are drawn as a scatter row just above the highest value
(``1.05 * max``, or 150 when there is no reading) so doses can be read
against the curve.
"""

import logging
from datetime import tzinfo
from typing import Any, Dict, List, Optional, Sequence

import plotly.graph_objects as go
import plotly.io as pio

from core.datetime_utils import to_utc
from core.reading_registry import get_bp_component, get_glucose_component
from models.medication import MedicationEvent
from models.reading import BloodPressureReading, GlucoseReading, Reading, ReadingKind

logger = logging.getLogger(__name__)

MEDICATION_MARKER_FACTOR = 1.05
EMPTY_CHART_CEILING = 150
MEDICATION_COLOR = '#DC3545'

Y_AXIS_TITLES = {
    ReadingKind.BLOOD_PRESSURE: "Blood pressure (mmHg)",
    ReadingKind.GLUCOSE: "Glucose (mg/dL)",
}


class TrendChartService:
    """
    Builds Plotly figures and standalone HTML for reading trends.

    Usage:
        service = TrendChartService(display_tz=ZoneInfo("Asia/Taipei"))
        fig = service.build_figure(ReadingKind.BLOOD_PRESSURE, readings, events)
    """

    def __init__(self, display_tz: Optional[tzinfo] = None):
        self.display_tz = display_tz

    def _local(self, reading_or_event) -> Any:
        instant = to_utc(reading_or_event.timestamp)
        return instant.astimezone(self.display_tz) if self.display_tz else instant

    def _bp_traces(self, readings: List[BloodPressureReading]) -> List[go.Scatter]:
        dates = [self._local(r) for r in readings]
        systolic = get_bp_component("systolic")
        diastolic = get_bp_component("diastolic")
        return [
            go.Scatter(
                x=dates, y=[r.systolic for r in readings],
                name="Systolic",
                mode='lines+markers',
                line=dict(color=systolic.color, width=2.5, shape='spline'),
                marker=dict(size=8, symbol='triangle-up', color=systolic.color),
                hovertemplate="%{x|%Y/%m/%d %H:%M}<br><b>Systolic: %{y} mmHg</b><extra></extra>",
            ),
            go.Scatter(
                x=dates, y=[r.diastolic for r in readings],
                name="Diastolic",
                mode='lines+markers',
                line=dict(color=diastolic.color, width=2.5, shape='spline', dash='dot'),
                marker=dict(size=8, symbol='triangle-down', color=diastolic.color),
                hovertemplate="%{x|%Y/%m/%d %H:%M}<br><b>Diastolic: %{y} mmHg</b><extra></extra>",
            ),
        ]

    def _glucose_traces(self, readings: List[GlucoseReading]) -> List[go.Scatter]:
        glucose = get_glucose_component()
        return [
            go.Scatter(
                x=[self._local(r) for r in readings],
                y=[r.value for r in readings],
                name="Glucose",
                mode='lines+markers',
                line=dict(color=glucose.color, width=2.5, shape='spline'),
                marker=dict(size=8, color=glucose.color),
                hovertemplate="%{x|%Y/%m/%d %H:%M}<br><b>Glucose: %{y} mg/dL</b><extra></extra>",
            )
        ]

    @staticmethod
    def medication_marker_height(kind: ReadingKind, readings: Sequence[Reading]) -> float:
        """Y position of the medication markers."""
        if not readings:
            return EMPTY_CHART_CEILING
        if kind == ReadingKind.BLOOD_PRESSURE:
            highest = max(r.systolic for r in readings)
        else:
            highest = max(r.value for r in readings)
        return highest * MEDICATION_MARKER_FACTOR

    def build_figure(
        self,
        kind: ReadingKind,
        readings: Sequence[Reading],
        medication_events: Sequence[MedicationEvent] = (),
        patient_name: str = "",
    ) -> go.Figure:
        """
        Build the trend figure of one reading kind.

        Args:
            kind: Reading kind to plot.
            readings: Readings of that kind, any order.
            medication_events: Doses drawn as markers.
            patient_name: Shown under the title.

        Returns:
            go.Figure: Reading traces (sorted by time) plus the medication scatter.
        """
        ordered = sorted(readings, key=lambda r: to_utc(r.timestamp))
        fig = go.Figure()

        if kind == ReadingKind.BLOOD_PRESSURE:
            traces = self._bp_traces(ordered)
        elif kind == ReadingKind.GLUCOSE:
            traces = self._glucose_traces(ordered)
        else:
            raise ValueError(f"Unsupported reading kind: {kind!r}")
        for trace in traces:
            fig.add_trace(trace)

        if medication_events:
            height = self.medication_marker_height(kind, ordered)
            events = sorted(medication_events, key=lambda e: to_utc(e.timestamp))
            fig.add_trace(go.Scatter(
                x=[self._local(e) for e in events],
                y=[height] * len(events),
                name="Medication",
                mode='markers',
                marker=dict(size=10, color=MEDICATION_COLOR, symbol='circle'),
                text=[e.drug_name for e in events],
                hovertemplate="%{x|%Y/%m/%d %H:%M}<br><b>Medication: %{text}</b><extra></extra>",
            ))

        self.apply_layout(fig, kind, patient_name)
        logger.debug(f"Built {kind.value} trend figure with {len(ordered)} readings")
        return fig

    def apply_layout(self, fig: go.Figure, kind: ReadingKind, patient_name: str) -> None:
        subtitle = f"<br><sup style='color:#757575'>{patient_name}</sup>" if patient_name else ""
        fig.update_layout(
            title=dict(
                text=f"<b>{Y_AXIS_TITLES[kind].split(' (')[0]} trend</b>{subtitle}",
                font=dict(size=18),
                x=0.5, xanchor="center",
            ),
            xaxis=dict(
                type="date",
                title=dict(text="Time"),
                showgrid=True,
                gridcolor='rgba(0,0,0,0.06)',
                tickformat='%m/%d',
            ),
            yaxis=dict(
                title=dict(text=Y_AXIS_TITLES[kind]),
                showgrid=True,
                gridcolor='rgba(0,0,0,0.06)',
            ),
            hovermode='closest',
            legend=dict(orientation="h", x=0.5, xanchor="center", y=-0.15, yanchor="top"),
            height=500,
            margin=dict(l=50, r=30, t=80, b=90),
            template="plotly_white",
        )

    def get_config(self) -> Dict[str, Any]:
        return {
            'displayModeBar': True,
            'displaylogo': False,
            'modeBarButtonsToRemove': ['lasso2d', 'select2d', 'autoScale2d'],
            'responsive': True,
        }

    def generate_html(
        self,
        kind: ReadingKind,
        readings: Sequence[Reading],
        medication_events: Sequence[MedicationEvent] = (),
        patient_name: str = "",
    ) -> str:
        """Generate standalone HTML with the interactive chart."""
        fig = self.build_figure(kind, readings, medication_events, patient_name)
        return pio.to_html(
            fig,
            include_plotlyjs='cdn',
            config=self.get_config(),
            div_id="trend-chart",
        )
