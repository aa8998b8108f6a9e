"""
Trends router - interactive charts of the reading history.

Architecture:
    HTTP Request → Router (this file) → ReadingService / MedicationService
                                      → TrendChartService (Plotly HTML)
"""
import logging

from fastapi import APIRouter, Depends, Query
from fastapi.responses import HTMLResponse

from core.dependencies import (
    get_medication_service,
    get_patient_service,
    get_reading_service,
    get_trend_chart_service,
)
from models.reading import ReadingKind
from services import MedicationService, PatientService, ReadingService
from services.graph import TrendChartService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/trends", tags=["Trends"])


@router.get(
    "/{kind}",
    response_class=HTMLResponse,
    summary="Trend chart",
    description="Interactive Plotly chart of every reading of a kind, with medication doses as markers."
)
async def trend_chart(
    kind: ReadingKind,
    medications: bool = Query(True, description="Overlay medication doses"),
    reading_service: ReadingService = Depends(get_reading_service),
    medication_service: MedicationService = Depends(get_medication_service),
    patient_service: PatientService = Depends(get_patient_service),
    chart_service: TrendChartService = Depends(get_trend_chart_service)
):
    """
    Get the trend chart of a kind as standalone HTML.

    Path Parameters:
    - **kind**: ``bp`` (systolic and diastolic lines) or ``glucose``

    Query Parameters:
    - **medications**: Overlay medication doses (default true)

    An empty history returns an empty chart, not an error.
    """
    patient = patient_service.get_patient()
    events = medication_service.list_events() if medications else ()
    html_content = chart_service.generate_html(
        kind,
        reading_service.all_readings(kind),
        medication_events=events,
        patient_name=patient.display_name if patient.is_complete() else "",
    )
    return HTMLResponse(content=html_content)
