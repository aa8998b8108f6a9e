"""
Readings router - blood pressure and glucose log endpoints.

Architecture:
    HTTP Request → Router (this file) → ReadingService → ReadingRepository → Database

Dependency Injection:
    The ReadingService and the display timezone are injected via Depends().
    The DI chain is defined in core/dependencies.py.

Every reading returned carries its storage ``index``; those indices are what
the exports endpoint expects.
"""
import logging
from datetime import tzinfo
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from core.dependencies import get_display_timezone, get_reading_service
from models.reading import ReadingKind
from schemas import BloodPressureCreate, GlucoseCreate, ReadingResponse
from services import ReadingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/readings", tags=["Readings"])


def _to_response(item, tz: tzinfo) -> ReadingResponse:
    return ReadingResponse.from_domain(item.index, item.reading, item.status, tz)


@router.post(
    "/bp",
    response_model=ReadingResponse,
    status_code=201,
    summary="Record a blood pressure reading",
    description="Add a systolic/diastolic/pulse measurement. The response carries its severity tier."
)
async def create_blood_pressure(
    reading: BloodPressureCreate,
    reading_service: ReadingService = Depends(get_reading_service),
    tz: tzinfo = Depends(get_display_timezone)
):
    """
    Record a blood pressure reading.

    - **timestamp**: When the measurement was taken (optional, defaults to now)
    - **systolic** / **diastolic**: Pressure in mmHg
    - **pulse**: Heart rate in beats per minute
    - **medication_taken**: Whether medication was taken before measuring

    Raises:
    - 400 Bad Request: If a value is not a positive number (InvalidReadingError)
    """
    created = reading_service.add_blood_pressure(
        systolic=reading.systolic,
        diastolic=reading.diastolic,
        pulse=reading.pulse,
        timestamp=reading.timestamp,
        medication_taken=reading.medication_taken,
    )
    return _to_response(created, tz)


@router.post(
    "/glucose",
    response_model=ReadingResponse,
    status_code=201,
    summary="Record a glucose reading",
    description="Add a glucose measurement in mg/dL with its meal-relative timing."
)
async def create_glucose(
    reading: GlucoseCreate,
    reading_service: ReadingService = Depends(get_reading_service),
    tz: tzinfo = Depends(get_display_timezone)
):
    """
    Record a glucose reading.

    - **timestamp**: When the measurement was taken (optional, defaults to now)
    - **value**: Glucose in mg/dL
    - **timing**: fasting, before-meal, post-prandial, before-sleep or other
    - **medication_taken**: Whether medication was taken before measuring
    """
    created = reading_service.add_glucose(
        value=reading.value,
        timing=reading.timing,
        timestamp=reading.timestamp,
        medication_taken=reading.medication_taken,
    )
    return _to_response(created, tz)


@router.get(
    "/{kind}",
    response_model=List[ReadingResponse],
    summary="List readings",
    description="Readings of one kind, newest first, each with its storage index and severity tier."
)
async def list_readings(
    kind: ReadingKind,
    limit: Optional[int] = Query(None, ge=1, le=1000, description="Maximum number of readings to return (1-1000)"),
    reading_service: ReadingService = Depends(get_reading_service),
    tz: tzinfo = Depends(get_display_timezone)
):
    """
    List readings of a kind.

    Path Parameters:
    - **kind**: ``bp`` or ``glucose``

    Query Parameters:
    - **limit**: Maximum number of readings to return (optional)
    """
    return [_to_response(item, tz) for item in reading_service.list_readings(kind, limit=limit)]


@router.get(
    "/{kind}/latest",
    response_model=Optional[ReadingResponse],
    summary="Most recent reading",
    description="The most recent reading of a kind, or null when nothing is recorded."
)
async def latest_reading(
    kind: ReadingKind,
    reading_service: ReadingService = Depends(get_reading_service),
    tz: tzinfo = Depends(get_display_timezone)
):
    latest = reading_service.latest(kind)
    return _to_response(latest, tz) if latest else None
