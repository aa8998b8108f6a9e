"""
Analysis router - advisory findings over the recent readings.

Findings look at the last seven days only and are advisory. Nothing here
is stored.
"""
import logging

from fastapi import APIRouter, Depends

from core.dependencies import get_reading_service
from schemas import AnalysisResponse, FindingResponse
from services import ReadingService
from services.trend_analyzer import format_conclusion

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/analysis", tags=["Analysis"])


@router.get(
    "",
    response_model=AnalysisResponse,
    summary="Health recommendations",
    description="Trend findings over the last seven days, glucose first, with a one-line conclusion."
)
async def get_analysis(reading_service: ReadingService = Depends(get_reading_service)):
    """
    Get the advisory findings.

    - Glucose: mean of fasting readings and mean of the other readings
    - Blood pressure: mean of systolic and diastolic, from three readings on

    ``conclusion`` is "Stable" when there is no finding.
    """
    findings = reading_service.recommendations()
    return AnalysisResponse(
        findings=[FindingResponse.from_domain(f) for f in findings],
        conclusion=format_conclusion(findings),
    )
