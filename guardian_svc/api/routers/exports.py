"""
Exports router - share selected readings with a clinician.

Architecture:
    HTTP Request → Router (this file) → ExportService
        → FHIR bundle, text report, QR share, mailto link, sync push

Every call builds a new bundle; nothing about an export is stored.
"""
import logging
from dataclasses import asdict
from typing import Any, Dict

from fastapi import APIRouter, Depends

from core.dependencies import get_export_service
from core.middleware import get_metrics_collector
from schemas import ExportRequest, ExportResponse, QrShareResponse, SyncDispatchResponse
from services import ExportService
from services.export_service import ExportResult

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/exports", tags=["Exports"])


def _to_response(result: ExportResult) -> ExportResponse:
    return ExportResponse(
        kind=result.kind,
        bundle_id=result.bundle.id,
        bundle=result.bundle.to_fhir_json(),
        text=result.text,
        qr=QrShareResponse(**asdict(result.qr)),
        mailto=result.mailto,
        sync=SyncDispatchResponse(**asdict(result.sync)) if result.sync else None,
    )


@router.post(
    "",
    response_model=ExportResponse,
    summary="Export selected readings",
    description="Build a FHIR R4 document bundle from the selected readings, plus its text report, "
                "QR payload and optional mailto link. Pushes the bundle to the sync topic when sync is enabled."
)
async def create_export(
    request: ExportRequest,
    export_service: ExportService = Depends(get_export_service)
):
    """
    Export selected readings.

    - **kind**: ``bp`` or ``glucose``
    - **indices**: Storage indices from the readings endpoints
    - **recipient**: Email address for the mailto link (optional)

    The QR payload holds at most the three newest observations; ``qr.partial``
    tells when older ones were left out.

    Raises:
    - 400 Bad Request: If the patient is incomplete (IncompletePatientError)
    - 400 Bad Request: If nothing is selected (EmptySelectionError)
    """
    result = export_service.export(request.kind, request.indices, recipient=request.recipient)
    get_metrics_collector().record_export(result.kind.value, result.qr.partial)
    return _to_response(result)


@router.get(
    "/medications",
    summary="Export the dose log",
    description="FHIR R4 bundle with one MedicationStatement per recorded dose."
)
async def export_medications(
    export_service: ExportService = Depends(get_export_service)
) -> Dict[str, Any]:
    return export_service.export_medications().to_fhir_json()
