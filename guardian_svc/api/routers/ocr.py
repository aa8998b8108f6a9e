"""
OCR router - read device displays from photos.

Architecture:
    HTTP Request → Router (this file) → RecognitionService
        → pytesseract (raw text)
        → ocr_extractor (values)

Extraction outcomes such as a mismatched device or a missing value are
reported in the response body with status 200. Only unreadable uploads are
HTTP errors.
"""
import logging

from fastapi import APIRouter, Depends, File, UploadFile
from starlette.concurrency import run_in_threadpool

from core.dependencies import get_recognition_service
from core.middleware import get_metrics_collector
from models.reading import ReadingKind
from schemas.ocr import RecognitionResponse, RecognitionTextRequest
from services.ocr_extractor import extract_reading_values
from services.recognition_service import RecognitionService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/ocr", tags=["Recognition"])


@router.post(
    "/{kind}",
    response_model=RecognitionResponse,
    summary="Recognize a device photo",
    description="Upload a photo of a blood pressure monitor or glucose meter (JPEG, PNG, WebP, BMP or GIF) "
                "and get the values it shows. Nothing is recorded."
)
async def recognize_photo(
    kind: ReadingKind,
    file: UploadFile = File(..., description="Photo of the device display"),
    recognition_service: RecognitionService = Depends(get_recognition_service)
):
    """
    Recognize a device photo.

    Path Parameters:
    - **kind**: The device the photo is expected to show (``bp`` or ``glucose``)

    Outcomes:
    - **success**: All values were read
    - **partial_fail**: Only the systolic value was found
    - **mismatch**: The photo shows the other kind of device
    - **fail**: No value was found

    Raises:
    - 413 Payload Too Large: If the photo exceeds the size limit
    - 415 Unsupported Media Type: If the upload is not an image
    - 502 Bad Gateway: If the OCR engine cannot process the image
    """
    recognition_service.validate_upload(file)
    content = await file.read()
    # Tesseract blocks, keep it off the event loop
    raw_text, result = await run_in_threadpool(recognition_service.recognize_reading, content, kind)
    get_metrics_collector().record_ocr(result.outcome.value)
    return RecognitionResponse(
        kind=kind,
        outcome=result.outcome,
        values=result.values,
        message=result.message,
        raw_text=raw_text,
    )


@router.post(
    "/{kind}/text",
    response_model=RecognitionResponse,
    summary="Extract values from OCR text",
    description="Run value extraction on text recognised elsewhere, e.g. on the client device."
)
async def extract_from_text(kind: ReadingKind, request: RecognitionTextRequest):
    result = extract_reading_values(request.raw_text, kind)
    return RecognitionResponse(
        kind=kind,
        outcome=result.outcome,
        values=result.values,
        message=result.message,
        raw_text=request.raw_text,
    )
