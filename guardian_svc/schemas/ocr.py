"""
Pydantic schemas for photo recognition.
"""
from typing import Dict, Optional

from pydantic import BaseModel, Field

from models.reading import ReadingKind
from services.ocr_extractor import ExtractionOutcome


class RecognitionResponse(BaseModel):
    """Values read off a device photo.

    Extraction problems are reported through ``outcome``; the request
    itself still succeeds.
    """
    kind: ReadingKind
    outcome: ExtractionOutcome = Field(..., description="success, fail, mismatch or partial_fail")
    values: Dict[str, int] = Field(default_factory=dict, examples=[{"systolic": 128, "diastolic": 82}])
    message: str = Field(..., examples=["Read 128/82 mmHg"])
    raw_text: Optional[str] = Field(None, description="Text the OCR engine returned")


class RecognitionTextRequest(BaseModel):
    """Raw OCR text recognised on the client."""
    raw_text: str = Field(..., max_length=10000)
