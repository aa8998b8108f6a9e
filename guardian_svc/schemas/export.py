"""
Pydantic schemas for exports and sync.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from models.reading import ReadingKind


class ExportRequest(BaseModel):
    """Schema for exporting selected readings.

    ``indices`` are storage indices as returned by the readings endpoints.
    """
    kind: ReadingKind = Field(..., description="bp or glucose")
    indices: List[int] = Field(default_factory=list, description="Storage indices of the selected readings")
    recipient: Optional[str] = Field(
        None,
        max_length=254,
        pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$",
        description="Email address for the mailto link",
        examples=["doctor@example.com"]
    )

    class Config:
        json_schema_extra = {
            "example": {
                "kind": "bp",
                "indices": [0, 1, 2],
                "recipient": "doctor@example.com"
            }
        }


class QrShareResponse(BaseModel):
    """Text for the QR code, or the notice explaining why there is none."""
    payload: Optional[str] = Field(None, description="Base64 of the compact bundle JSON")
    partial: bool = Field(..., description="True when older observations were left out")
    error_correction: str = Field("L", description="QR error correction level")
    notice: Optional[str] = None


class SyncDispatchResponse(BaseModel):
    topic: str
    bundle_id: str
    dispatched: bool
    task_id: Optional[str] = None


class ExportResponse(BaseModel):
    """One export in every share format."""
    kind: ReadingKind
    bundle_id: str
    bundle: Dict[str, Any] = Field(..., description="FHIR R4 Bundle (collection)")
    text: str = Field(..., description="Plain-text report")
    qr: QrShareResponse
    mailto: Optional[str] = None
    sync: Optional[SyncDispatchResponse] = None


class SyncStatusResponse(BaseModel):
    topic: str = Field(..., examples=["cig_user_a1b2c3d4"])
    viewer_url: str = Field(..., description="Link a clinician opens to follow the topic")
    snapshot_size: int
    enabled: bool = Field(..., description="Whether exports push automatically")
