"""
Pydantic schemas for reading-related API operations.
"""
from datetime import datetime, tzinfo
from typing import List, Optional, Union

from pydantic import BaseModel, Field

from core.datetime_utils import format_for_display, format_iso
from core.reading_registry import timing_label
from models.analysis import Finding, FindingSeverity, SeverityTier, TierStatus
from models.reading import BloodPressureReading, GlucoseReading, GlucoseTiming, ReadingKind


class BloodPressureCreate(BaseModel):
    """Schema for recording a blood pressure reading.

    The timestamp defaults to the time of the request.
    """
    timestamp: Optional[datetime] = Field(
        None,
        description="When the measurement was taken (ISO 8601, UTC if no offset)",
        examples=["2025-01-01T08:00:00+08:00"]
    )
    systolic: int = Field(..., gt=0, le=400, description="Systolic pressure (mmHg)", examples=[128])
    diastolic: int = Field(..., gt=0, le=400, description="Diastolic pressure (mmHg)", examples=[82])
    pulse: int = Field(..., gt=0, le=400, description="Heart rate (beats per minute)", examples=[71])
    medication_taken: bool = Field(False, description="Medication taken before the measurement")

    class Config:
        json_schema_extra = {
            "example": {
                "timestamp": "2025-01-01T08:00:00+08:00",
                "systolic": 128,
                "diastolic": 82,
                "pulse": 71,
                "medication_taken": False
            }
        }


class GlucoseCreate(BaseModel):
    """Schema for recording a glucose reading in mg/dL."""
    timestamp: Optional[datetime] = Field(
        None,
        description="When the measurement was taken (ISO 8601, UTC if no offset)",
        examples=["2025-01-01T07:30:00+08:00"]
    )
    value: float = Field(..., gt=0, le=2000, allow_inf_nan=False, description="Glucose (mg/dL)", examples=[105])
    timing: GlucoseTiming = Field(GlucoseTiming.OTHER, description="Meal-relative timing")
    medication_taken: bool = Field(False, description="Medication taken before the measurement")

    class Config:
        json_schema_extra = {
            "example": {
                "timestamp": "2025-01-01T07:30:00+08:00",
                "value": 105,
                "timing": "fasting",
                "medication_taken": False
            }
        }


class TierStatusResponse(BaseModel):
    """Severity tier with display hints."""
    tier: SeverityTier
    label: str
    icon: str
    css_class: str

    @classmethod
    def from_domain(cls, status: TierStatus) -> "TierStatusResponse":
        return cls(tier=status.tier, label=status.label, icon=status.icon, css_class=status.css_class)


class ReadingResponse(BaseModel):
    """Schema for a stored reading.

    ``index`` is the storage index used to select readings for export.
    """
    index: int = Field(..., description="Storage index", examples=[0])
    kind: ReadingKind
    timestamp: str = Field(..., description="ISO 8601 UTC timestamp", examples=["2025-01-01T00:00:00Z"])
    display_time: str = Field(..., description="Local wall-clock time", examples=["2025/01/01 08:00"])
    systolic: Optional[int] = None
    diastolic: Optional[int] = None
    pulse: Optional[int] = None
    value: Optional[Union[int, float]] = None
    unit: str = Field(..., examples=["mmHg"])
    timing: Optional[GlucoseTiming] = None
    timing_label: Optional[str] = None
    medication_taken: bool
    status: TierStatusResponse

    @classmethod
    def from_domain(cls, index: int, reading, status: TierStatus, tz: Optional[tzinfo] = None) -> "ReadingResponse":
        common = dict(
            index=index,
            timestamp=format_iso(reading.timestamp),
            display_time=format_for_display(reading.timestamp, tz),
            medication_taken=reading.medication_taken,
            status=TierStatusResponse.from_domain(status),
        )
        if isinstance(reading, BloodPressureReading):
            return cls(
                kind=ReadingKind.BLOOD_PRESSURE,
                systolic=reading.systolic,
                diastolic=reading.diastolic,
                pulse=reading.pulse,
                unit="mmHg",
                **common,
            )
        if isinstance(reading, GlucoseReading):
            return cls(
                kind=ReadingKind.GLUCOSE,
                value=reading.value,
                unit="mg/dL",
                timing=reading.timing,
                timing_label=timing_label(reading.timing),
                **common,
            )
        raise TypeError(f"Unsupported reading type: {type(reading).__name__}")


class FindingResponse(BaseModel):
    """Advisory finding derived from several readings."""
    severity: FindingSeverity
    title: str
    message: str

    @classmethod
    def from_domain(cls, finding: Finding) -> "FindingResponse":
        return cls(severity=finding.severity, title=finding.title, message=finding.message)


class AnalysisResponse(BaseModel):
    """Trend findings plus the one-line conclusion."""
    findings: List[FindingResponse]
    conclusion: str = Field(..., examples=["Stable"])
