"""
Pydantic schemas for medication events and the drug catalog.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from core.datetime_utils import format_iso
from models.medication import Drug, MedicationEvent


class MedicationCreate(BaseModel):
    """Schema for recording a dose."""
    drug_name: str = Field(..., min_length=1, max_length=200, description="Drug name", examples=["Metformin"])
    timestamp: Optional[datetime] = Field(
        None,
        description="When the dose was taken (ISO 8601); defaults to now",
        examples=["2025-01-01T08:00:00+08:00"]
    )


class MedicationEventResponse(BaseModel):
    id: str
    drug_name: str
    timestamp: str = Field(..., description="ISO 8601 UTC timestamp")
    category: str = Field(..., examples=["diabetes"])
    note: str

    @classmethod
    def from_domain(cls, event: MedicationEvent) -> "MedicationEventResponse":
        return cls(
            id=event.id,
            drug_name=event.drug_name,
            timestamp=format_iso(event.timestamp),
            category=event.category,
            note=event.note,
        )


class DrugResponse(BaseModel):
    """Catalog entry with its interaction warning."""
    id: str
    name: str
    category: str
    side_effect: str
    interaction_warning: Optional[str] = None

    @classmethod
    def from_domain(cls, drug: Drug, warning: Optional[str] = None) -> "DrugResponse":
        return cls(
            id=drug.id,
            name=drug.name,
            category=drug.category,
            side_effect=drug.side_effect,
            interaction_warning=warning,
        )
