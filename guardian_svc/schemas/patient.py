"""
Pydantic schemas for patient-related API operations.
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from models.patient import Gender, PatientIdentity


class PatientUpdate(BaseModel):
    """Schema for replacing the patient identity.

    Replacing the identity clears every stored blood pressure and glucose
    reading.
    """
    id: str = Field(
        ...,
        min_length=1,
        max_length=64,
        description="Medical record number or national ID",
        examples=["A123456789"]
    )
    display_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Patient full name",
        examples=["Jane Doe"]
    )
    gender: Gender = Field(..., description="male, female, other or unknown", examples=["female"])
    birth_year: int = Field(..., ge=1800, le=2200, description="Year of birth", examples=[1958])

    class Config:
        json_schema_extra = {
            "example": {
                "id": "A123456789",
                "display_name": "Jane Doe",
                "gender": "female",
                "birth_year": 1958
            }
        }


class PatientResponse(BaseModel):
    """Schema for patient response.

    ``complete`` tells whether exports are possible; ``missing_fields`` lists
    what still holds a placeholder value.
    """
    id: str = Field(..., description="Patient identifier", examples=["A123456789"])
    display_name: str = Field(..., description="Patient full name", examples=["Jane Doe"])
    gender: Gender = Field(..., description="Administrative gender")
    birth_year: int = Field(..., description="Year of birth", examples=[1958])
    age: Optional[int] = Field(None, description="Age in years, null while the birth year is unset")
    complete: bool = Field(..., description="True when every field is filled in")
    missing_fields: List[str] = Field(default_factory=list, description="Fields still holding placeholders")

    @classmethod
    def from_domain(cls, patient: PatientIdentity) -> "PatientResponse":
        missing = patient.missing_fields()
        return cls(
            id=patient.id,
            display_name=patient.display_name,
            gender=patient.gender,
            birth_year=patient.birth_year,
            age=patient.age(),
            complete=not missing,
            missing_fields=missing,
        )
